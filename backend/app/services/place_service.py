"""
PlaceShare Backend — Place Service (Relationship Maintainer)
=============================================================

What:  Business logic for places and the Place ↔ User ownership link.
How:   Composes EntityStore transactions, the authorization guard and the
       image lifecycle manager.
Who:   Called by the places route handlers.

Invariant kept by this service:
    Every place has creator_id pointing at an existing user, and that
    user's `places` collection contains the place exactly once. Create and
    delete touch both sides inside ONE store transaction:

    create:  ┌── transaction ─────────────────────────────────┐
             │ lock owner → insert place → append to owner    │ → commit
             └────────────────────────────────────────────────┘
    delete:  ┌── transaction ─────────────────────────────────┐
             │ lock place → authorize → remove from owner     │ → commit → release image
             │ → delete place                                 │
             └────────────────────────────────────────────────┘

    Authorization runs before the destructive call, so a rejected delete
    leaves the place and the owner's collection untouched.

Update only rewrites title/description on one row and needs no
cross-entity transaction.
"""

import json
import logging
import math
from typing import Any, List, Mapping, Optional, Tuple, Union

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, ValidationError
from app.models.place import Place
from app.models.user import User
from app.repositories.entity_store import EntityStore, coerce_id
from app.services.authorization import ensure_can_mutate
from app.services.image_lifecycle import image_lifecycle

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but is not a coordinate
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # JSON integers are unbounded; anything past float range is invalid
        return False


def parse_coordinates(coordinates: Union[str, Mapping[str, Any], None]) -> Tuple[float, float]:
    """
    Validate the coordinates of a new place.

    Accepts the JSON string sent in the multipart form
    (e.g. '{"lat": 40.7, "lng": -73.9}') or an already-decoded mapping.

    Returns:
        (lat, lng) as floats

    Raises:
        ValidationError: missing, not JSON, not an object, or lat/lng
        missing or not numeric
    """
    if coordinates is None or coordinates == "":
        raise ValidationError(message="Invalid coordinates data.", field="coordinates")

    parsed: Any = coordinates
    if isinstance(coordinates, (str, bytes)):
        try:
            parsed = json.loads(coordinates)
        except ValueError:
            logger.warning("Error parsing coordinates: %r", coordinates)
            raise ValidationError(message="Invalid coordinates format.", field="coordinates")

    if not isinstance(parsed, Mapping):
        raise ValidationError(message="Invalid coordinates data.", field="coordinates")

    lat, lng = parsed.get("lat"), parsed.get("lng")
    if not _is_number(lat) or not _is_number(lng):
        raise ValidationError(
            message="Invalid coordinates data.",
            field="coordinates",
            context={"lat": repr(lat), "lng": repr(lng)},
        )
    return float(lat), float(lng)


class PlaceService:
    """
    Business logic layer for place operations.

    Responsibilities:
        - get_place(): single place lookup
        - list_places_by_user(): places owned by a user (possibly empty)
        - create_place(): transactional insert + owner append
        - update_place(): owner-only title/description edit
        - delete_place(): transactional owner removal + delete, then image cleanup

    Error Handling Strategy:
        NotFoundError / AuthorizationError / ValidationError are raised
        directly. Store failures arrive as PersistenceError from
        EntityStore and propagate unchanged.
    """

    async def get_place(self, db: AsyncSession, place_id: Any) -> Place:
        """
        Raises:
            NotFoundError: no place with this id (→ 404)
            PersistenceError: query failed (→ 500)
        """
        store = EntityStore(db)
        place = await store.find_by_id(Place, place_id)
        if place is None:
            raise NotFoundError(resource="place", resource_id=str(place_id))
        return place

    async def list_places_by_user(self, db: AsyncSession, user_id: Any) -> List[Place]:
        """
        Places created by the given user, oldest first.

        A user without places, or an unknown user id, yields an empty list,
        never NotFoundError.
        """
        creator_id = coerce_id(user_id)
        if creator_id is None:
            return []
        store = EntityStore(db)
        return await store.find(Place, creator_id=creator_id)

    async def create_place(
        self,
        db: AsyncSession,
        owner_id: Any,
        title: str,
        description: str,
        address: str,
        coordinates: Union[str, Mapping[str, Any], None],
        image_path: str,
    ) -> Place:
        """
        Create a place owned by `owner_id`.

        Workflow Steps:
            1. Validate coordinates (no store access before this passes)
            2. In one transaction: lock the owner, insert the place,
               append it to owner.places, save the owner
            3. Return the place with its assigned id

        Raises:
            ValidationError: malformed or missing coordinates (→ 422)
            NotFoundError: owner does not exist (→ 404)
            PersistenceError: any store failure; nothing is committed (→ 500)
        """
        lat, lng = parse_coordinates(coordinates)

        store = EntityStore(db)
        async with store.transaction():
            owner = await store.find_by_id(User, owner_id, for_update=True)
            if owner is None:
                raise NotFoundError(resource="user", resource_id=str(owner_id))

            place = Place(
                title=title,
                description=description,
                address=address,
                lat=lat,
                lng=lng,
                creator_id=owner.id,
            )
            image_lifecycle.attach(place, image_path)

            await store.save(place)
            owner.places.append(place)
            await store.save(owner)

        logger.info("Place %s created by user %s", place.id, owner.id)
        return place

    async def update_place(
        self,
        db: AsyncSession,
        place_id: Any,
        requester_id: Any,
        title: str,
        description: str,
    ) -> Place:
        """
        Owner-only edit of title and description.

        Raises:
            NotFoundError: no such place (→ 404)
            AuthorizationError: requester is not the creator (→ 401)
            PersistenceError: write failed (→ 500)
        """
        store = EntityStore(db)
        place = await store.find_by_id(Place, place_id)
        if place is None:
            raise NotFoundError(resource="place", resource_id=str(place_id))

        ensure_can_mutate(place, requester_id, action="edit")

        place.title = title
        place.description = description
        await store.save(place)

        logger.info("Place %s updated by user %s", place.id, requester_id)
        return place

    async def delete_place(
        self,
        db: AsyncSession,
        place_id: Any,
        requester_id: Any,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Place:
        """
        Owner-only delete.

        Workflow Steps:
            1. In one transaction: lock the place, check ownership, lock the
               owner, remove the place from owner.places, delete the place
            2. After commit: release the image file. With `background_tasks`
               the removal runs after the response is sent; without it the
               removal is awaited here. Either way it cannot fail the call.

        Returns:
            The deleted place (detached; attributes still readable)

        Raises:
            NotFoundError: no such place, including a concurrent delete that
                           won the race (→ 404)
            AuthorizationError: requester is not the creator; nothing was
                                changed (→ 401)
            PersistenceError: store failure; nothing was changed (→ 500)
        """
        store = EntityStore(db)
        async with store.transaction():
            place = await store.find_by_id(Place, place_id, for_update=True)
            if place is None:
                raise NotFoundError(resource="place", resource_id=str(place_id))

            ensure_can_mutate(place, requester_id, action="delete")

            owner = await store.find_by_id(User, place.creator_id, for_update=True)
            if owner is not None and place in owner.places:
                owner.places.remove(place)

            deleted = await store.delete_by_id(Place, place.id)
            if deleted is None:
                raise NotFoundError(resource="place", resource_id=str(place_id))

            if owner is not None:
                await store.save(owner)

        image_path = place.image
        logger.info("Place %s deleted by user %s", place.id, requester_id)

        if background_tasks is not None:
            background_tasks.add_task(image_lifecycle.release, image_path)
        else:
            await image_lifecycle.release(image_path)

        return place


# ── Singleton Instance ────────────────────────────────────────────────────
place_service = PlaceService()
