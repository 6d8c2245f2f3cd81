"""
PlaceShare Backend — Places Route Handlers
============================================

What:  HTTP adapters for reading, creating, updating and deleting places.
How:   Extracts path/form/body data, resolves the requester via app.auth,
       delegates to PlaceService, wraps results in response envelopes.

Route Inventory:
    GET    /api/places/{place_id}        → 200 {"place"}
    GET    /api/places/user/{user_id}    → 200 {"places"} (empty list allowed)
    POST   /api/places                   → 201 {"place"}   (auth, multipart)
    PATCH  /api/places/{place_id}        → 200 {"place"}   (auth, owner only)
    DELETE /api/places/{place_id}        → 200 {"message"} (auth, owner only)

Errors are raised as application exceptions and formatted by the global
handlers in main.py.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_requester_id
from app.database import get_db_session
from app.schemas.place import (
    ErrorResponse,
    MessageResponse,
    PlaceEnvelope,
    PlaceListResponse,
    PlaceResponse,
    PlaceUpdate,
)
from app.services.file_service import file_service
from app.services.image_lifecycle import image_lifecycle
from app.services.place_service import parse_coordinates, place_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Places"])


@router.get(
    "/places/user/{user_id}",
    response_model=PlaceListResponse,
    response_model_exclude_none=True,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List the places created by a user",
)
async def list_places_by_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PlaceListResponse:
    places = await place_service.list_places_by_user(db=db, user_id=user_id)
    if not places:
        return PlaceListResponse(
            places=[],
            message="No places found for the provided user id.",
        )
    return PlaceListResponse(places=[PlaceResponse.from_place(p) for p in places])


@router.get(
    "/places/{place_id}",
    response_model=PlaceEnvelope,
    responses={
        404: {"description": "Place not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single place by id",
)
async def get_place(
    place_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PlaceEnvelope:
    place = await place_service.get_place(db=db, place_id=place_id)
    return PlaceEnvelope(place=PlaceResponse.from_place(place))


@router.post(
    "/places",
    status_code=201,
    response_model=PlaceEnvelope,
    responses={
        201: {"description": "Place created", "model": PlaceEnvelope},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Owner not found", "model": ErrorResponse},
        422: {"description": "Invalid inputs", "model": ErrorResponse},
        500: {"description": "Transaction failed", "model": ErrorResponse},
    },
    summary="Create a place owned by the requester",
)
async def create_place(
    title: str = Form(..., min_length=1),
    description: str = Form(..., min_length=5),
    address: str = Form(..., min_length=1),
    coordinates: Optional[str] = Form(
        default=None,
        description='JSON object with numeric lat/lng, e.g. {"lat": 40.78, "lng": -73.97}',
    ),
    image: UploadFile = File(..., description="Place image (PNG or JPEG)"),
    requester_id: str = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db_session),
) -> PlaceEnvelope:
    """
    Processing Steps:
        1. Check coordinates (nothing is written for bad input)
        2. Store the uploaded image (upload collaborator)
        3. PlaceService.create_place(): owner lookup + transaction
        4. On any failure after step 2, remove the stored image
    """
    try:
        parse_coordinates(coordinates)
        content = await image.read()
        image_path = await file_service.validate_and_store(
            filename=image.filename or "",
            content_type=image.content_type,
            content=content,
        )
    finally:
        await image.close()

    try:
        place = await place_service.create_place(
            db=db,
            owner_id=requester_id,
            title=title,
            description=description,
            address=address,
            coordinates=coordinates,
            image_path=image_path,
        )
    except Exception:
        await image_lifecycle.release(image_path)
        raise

    return PlaceEnvelope(place=PlaceResponse.from_place(place))


@router.patch(
    "/places/{place_id}",
    response_model=PlaceEnvelope,
    responses={
        401: {"description": "Not authenticated or not the owner", "model": ErrorResponse},
        404: {"description": "Place not found", "model": ErrorResponse},
        422: {"description": "Invalid inputs", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Update title and description of an owned place",
)
async def update_place(
    place_id: UUID,
    body: PlaceUpdate,
    requester_id: str = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db_session),
) -> PlaceEnvelope:
    place = await place_service.update_place(
        db=db,
        place_id=place_id,
        requester_id=requester_id,
        title=body.title,
        description=body.description,
    )
    return PlaceEnvelope(place=PlaceResponse.from_place(place))


@router.delete(
    "/places/{place_id}",
    response_model=MessageResponse,
    responses={
        401: {"description": "Not authenticated or not the owner", "model": ErrorResponse},
        404: {"description": "Place not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete an owned place",
)
async def delete_place(
    place_id: UUID,
    background_tasks: BackgroundTasks,
    requester_id: str = Depends(get_requester_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """
    Responds once the delete transaction has committed. The image file is
    removed afterwards as a background task.
    """
    await place_service.delete_place(
        db=db,
        place_id=place_id,
        requester_id=requester_id,
        background_tasks=background_tasks,
    )
    return MessageResponse(message="Deleted Place.")
