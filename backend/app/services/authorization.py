"""
PlaceShare Backend — Authorization Guard
==========================================

Single-owner model: only the user who created a place may update or
delete it. No roles, no delegation. The requester id comes from the auth
dependency (app.auth) and is trusted here.
"""

import logging
from typing import Any

from app.exceptions import AuthorizationError
from app.models.place import Place
from app.repositories.entity_store import coerce_id

logger = logging.getLogger(__name__)


def can_mutate(place: Place, requester_id: Any) -> bool:
    """True when the requester is the place's creator."""
    requester = coerce_id(requester_id)
    return requester is not None and place.creator_id == requester


def ensure_can_mutate(place: Place, requester_id: Any, action: str = "modify") -> None:
    """Raise AuthorizationError unless the requester owns the place."""
    if not can_mutate(place, requester_id):
        logger.warning(
            "Denied %s of place %s: requester %s is not the creator",
            action,
            place.id,
            requester_id,
        )
        raise AuthorizationError(
            action=action,
            context={"place_id": str(place.id), "requester_id": str(requester_id)},
        )
