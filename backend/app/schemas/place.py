"""
PlaceShare Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract for places and users.
How:   FastAPI validates request bodies against these models, serializes
       responses through them, and documents both in OpenAPI.

Response envelopes match what the web client reads:
    {"place": {...}}, {"places": [...]}, {"users": [...]}, {"message": "..."}
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.place import Place
from app.models.user import User


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PlaceUpdate(BaseModel):
    """Body of PATCH /api/places/{pid}. Only these two fields are editable."""
    title: str = Field(min_length=1, description="New title (non-empty)")
    description: str = Field(min_length=5, description="New description (at least 5 characters)")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class Location(BaseModel):
    lat: float
    lng: float


class PlaceResponse(BaseModel):
    """
    What:  Full representation of a place.
    Who:   Nested in every place envelope.
    """
    id: uuid.UUID = Field(description="Unique place identifier")
    title: str
    description: str
    address: str
    location: Location
    image: str = Field(description="Stored path of the uploaded image")
    creator: uuid.UUID = Field(description="Id of the owning user")
    created_at: datetime

    @classmethod
    def from_place(cls, place: Place) -> "PlaceResponse":
        return cls(
            id=place.id,
            title=place.title,
            description=place.description,
            address=place.address,
            location=Location(lat=place.lat, lng=place.lng),
            image=place.image,
            creator=place.creator_id,
            created_at=place.created_at,
        )


class PlaceEnvelope(BaseModel):
    place: PlaceResponse


class PlaceListResponse(BaseModel):
    """
    Places of one user.

    An empty list is a successful answer; `message` explains it to clients
    that used to expect a 404.
    """
    places: List[PlaceResponse]
    message: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class UserResponse(BaseModel):
    """A user as seen by this service: profile plus owned place ids."""
    id: uuid.UUID
    name: str
    email: str
    image: str
    places: List[uuid.UUID] = Field(description="Ids of places created by this user, oldest first")

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            image=user.image,
            places=[place.id for place in user.places],
        )


class UserListResponse(BaseModel):
    users: List[UserResponse]


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "not_authorized",
            "message": "You are not allowed to delete this place.",
            "request_id": "550e8400"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
