"""
PlaceShare Backend — Place SQLAlchemy Model
=============================================

What:  ORM model representing the `places` table.
Who:   Written only by PlaceService (create/update/delete); read by the
       places and users routes.

Table Design:
    - UUID primary key, generated in Python so the id is known after flush
      on every backend (PostgreSQL in production, SQLite in tests)
    - lat/lng: the location, set once on creation
    - image: path of the uploaded file, stored verbatim; removed from disk
      after the place is deleted
    - creator_id: NOT NULL foreign key to users.id, never reassigned

    Index on creator_id:
        Serves GET /api/places/user/{uid} and the User.places collection.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


class Place(Base):
    """
    A point of interest owned by exactly one user.

    Lifecycle:
        nonexistent → created → updated* → deleted (terminal)
        A place is never stored without a valid creator.
    """

    __tablename__ = "places"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(String(512), nullable=False)

    # ── Location ──────────────────────────────────────────────────────────
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)

    # ── Image ─────────────────────────────────────────────────────────────
    # Format: uploads/images/<uuid>.<ext>
    image: Mapped[str] = mapped_column(String(512), nullable=False)

    # ── Ownership ─────────────────────────────────────────────────────────
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
    )
    creator: Mapped["User"] = relationship(
        back_populates="places",
        lazy="joined",
        innerjoin=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_places_creator_id", "creator_id"),
    )

    @property
    def location(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    def __repr__(self) -> str:
        return f"<Place(id={self.id}, title='{self.title}', creator_id={self.creator_id})>"
