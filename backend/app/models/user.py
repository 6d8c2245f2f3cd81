"""
PlaceShare Backend — User SQLAlchemy Model
============================================

What:  ORM model representing the `users` table.
Who:   Rows are created by the users module (signup); this service only
       reads them and maintains their `places` collection.

The `places` collection:
    Backed by the places.creator_id foreign key, so membership is always
    {p : p.creator_id == user.id}. PlaceService still appends/removes the
    place on this collection inside the same transaction that inserts or
    deletes the place row. Loaded eagerly with "selectin" because async
    sessions cannot lazy-load on attribute access.

    cascade="all, delete-orphan": a place removed from the collection is
    deleted in the same flush, so it can never outlive its membership.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.place import Place


class User(Base):
    """An account that owns zero or more places."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    # Profile picture path, written by the users module's upload step
    image: Mapped[str] = mapped_column(String(512), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    places: Mapped[List["Place"]] = relationship(
        back_populates="creator",
        order_by="Place.created_at",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
