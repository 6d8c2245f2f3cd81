"""
PlaceShare Backend — ORM Models
================================

Importing this package registers every model on Base.metadata, which
lets the Place ↔ User relationships resolve each other by name.
"""

from app.models.place import Place
from app.models.user import User

__all__ = ["Place", "User"]
