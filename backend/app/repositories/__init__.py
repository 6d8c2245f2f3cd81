"""
PlaceShare Backend — Repository Layer
=======================================

What:  Data access abstraction between services and the SQLAlchemy session.
How:   Services only depend on the five store operations (find by id, find
       by filter, save, delete by id, transaction), never on query syntax.
"""

from app.repositories.entity_store import EntityStore, coerce_id

__all__ = ["EntityStore", "coerce_id"]
