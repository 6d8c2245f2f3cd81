"""
PlaceShare Backend — Entity Store
===================================

What:  Generic async store over one AsyncSession, used for Place and User.
How:   Wraps select/add/delete/flush and SQLAlchemy's session transactions,
       translating every driver error into PersistenceError.
Who:   Instantiated per call by PlaceService and the users route.
Why:   Services state what they need (lock this owner, save that place)
       and never build queries; store failures reach them as one exception
       type that the HTTP layer maps to a generic 500.

Operations:
    find_by_id(model, id, for_update=False) → entity | None
    find(model, **filters)                  → list of entities
    save(entity)                            → entity (added and flushed)
    delete_by_id(model, id)                 → deleted entity | None
    transaction() / with_transaction(fn)    → all-or-nothing scope

Transaction scope:
    transaction() begins a real transaction when the session has none
    active, and a SAVEPOINT when it does. Either way the scope is committed
    when the block exits normally and rolled back on every error path,
    including application errors raised inside the block.

    Why re-raise PlaceShareError unchanged: a NotFoundError or
    AuthorizationError raised mid-transaction must still reach the client
    as a 404/401, not be folded into a 500.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base
from app.exceptions import PersistenceError, PlaceShareError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Base)
R = TypeVar("R")


def coerce_id(entity_id: Any) -> Optional[uuid.UUID]:
    """
    Normalize an identifier to a UUID.

    Returns None for values that cannot be a UUID; no row can have such an
    id, so lookups treat it as "not found".
    """
    if isinstance(entity_id, uuid.UUID):
        return entity_id
    if entity_id is None:
        return None
    try:
        return uuid.UUID(str(entity_id))
    except ValueError:
        return None


class EntityStore:
    """
    Store adapter bound to a single request session.

    Error Handling Strategy:
        Every operation re-raises SQLAlchemy errors as PersistenceError with
        the driver message in `context` (logged, never returned to clients).
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Reads ─────────────────────────────────────────────────────────────

    async def find_by_id(
        self,
        model: Type[T],
        entity_id: Any,
        *,
        for_update: bool = False,
    ) -> Optional[T]:
        """
        Load one entity by primary key.

        for_update=True locks the row (SELECT ... FOR UPDATE on PostgreSQL)
        and refreshes an already-loaded instance from the locked row,
        including its eager-loaded relationships.

        Why populate_existing: the owner may already sit in the identity map
        from the place's joined `creator`; without it the locked read would
        return that stale copy and its stale `places` collection.
        """
        key = coerce_id(entity_id)
        if key is None:
            return None

        query = select(model).where(model.id == key)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        try:
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Error loading %s %s: %s", model.__name__, entity_id, str(e))
            raise PersistenceError(
                context={"model": model.__name__, "id": str(entity_id), "error": str(e)},
            )

    async def find(self, model: Type[T], **filters: Any) -> List[T]:
        """
        Load all entities whose columns equal the given values.

        Results are ordered by created_at when the model has one.
        """
        query = select(model).filter_by(**filters)
        created_at = getattr(model, "created_at", None)
        if created_at is not None:
            query = query.order_by(created_at)

        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error querying %s with %s: %s", model.__name__, filters, str(e))
            raise PersistenceError(
                context={"model": model.__name__, "error": str(e)},
            )

    # ── Writes ────────────────────────────────────────────────────────────

    async def save(self, entity: T) -> T:
        """Add the entity to the session and flush pending changes."""
        try:
            self.session.add(entity)
            await self.session.flush()
            return entity
        except SQLAlchemyError as e:
            logger.error("Error saving %r: %s", entity, str(e))
            raise PersistenceError(
                context={"model": type(entity).__name__, "error": str(e)},
            )

    async def delete_by_id(self, model: Type[T], entity_id: Any) -> Optional[T]:
        """
        Delete one entity by primary key.

        Returns the deleted entity, or None when no such row exists (for
        example when a concurrent request deleted it first).
        """
        key = coerce_id(entity_id)
        if key is None:
            return None

        try:
            # get() answers from the identity map first, so a place already
            # loaded in this transaction is deleted without a second SELECT
            entity = await self.session.get(model, key)
            if entity is None:
                return None
            await self.session.delete(entity)
            await self.session.flush()
            return entity
        except SQLAlchemyError as e:
            logger.error("Error deleting %s %s: %s", model.__name__, entity_id, str(e))
            raise PersistenceError(
                context={"model": model.__name__, "id": str(entity_id), "error": str(e)},
            )

    # ── Transactions ──────────────────────────────────────────────────────

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["EntityStore"]:
        """
        All-or-nothing scope for several writes.

        Usage:
            async with store.transaction():
                await store.save(place)
                await store.save(owner)

        Raises:
            The original PlaceShareError when one is raised inside the block
            (after rolling back), otherwise PersistenceError for any other
            failure, including a failed commit.
        """
        if self.session.in_transaction():
            scope = self.session.begin_nested()
        else:
            scope = self.session.begin()

        try:
            async with scope:
                yield self
        except PlaceShareError:
            raise
        except Exception as e:
            logger.error("Transaction rolled back: %s", str(e), exc_info=True)
            raise PersistenceError(
                context={"error_type": type(e).__name__, "error": str(e)},
            )

    async def with_transaction(self, fn: Callable[["EntityStore"], Awaitable[R]]) -> R:
        """Run `fn(store)` inside transaction() and return its result."""
        async with self.transaction():
            return await fn(self)
