"""
PlaceShare Backend — Users Route Handlers
===========================================

Read-only view of users and the places they own. Signup, login and
password handling belong to the users module.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.models.user import User
from app.repositories.entity_store import EntityStore
from app.schemas.place import ErrorResponse, UserListResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Users"])


@router.get(
    "/users",
    response_model=UserListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List users with the ids of their places",
)
async def list_users(db: AsyncSession = Depends(get_db_session)) -> UserListResponse:
    users = await EntityStore(db).find(User)
    return UserListResponse(users=[UserResponse.from_user(u) for u in users])
