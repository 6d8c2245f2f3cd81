"""
PlaceShare Backend — Requester Identity
=========================================

What:  FastAPI dependency resolving the id of the acting user.
How:   Verifies the `Authorization: Bearer <jwt>` header with PyJWT using
       the shared secret, and returns the token's `sub` claim.
Who:   Mutating place routes (POST, PATCH, DELETE).

Tokens are issued by the users module at signup/login. This service only
verifies them; it never looks the user up, so an id for a deleted user
surfaces later as NotFoundError from the place service.
"""

import logging
from typing import Optional

import jwt
from fastapi import Request

from app.config import settings
from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def decode_requester_id(token: str) -> str:
    """
    Verify a bearer token and return its subject.

    Raises:
        AuthenticationError: bad signature, expired, or no `sub` claim
    """
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Authentication token has expired.")
    except jwt.PyJWTError as e:
        logger.info("Rejected bearer token: %s", str(e))
        raise AuthenticationError(context={"reason": str(e)})

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise AuthenticationError(context={"reason": "empty subject"})
    return subject


async def get_requester_id(request: Request) -> str:
    """
    FastAPI dependency: the authenticated user's id.

    Usage:
        @router.delete("/places/{place_id}")
        async def delete_place(..., requester_id: str = Depends(get_requester_id)):
    """
    token = _bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise AuthenticationError()
    requester_id = decode_requester_id(token)
    request.state.requester_id = requester_id
    return requester_id
