"""Dependency injection utilities for FastAPI routes."""

from typing import Annotated

from fastapi import Cookie, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from linkbio.core.database import get_async_session
from linkbio.core.deadline import bounded
from linkbio.core.exceptions import UnauthorizedError
from linkbio.core.security import AUTH_COOKIE_NAME, decode_access_token
from linkbio.models.user import User
from linkbio.services import user_service


async def get_token_from_cookie(
    token: Annotated[str | None, Cookie(alias=AUTH_COOKIE_NAME)] = None,
) -> str | None:
    """Extract the session token from its httpOnly cookie."""
    return token


async def _load_user(session: AsyncSession, token: str | None) -> User | None:
    if token is None:
        return None

    token_data = decode_access_token(token)
    if token_data is None:
        return None

    async with bounded("connect"):
        return await user_service.get_user_by_id(session, token_data.user_id)


async def get_current_user_optional(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    token: Annotated[str | None, Depends(get_token_from_cookie)],
) -> User | None:
    """Get current user from token if present, otherwise return None.

    Use this for routes that work with or without authentication.
    """
    return await _load_user(session, token)


async def get_current_user(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    token: Annotated[str | None, Depends(get_token_from_cookie)],
) -> User:
    """Get current authenticated user.

    Raises UnauthorizedError (401) before any resource I/O when the
    session is missing, invalid, or names a user that no longer exists.
    """
    user = await _load_user(session, token)
    if user is None:
        raise UnauthorizedError()
    return user


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentUserOptional = Annotated[User | None, Depends(get_current_user_optional)]
