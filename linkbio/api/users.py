"""Profile endpoints for the signed-in user."""

import structlog
from fastapi import APIRouter, Request

from linkbio.core.database import AsyncSessionDep
from linkbio.core.deadline import bounded
from linkbio.core.deps import CurrentUser
from linkbio.core.rate_limit import RATE_LIMIT_API, limiter
from linkbio.core.redis import CacheDep
from linkbio.schemas.user import UserResponse, UserUpdate
from linkbio.services import linktree_service, user_service

logger = structlog.get_logger()

router = APIRouter(prefix="/user", tags=["user"])


@router.put("/profile", response_model=UserResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_profile(
    request: Request,
    profile: UserUpdate,
    user: CurrentUser,
    session: AsyncSessionDep,
    cache: CacheDep,
) -> UserResponse:
    """Update the display name and avatar of the current user.

    Public pages embed the owner profile, so every cached linktree of the
    user is dropped.
    """
    async with bounded("query"):
        updated = await user_service.update_user(session, user, profile)
        await session.commit()
        linktrees = await linktree_service.get_user_linktrees(session, user.id)

    await cache.invalidate(*(linktree.slug for linktree in linktrees))

    logger.info("Profile updated", user_id=str(user.id))
    return UserResponse.model_validate(updated)
