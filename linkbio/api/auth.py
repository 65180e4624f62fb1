"""Authentication endpoints for OAuth login/logout."""

import httpx
import structlog
from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, HTTPException, Request, Response, status

from linkbio.core.config import get_settings
from linkbio.core.database import AsyncSessionDep
from linkbio.core.deps import CurrentUser, CurrentUserOptional
from linkbio.core.exceptions import InvalidInputError
from linkbio.core.oauth import is_provider_configured, oauth
from linkbio.core.rate_limit import RATE_LIMIT_AUTH, limiter
from linkbio.core.security import AUTH_COOKIE_NAME, create_cookie_token
from linkbio.models.user import User
from linkbio.schemas.user import UserResponse
from linkbio.services import user_service

settings = get_settings()
logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])

GITHUB_API = "https://api.github.com"


def _require_provider(provider: str) -> None:
    if not is_provider_configured(provider):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{provider.capitalize()} OAuth is not configured",
        )


def _login_response(user: User) -> Response:
    """Redirect to the dashboard with the session cookie set."""
    token_value, max_age = create_cookie_token(user.id, user.email)

    response = Response(
        status_code=status.HTTP_302_FOUND,
        headers={"Location": f"{settings.frontend_url}/dashboard"},
    )
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token_value,
        max_age=max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    return response


async def _fetch_github_email(client: httpx.AsyncClient, headers: dict[str, str]) -> str | None:
    # Needed when the profile email is private; prefer the primary verified one
    emails_resp = await client.get(f"{GITHUB_API}/user/emails", headers=headers)
    emails = emails_resp.json() if emails_resp.status_code == 200 else []
    for entry in emails:
        if entry.get("primary") and entry.get("verified"):
            return entry.get("email")
    return emails[0].get("email") if emails else None


@router.get("/github")
@limiter.limit(RATE_LIMIT_AUTH)
async def github_login(request: Request) -> Response:
    """Initiate GitHub OAuth login flow.

    Redirects to GitHub's authorization page.
    """
    _require_provider("github")
    redirect_uri = request.url_for("github_callback")
    return await oauth.github.authorize_redirect(request, redirect_uri)


@router.get("/github/callback")
@limiter.limit(RATE_LIMIT_AUTH)
async def github_callback(request: Request, session: AsyncSessionDep) -> Response:
    """Handle GitHub OAuth callback.

    Exchanges code for token, fetches user info, creates/updates user,
    and sets auth cookie.
    """
    _require_provider("github")
    try:
        token = await oauth.github.authorize_access_token(request)
    except OAuthError as e:
        logger.error("GitHub OAuth token exchange failed", error=str(e))
        raise InvalidInputError("Failed to authenticate with GitHub") from e

    headers = {"Authorization": f"Bearer {token['access_token']}"}
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            user_resp = await client.get(f"{GITHUB_API}/user", headers=headers)
            if user_resp.status_code != 200:
                raise InvalidInputError("Failed to fetch GitHub user info")
            github_user = user_resp.json()
            email = github_user.get("email") or await _fetch_github_email(client, headers)
    except httpx.HTTPError as e:
        logger.error("GitHub user lookup failed", error=str(e))
        raise InvalidInputError("Failed to fetch GitHub user info") from e

    if not email:
        raise InvalidInputError("Could not get email from GitHub")

    user, created = await user_service.get_or_create_user_from_oauth(
        session=session,
        provider="github",
        provider_id=str(github_user["id"]),
        email=email,
        name=github_user.get("name") or github_user.get("login"),
        avatar_url=github_user.get("avatar_url"),
    )
    await session.commit()

    logger.info("GitHub OAuth successful", user_id=str(user.id), created=created)
    return _login_response(user)


@router.get("/google")
@limiter.limit(RATE_LIMIT_AUTH)
async def google_login(request: Request) -> Response:
    """Initiate Google OAuth login flow.

    Redirects to Google's authorization page.
    """
    _require_provider("google")
    redirect_uri = request.url_for("google_callback")
    return await oauth.google.authorize_redirect(request, redirect_uri)


@router.get("/google/callback")
@limiter.limit(RATE_LIMIT_AUTH)
async def google_callback(request: Request, session: AsyncSessionDep) -> Response:
    """Handle Google OAuth callback; user info comes from the ID token."""
    _require_provider("google")
    try:
        token = await oauth.google.authorize_access_token(request)
    except OAuthError as e:
        logger.error("Google OAuth token exchange failed", error=str(e))
        raise InvalidInputError("Failed to authenticate with Google") from e

    user_info = token.get("userinfo")
    if not user_info:
        raise InvalidInputError("Failed to get user info from Google")

    email = user_info.get("email")
    if not email:
        raise InvalidInputError("Could not get email from Google")

    user, created = await user_service.get_or_create_user_from_oauth(
        session=session,
        provider="google",
        provider_id=user_info["sub"],
        email=email,
        name=user_info.get("name"),
        avatar_url=user_info.get("picture"),
    )
    await session.commit()

    logger.info("Google OAuth successful", user_id=str(user.id), created=created)
    return _login_response(user)


@router.post("/logout")
async def logout(response: Response) -> dict[str, str]:
    """Log out the current user by clearing the auth cookie."""
    response.delete_cookie(
        key=AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(user: CurrentUser) -> UserResponse:
    """Get the current authenticated user's information."""
    return UserResponse.model_validate(user)


@router.get("/status")
async def auth_status(user: CurrentUserOptional) -> dict:
    """Check authentication status.

    Returns user info if authenticated, otherwise returns authenticated: false.
    Useful for frontend to check login state without 401 errors.
    """
    if user:
        return {
            "authenticated": True,
            "user": UserResponse.model_validate(user).model_dump(mode="json", by_alias=True),
        }
    return {"authenticated": False, "user": None}
