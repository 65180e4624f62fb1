"""Session tokens: the stable user identifier issued after OAuth sign-in."""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from pydantic import BaseModel

from linkbio.core.config import get_settings

settings = get_settings()

# JWT Configuration
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days

# Cookie carrying the session token
AUTH_COOKIE_NAME = "linkbio_token"


class TokenData(BaseModel):
    """Data encoded in the session token."""

    user_id: UUID
    email: str
    exp: datetime


def create_access_token(
    user_id: UUID,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token.

    Args:
        user_id: The user's UUID (the owner identity used everywhere)
        email: The user's email
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT string
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> TokenData | None:
    """Decode and validate a session token.

    Returns:
        TokenData if valid, None if invalid, malformed or expired
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None

    user_id = payload.get("sub")
    email = payload.get("email")
    exp = payload.get("exp")
    if user_id is None or email is None or exp is None:
        return None

    try:
        return TokenData(
            user_id=UUID(user_id),
            email=email,
            exp=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
    except ValueError:
        return None


def create_cookie_token(user_id: UUID, email: str) -> tuple[str, int]:
    """Create a token suitable for httpOnly cookie storage.

    Returns:
        Tuple of (token, max_age_seconds)
    """
    token = create_access_token(user_id, email)
    return token, ACCESS_TOKEN_EXPIRE_MINUTES * 60
