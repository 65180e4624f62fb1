"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from linkbio.core.config import get_settings

settings = get_settings()


def get_client_ip(request: Request) -> str | None:
    """Extract the original client IP address, handling proxies.

    Checks X-Forwarded-For and X-Real-IP headers before falling back
    to the direct client address. None when none of them is available.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # client, proxy1, proxy2 - the first one is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host
    return None


def get_real_client_ip(request: Request) -> str:
    """Rate limit key: the client IP, or slowapi's default address."""
    return get_client_ip(request) or get_remote_address(request)


limiter = Limiter(
    key_func=get_real_client_ip,
    default_limits=["1000/hour"],
    storage_uri=settings.rate_limit_storage_uri or settings.redis_url,
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)

# Public page views are the hot path
RATE_LIMIT_PUBLIC = "1000/minute"

# Anonymous telemetry (impressions, clicks, analytics events)
RATE_LIMIT_TRACK = "600/minute"

# Creating linktrees and A/B tests - prevent spam/abuse
RATE_LIMIT_CREATE = "60/hour"

# Auth endpoints - prevent brute force
RATE_LIMIT_AUTH = "20/minute"

# General owner API endpoints
RATE_LIMIT_API = "100/minute"
