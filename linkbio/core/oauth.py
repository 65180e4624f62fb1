"""OAuth identity providers (GitHub and Google)."""

from authlib.integrations.starlette_client import OAuth

from linkbio.core.config import get_settings

settings = get_settings()

SUPPORTED_PROVIDERS = ("github", "google")

oauth = OAuth()

oauth.register(
    name="github",
    client_id=settings.github_client_id,
    client_secret=settings.github_client_secret,
    access_token_url="https://github.com/login/oauth/access_token",
    authorize_url="https://github.com/login/oauth/authorize",
    api_base_url="https://api.github.com/",
    client_kwargs={"scope": "user:email read:user"},
)

oauth.register(
    name="google",
    client_id=settings.google_client_id,
    client_secret=settings.google_client_secret,
    server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
    client_kwargs={"scope": "openid email profile"},
)


def is_provider_configured(provider: str) -> bool:
    """Whether client credentials exist for the provider."""
    if provider == "github":
        return bool(settings.github_client_id)
    if provider == "google":
        return bool(settings.google_client_id)
    return False
