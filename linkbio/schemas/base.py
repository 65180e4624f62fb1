"""Shared Pydantic configuration for request and response bodies."""

from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Schemes a visitor may be sent to from a public page
ALLOWED_URL_SCHEMES = frozenset({"http", "https", "mailto", "tel"})


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; also readable from ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def check_outbound_url(value: str) -> str:
    """Reject URLs whose scheme would run in the visitor's browser."""
    value = value.strip()
    scheme = urlsplit(value).scheme.lower()
    if scheme not in ALLOWED_URL_SCHEMES:
        raise ValueError("URL must start with http://, https://, mailto: or tel:")
    return value
