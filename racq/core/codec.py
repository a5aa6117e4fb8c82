"""
Codec — serialize and deserialize the cached AuthToken using Pydantic v2.

Wire format (produced by model_dump_json):
------------------------------------------
{
  "id": "c0ffee...",
  "expires": "2024-01-01T00:00:00Z"
}
"""
from __future__ import annotations

from racq.domain.models import AuthToken


def encode_token(token: AuthToken) -> bytes:
    """Serialize an AuthToken to UTF-8 JSON bytes."""
    return token.model_dump_json().encode("utf-8")


def decode_token(data: bytes) -> AuthToken | None:
    """
    Deserialize UTF-8 JSON bytes to an AuthToken. Empty bytes → None.

    Raises pydantic.ValidationError for content that is not a token.
    """
    if not data.strip():
        return None
    return AuthToken.model_validate_json(data)
