"""Bearer token verification for the overview API.

Tokens are minted by an external identity provider; this service only
verifies the signature and expiry and hands the claims to the authorizer.
"""
from __future__ import annotations

from typing import Any, Dict

from jose import JWTError, jwt  # python-jose

from topicscope.core.config import Settings, get_settings


class TokenValidationError(Exception):
    """Raised when a JWT is missing or invalid."""


def decode_jwt(token: str, *, settings: Settings | None = None) -> Dict[str, Any]:
    """Return the claims of *token*.

    Raises TokenValidationError if the token is malformed, expired or signed
    with another key.
    """
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise TokenValidationError("Invalid or expired JWT") from exc
