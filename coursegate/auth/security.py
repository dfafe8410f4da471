"""Bearer token validation.

Tokens are issued by the platform's auth service; this service only checks
the signature, expiry and token type before trusting the claims.
"""

from typing import Any

from jose import JWTError, jwt

from coursegate.config.settings import get_settings


REQUIRED_CLAIMS = ("sub", "role")


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Args:
        token: Encoded JWT string

    Returns:
        Token payload

    Raises:
        JWTError: If the token is invalid, expired, not an access token or
            missing required claims
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type", "access") != "access":
        raise JWTError("Invalid token type")

    missing = [claim for claim in REQUIRED_CLAIMS if not payload.get(claim)]
    if missing:
        raise JWTError(f"Missing claims: {', '.join(missing)}")

    return payload
