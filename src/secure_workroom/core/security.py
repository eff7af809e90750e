"""Token helpers for principals and internal collaborators."""
from __future__ import annotations

import hmac
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from secure_workroom.core.settings import settings


def create_access_token(principal_id: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create a JWT access token whose subject is the principal id."""
    to_encode: dict[str, object] = {"sub": principal_id}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> str | None:
    """Return the principal id carried by `token`, or None if it is invalid.

    Args:
        token: Encoded JWT presented by a client.

    Returns:
        The `sub` claim when the signature and expiry check out; None otherwise.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    return subject


def verify_service_token(presented: str | None) -> bool:
    """Constant-time comparison of an internal collaborator token."""
    if not presented:
        return False
    return hmac.compare_digest(presented.encode(), settings.service_token.encode())
