"""Security utilities for JWT session tokens."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from casecore.core.config import settings


# =============================================================================
# Session Token (JWT in cookie or bearer header)
# =============================================================================

def create_access_token(
    user_id: UUID,
    role: str,
    office_id: UUID | None = None,
    department: str | None = None,
    expires_hours: int | None = None,
) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET).
    Token carries everything the identity context needs, so requests never
    look the user up again.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "office_id": str(office_id) if office_id else None,
        "department": department,
        "iat": now,
        "exp": now + timedelta(hours=expires_hours or settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore
