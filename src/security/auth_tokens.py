"""
Bearer token helpers.

Tokens are HS256 JWTs carrying the user id, role and email, signed with the
configured JWT secret and valid for a configurable number of hours.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from src.constants import DEFAULT_JWT_EXPIRY_HOURS, JWT_ALGORITHM
from src.exceptions.application_errors import AuthenticationError

BEARER_PREFIX = "Bearer "


def generate_token(user, secret: str, expiry_hours: int = DEFAULT_JWT_EXPIRY_HOURS) -> str:
    """Generate a JWT token for a user."""
    payload = {
        "id": user.id,
        "role": user.role,
        "email": user.email,
        "exp": datetime.now(timezone.utc) + timedelta(hours=expiry_hours),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, secret: str) -> Dict[str, Any]:
    """Verify a JWT token and return its payload.

    Raises:
        AuthenticationError: when the signature is bad or the token expired
    """
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Invalid token", original_error=e)
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid token", original_error=e)


def extract_bearer_token(header_value: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer`` header, if any."""
    if not header_value or not header_value.startswith(BEARER_PREFIX):
        return None
    token = header_value[len(BEARER_PREFIX):].strip()
    return token or None
