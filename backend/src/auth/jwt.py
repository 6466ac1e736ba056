"""JWT token generation and validation

Tokens are issued by the identity service; this backend only needs to
validate them. create_access_token exists for the seed script and the
test suite.

Claims:
- sub: User ID as UUID string
- email: User's email address
- iat / exp: Issued-at and expiry (iat + JWT_EXPIRY_MINUTES)

Algorithm and secret come from JWT_ALGORITHM and JWT_SECRET.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt

from config import settings


def create_access_token(
    user_id: UUID,
    email: Optional[str] = None,
    expiry_minutes: Optional[int] = None,
) -> str:
    """Create a signed JWT access token for a user.

    Args:
        user_id: User's UUID
        email: User's email address
        expiry_minutes: Override JWT_EXPIRY_MINUTES

    Returns:
        str: Signed JWT token
    """
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=expiry_minutes or settings.JWT_EXPIRY_MINUTES)

    payload = {
        'sub': str(user_id),  # Subject: user ID
        'email': email,
        'iat': int(now.timestamp()),  # Issued at
        'exp': int(expiration.timestamp())  # Expiration
    }

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
