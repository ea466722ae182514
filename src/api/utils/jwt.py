from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from config import ApplicationConfig


def create_session_token(
    principal_id: UUID, email: str, expires_delta: timedelta = timedelta(hours=1)
) -> str:
    """
    Create a session token as the identity provider issues it

    Args:
        principal_id: Principal UUID
        email: Principal email
        expires_delta: Token expiration duration

    Returns:
        JWT token string signed with JWT_SECRET
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(principal_id),
        "email": email,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(
        payload, ApplicationConfig.JWT_SECRET, algorithm=ApplicationConfig.JWT_ALGORITHM
    )


def verify_session_token(token: str) -> Optional[dict]:
    """
    Verify and decode a session token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=[ApplicationConfig.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None
