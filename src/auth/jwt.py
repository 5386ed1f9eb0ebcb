"""
JWT token management.

Tokens are issued in an httpOnly cookie; API clients may send the same
token as an Authorization: Bearer header instead.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from src.config import settings

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "access"
COOKIE_NAME = "access_token"


def create_access_token(
    user_id: int,
    tier: str,
    is_admin: bool = False,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: Person's database ID
        tier: Ladder tier value (prodigy ... ao)
        is_admin: Back-office administrator flag
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expire_hours))

    payload = {
        "sub": str(user_id),
        "tier": tier,
        "admin": is_admin,
        "exp": expire,
        "type": TOKEN_TYPE,
        "iat": now,
    }

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Verify and decode a JWT token.

    Returns:
        {"user_id", "tier", "is_admin"}, or None if the token is
        invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None

    user_id = payload.get("sub")
    tier = payload.get("tier")
    if not user_id or not tier:
        return None

    return {
        "user_id": int(user_id),
        "tier": tier,
        "is_admin": bool(payload.get("admin", False)),
    }


def get_token_from_request(request) -> Optional[str]:
    """
    Extract the JWT from the httpOnly cookie or a Bearer header.

    Args:
        request: FastAPI Request object

    Returns:
        Token string or None
    """
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()

    return None
