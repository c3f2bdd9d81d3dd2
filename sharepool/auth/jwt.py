"""
Operator session tokens (HS256, httpOnly cookie).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from sharepool.config import settings
from sharepool.models.user import UserRole

ALGORITHM = "HS256"
ISSUER = "sharepool"
COOKIE_NAME = "access_token"

_KNOWN_ROLES = {role.value for role in UserRole}


def create_access_token(
    user_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign a session token for an operator.

    Args:
        user_id: users.id
        role: "admin" or "accountant"
        expires_delta: Lifetime, defaults to settings.jwt_expire_hours
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta if expires_delta is not None else timedelta(hours=settings.jwt_expire_hours)
    claims = {
        "sub": str(user_id),
        "role": role,
        "iss": ISSUER,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Decode a session token.

    Returns {"user_id": int, "role": str}, or None when the token is
    expired, tampered with, from another issuer or names an unknown role.
    """
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM], issuer=ISSUER)
        user_id = int(claims["sub"])
    except (JWTError, KeyError, ValueError):
        return None

    role = claims.get("role")
    if role not in _KNOWN_ROLES:
        return None
    return {"user_id": user_id, "role": role}


def get_token_from_cookie(request) -> Optional[str]:
    return request.cookies.get(COOKIE_NAME)
