"""
Bearer token authentication for the FastAPI API.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.config import config
from bookshelf.errors import Unauthorized
from bookshelf.models import Identity, User

logger = structlog.get_logger(__name__)

# Missing credentials are reported by the handlers, not by the scheme
security = HTTPBearer(auto_error=False)


def create_access_token(user: User) -> str:
    """
    Issue a signed token for a user.

    Args:
        user: Authenticated user

    Returns:
        Encoded JWT carrying the user id and admin flag
    """
    payload = {
        "id": user.id,
        "admin": user.admin,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=config.jwt_expiration),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_access_token(token: str) -> Identity:
    """
    Verify a token and extract the caller identity.

    Raises:
        Unauthorized: If the token is expired, tampered with or malformed
    """
    try:
        payload = jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        logger.warning("Invalid token presented")
        raise Unauthorized("Invalid token")

    if payload.get("id") is None:
        raise Unauthorized("Invalid token")
    return Identity(id=str(payload["id"]), admin=bool(payload.get("admin", False)))


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Identity]:
    """Identity of the caller, or None when no bearer token was sent."""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


async def require_identity(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    """Identity of the caller; fails with 401 when there is none."""
    if identity is None:
        raise Unauthorized()
    return identity
