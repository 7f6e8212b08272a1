"""
Password hashing and bearer tokens.

Identity on every protected route comes from the verified token, never from a
user id the client puts in the body or query string.
"""

import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import database
from config import get_settings
from errors import ForbiddenError, UnauthorizedError
from logger import get_logger

logger = get_logger(__name__)

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72

bearer_scheme = HTTPBearer(auto_error=False)


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


@lru_cache(maxsize=1)
def _fallback_secret() -> str:
    logger.warning("JWT_SECRET is not set; using a random key, tokens will not survive a restart")
    return secrets.token_urlsafe(32)


def _signing_key() -> str:
    return get_settings().jwt_secret or _fallback_secret()


def create_access_token(user_id: str) -> str:
    settings = get_settings()
    issued = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "iat": issued,
        "exp": issued + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, _signing_key(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            _signing_key(),
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "id"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")


def current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """FastAPI dependency resolving the caller's user id from the bearer token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Missing bearer token")
    claims = decode_access_token(credentials.credentials)
    user_oid = database.parse_object_id(claims["id"])
    if user_oid is None:
        raise UnauthorizedError("Invalid token")
    if database.get_db()["user"].find_one({"_id": user_oid}, {"_id": 1}) is None:
        raise UnauthorizedError("User no longer exists")
    return str(user_oid)


def ensure_actor(claimed_user_id: Optional[str], user_id: str) -> None:
    """Reject a client-supplied actor id that differs from the token's user."""
    if claimed_user_id is not None and claimed_user_id != user_id:
        logger.warning("Actor mismatch: token user %s claimed to be %s", user_id, claimed_user_id)
        raise ForbiddenError("userId does not match the authenticated user")
