"""
Security module for hashing passwords, issuing JWT tokens and
authenticating API callers.

Architecture:
- Passwords are stored as bcrypt hashes (cost from settings, 10 by default)
- Tokens are HS256 JWTs carrying {userId, role, iat, exp}
- The bearer dependency only decodes the token; it never hits the database
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Dict, Any

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from gearguard.config import Settings
from gearguard.errors import AppError
from gearguard.models import UserRole

# Logger
logger = logging.getLogger(__name__)

# Security scheme; missing credentials are reported with our own envelope
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthUser:
    """
    Authenticated caller from JWT claims.
    """
    id: int
    role: UserRole
    raw_claims: Dict[str, Any]


# ==================== PASSWORDS ====================

def hash_password(password: str, rounds: int = 10) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.warning("Stored password hash could not be parsed")
        return False


# ==================== TOKENS ====================

def create_access_token(user_id: int, role: str, settings: Settings) -> str:
    """Issue a signed token for the given user."""
    issued_at = int(time.time())
    payload = {
        "userId": user_id,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + settings.JWT_EXPIRES_IN,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    """
    Verify the token signature and expiry and return the payload.

    Raises:
        AppError: 401 when the token cannot be trusted
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        raise AppError("Invalid or expired token", 401)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_auth_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> AuthUser:
    """
    Get the authenticated caller from the bearer token.
    This is the primary authentication dependency.
    """
    if not credentials or not credentials.credentials:
        raise AppError("No token provided", 401)

    payload = decode_access_token(credentials.credentials, settings)

    user_id = payload.get("userId")
    if user_id is None:
        raise AppError("Invalid or expired token", 401)

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        logger.warning(f"Invalid role value in JWT: {payload.get('role')}")
        raise AppError("Invalid or expired token", 401)

    return AuthUser(id=int(user_id), role=role, raw_claims=payload)
