"""
Auth Service - signup, login and password reset requests.
"""

import logging
import re
from typing import Dict, Any

from sqlalchemy.orm import Session

from gearguard.config import Settings
from gearguard.errors import AppError, NotFoundError
from gearguard.models import User, LifecycleStatus
from gearguard.schemas import SignupRequest, LoginRequest
from gearguard.security import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*[@$!%*?&#])[A-Za-z\d@$!%*?&#]{8,}$")

PASSWORD_RULES_MESSAGE = (
    "Password must be at least 8 characters and contain an uppercase letter, "
    "a lowercase letter and a special character (@$!%*?&#)"
)


def _user_public(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
    }


class AuthService:
    """Service class for account operations"""

    @staticmethod
    def is_strong_password(password: str) -> bool:
        return PASSWORD_PATTERN.match(password) is not None

    @staticmethod
    def signup(db: Session, data: SignupRequest, settings: Settings) -> Dict[str, Any]:
        existing = db.query(User).filter(User.email == data.email).first()
        if existing:
            raise AppError("Email already exists. Please use a different email.", 400)

        if not AuthService.is_strong_password(data.password):
            raise AppError(PASSWORD_RULES_MESSAGE, 400)

        user = User(
            email=data.email,
            password_hash=hash_password(data.password, settings.BCRYPT_ROUNDS),
            name=data.name,
            role=data.role,
            status=LifecycleStatus.ACTIVE,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"New account created: {user.email} ({user.role.value})")

        token = create_access_token(user.id, user.role.value, settings)
        return {"token": token, "user": _user_public(user)}

    @staticmethod
    def login(db: Session, data: LoginRequest, settings: Settings) -> Dict[str, Any]:
        user = db.query(User).filter(User.email == data.email).first()
        if not user:
            logger.warning(f"Login attempt for unknown account {data.email}")
            raise NotFoundError("Account does not exist")

        if not user.is_active:
            logger.warning(f"Login attempt for inactive account {data.email}")
            raise AppError("Account is deactivated. Please contact administrator.", 403)

        if not verify_password(data.password, user.password_hash):
            logger.warning(f"Invalid password for {data.email}")
            raise AppError("Invalid password", 401)

        token = create_access_token(user.id, user.role.value, settings)
        return {"token": token, "user": _user_public(user)}

    @staticmethod
    def forgot_password(db: Session, email: str) -> None:
        # No mail delivery; the response never reveals whether the account exists
        user = db.query(User).filter(User.email == email.lower()).first()
        if user:
            logger.info(f"Password reset requested for user {user.id}")
        else:
            logger.info("Password reset requested for an unknown address")
