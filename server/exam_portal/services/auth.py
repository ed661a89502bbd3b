"""
Authentication service: registration, login and token-to-user resolution.
"""
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from exam_portal.config import settings
from exam_portal.errors import AuthenticationError, AuthorizationError
from exam_portal.models import ActivityType, User, UserRole
from exam_portal.schemas import UserCreate
from exam_portal.security import create_access_token, decode_access_token, verify_password
from exam_portal.services.activity_log import record_activity
from exam_portal.services.users import create_user

logger = logging.getLogger(__name__)


def register(db: Session, data: UserCreate) -> Tuple[User, str]:
    if data.role == UserRole.ADMIN and not settings.allow_admin_registration:
        raise AuthorizationError("Admin accounts cannot be self-registered")

    user = create_user(db, data)
    record_activity(db, user.id, f"Registered: {user.email}", ActivityType.USER)
    logger.info("Registered %s user %s", user.role.value, user.email)
    return user, create_access_token(user.id)


def login(db: Session, email: str, password: str) -> Tuple[User, str]:
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise AuthenticationError("Invalid credentials")
    return user, create_access_token(user.id)


def resolve_user(db: Session, token: Optional[str]) -> User:
    """Load the user a token was issued to."""
    if not token:
        raise AuthenticationError()
    user = db.get(User, decode_access_token(token))
    if not user:
        raise AuthenticationError()
    return user
