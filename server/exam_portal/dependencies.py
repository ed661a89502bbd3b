"""
Request-scoped dependencies: the authenticated user and role gates.
"""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from exam_portal.config import settings
from exam_portal.database import get_db
from exam_portal.errors import AuthorizationError
from exam_portal.models import User, UserRole
from exam_portal.services.auth import resolve_user


def extract_token(request: Request) -> Optional[str]:
    """The auth cookie wins over an ``Authorization: Bearer`` header."""
    token = request.cookies.get(settings.cookie_name)
    if token:
        return token
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    user = resolve_user(db, extract_token(request))
    request.state.user = user
    return user


def require_role(*roles: UserRole):
    """Build a dependency admitting only the given roles."""
    allowed = frozenset(roles)

    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise AuthorizationError()
        return user

    return checker


require_student = require_role(UserRole.STUDENT)
require_faculty = require_role(UserRole.FACULTY)
require_admin = require_role(UserRole.ADMIN)
require_staff = require_role(UserRole.FACULTY, UserRole.ADMIN)
