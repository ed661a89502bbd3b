from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from exam_portal.config import settings
from exam_portal.database import get_db
from exam_portal.dependencies import get_current_user
from exam_portal.models import User
from exam_portal.schemas import AuthResponse, LoginRequest, MessageResponse, UserCreate, UserResponse
from exam_portal.services import auth as auth_service

router = APIRouter(tags=["Auth"])


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.access_token_expire_minutes * 60,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: UserCreate, response: Response, db: Session = Depends(get_db)):
    """Create an account and sign it in"""
    user, token = auth_service.register(db, data)
    _set_auth_cookie(response, token)
    return {"user": user, "token": token}


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user, token = auth_service.login(db, data.email, data.password)
    _set_auth_cookie(response, token)
    return {"user": user, "token": token}


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    response.delete_cookie(
        key=settings.cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return {"message": "Logged out successfully"}
