from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from exam_portal.config import settings
from exam_portal.database import get_db
from exam_portal.dependencies import get_current_user, require_admin
from exam_portal.errors import AuthorizationError, ValidationError
from exam_portal.models import User, UserRole
from exam_portal.schemas import (
    BulkCreateResponse,
    BulkDeleteRequest,
    MessageResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from exam_portal.services import users as user_service

router = APIRouter(tags=["Users"])


@router.get("", response_model=List[UserResponse])
def list_users(
    role: Optional[UserRole] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    return user_service.list_users(db, role)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    return user_service.create_user(db, data)


async def _read_bulk_records(request: Request):
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("file")
        if upload is None or isinstance(upload, str):
            raise ValidationError("No file uploaded")
        content = await upload.read()
        if len(content) > settings.max_upload_size_mb * 1024 * 1024:
            raise ValidationError(f"File exceeds {settings.max_upload_size_mb}MB limit")
        return user_service.parse_bulk_upload(content)

    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Invalid JSON format", details=str(e))
    if isinstance(body, dict):
        return body.get("users")
    return body


@router.post("/bulk", response_model=BulkCreateResponse, status_code=201)
async def bulk_create_users(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    """
    Create many users at once.

    Accepts either a JSON body ``{"users": [...]}`` or a multipart upload
    with a ``file`` field holding a JSON array of user records.
    """
    records = await _read_bulk_records(request)
    created = await run_in_threadpool(user_service.bulk_create_users, db, records)
    return {"message": f"Successfully created {len(created)} users", "users": created}


@router.delete("/bulk", response_model=MessageResponse)
def bulk_delete_users(data: BulkDeleteRequest, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    count = user_service.bulk_delete_users(db, data.user_ids)
    return {"message": f"Successfully deleted {count} users"}


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if user.role != UserRole.ADMIN and user.id != user_id:
        raise AuthorizationError("Not authorized to view this user")
    return user_service.get_user(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    return user_service.update_user(db, user_id, data)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    user_service.delete_user(db, user_id)
    return {"message": "User deleted successfully"}
