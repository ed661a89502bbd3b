from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from exam_portal.database import get_db
from exam_portal.dependencies import get_current_user, require_staff
from exam_portal.models import User
from exam_portal.schemas import MessageResponse, SubjectCreate, SubjectResponse, SubjectUpdate
from exam_portal.services import subjects as subject_service

router = APIRouter(tags=["Subjects"])


@router.get("", response_model=List[SubjectResponse])
def list_subjects(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return subject_service.list_subjects(db)


@router.post("", response_model=SubjectResponse, status_code=201)
def create_subject(data: SubjectCreate, db: Session = Depends(get_db), user: User = Depends(require_staff)):
    return subject_service.create_subject(db, user, data)


@router.get("/{subject_id}", response_model=SubjectResponse)
def get_subject(subject_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return subject_service.get_subject(db, subject_id)


@router.patch("/{subject_id}", response_model=SubjectResponse)
def update_subject(
    subject_id: int,
    data: SubjectUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    return subject_service.update_subject(db, user, subject_id, data)


@router.delete("/{subject_id}", response_model=MessageResponse)
def delete_subject(subject_id: int, db: Session = Depends(get_db), user: User = Depends(require_staff)):
    subject_service.delete_subject(db, user, subject_id)
    return {"message": "Subject deleted successfully"}
