from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from exam_portal.database import get_db
from exam_portal.dependencies import get_current_user, require_admin, require_faculty, require_staff
from exam_portal.models import User
from exam_portal.schemas import (
    ExamPaperCreate,
    ExamPaperResponse,
    ExamPaperUpdate,
    MessageResponse,
    RejectRequest,
)
from exam_portal.services import exam_papers as paper_service

router = APIRouter(tags=["Exam Papers"])

# Staff get ExamPaperResponse with the answer key, students get
# StudentExamPaperResponse. The service serializes, so no response_model.


@router.get("", response_model=None)
def list_exam_papers(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """
    Faculty see their own papers, admins see everything, students see the
    approved papers for their semester, department and specialization.
    """
    return paper_service.list_papers(db, user)


@router.post("", response_model=ExamPaperResponse, status_code=201)
def create_exam_paper(data: ExamPaperCreate, db: Session = Depends(get_db), user: User = Depends(require_faculty)):
    return paper_service.create_paper(db, user, data)


@router.get("/{paper_id}", response_model=None)
def get_exam_paper(paper_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return paper_service.get_paper_for(db, user, paper_id)


@router.put("/{paper_id}", response_model=ExamPaperResponse)
def update_exam_paper(
    paper_id: int,
    data: ExamPaperUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    return paper_service.update_paper(db, user, paper_id, data)


@router.delete("/{paper_id}", response_model=MessageResponse)
def delete_exam_paper(paper_id: int, db: Session = Depends(get_db), user: User = Depends(require_staff)):
    paper_service.delete_paper(db, user, paper_id)
    return {"message": "Exam paper deleted successfully"}


@router.post("/{paper_id}/approve", response_model=ExamPaperResponse)
def approve_exam_paper(paper_id: int, db: Session = Depends(get_db), user: User = Depends(require_admin)):
    return paper_service.approve_paper(db, user, paper_id)


@router.post("/{paper_id}/reject", response_model=ExamPaperResponse)
def reject_exam_paper(
    paper_id: int,
    data: Optional[RejectRequest] = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    reason = data.reason if data else None
    return paper_service.reject_paper(db, user, paper_id, reason)
