from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from exam_portal.database import get_db
from exam_portal.dependencies import get_current_user, require_faculty, require_student
from exam_portal.models import User
from exam_portal.schemas import (
    EvaluateRequest,
    PublishResponse,
    SubmissionActionResponse,
    SubmissionCreate,
    SubmissionResponse,
)
from exam_portal.services import submissions as submission_service

router = APIRouter(tags=["Submissions"])


@router.post("", response_model=SubmissionResponse, status_code=201)
def submit_exam(data: SubmissionCreate, db: Session = Depends(get_db), user: User = Depends(require_student)):
    """Record a student's answers. One submission per student and paper."""
    return submission_service.submit(db, user, data)


@router.get("", response_model=List[SubmissionResponse])
def list_submissions(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return submission_service.list_submissions(db, user)


@router.get("/{submission_id}", response_model=SubmissionResponse)
def get_submission(submission_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return submission_service.get_submission(db, user, submission_id)


@router.put("/{submission_id}/evaluate", response_model=SubmissionActionResponse)
def evaluate_submission(
    submission_id: int,
    data: EvaluateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_faculty),
):
    submission = submission_service.evaluate(db, user, submission_id, data)
    return {"message": "Evaluation saved successfully", "submission": submission}


@router.put("/{submission_id}/submit-to-admin", response_model=SubmissionActionResponse)
def submit_to_admin(submission_id: int, db: Session = Depends(get_db), user: User = Depends(require_faculty)):
    submission = submission_service.submit_to_admin(db, user, submission_id)
    return {"message": "Submission sent to admin for review", "submission": submission}


@router.put("/{submission_id}/publish", response_model=PublishResponse)
def publish_result(submission_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    # The admin check lives in the service so it reports a specific message
    submission, result = submission_service.publish(db, user, submission_id)
    return {"message": "Result published successfully", "submission": submission, "result": result}
