from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from exam_portal.database import get_db
from exam_portal.dependencies import get_current_user, require_staff
from exam_portal.models import User
from exam_portal.schemas import ResultResponse, ResultStats
from exam_portal.services import results as result_service

router = APIRouter(tags=["Results"])


@router.get("", response_model=List[ResultResponse])
def list_results(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return result_service.list_results(db, user)


# Declared before /{result_id} so "stats" is not parsed as an id
@router.get("/stats", response_model=ResultStats)
def result_stats(db: Session = Depends(get_db), user: User = Depends(require_staff)):
    return result_service.result_stats(db)


@router.get("/{result_id}", response_model=ResultResponse)
def get_result(result_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return result_service.get_result(db, user, result_id)
