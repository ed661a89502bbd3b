from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from exam_portal.database import get_db
from exam_portal.dependencies import require_admin
from exam_portal.models import User
from exam_portal.schemas import ActivityResponse
from exam_portal.services.activity_log import DEFAULT_LIMIT, recent_activities

router = APIRouter(tags=["Activities"])


@router.get("", response_model=List[ActivityResponse])
def list_activities(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    """Most recent activities first"""
    return recent_activities(db, limit)
