"""
Audit trail of notable actions.

Recording is best effort: the primary operation has already been committed
when an activity is written, so a failure here is logged and swallowed.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from exam_portal.models import Activity, ActivityType

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


def record_activity(
    db: Session,
    user_id: Optional[int],
    action: str,
    activity_type: ActivityType,
    details: Optional[str] = None,
) -> Optional[Activity]:
    try:
        activity = Activity(user_id=user_id, action=action, type=activity_type, details=details)
        db.add(activity)
        db.commit()
        return activity
    except SQLAlchemyError:
        db.rollback()
        logger.exception("⚠️ Failed to record activity %r for user %s", action, user_id)
        return None


def recent_activities(db: Session, limit: int = DEFAULT_LIMIT) -> List[Activity]:
    return (
        db.query(Activity)
        .options(joinedload(Activity.user))
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(limit)
        .all()
    )
