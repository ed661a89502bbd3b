"""
Published results and aggregate statistics.
"""
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from exam_portal.errors import AuthorizationError, NotFoundError
from exam_portal.models import Result, User, UserRole
from exam_portal.schemas import ResultStats


def _result_query(db: Session):
    return db.query(Result).options(joinedload(Result.student), joinedload(Result.exam_paper))


def list_results(db: Session, identity: User) -> List[Result]:
    query = _result_query(db).order_by(Result.id)
    if identity.role == UserRole.STUDENT:
        query = query.filter(Result.student_id == identity.id)
    return query.all()


def get_result(db: Session, identity: User, result_id: int) -> Result:
    result = _result_query(db).filter(Result.id == result_id).first()
    if not result:
        raise NotFoundError("Result not found")
    if identity.role == UserRole.STUDENT and result.student_id != identity.id:
        raise AuthorizationError("Not authorized to view this result")
    return result


def result_stats(db: Session) -> ResultStats:
    average, highest, lowest, count = db.query(
        func.avg(Result.score), func.max(Result.score), func.min(Result.score), func.count(Result.id)
    ).one()
    if not count:
        return ResultStats()
    return ResultStats(
        average_score=float(average),
        highest_score=float(highest),
        lowest_score=float(lowest),
        total_students=count,
    )
