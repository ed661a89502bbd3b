"""
Exam paper lifecycle.

    pending --approve--> approved --update(status=completed)--> completed
    pending --reject---> rejected

Only admins move a paper out of pending. Faculty may edit or delete their
own papers while they are pending; admins may edit or delete at any time.
"""
import logging
from typing import List, Optional, Set, Union

from sqlalchemy.orm import Session, joinedload

from exam_portal.errors import AuthorizationError, NotFoundError, ValidationError
from exam_portal.models import (
    ActivityType, ExamPaper, PaperStatus, Specialization, Subject, Submission, User, UserRole,
)
from exam_portal.schemas import (
    ExamPaperCreate, ExamPaperResponse, ExamPaperUpdate, StudentExamPaperResponse,
)
from exam_portal.services.activity_log import record_activity
from exam_portal.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

# Columns a patch may explicitly clear
NULLABLE_FIELDS = {"start_time", "end_time"}


def _paper_query(db: Session):
    return db.query(ExamPaper).options(joinedload(ExamPaper.subject), joinedload(ExamPaper.author))


def _get_subject(db: Session, subject_id: int) -> Subject:
    subject = db.get(Subject, subject_id)
    if not subject:
        raise NotFoundError("Subject not found")
    return subject


def is_visible_to_student(paper: ExamPaper, student: User) -> bool:
    """Approved papers whose subject matches the student's placement."""
    subject = paper.subject
    if paper.status != PaperStatus.APPROVED or subject is None:
        return False
    matches_specialization = (
        not subject.specialization
        or subject.specialization == Specialization.NONE
        or subject.specialization == student.specialization
    )
    return (
        subject.semester == student.semester
        and subject.department == student.department
        and matches_specialization
    )


def is_open(paper: ExamPaper, now=None) -> bool:
    """Whether now falls inside the paper's optional start/end window."""
    now = now or utcnow()
    start, end = as_utc(paper.start_time), as_utc(paper.end_time)
    return (start is None or start <= now) and (end is None or end >= now)


def submitted_paper_ids(db: Session, student: User) -> Set[int]:
    rows = (
        db.query(Submission.exam_paper_id)
        .filter(Submission.student_id == student.id, Submission.is_submitted.is_(True))
        .all()
    )
    return {row.exam_paper_id for row in rows}


def to_student_view(paper: ExamPaper, is_submitted: bool) -> StudentExamPaperResponse:
    view = StudentExamPaperResponse.model_validate(paper)
    is_available = not is_submitted and paper.status == PaperStatus.APPROVED and is_open(paper)
    return view.model_copy(update={"is_submitted": is_submitted, "is_available": is_available})


def list_papers(db: Session, identity: User) -> List[Union[ExamPaperResponse, StudentExamPaperResponse]]:
    role = identity.role
    if role == UserRole.ADMIN:
        papers = _paper_query(db).order_by(ExamPaper.id).all()
        return [ExamPaperResponse.model_validate(p) for p in papers]
    elif role == UserRole.FACULTY:
        papers = _paper_query(db).filter(ExamPaper.author_id == identity.id).order_by(ExamPaper.id).all()
        return [ExamPaperResponse.model_validate(p) for p in papers]
    elif role == UserRole.STUDENT:
        candidates = (
            _paper_query(db)
            .join(ExamPaper.subject)
            .filter(
                ExamPaper.status == PaperStatus.APPROVED,
                Subject.semester == identity.semester,
                Subject.department == identity.department,
            )
            .order_by(ExamPaper.id)
            .all()
        )
        submitted = submitted_paper_ids(db, identity)
        return [
            to_student_view(p, p.id in submitted)
            for p in candidates
            if is_visible_to_student(p, identity)
        ]
    raise AssertionError(f"Unhandled role: {role}")


def get_paper(db: Session, paper_id: int) -> ExamPaper:
    paper = _paper_query(db).filter(ExamPaper.id == paper_id).first()
    if not paper:
        raise NotFoundError("Exam paper not found")
    return paper


def get_paper_for(db: Session, identity: User, paper_id: int):
    paper = get_paper(db, paper_id)
    role = identity.role
    if role in (UserRole.ADMIN, UserRole.FACULTY):
        return ExamPaperResponse.model_validate(paper)
    elif role == UserRole.STUDENT:
        if not is_visible_to_student(paper, identity):
            raise NotFoundError("Exam paper not found")
        return to_student_view(paper, paper.id in submitted_paper_ids(db, identity))
    raise AssertionError(f"Unhandled role: {role}")


def _check_editable(paper: ExamPaper, identity: User, verb: str) -> None:
    if identity.role == UserRole.FACULTY and paper.author_id != identity.id:
        raise AuthorizationError(f"Not authorized to {verb} this exam paper")
    if paper.status != PaperStatus.PENDING and identity.role != UserRole.ADMIN:
        raise ValidationError(f"Cannot {verb} approved or rejected exam paper")


def create_paper(db: Session, author: User, data: ExamPaperCreate) -> ExamPaper:
    subject = _get_subject(db, data.subject_id)

    fields = data.model_dump(exclude={"questions"})
    paper = ExamPaper(
        **fields,
        questions=[q.model_dump(mode="json") for q in data.questions],
        author_id=author.id,
        status=PaperStatus.PENDING,
        is_active=False,
    )
    paper.sync_from_subject(subject)
    db.add(paper)
    db.commit()

    record_activity(db, author.id, f"Created exam paper: {paper.title}", ActivityType.PAPER)
    logger.info("Exam paper %s created by %s", paper.id, author.email)
    return get_paper(db, paper.id)


def update_paper(db: Session, identity: User, paper_id: int, data: ExamPaperUpdate) -> ExamPaper:
    paper = get_paper(db, paper_id)
    _check_editable(paper, identity, "update")

    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True, exclude={"questions"}).items()
        if value is not None or field in NULLABLE_FIELDS
    }

    new_status: Optional[PaperStatus] = changes.pop("status", None)
    if new_status is not None and new_status != paper.status:
        if new_status != PaperStatus.COMPLETED or paper.status != PaperStatus.APPROVED:
            raise ValidationError("Only approved exam papers can be marked completed")
        paper.status = PaperStatus.COMPLETED

    if "subject_id" in changes:
        paper.subject = _get_subject(db, changes["subject_id"])
        paper.sync_from_subject()
    for field, value in changes.items():
        setattr(paper, field, value)
    if data.questions is not None:
        paper.questions = [q.model_dump(mode="json") for q in data.questions]

    db.commit()

    if new_status == PaperStatus.COMPLETED:
        action = f"Completed exam: {paper.title}"
    else:
        action = f"Updated exam paper: {paper.title}"
    record_activity(db, identity.id, action, ActivityType.PAPER)
    return get_paper(db, paper.id)


def delete_paper(db: Session, identity: User, paper_id: int) -> None:
    paper = get_paper(db, paper_id)
    _check_editable(paper, identity, "delete")
    # A paper with submissions also backs published results
    if db.query(Submission.id).filter(Submission.exam_paper_id == paper.id).first():
        raise ValidationError("Cannot delete an exam paper that has submissions")
    title = paper.title
    db.delete(paper)
    db.commit()
    record_activity(db, identity.id, f"Deleted exam paper: {title}", ActivityType.PAPER)


def approve_paper(db: Session, admin: User, paper_id: int) -> ExamPaper:
    paper = get_paper(db, paper_id)
    if paper.status != PaperStatus.PENDING:
        raise ValidationError("Only pending exam papers can be approved")
    paper.status = PaperStatus.APPROVED
    paper.is_active = True
    db.commit()
    record_activity(db, admin.id, f"Approved exam paper: {paper.title}", ActivityType.PAPER)
    return get_paper(db, paper.id)


def reject_paper(db: Session, admin: User, paper_id: int, reason: Optional[str]) -> ExamPaper:
    paper = get_paper(db, paper_id)
    if paper.status != PaperStatus.PENDING:
        raise ValidationError("Only pending exam papers can be rejected")
    paper.status = PaperStatus.REJECTED
    paper.rejection_reason = reason
    db.commit()
    record_activity(db, admin.id, f"Rejected exam paper: {paper.title}", ActivityType.PAPER, reason)
    return get_paper(db, paper.id)
