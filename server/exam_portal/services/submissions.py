"""
Submission workflow.

A submission moves strictly forward:

    pending -> evaluated -> submitted_to_admin -> published

Re-evaluation is allowed until the submission has been sent to an admin.
Publishing creates the student's Result in the same transaction.
"""
import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from exam_portal.errors import (
    AuthorizationError, DuplicateSubmissionError, NotFoundError, ValidationError,
)
from exam_portal.models import (
    ActivityType, ExamPaper, Result, Submission, SubmissionStatus, User, UserRole,
)
from exam_portal.schemas import EvaluateRequest, SubmissionCreate
from exam_portal.services.activity_log import record_activity
from exam_portal.services.exam_papers import is_visible_to_student
from exam_portal.timeutils import utcnow

logger = logging.getLogger(__name__)

EVALUABLE = (SubmissionStatus.PENDING, SubmissionStatus.EVALUATED)


def _submission_query(db: Session):
    return db.query(Submission).options(
        joinedload(Submission.student),
        joinedload(Submission.exam_paper),
        joinedload(Submission.evaluated_by),
    )


def _load(db: Session, submission_id: int) -> Submission:
    submission = _submission_query(db).filter(Submission.id == submission_id).first()
    if not submission:
        raise NotFoundError("Submission not found")
    return submission


def submit(db: Session, student: User, data: SubmissionCreate) -> Submission:
    paper = db.get(ExamPaper, data.exam_paper_id)
    if not paper:
        raise NotFoundError("Exam paper not found")
    if not is_visible_to_student(paper, student):
        # Same answer as a read of a paper the student cannot see
        raise NotFoundError("Exam paper not found")

    already = (
        db.query(Submission.id)
        .filter(Submission.student_id == student.id, Submission.exam_paper_id == paper.id)
        .first()
    )
    if already:
        raise DuplicateSubmissionError()

    now = utcnow()
    submission = Submission(
        student_id=student.id,
        exam_paper_id=paper.id,
        answers=[
            {"question_index": a.question_index, "selected_option": a.selected_option,
             "marks": None, "comment": None}
            for a in data.answers
        ],
        start_time=data.start_time or now,
        end_time=data.end_time or now,
        is_submitted=True,
        status=SubmissionStatus.PENDING,
    )
    db.add(submission)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent submit for the same paper won the unique constraint
        db.rollback()
        raise DuplicateSubmissionError()

    record_activity(
        db, student.id, f"Submitted exam: {paper.title}", ActivityType.RESULT,
        f"Submission {submission.id}",
    )
    logger.info("Student %s submitted paper %s", student.id, paper.id)
    return _load(db, submission.id)


def list_submissions(db: Session, identity: User) -> List[Submission]:
    query = _submission_query(db).order_by(Submission.id)
    role = identity.role
    if role == UserRole.STUDENT:
        return query.filter(Submission.student_id == identity.id).all()
    elif role == UserRole.FACULTY:
        return query.join(Submission.exam_paper).filter(ExamPaper.author_id == identity.id).all()
    elif role == UserRole.ADMIN:
        return query.all()
    raise AssertionError(f"Unhandled role: {role}")


def get_submission(db: Session, identity: User, submission_id: int) -> Submission:
    submission = _load(db, submission_id)
    if identity.role == UserRole.STUDENT and submission.student_id != identity.id:
        raise AuthorizationError("Not authorized to view this submission")
    return submission


def evaluate(db: Session, evaluator: User, submission_id: int, data: EvaluateRequest) -> Submission:
    submission = _load(db, submission_id)
    if submission.status not in EVALUABLE:
        raise ValidationError("Submission can no longer be evaluated")

    by_index = {e.question_index: e for e in data.evaluations}
    answers = []
    for answer in submission.answers or []:
        answer = dict(answer)
        evaluation = by_index.get(answer.get("question_index"))
        if evaluation is not None:
            answer["marks"] = evaluation.marks
            if evaluation.comment:
                answer["comment"] = evaluation.comment
        answers.append(answer)

    # A fresh list so the JSON column is flagged dirty
    submission.answers = answers
    submission.score = data.score
    submission.feedback = data.feedback
    submission.evaluated_by_id = evaluator.id
    submission.evaluated_by = evaluator
    submission.evaluated_at = utcnow()
    submission.status = SubmissionStatus.EVALUATED
    db.commit()

    record_activity(
        db, evaluator.id, f"Evaluated submission for: {submission.exam_title}", ActivityType.RESULT,
        f"Score {data.score}",
    )
    return submission


def submit_to_admin(db: Session, evaluator: User, submission_id: int) -> Submission:
    submission = _load(db, submission_id)
    if submission.status != SubmissionStatus.EVALUATED:
        raise ValidationError("Only evaluated submissions can be sent to admin")
    if submission.score is None or submission.evaluated_by_id is None:
        raise ValidationError("Submission must be evaluated before it is sent to admin")

    submission.status = SubmissionStatus.SUBMITTED_TO_ADMIN
    submission.submitted_to_admin_at = utcnow()
    db.commit()

    record_activity(
        db, evaluator.id, f"Sent result to admin: {submission.exam_title}", ActivityType.RESULT,
    )
    return submission


def publish(db: Session, identity: User, submission_id: int) -> Tuple[Submission, Result]:
    if identity.role != UserRole.ADMIN:
        raise AuthorizationError("Only admin can publish results")

    submission = _load(db, submission_id)
    if submission.status != SubmissionStatus.SUBMITTED_TO_ADMIN:
        raise ValidationError("Only submissions sent to admin can be published")

    paper = submission.exam_paper
    score = submission.score or 0
    result = Result(
        student_id=submission.student_id,
        exam_paper_id=submission.exam_paper_id,
        submission_id=submission.id,
        score=score,
        total_marks=paper.total_marks,
        percentage=score / paper.total_marks * 100,
        feedback=submission.feedback,
    )
    submission.status = SubmissionStatus.PUBLISHED
    submission.published_at = utcnow()
    db.add(result)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Result already published for this submission")

    record_activity(
        db, identity.id, f"Published result: {submission.exam_title}", ActivityType.RESULT,
        f"{submission.student_name}: {result.percentage:.2f}%",
    )
    logger.info("Published result %s for submission %s", result.id, submission.id)
    return submission, result
