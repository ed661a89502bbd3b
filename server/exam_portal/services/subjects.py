"""
Subject catalog.
"""
import logging
from typing import List

from sqlalchemy.orm import Session, joinedload

from exam_portal.errors import AuthorizationError, NotFoundError, ValidationError
from exam_portal.models import Subject, User, UserRole
from exam_portal.models.user import semester_in_range
from exam_portal.schemas import SubjectCreate, SubjectUpdate

logger = logging.getLogger(__name__)


def _require_faculty(db: Session, user_id: int) -> User:
    faculty = db.get(User, user_id)
    if not faculty or faculty.role != UserRole.FACULTY:
        raise ValidationError("Invalid faculty ID")
    return faculty


def _check_owner(subject: Subject, identity: User) -> None:
    if identity.role == UserRole.FACULTY and subject.faculty_id != identity.id:
        raise AuthorizationError("Not authorized to modify this subject")


def list_subjects(db: Session) -> List[Subject]:
    return db.query(Subject).options(joinedload(Subject.faculty)).order_by(Subject.id).all()


def get_subject(db: Session, subject_id: int) -> Subject:
    subject = db.get(Subject, subject_id)
    if not subject:
        raise NotFoundError("Subject not found")
    return subject


def create_subject(db: Session, identity: User, data: SubjectCreate) -> Subject:
    _require_faculty(db, data.faculty_id)
    if identity.role == UserRole.FACULTY and data.faculty_id != identity.id:
        raise AuthorizationError("Faculty can only create their own subjects")

    subject = Subject(**data.model_dump())
    db.add(subject)
    db.commit()
    db.refresh(subject)
    logger.info("Created subject %s (%s)", subject.name, subject.id)
    return subject


def update_subject(db: Session, identity: User, subject_id: int, data: SubjectUpdate) -> Subject:
    subject = get_subject(db, subject_id)
    _check_owner(subject, identity)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "faculty_id" in changes:
        _require_faculty(db, changes["faculty_id"])
    school = changes.get("school", subject.school)
    semester = changes.get("semester", subject.semester)
    if not semester_in_range(school, semester):
        raise ValidationError("Invalid semester for the selected school")

    for field, value in changes.items():
        setattr(subject, field, value)

    # Keep the mirrored fields on every paper in step with the subject
    if "department" in changes or "specialization" in changes:
        for paper in subject.exam_papers:
            paper.sync_from_subject(subject)

    db.commit()
    db.refresh(subject)
    return subject


def delete_subject(db: Session, identity: User, subject_id: int) -> None:
    subject = get_subject(db, subject_id)
    _check_owner(subject, identity)
    if subject.exam_papers:
        raise ValidationError("Cannot delete a subject that has exam papers")
    db.delete(subject)
    db.commit()
    logger.info("Deleted subject %s (%s)", subject.name, subject_id)
