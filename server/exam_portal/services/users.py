"""
User accounts: single and bulk creation, profile updates, deletion.
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exam_portal.errors import ConflictError, NotFoundError, ValidationError
from exam_portal.models import User, UserRole
from exam_portal.schemas import UserCreate, UserUpdate, check_semester
from exam_portal.security import hash_password

logger = logging.getLogger(__name__)


def _build_user(data: UserCreate) -> User:
    fields = data.model_dump(exclude={"password"})
    return User(**fields, password_hash=hash_password(data.password))


def _identifier_taken(db: Session, column, value: Optional[str], exclude_id: Optional[int] = None) -> bool:
    if not value:
        return False
    query = db.query(User).filter(column == value)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return db.query(query.exists()).scalar()


def _check_unique(db: Session, email: Optional[str], student_id: Optional[str], faculty_id: Optional[str],
                  exclude_id: Optional[int] = None) -> None:
    if _identifier_taken(db, User.email, email, exclude_id):
        raise ConflictError("Email already exists")
    if _identifier_taken(db, User.student_id, student_id, exclude_id):
        raise ConflictError("Student ID already exists")
    if _identifier_taken(db, User.faculty_id, faculty_id, exclude_id):
        raise ConflictError("Faculty ID already exists")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against another insert of the same email/ID
        db.rollback()
        raise ConflictError("User with this email or ID already exists")


def create_user(db: Session, data: UserCreate) -> User:
    _check_unique(db, data.email, data.student_id, data.faculty_id)
    user = _build_user(data)
    db.add(user)
    _commit(db)
    db.refresh(user)
    return user


def list_users(db: Session, role: Optional[UserRole] = None) -> List[User]:
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.id).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user(db: Session, user_id: int, data: UserUpdate) -> User:
    user = get_user(db, user_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    password = changes.pop("password", None)

    for field, value in changes.items():
        setattr(user, field, value)

    # Re-check the role rules against the merged record
    if user.role == UserRole.STUDENT:
        if not user.student_id:
            raise ValidationError("Student ID is required for students")
    else:
        user.student_id = None
    if user.role == UserRole.FACULTY:
        if not user.faculty_id:
            raise ValidationError("Faculty ID is required for faculty members")
    else:
        user.faculty_id = None
    try:
        check_semester(user.role, user.school, user.semester)
    except ValueError as e:
        raise ValidationError(str(e))

    _check_unique(db, changes.get("email"), user.student_id, user.faculty_id, exclude_id=user.id)
    if password:
        user.password_hash = hash_password(password)

    _commit(db)
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> None:
    user = get_user(db, user_id)
    if user.subjects or user.exam_papers:
        raise ValidationError("User still owns subjects or exam papers")
    db.delete(user)
    db.commit()
    logger.info("Deleted user %s", user.email)


def bulk_delete_users(db: Session, user_ids: Iterable[int]) -> int:
    users = db.query(User).filter(User.id.in_(list(user_ids))).all()
    if not users:
        raise NotFoundError("No users found to delete")
    for user in users:
        if user.subjects or user.exam_papers:
            raise ValidationError(f"User {user.email} still owns subjects or exam papers")
    for user in users:
        db.delete(user)
    db.commit()
    return len(users)


def parse_bulk_upload(content: bytes) -> Any:
    """Decode an uploaded JSON file into its records."""
    try:
        text = content.decode("utf-8-sig").replace("\r\n", "\n").strip()
    except UnicodeDecodeError:
        raise ValidationError("Error reading file", details="File must be UTF-8 encoded")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError("Invalid JSON format", details=str(e), preview=text[:200])


def _duplicates(values: List[Optional[str]]) -> List[str]:
    seen, dupes = set(), []
    for value in values:
        if not value:
            continue
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


def bulk_create_users(db: Session, records: Any) -> List[User]:
    """
    Validate and insert a batch of users.

    The batch is all-or-nothing: any malformed record, in-batch duplicate or
    already-stored email fails the whole request before anything is written.
    """
    if not isinstance(records, list):
        raise ValidationError(
            "Invalid data format. Expected an array of users.", received=type(records).__name__
        )

    parsed: List[UserCreate] = []
    invalid: List[Dict[str, Any]] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            invalid.append({"index": index, "errors": ["Record must be an object"]})
            continue
        try:
            parsed.append(UserCreate.model_validate(record))
        except SchemaError as e:
            invalid.append({
                "index": index,
                "email": record.get("email"),
                "name": record.get("name"),
                "errors": [err["msg"] for err in e.errors()],
            })
    if invalid:
        raise ValidationError("Some users have missing or invalid fields", invalid_users=invalid)

    emails = [data.email for data in parsed]
    duplicates = _duplicates(emails)
    if duplicates:
        raise ValidationError("Duplicate emails in request", duplicates=duplicates)
    duplicate_ids = _duplicates([data.student_id for data in parsed]) + _duplicates(
        [data.faculty_id for data in parsed]
    )
    if duplicate_ids:
        raise ValidationError("Duplicate IDs in request", duplicates=duplicate_ids)

    existing = [row.email for row in db.query(User.email).filter(User.email.in_(emails)).all()]
    if existing:
        raise ValidationError("Some emails already exist", emails=existing)

    users = [_build_user(data) for data in parsed]
    db.add_all(users)
    _commit(db)
    for user in users:
        db.refresh(user)
    logger.info("Bulk created %d users", len(users))
    return users
