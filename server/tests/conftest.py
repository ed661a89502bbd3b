import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from exam_portal.database import get_db, init_db
from exam_portal.main import app
from exam_portal.models import (
    Department, ExamPaper, PaperStatus, School, Specialization, Subject, User, UserRole,
)
from exam_portal.security import create_access_token, hash_password

PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, role=UserRole.STUDENT, email=None, name=None, **fields):
    count = db.query(User).count() + 1
    if role == UserRole.STUDENT:
        fields.setdefault("student_id", str(1000 + count))
        fields.setdefault("school", School.SOET)
        fields.setdefault("department", Department.CSE)
        fields.setdefault("specialization", Specialization.AIML)
        fields.setdefault("semester", 3)
    elif role == UserRole.FACULTY:
        fields.setdefault("faculty_id", f"FAC{count:04d}")
    user = User(
        name=name or f"{role.value.title()} {count}",
        email=email or f"{role.value}{count}@portal.edu",
        password_hash=hash_password(PASSWORD),
        role=role,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_subject(db, faculty, **fields):
    fields.setdefault("name", "Data Structures")
    fields.setdefault("school", School.SOET)
    fields.setdefault("department", Department.CSE)
    fields.setdefault("specialization", Specialization.AIML)
    fields.setdefault("semester", 3)
    subject = Subject(faculty_id=faculty.id, **fields)
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


def make_paper(db, subject, author, status=PaperStatus.APPROVED, **fields):
    fields.setdefault("title", "Midterm")
    fields.setdefault("description", "Midterm exam")
    fields.setdefault("duration", 60)
    fields.setdefault("total_marks", 10)
    fields.setdefault("passing_marks", 4)
    fields.setdefault("instructions", "Answer all questions")
    fields.setdefault("questions", [{
        "question": "Pick B",
        "type": "mcq",
        "options": ["A", "B", "C", "D"],
        "correct_answer": "B",
        "marks": 10,
    }])
    paper = ExamPaper(
        subject_id=subject.id,
        author_id=author.id,
        status=status,
        is_active=status == PaperStatus.APPROVED,
        **fields,
    )
    paper.sync_from_subject(subject)
    db.add(paper)
    db.commit()
    db.refresh(paper)
    return paper


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def admin(db):
    return make_user(db, UserRole.ADMIN, email="admin@portal.edu", name="Portal Admin")


@pytest.fixture
def faculty(db):
    return make_user(db, UserRole.FACULTY, email="faculty@portal.edu", name="Dr Faculty")


@pytest.fixture
def student(db):
    return make_user(db, UserRole.STUDENT, email="student@portal.edu", name="Student One")


@pytest.fixture
def subject(db, faculty):
    return make_subject(db, faculty)


@pytest.fixture
def paper(db, subject, faculty):
    return make_paper(db, subject, faculty)
