from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from exam_portal.database import Base
import enum


class UserRole(str, enum.Enum):
    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"


class School(str, enum.Enum):
    SOET = "SOET"
    SOPHAS = "SoPHAS"
    SOM = "SoM"


class Department(str, enum.Enum):
    CSE = "CSE"
    MECH = "MECH"
    ECE = "ECE"
    BSC = "BSc"
    BBA = "BBA"


class Specialization(str, enum.Enum):
    AIML = "AIML"
    DSML = "DSML"
    CSBS = "CSBS"
    CN = "CN"
    FORENSIC_SCIENCE = "Forensic Science"
    ANESTHESIA = "Anesthesia"
    RADIOLOGY = "Radiology"
    OPTOMETRY = "Optometry"
    PHARMACY = "Pharmacy"
    AGRICULTURE = "Agriculture"
    NONE = "No Specialization"


def _values(enum_cls):
    return [member.value for member in enum_cls]


# Highest semester offered by each school
MAX_SEMESTER = {
    School.SOET: 8,
    School.SOPHAS: 6,
    School.SOM: 6,
}


def semester_in_range(school, semester: int) -> bool:
    """Check a semester against the range offered by a school."""
    if school is None:
        return False
    return 1 <= semester <= MAX_SEMESTER[School(school)]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole, values_callable=_values), nullable=False, default=UserRole.STUDENT)

    # Academic placement
    school = Column(SQLEnum(School, values_callable=_values), nullable=True)
    department = Column(SQLEnum(Department, values_callable=_values), nullable=True)
    specialization = Column(
        SQLEnum(Specialization, values_callable=_values), nullable=True
    )
    semester = Column(Integer, nullable=True)

    # Role-specific identifiers
    student_id = Column(String, unique=True, index=True, nullable=True)
    faculty_id = Column(String, unique=True, index=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    subjects = relationship("Subject", back_populates="faculty")
    exam_papers = relationship("ExamPaper", back_populates="author", foreign_keys="ExamPaper.author_id")
    submissions = relationship(
        "Submission",
        back_populates="student",
        foreign_keys="Submission.student_id",
        cascade="all, delete-orphan",
    )
    results = relationship("Result", back_populates="student", cascade="all, delete-orphan")
    activities = relationship("Activity", back_populates="user")

    def __repr__(self):
        return f"<User {self.name} ({self.role})>"
