from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Boolean, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from exam_portal.database import Base
from exam_portal.models.user import School, Department, Specialization, _values
import enum


class QuestionType(str, enum.Enum):
    MCQ = "mcq"
    SUBJECTIVE = "subjective"


class PaperStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class Subject(Base):
    """Catalog entry taught by one faculty member"""
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    faculty_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    school = Column(SQLEnum(School, values_callable=_values), nullable=False)
    department = Column(SQLEnum(Department, values_callable=_values), nullable=False)
    specialization = Column(SQLEnum(Specialization, values_callable=_values), nullable=False)
    semester = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    faculty = relationship("User", back_populates="subjects")
    exam_papers = relationship("ExamPaper", back_populates="subject")

    @property
    def faculty_name(self):
        return self.faculty.name if self.faculty else None


class ExamPaper(Base):
    """Question set authored by faculty and approved by an admin"""
    __tablename__ = "exam_papers"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Mirrored from the subject, see sync_from_subject()
    department = Column(SQLEnum(Department, values_callable=_values), nullable=True)
    specialization = Column(SQLEnum(Specialization, values_callable=_values), nullable=True)

    duration = Column(Integer, nullable=False)  # Minutes
    total_marks = Column(Integer, nullable=False)
    passing_marks = Column(Integer, nullable=False)
    questions = Column(JSON, nullable=False, default=list)  # [{"question", "type", "options", "correct_answer", "marks"}]
    instructions = Column(Text, nullable=False)

    status = Column(SQLEnum(PaperStatus, values_callable=_values), nullable=False, default=PaperStatus.PENDING)
    rejection_reason = Column(Text, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    subject = relationship("Subject", back_populates="exam_papers")
    author = relationship("User", back_populates="exam_papers", foreign_keys=[author_id])
    submissions = relationship("Submission", back_populates="exam_paper", cascade="all, delete-orphan")
    results = relationship("Result", back_populates="exam_paper", cascade="all, delete-orphan")

    def sync_from_subject(self, subject=None) -> None:
        """Copy department and specialization from the referenced subject."""
        subject = subject or self.subject
        if subject is not None:
            self.department = subject.department
            self.specialization = subject.specialization

    @property
    def subject_department(self):
        return self.subject.department if self.subject else self.department

    @property
    def subject_specialization(self):
        return self.subject.specialization if self.subject else self.specialization

    @property
    def semester(self):
        return self.subject.semester if self.subject else None

    @property
    def author_name(self):
        return self.author.name if self.author else None

    @property
    def subject_name(self):
        return self.subject.name if self.subject else None

    def __repr__(self):
        return f"<ExamPaper {self.title} ({self.status})>"
