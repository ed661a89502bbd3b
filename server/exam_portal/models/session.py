from sqlalchemy import (
    Column, Integer, Text, DateTime, ForeignKey, JSON, Float, Boolean, UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from exam_portal.database import Base
from exam_portal.models.user import _values
import enum


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    EVALUATED = "evaluated"
    SUBMITTED_TO_ADMIN = "submitted_to_admin"
    PUBLISHED = "published"


class Submission(Base):
    """One student's attempt at an exam paper"""
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("student_id", "exam_paper_id", name="uq_submission_student_paper"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_paper_id = Column(Integer, ForeignKey("exam_papers.id", ondelete="CASCADE"), nullable=False, index=True)
    answers = Column(JSON, nullable=False, default=list)  # [{"question_index", "selected_option", "marks", "comment"}]
    score = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    is_submitted = Column(Boolean, default=False, nullable=False)
    status = Column(
        SQLEnum(SubmissionStatus, values_callable=_values),
        nullable=False,
        default=SubmissionStatus.PENDING,
    )

    # Evaluation trail
    evaluated_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    evaluated_at = Column(DateTime(timezone=True), nullable=True)
    submitted_to_admin_at = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    student = relationship("User", back_populates="submissions", foreign_keys=[student_id])
    exam_paper = relationship("ExamPaper", back_populates="submissions")
    evaluated_by = relationship("User", foreign_keys=[evaluated_by_id])
    result = relationship("Result", back_populates="submission", uselist=False, cascade="all, delete-orphan")

    @property
    def student_name(self):
        return self.student.name if self.student else None

    @property
    def exam_title(self):
        return self.exam_paper.title if self.exam_paper else None

    @property
    def evaluator_name(self):
        return self.evaluated_by.name if self.evaluated_by else None


class Result(Base):
    """Published, student-visible outcome of a submission"""
    __tablename__ = "results"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_paper_id = Column(Integer, ForeignKey("exam_papers.id", ondelete="CASCADE"), nullable=False)
    submission_id = Column(
        Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    score = Column(Float, nullable=False)
    total_marks = Column(Integer, nullable=False)
    percentage = Column(Float, nullable=False)
    feedback = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    student = relationship("User", back_populates="results")
    exam_paper = relationship("ExamPaper", back_populates="results")
    submission = relationship("Submission", back_populates="result")

    @property
    def student_name(self):
        return self.student.name if self.student else None

    @property
    def exam_title(self):
        return self.exam_paper.title if self.exam_paper else None
