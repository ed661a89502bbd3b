"""
Models package initialization
Import all models here to ensure they are registered with SQLAlchemy
"""

from exam_portal.models.user import User, UserRole, School, Department, Specialization
from exam_portal.models.content import Subject, ExamPaper, QuestionType, PaperStatus
from exam_portal.models.session import Submission, Result, SubmissionStatus
from exam_portal.models.activity import Activity, ActivityType

__all__ = [
    "User",
    "UserRole",
    "School",
    "Department",
    "Specialization",
    "Subject",
    "ExamPaper",
    "QuestionType",
    "PaperStatus",
    "Submission",
    "Result",
    "SubmissionStatus",
    "Activity",
    "ActivityType",
]
