from pydantic import AliasChoices, BaseModel, EmailStr, Field, StrictInt, StrictStr, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
import re

from exam_portal.models.user import UserRole, School, Department, Specialization, semester_in_range
from exam_portal.models.content import QuestionType, PaperStatus
from exam_portal.models.session import SubmissionStatus
from exam_portal.models.activity import ActivityType
from exam_portal.timeutils import as_utc


STUDENT_ID_PATTERN = re.compile(r"^[0-9]+$")
FACULTY_ID_PATTERN = re.compile(r"^FAC[0-9]{4}$")


def check_semester(role: Optional[UserRole], school: Optional[School], semester: Optional[int]) -> None:
    if semester is None or role not in (None, UserRole.STUDENT):
        return
    if not semester_in_range(school, semester):
        raise ValueError("Invalid semester for the selected school")


# User Schemas
class UserBase(BaseModel):
    name: str = Field(min_length=3, max_length=50)
    email: EmailStr
    role: UserRole = UserRole.STUDENT
    school: Optional[School] = None
    department: Optional[Department] = None
    specialization: Optional[Specialization] = None
    semester: Optional[int] = None
    student_id: Optional[str] = None
    faculty_id: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(min_length=6)

    @model_validator(mode="after")
    def check_role_fields(self):
        # The identifier belonging to another role is dropped
        if self.role == UserRole.STUDENT:
            if not self.student_id:
                raise ValueError("Student ID is required for students")
            if not STUDENT_ID_PATTERN.match(self.student_id):
                raise ValueError("Student ID must be numerical")
        else:
            self.student_id = None

        if self.role == UserRole.FACULTY:
            if not self.faculty_id:
                raise ValueError("Faculty ID is required for faculty members")
            if not FACULTY_ID_PATTERN.match(self.faculty_id):
                raise ValueError("Faculty ID must be in format: FACxxxx (e.g., FAC0123)")
        else:
            self.faculty_id = None

        check_semester(self.role, self.school, self.semester)
        return self


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    school: Optional[School] = None
    department: Optional[Department] = None
    specialization: Optional[Specialization] = None
    semester: Optional[int] = None
    student_id: Optional[str] = None
    faculty_id: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6)

    @field_validator("student_id")
    @classmethod
    def check_student_id(cls, v):
        if v and not STUDENT_ID_PATTERN.match(v):
            raise ValueError("Student ID must be numerical")
        return v

    @field_validator("faculty_id")
    @classmethod
    def check_faculty_id(cls, v):
        if v and not FACULTY_ID_PATTERN.match(v):
            raise ValueError("Faculty ID must be in format: FACxxxx (e.g., FAC0123)")
        return v


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    school: Optional[School] = None
    department: Optional[Department] = None
    specialization: Optional[Specialization] = None
    semester: Optional[int] = None
    student_id: Optional[str] = None
    faculty_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BulkDeleteRequest(BaseModel):
    user_ids: List[int]


class BulkCreateResponse(BaseModel):
    message: str
    users: List[UserResponse]


# Auth Schemas
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


# Subject Schemas
class SubjectBase(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    faculty_id: int
    school: School
    department: Department
    specialization: Specialization
    semester: int


class SubjectCreate(SubjectBase):
    @model_validator(mode="after")
    def check_semester_range(self):
        if not semester_in_range(self.school, self.semester):
            raise ValueError("Invalid semester for the selected school")
        return self


class SubjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    faculty_id: Optional[int] = None
    school: Optional[School] = None
    department: Optional[Department] = None
    specialization: Optional[Specialization] = None
    semester: Optional[int] = None


class SubjectResponse(SubjectBase):
    id: int
    faculty_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Question Schemas
class QuestionSchema(BaseModel):
    question: str = Field(min_length=1)
    type: QuestionType
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    marks: int = Field(ge=1)

    @model_validator(mode="after")
    def check_mcq_fields(self):
        if self.type == QuestionType.MCQ:
            if not self.options or len(self.options) != 4:
                raise ValueError("MCQ questions must have exactly 4 options")
            if not self.correct_answer:
                raise ValueError("MCQ questions must have a correct answer")
        return self


class StudentQuestion(BaseModel):
    """Question as shown to a student, without the answer key."""
    question: str
    type: QuestionType
    options: Optional[List[str]] = None
    marks: int


# Exam Paper Schemas
class ExamPaperCreate(BaseModel):
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=1)
    subject_id: int
    duration: int = Field(ge=1)
    total_marks: int = Field(ge=1)
    passing_marks: int = Field(ge=0)
    questions: List[QuestionSchema] = Field(min_length=1)
    instructions: str = Field(min_length=1)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v):
        return as_utc(v)


class ExamPaperUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = None
    subject_id: Optional[int] = None
    duration: Optional[int] = Field(None, ge=1)
    total_marks: Optional[int] = Field(None, ge=1)
    passing_marks: Optional[int] = Field(None, ge=0)
    questions: Optional[List[QuestionSchema]] = Field(None, min_length=1)
    instructions: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[PaperStatus] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v):
        return as_utc(v)


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class ExamPaperBaseResponse(BaseModel):
    id: int
    title: str
    description: str
    subject_id: int
    subject_name: Optional[str] = None
    semester: Optional[int] = None
    author_id: int
    author_name: Optional[str] = None
    # Read through the subject so a stale mirror never leaks
    department: Optional[Department] = Field(
        None, validation_alias=AliasChoices("subject_department", "department")
    )
    specialization: Optional[Specialization] = Field(
        None, validation_alias=AliasChoices("subject_specialization", "specialization")
    )
    duration: int
    total_marks: int
    passing_marks: int
    instructions: str
    status: PaperStatus
    rejection_reason: Optional[str] = None
    is_active: bool
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExamPaperResponse(ExamPaperBaseResponse):
    questions: List[QuestionSchema]


class StudentExamPaperResponse(ExamPaperBaseResponse):
    questions: List[StudentQuestion]
    is_submitted: bool = False
    is_available: bool = False


# Submission Schemas
class AnswerIn(BaseModel):
    question_index: StrictInt
    selected_option: StrictStr


class AnswerOut(BaseModel):
    question_index: int
    selected_option: str
    marks: Optional[float] = None
    comment: Optional[str] = None


class SubmissionCreate(BaseModel):
    exam_paper_id: int
    answers: List[AnswerIn]
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v):
        return as_utc(v)


class Evaluation(BaseModel):
    question_index: int
    marks: float = Field(ge=0)
    comment: Optional[str] = None


class EvaluateRequest(BaseModel):
    score: float = Field(ge=0)
    evaluations: List[Evaluation] = []
    feedback: Optional[str] = None


class SubmissionResponse(BaseModel):
    id: int
    student_id: int
    student_name: Optional[str] = None
    exam_paper_id: int
    exam_title: Optional[str] = None
    answers: List[AnswerOut]
    score: Optional[float] = None
    feedback: Optional[str] = None
    start_time: datetime
    end_time: datetime
    is_submitted: bool
    status: SubmissionStatus
    evaluated_by_id: Optional[int] = None
    evaluator_name: Optional[str] = None
    evaluated_at: Optional[datetime] = None
    submitted_to_admin_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmissionActionResponse(BaseModel):
    message: str
    submission: SubmissionResponse


# Result Schemas
class ResultResponse(BaseModel):
    id: int
    student_id: int
    student_name: Optional[str] = None
    exam_paper_id: int
    exam_title: Optional[str] = None
    submission_id: int
    score: float
    total_marks: int
    percentage: float
    feedback: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PublishResponse(SubmissionActionResponse):
    result: ResultResponse


class ResultStats(BaseModel):
    average_score: float = 0
    highest_score: float = 0
    lowest_score: float = 0
    total_students: int = 0


# Activity Schemas
class ActivityResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    action: str
    type: ActivityType
    details: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
