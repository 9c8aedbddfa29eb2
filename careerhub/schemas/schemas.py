"""
Pydantic Schemas - Entities and Request/Response Validation

All entity, request and response schemas in one file for simplicity.
Python attributes are snake_case; the JSON wire format is camelCase.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any, Union
from datetime import datetime
from enum import Enum


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python and storage."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )


# ============================================================
# ENUMS
# ============================================================

class QuestionType(str, Enum):
    mcq_single = "mcq-single"
    mcq_multiple = "mcq-multiple"
    short_answer = "short-answer"
    long_answer = "long-answer"


MCQ_TYPES = {QuestionType.mcq_single.value, QuestionType.mcq_multiple.value}


class DifficultyLevel(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class TestStatus(str, Enum):
    draft = "draft"
    published = "published"


class ApplicationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Decision(str, Enum):
    approved = "approved"
    rejected = "rejected"


class UserRole(str, Enum):
    student = "student"
    college = "college"
    admin = "admin"


# ============================================================
# QUESTION SCHEMAS
# ============================================================

class Option(CamelModel):
    id: Optional[str] = None
    text: str = Field(..., min_length=1)
    is_correct: bool = False
    explanation: Optional[str] = None


class QuestionCreate(CamelModel):
    college_id: Optional[str] = None
    type: QuestionType
    text: str = Field(..., min_length=1)
    options: List[Option] = []
    difficulty_level: DifficultyLevel = DifficultyLevel.medium
    categories: List[str] = []


class QuestionUpdate(CamelModel):
    type: Optional[QuestionType] = None
    text: Optional[str] = Field(None, min_length=1)
    options: Optional[List[Option]] = None
    difficulty_level: Optional[DifficultyLevel] = None
    categories: Optional[List[str]] = None


class Question(QuestionCreate):
    id: str
    created_at: datetime
    updated_at: datetime


class BulkUploadRequest(CamelModel):
    # Items stay raw so one malformed question cannot reject the whole request
    questions: List[Any]
    college_id: Optional[str] = None


class BulkFailure(CamelModel):
    index: int
    reason: str
    message: str


class BulkUploadResult(CamelModel):
    total: int
    created: int
    failed: List[BulkFailure] = []
    question_ids: List[str] = []


# ============================================================
# COLLEGE & COURSE SCHEMAS
# ============================================================

class CollegeFields(CamelModel):
    name: str = Field(..., min_length=2, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    country: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


class CollegeCreate(CollegeFields):
    profile_id: str


class CollegeUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None


class College(CollegeFields):
    id: str
    profile_id: str
    is_verified: bool = False
    courses: List[str] = []
    created_at: datetime
    updated_at: datetime


class VerificationUpdate(CamelModel):
    is_verified: bool


class CourseCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    duration: Optional[str] = None
    fees: Optional[float] = Field(None, ge=0)
    admission_criteria: Optional[str] = None
    career_id: Optional[str] = None


class CourseUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = None
    duration: Optional[str] = None
    fees: Optional[float] = Field(None, ge=0)
    admission_criteria: Optional[str] = None
    career_id: Optional[str] = None


class Course(CourseCreate):
    id: str
    college_id: str
    created_at: datetime
    updated_at: datetime


# ============================================================
# APTITUDE TEST SCHEMAS
# ============================================================

class AptitudeTestCreate(CamelModel):
    college_id: Optional[str] = None
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    question_ids: List[str] = []
    passing_score: Optional[int] = Field(None, ge=0, le=100)


class AptitudeTestUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    question_ids: Optional[List[str]] = None
    passing_score: Optional[int] = Field(None, ge=0, le=100)


class AptitudeTest(CamelModel):
    id: str
    college_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    question_ids: List[str] = []
    status: TestStatus = TestStatus.draft
    passing_score: int = 60
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None


class SubmissionRequest(CamelModel):
    student_id: str
    # question id -> option id/text, or a list of them for mcq-multiple
    answers: Dict[str, Union[str, List[str]]] = {}
    application_id: Optional[str] = None


class TestResult(CamelModel):
    id: str
    test_id: str
    student_id: str
    score: int
    max_score: int = 100
    passed: bool
    category_scores: Dict[str, int] = {}
    pending_review: int = 0
    answers: Dict[str, Any] = {}
    application_id: Optional[str] = None
    date: datetime


# ============================================================
# STUDENT & APPLICATION SCHEMAS
# ============================================================

class StudentUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    current_education: Optional[str] = None
    graduation_year: Optional[int] = Field(None, ge=1950, le=2100)
    interests: Optional[List[str]] = None
    preferred_location: Optional[str] = None


class Student(CamelModel):
    id: str
    profile_id: str
    name: str
    email: str
    current_education: Optional[str] = None
    graduation_year: Optional[int] = None
    interests: List[str] = []
    preferred_location: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class StudentProfile(Student):
    applied_colleges: List[str] = []
    test_results: List[TestResult] = []


class ApplicationCreate(CamelModel):
    course_id: str
    notes: Optional[str] = None


class DecisionRequest(CamelModel):
    status: Decision
    notes: Optional[str] = None
    # Only with an approval; the test must be published
    aptitude_test_id: Optional[str] = None


class Application(CamelModel):
    id: str
    student_id: str
    course_id: str
    college_id: str
    status: ApplicationStatus = ApplicationStatus.pending
    notes: Optional[str] = None
    aptitude_test_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================
# AUTH SCHEMAS
# ============================================================

class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class StudentRegistration(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2, max_length=100)
    current_education: Optional[str] = None
    graduation_year: Optional[int] = Field(None, ge=1950, le=2100)
    interests: List[str] = []
    preferred_location: Optional[str] = None


class CollegeRegistration(CollegeFields):
    email: EmailStr
    password: str = Field(..., min_length=6)


class SessionUser(CamelModel):
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


class Session(CamelModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: SessionUser


class Principal(CamelModel):
    profile_id: str
    email: Optional[str] = None
    role: Optional[str] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class HealthResponse(CamelModel):
    status: str
    timestamp: str
    uptime: float
    storage: str


class MessageResponse(CamelModel):
    message: str
    success: bool = True
