"""
Relational schema (SQLAlchemy Core).

Column names match the snake_case attribute names of the schemas, so rows
map straight onto the Pydantic models. Structured fields (options,
categories, answers) are JSON columns.
"""

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Float, ForeignKey, Index, Integer,
    MetaData, String, Table, Text, UniqueConstraint,
)

metadata = MetaData()

ID = String(32)
PROFILE_ID = String(64)


colleges = Table(
    "colleges", metadata,
    Column("id", ID, primary_key=True),
    Column("profile_id", PROFILE_ID, nullable=False, unique=True),
    Column("name", String(200), nullable=False),
    Column("location", String(200), nullable=False),
    Column("country", String(100), nullable=False),
    Column("description", Text),
    Column("logo_url", String(500)),
    Column("website", String(500)),
    Column("address", Text),
    Column("contact_email", String(255)),
    Column("contact_phone", String(50)),
    Column("is_verified", Boolean, nullable=False, default=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

courses = Table(
    "courses", metadata,
    Column("id", ID, primary_key=True),
    Column("college_id", ID, ForeignKey("colleges.id"), nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("description", Text),
    Column("duration", String(100)),
    Column("fees", Float),
    Column("admission_criteria", Text),
    Column("career_id", String(64)),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

students = Table(
    "students", metadata,
    Column("id", ID, primary_key=True),
    Column("profile_id", PROFILE_ID, nullable=False, unique=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("current_education", String(200)),
    Column("graduation_year", Integer),
    Column("interests", JSON, nullable=False, default=list),
    Column("preferred_location", String(200)),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

questions = Table(
    "questions", metadata,
    Column("id", ID, primary_key=True),
    Column("college_id", ID, index=True),
    Column("type", String(20), nullable=False),
    Column("text", Text, nullable=False),
    Column("options", JSON, nullable=False, default=list),
    Column("difficulty_level", String(10), nullable=False),
    Column("categories", JSON, nullable=False, default=list),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

aptitude_tests = Table(
    "aptitude_tests", metadata,
    Column("id", ID, primary_key=True),
    Column("college_id", ID, index=True),
    Column("title", String(200), nullable=False),
    Column("description", Text),
    Column("question_ids", JSON, nullable=False, default=list),
    Column("status", String(20), nullable=False),
    Column("passing_score", Integer, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    Column("published_at", DateTime),
)

test_results = Table(
    "test_results", metadata,
    Column("id", ID, primary_key=True),
    Column("test_id", ID, ForeignKey("aptitude_tests.id"), nullable=False),
    Column("student_id", ID, ForeignKey("students.id"), nullable=False, index=True),
    Column("score", Integer, nullable=False),
    Column("max_score", Integer, nullable=False),
    Column("passed", Boolean, nullable=False),
    Column("category_scores", JSON, nullable=False, default=dict),
    Column("pending_review", Integer, nullable=False, default=0),
    Column("answers", JSON, nullable=False, default=dict),
    Column("application_id", ID, ForeignKey("applications.id")),
    Column("date", DateTime, nullable=False),
    UniqueConstraint("test_id", "student_id", name="uq_test_results_test_student"),
)

applications = Table(
    "applications", metadata,
    Column("id", ID, primary_key=True),
    Column("student_id", ID, ForeignKey("students.id"), nullable=False),
    Column("course_id", ID, ForeignKey("courses.id"), nullable=False, index=True),
    Column("college_id", ID, ForeignKey("colleges.id"), nullable=False),
    Column("status", String(20), nullable=False),
    Column("notes", Text),
    Column("aptitude_test_id", ID, ForeignKey("aptitude_tests.id")),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    UniqueConstraint("student_id", "course_id", name="uq_applications_student_course"),
    Index("ix_applications_college_created", "college_id", "created_at"),
)


# Row-level security (PostgreSQL only). FORCE binds the table owner too,
# which is the role the application connects as. The SQL store sets
# app.profile_id per transaction from the verified principal; only
# app.service = 'on' (operator scripts) sees every row.
SERVICE_CONTEXT = "current_setting('app.service', true) = 'on'"
CURRENT_PROFILE = "current_setting('app.profile_id', true)"

RLS_STATEMENTS = [
    "ALTER TABLE students ENABLE ROW LEVEL SECURITY",
    "ALTER TABLE students FORCE ROW LEVEL SECURITY",
    "DROP POLICY IF EXISTS students_by_profile ON students",
    "DROP POLICY IF EXISTS students_register ON students",
    f"""
    CREATE POLICY students_by_profile ON students
    USING ({SERVICE_CONTEXT} OR profile_id = {CURRENT_PROFILE})
    """,
    # Registration runs before the new student holds a token
    "CREATE POLICY students_register ON students FOR INSERT WITH CHECK (true)",
    "ALTER TABLE applications ENABLE ROW LEVEL SECURITY",
    "ALTER TABLE applications FORCE ROW LEVEL SECURITY",
    "DROP POLICY IF EXISTS applications_by_party ON applications",
    f"""
    CREATE POLICY applications_by_party ON applications
    USING (
        {SERVICE_CONTEXT}
        OR student_id IN (SELECT id FROM students WHERE profile_id = {CURRENT_PROFILE})
        OR college_id IN (SELECT id FROM colleges WHERE profile_id = {CURRENT_PROFILE})
    )
    """,
]
