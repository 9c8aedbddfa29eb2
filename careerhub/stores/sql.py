"""
Relational store - every entity store on top of SQLAlchemy Core.

Each call runs in its own transaction (get_db_session). With a profile id,
PostgreSQL row-level security sees that identity for the transaction.
Uniqueness rules are unique constraints, and conditional updates are one
UPDATE whose WHERE clause carries the expected field values.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from sqlalchemy import Table, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import sessionmaker

from careerhub.core.errors import ConflictError, RemoteUnavailableError
from careerhub.db import tables
from careerhub.db.postgres import get_db_session, test_postgres_connection
from careerhub.schemas.schemas import (
    Application, AptitudeTest, College, Course, Question, Student, TestResult,
)
from careerhub.stores.base import (
    ApplicationStore, CollegeStore, CourseStore, QuestionStore, Stores,
    StudentStore, TestResultStore, TestStore,
)

logger = logging.getLogger(__name__)


@contextmanager
def translate_errors(entity: str):
    """Map SQLAlchemy failures onto the CareerHub error taxonomy."""
    try:
        yield
    except IntegrityError as e:
        raise ConflictError(f"{entity} already exists or is still referenced", details={"entity": entity}) from e
    except (OperationalError, InterfaceError, PoolTimeoutError) as e:
        logger.error(f"PostgreSQL call failed for {entity}: {e}")
        raise RemoteUnavailableError("PostgreSQL", str(e.__class__.__name__)) from e


def _like_pattern(term: str) -> str:
    escaped = term.replace("/", "//").replace("%", "/%").replace("_", "/_")
    return f"%{escaped}%"


class SqlRepository:
    """Primary-key operations shared by every relational store."""

    table: Table = None
    model = None
    entity: str = ""

    def __init__(self, session_factory: sessionmaker, profile_id: Optional[str] = None, service: bool = False):
        self.session_factory = session_factory
        self.profile_id = profile_id
        self.service = service

    @contextmanager
    def _session(self):
        with translate_errors(self.entity):
            with get_db_session(self.session_factory, self.profile_id, self.service) as db:
                yield db

    def _row_values(self, entity) -> Dict[str, Any]:
        values = entity.model_dump()
        return {key: values[key] for key in self.table.c.keys() if key in values}

    def _from_row(self, row):
        if row is None:
            return None
        return self.model.model_validate(dict(row._mapping))

    def _select(self, *criteria, order_by=None) -> list:
        stmt = select(self.table).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(*order_by)
        with self._session() as db:
            rows = db.execute(stmt).fetchall()
        return [self._from_row(row) for row in rows]

    def _select_one(self, *criteria):
        with self._session() as db:
            row = db.execute(select(self.table).where(*criteria)).first()
        return self._from_row(row)

    def _exists(self, *criteria) -> bool:
        with self._session() as db:
            row = db.execute(select(self.table.c.id).where(*criteria).limit(1)).first()
        return row is not None

    def get(self, entity_id: str):
        return self._select_one(self.table.c.id == entity_id)

    def insert(self, entity):
        with self._session() as db:
            db.execute(insert(self.table).values(**self._row_values(entity)))
        return entity

    def update(self, entity_id: str, changes: Dict[str, Any], expected: Optional[Dict[str, Any]] = None):
        criteria = [self.table.c.id == entity_id]
        criteria += [self.table.c[key] == value for key, value in (expected or {}).items()]
        if not changes:
            return self._select_one(*criteria)
        with self._session() as db:
            matched = db.execute(update(self.table).where(*criteria).values(**changes)).rowcount
            if matched == 0:
                return None
            row = db.execute(select(self.table).where(self.table.c.id == entity_id)).first()
        return self._from_row(row)

    def delete(self, entity_id: str) -> bool:
        with self._session() as db:
            result = db.execute(delete(self.table).where(self.table.c.id == entity_id))
            deleted = result.rowcount
        return deleted == 1


# ============================================================
# ENTITY STORES
# ============================================================

class SqlQuestionStore(SqlRepository, QuestionStore):
    table = tables.questions
    model = Question
    entity = "Question"

    def list(self, college_id: Optional[str] = None) -> List[Question]:
        criteria = [self.table.c.college_id == college_id] if college_id else []
        return self._select(*criteria, order_by=[self.table.c.created_at, self.table.c.id])

    def find(self, question_id: str, college_id: Optional[str] = None) -> Optional[Question]:
        criteria = [self.table.c.id == question_id]
        if college_id:
            criteria.append(self.table.c.college_id == college_id)
        return self._select_one(*criteria)

    def get_many(self, question_ids: List[str]) -> List[Question]:
        if not question_ids:
            return []
        return self._select(self.table.c.id.in_(list(question_ids)))


class SqlTestStore(SqlRepository, TestStore):
    table = tables.aptitude_tests
    model = AptitudeTest
    entity = "AptitudeTest"

    def list(self, college_id: Optional[str] = None, status: Optional[str] = None) -> List[AptitudeTest]:
        criteria = []
        if college_id:
            criteria.append(self.table.c.college_id == college_id)
        if status:
            criteria.append(self.table.c.status == status)
        return self._select(*criteria, order_by=[self.table.c.created_at.desc(), self.table.c.id])


class SqlTestResultStore(SqlRepository, TestResultStore):
    table = tables.test_results
    model = TestResult
    entity = "TestResult"

    def find_for(self, test_id: str, student_id: str) -> Optional[TestResult]:
        return self._select_one(self.table.c.test_id == test_id, self.table.c.student_id == student_id)

    def list_for_test(self, test_id: str) -> List[TestResult]:
        return self._select(
            self.table.c.test_id == test_id,
            order_by=[self.table.c.date.desc(), self.table.c.id],
        )

    def list_for_student(self, student_id: str) -> List[TestResult]:
        return self._select(
            self.table.c.student_id == student_id,
            order_by=[self.table.c.date.desc(), self.table.c.id],
        )


class SqlApplicationStore(SqlRepository, ApplicationStore):
    table = tables.applications
    model = Application
    entity = "Application"

    def find_for(self, student_id: str, course_id: str) -> Optional[Application]:
        return self._select_one(self.table.c.student_id == student_id, self.table.c.course_id == course_id)

    def list_for_student(self, student_id: str) -> List[Application]:
        return self._select(
            self.table.c.student_id == student_id,
            order_by=[self.table.c.created_at.desc(), self.table.c.id],
        )

    def list_for_college(self, college_id: str, status: Optional[str] = None) -> List[Application]:
        criteria = [self.table.c.college_id == college_id]
        if status:
            criteria.append(self.table.c.status == status)
        return self._select(*criteria, order_by=[self.table.c.created_at.desc(), self.table.c.id])

    def exists_for_course(self, course_id: str) -> bool:
        return self._exists(self.table.c.course_id == course_id)

    def exists_for_student(self, student_id: str) -> bool:
        return self._exists(self.table.c.student_id == student_id)


class SqlCollegeStore(SqlRepository, CollegeStore):
    table = tables.colleges
    model = College
    entity = "College"

    def search(
        self,
        term: Optional[str] = None,
        country: Optional[str] = None,
        verified_only: bool = True,
    ) -> List[College]:
        criteria = []
        if verified_only:
            criteria.append(self.table.c.is_verified.is_(True))
        if term:
            pattern = _like_pattern(term)
            criteria.append(or_(
                self.table.c.name.ilike(pattern, escape="/"),
                self.table.c.description.ilike(pattern, escape="/"),
            ))
        if country:
            criteria.append(func.lower(self.table.c.country) == country.lower())
        return self._select(*criteria, order_by=[self.table.c.name, self.table.c.id])

    def get_by_profile(self, profile_id: str) -> Optional[College]:
        return self._select_one(self.table.c.profile_id == profile_id)


class SqlCourseStore(SqlRepository, CourseStore):
    table = tables.courses
    model = Course
    entity = "Course"

    def list_for_college(self, college_id: str) -> List[Course]:
        return self._select(
            self.table.c.college_id == college_id,
            order_by=[self.table.c.name, self.table.c.id],
        )


class SqlStudentStore(SqlRepository, StudentStore):
    table = tables.students
    model = Student
    entity = "Student"

    def list(self) -> List[Student]:
        return self._select(order_by=[self.table.c.name, self.table.c.id])

    def get_by_profile(self, profile_id: str) -> Optional[Student]:
        return self._select_one(self.table.c.profile_id == profile_id)


def build_sql_stores(
    session_factory: sessionmaker,
    profile_id: Optional[str] = None,
    service: bool = False,
) -> Stores:
    """Bundle every relational store over one session factory."""
    scope = (profile_id, service)
    return Stores(
        backend="postgres",
        questions=SqlQuestionStore(session_factory, *scope),
        tests=SqlTestStore(session_factory, *scope),
        results=SqlTestResultStore(session_factory, *scope),
        applications=SqlApplicationStore(session_factory, *scope),
        colleges=SqlCollegeStore(session_factory, *scope),
        courses=SqlCourseStore(session_factory, *scope),
        students=SqlStudentStore(session_factory, *scope),
        ping=lambda: test_postgres_connection(session_factory),
    )
