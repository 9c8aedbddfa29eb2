"""
Storage interfaces - one per entity.

Services only talk to these abstract stores, so the same business rules
run unchanged on the document backend (MongoDB) and on the relational
backend (PostgreSQL with row-level security).

Contract shared by every implementation:
- ids are assigned by the caller (service layer)
- get/update return None when nothing matched, never raise NotFound
- update(..., expected=...) is a single conditional write: it only applies
  when every field in `expected` still holds, which is how lifecycle
  transitions stay atomic without application-level locks
- uniqueness rules (one application per student/course, one result per
  test/student, one profile per identity) are enforced by the backend and
  surface as ConflictError
- connection failures and timeouts surface as RemoteUnavailableError
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from careerhub.schemas.schemas import (
    Application, AptitudeTest, College, Course, Question, Student, TestResult,
)

ModelT = TypeVar("ModelT")


class Repository(ABC, Generic[ModelT]):
    """Primary-key operations common to every entity store."""

    @abstractmethod
    def get(self, entity_id: str) -> Optional[ModelT]:
        ...

    @abstractmethod
    def insert(self, entity: ModelT) -> ModelT:
        ...

    @abstractmethod
    def update(
        self,
        entity_id: str,
        changes: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[ModelT]:
        ...

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        ...


class QuestionStore(Repository[Question]):

    @abstractmethod
    def list(self, college_id: Optional[str] = None) -> List[Question]:
        """All questions of a college, or of every college, oldest first."""

    @abstractmethod
    def find(self, question_id: str, college_id: Optional[str] = None) -> Optional[Question]:
        """Like get(), optionally scoped to one college."""

    @abstractmethod
    def get_many(self, question_ids: List[str]) -> List[Question]:
        """Questions for the given ids, in no particular order; unknown ids are skipped."""


class TestStore(Repository[AptitudeTest]):

    @abstractmethod
    def list(self, college_id: Optional[str] = None, status: Optional[str] = None) -> List[AptitudeTest]:
        """Tests filtered by college and status, newest first."""


class TestResultStore(Repository[TestResult]):

    @abstractmethod
    def find_for(self, test_id: str, student_id: str) -> Optional[TestResult]:
        ...

    @abstractmethod
    def list_for_test(self, test_id: str) -> List[TestResult]:
        """Newest first."""

    @abstractmethod
    def list_for_student(self, student_id: str) -> List[TestResult]:
        """Newest first."""


class ApplicationStore(Repository[Application]):

    @abstractmethod
    def find_for(self, student_id: str, course_id: str) -> Optional[Application]:
        ...

    @abstractmethod
    def list_for_student(self, student_id: str) -> List[Application]:
        """Newest first."""

    @abstractmethod
    def list_for_college(self, college_id: str, status: Optional[str] = None) -> List[Application]:
        """Newest first."""

    @abstractmethod
    def exists_for_course(self, course_id: str) -> bool:
        ...

    @abstractmethod
    def exists_for_student(self, student_id: str) -> bool:
        ...


class CollegeStore(Repository[College]):

    @abstractmethod
    def search(
        self,
        term: Optional[str] = None,
        country: Optional[str] = None,
        verified_only: bool = True,
    ) -> List[College]:
        """
        Case-insensitive substring match of `term` on name or description,
        case-insensitive equality on `country`, ANDed. Ordered by name.
        """

    @abstractmethod
    def get_by_profile(self, profile_id: str) -> Optional[College]:
        ...


class CourseStore(Repository[Course]):

    @abstractmethod
    def list_for_college(self, college_id: str) -> List[Course]:
        """Ordered by name."""


class StudentStore(Repository[Student]):

    @abstractmethod
    def list(self) -> List[Student]:
        """Ordered by name."""

    @abstractmethod
    def get_by_profile(self, profile_id: str) -> Optional[Student]:
        ...


@dataclass
class Stores:
    """Request-scoped bundle of every entity store for one backend."""

    backend: str
    questions: QuestionStore
    tests: TestStore
    results: TestResultStore
    applications: ApplicationStore
    colleges: CollegeStore
    courses: CourseStore
    students: StudentStore
    ping: Callable[[], bool]
