"""
Application Service - a student applies to a course, the college decides.

pending -> approved | rejected, decided once, by the owning college. An
approval may assign a published aptitude test to the student.
"""

import logging
from typing import Callable, List, Optional

from careerhub.core.errors import (
    ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError,
)
from careerhub.schemas.schemas import Application, ApplicationStatus, Decision, DecisionRequest, TestStatus
from careerhub.stores.base import ApplicationStore, CollegeStore, CourseStore, StudentStore, TestStore
from careerhub.utils.helpers import new_id, utcnow

logger = logging.getLogger(__name__)


class ApplicationService:

    def __init__(
        self,
        applications: ApplicationStore,
        students: StudentStore,
        courses: CourseStore,
        colleges: CollegeStore,
        tests: TestStore,
        now: Callable = utcnow,
    ):
        self.applications = applications
        self.students = students
        self.courses = courses
        self.colleges = colleges
        self.tests = tests
        self.now = now

    def apply(self, student_id: str, course_id: str, notes: Optional[str] = None) -> Application:
        """Create a pending application. One per (student, course)."""
        if not self.students.get(student_id):
            raise NotFoundError("Student", student_id)
        course = self.courses.get(course_id)
        if not course:
            raise NotFoundError("Course", course_id)

        if self.applications.find_for(student_id, course_id):
            raise ConflictError(
                "Already applied to this course",
                details={"student_id": student_id, "course_id": course_id},
            )

        now = self.now()
        application = Application(
            id=new_id(),
            student_id=student_id,
            course_id=course_id,
            college_id=course.college_id,
            status=ApplicationStatus.pending,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        # Unique key on (student_id, course_id) catches a concurrent duplicate
        self.applications.insert(application)
        logger.info(f"Application {application.id}: student {student_id} -> course {course_id}")
        return application

    def get(self, application_id: str) -> Application:
        application = self.applications.get(application_id)
        if not application:
            raise NotFoundError("Application", application_id)
        return application

    def decide(self, application_id: str, decision: DecisionRequest, acting_college_id: str) -> Application:
        """
        Approve or reject a pending application.

        Only the college that owns the application may decide. The write is
        conditional on the status still being pending; losing that race to
        another decision raises ConflictError.
        """
        application = self.get(application_id)
        if application.college_id != acting_college_id:
            raise ForbiddenError("Only the college that received the application can decide on it")
        if application.status != ApplicationStatus.pending.value:
            raise InvalidStateError(
                f"Application already {application.status}",
                current_state=application.status,
            )

        changes = {
            "status": decision.status,
            "updated_at": max(self.now(), application.created_at),
        }
        if decision.notes is not None:
            changes["notes"] = decision.notes
        if decision.aptitude_test_id:
            changes["aptitude_test_id"] = self._assignable_test(decision)

        decided = self.applications.update(
            application_id, changes, expected={"status": ApplicationStatus.pending.value}
        )
        if not decided:
            raise ConflictError("Application was decided concurrently", details={"application_id": application_id})

        logger.info(f"Application {application_id} {decided.status} by college {acting_college_id}")
        return decided

    def _assignable_test(self, decision: DecisionRequest) -> str:
        if decision.status != Decision.approved.value:
            raise ValidationError("An aptitude test can only be assigned with an approval", field="aptitudeTestId")
        test = self.tests.get(decision.aptitude_test_id)
        if not test:
            raise NotFoundError("AptitudeTest", decision.aptitude_test_id)
        if test.status != TestStatus.published.value:
            raise InvalidStateError("Only a published test can be assigned", current_state=test.status)
        return test.id

    def list_for_student(self, student_id: str) -> List[Application]:
        if not self.students.get(student_id):
            raise NotFoundError("Student", student_id)
        return self.applications.list_for_student(student_id)

    def list_for_college(self, college_id: str, status: Optional[str] = None) -> List[Application]:
        if not self.colleges.get(college_id):
            raise NotFoundError("College", college_id)
        return self.applications.list_for_college(college_id, status)
