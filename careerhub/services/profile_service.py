"""
Profile Service - student profiles.

A student's applied colleges and test results are derived on read, never
stored on the student.
"""

import logging
from typing import Callable, List

from careerhub.core.errors import ConflictError, NotFoundError
from careerhub.schemas.schemas import Student, StudentProfile, StudentRegistration, StudentUpdate
from careerhub.stores.base import ApplicationStore, StudentStore, TestResultStore
from careerhub.utils.helpers import new_id, utcnow

logger = logging.getLogger(__name__)


class ProfileService:

    def __init__(
        self,
        students: StudentStore,
        applications: ApplicationStore,
        results: TestResultStore,
        now: Callable = utcnow,
    ):
        self.students = students
        self.applications = applications
        self.results = results
        self.now = now

    def list_students(self) -> List[Student]:
        return self.students.list()

    def _get(self, student_id: str) -> Student:
        student = self.students.get(student_id)
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    def get_student(self, student_id: str) -> StudentProfile:
        """Student with derived appliedColleges and testResults."""
        student = self._get(student_id)
        applied = []
        for application in self.applications.list_for_student(student_id):
            if application.college_id not in applied:
                applied.append(application.college_id)
        return StudentProfile(
            **student.model_dump(),
            applied_colleges=applied,
            test_results=self.results.list_for_student(student_id),
        )

    def get_student_by_profile(self, profile_id: str) -> StudentProfile:
        student = self.students.get_by_profile(profile_id)
        if not student:
            raise NotFoundError("Student", profile_id)
        return self.get_student(student.id)

    def create_student(self, profile_id: str, data: StudentRegistration) -> Student:
        now = self.now()
        student = Student(
            **data.model_dump(exclude={"password"}),
            id=new_id(),
            profile_id=profile_id,
            created_at=now,
            updated_at=now,
        )
        self.students.insert(student)
        logger.info(f"Student created: {student.id}")
        return student

    def update_student(self, student_id: str, data: StudentUpdate) -> StudentProfile:
        current = self._get(student_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = max(self.now(), current.created_at)
        if not self.students.update(student_id, changes):
            raise NotFoundError("Student", student_id)
        return self.get_student(student_id)

    def delete_student(self, student_id: str) -> None:
        self._get(student_id)
        if self.applications.exists_for_student(student_id):
            raise ConflictError("Student has applications and cannot be deleted", details={"student_id": student_id})
        self.students.delete(student_id)
        logger.info(f"Student deleted: {student_id}")
