"""
Directory Service - colleges and their courses.

The public search only shows verified colleges. A college's `courses`
list is derived from the course store on every read.
"""

import logging
from typing import Callable, List, Optional

from careerhub.core.errors import ConflictError, NotFoundError
from careerhub.schemas.schemas import (
    College, CollegeCreate, CollegeUpdate, Course, CourseCreate, CourseUpdate,
)
from careerhub.stores.base import ApplicationStore, CollegeStore, CourseStore
from careerhub.utils.helpers import new_id, utcnow

logger = logging.getLogger(__name__)


class DirectoryService:

    def __init__(
        self,
        colleges: CollegeStore,
        courses: CourseStore,
        applications: ApplicationStore,
        now: Callable = utcnow,
    ):
        self.colleges = colleges
        self.courses = courses
        self.applications = applications
        self.now = now

    def _with_courses(self, college: College) -> College:
        course_ids = [course.id for course in self.courses.list_for_college(college.id)]
        return college.model_copy(update={"courses": course_ids})

    # ---------- colleges ----------

    def search(self, term: Optional[str] = None, country: Optional[str] = None) -> List[College]:
        """Verified colleges whose name or description contains `term`, in `country`."""
        term = term.strip() if term else None
        country = country.strip() if country else None
        return [self._with_courses(c) for c in self.colleges.search(term, country, verified_only=True)]

    def get_college(self, college_id: str) -> College:
        college = self.colleges.get(college_id)
        if not college:
            raise NotFoundError("College", college_id)
        return self._with_courses(college)

    def get_college_by_profile(self, profile_id: str) -> College:
        college = self.colleges.get_by_profile(profile_id)
        if not college:
            raise NotFoundError("College", profile_id)
        return self._with_courses(college)

    def create_college(self, data: CollegeCreate) -> College:
        now = self.now()
        college = College(**data.model_dump(), id=new_id(), is_verified=False, created_at=now, updated_at=now)
        self.colleges.insert(college)
        logger.info(f"College created: {college.id} ({college.name})")
        return college

    def update_college(self, college_id: str, data: CollegeUpdate) -> College:
        current = self.get_college(college_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = max(self.now(), current.created_at)
        updated = self.colleges.update(college_id, changes)
        if not updated:
            raise NotFoundError("College", college_id)
        return self._with_courses(updated)

    def delete_college(self, college_id: str) -> None:
        college = self.get_college(college_id)
        if college.courses:
            raise ConflictError(
                "College still has courses; delete them first",
                details={"courses": len(college.courses)},
            )
        self.colleges.delete(college_id)
        logger.info(f"College deleted: {college_id}")

    def set_verified(self, college_id: str, verified: bool) -> College:
        current = self.get_college(college_id)
        updated = self.colleges.update(
            college_id,
            {"is_verified": verified, "updated_at": max(self.now(), current.created_at)},
        )
        if not updated:
            raise NotFoundError("College", college_id)
        logger.info(f"College {college_id} verification set to {verified}")
        return self._with_courses(updated)

    # ---------- courses ----------

    def list_courses(self, college_id: str) -> List[Course]:
        self.get_college(college_id)
        return self.courses.list_for_college(college_id)

    def get_course(self, college_id: str, course_id: str) -> Course:
        course = self.courses.get(course_id)
        if not course or course.college_id != college_id:
            raise NotFoundError("Course", course_id)
        return course

    def add_course(self, college_id: str, data: CourseCreate) -> Course:
        self.get_college(college_id)
        now = self.now()
        course = Course(**data.model_dump(), id=new_id(), college_id=college_id, created_at=now, updated_at=now)
        self.courses.insert(course)
        logger.info(f"Course created: {course.id} for college {college_id}")
        return course

    def update_course(self, college_id: str, course_id: str, data: CourseUpdate) -> Course:
        current = self.get_course(college_id, course_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = max(self.now(), current.created_at)
        updated = self.courses.update(course_id, changes)
        if not updated:
            raise NotFoundError("Course", course_id)
        return updated

    def delete_course(self, college_id: str, course_id: str) -> None:
        self.get_course(college_id, course_id)
        if self.applications.exists_for_course(course_id):
            raise ConflictError("Course has applications and cannot be deleted", details={"course_id": course_id})
        self.courses.delete(course_id)
        logger.info(f"Course deleted: {course_id}")
