"""
College Routes

GET /colleges - Search verified colleges (?term=&country=)
GET /colleges/{college_id} - Get college
POST /colleges - Create college profile
PUT /colleges/{college_id} - Update college profile
DELETE /colleges/{college_id} - Delete college (must have no courses)
PUT /colleges/{college_id}/verification - Verify / unverify (admin only)
GET /colleges/{college_id}/courses - List courses
POST /colleges/{college_id}/courses - Add course
PUT /colleges/{college_id}/courses/{course_id} - Update course
DELETE /colleges/{college_id}/courses/{course_id} - Delete course (must have no applications)
GET /colleges/{college_id}/applications - Applications received (?status=)
PUT /colleges/{college_id}/applications/{application_id} - Approve / reject (college only)
"""

from fastapi import APIRouter, Depends, Query, Response
from typing import List, Optional

from careerhub.api.deps import (
    get_application_service, get_current_college, get_directory_service,
)
from careerhub.core.auth import require_admin
from careerhub.schemas.schemas import (
    Application, ApplicationStatus, College, CollegeCreate, CollegeUpdate, Course,
    CourseCreate, CourseUpdate, DecisionRequest, Principal, VerificationUpdate,
)
from careerhub.services.application_service import ApplicationService
from careerhub.services.directory_service import DirectoryService

router = APIRouter(prefix="/colleges", tags=["Colleges"])


@router.get("", response_model=List[College])
def search_colleges(
    term: Optional[str] = Query(None, max_length=200),
    country: Optional[str] = Query(None, max_length=100),
    service: DirectoryService = Depends(get_directory_service),
):
    """
    Public directory. Only verified colleges are listed.

    - term: case-insensitive match on name or description
    - country: case-insensitive exact match
    """
    return service.search(term, country)


@router.get("/{college_id}", response_model=College)
def get_college(college_id: str, service: DirectoryService = Depends(get_directory_service)):
    return service.get_college(college_id)


@router.post("", response_model=College, status_code=201)
def create_college(data: CollegeCreate, service: DirectoryService = Depends(get_directory_service)):
    return service.create_college(data)


@router.put("/{college_id}", response_model=College)
def update_college(
    college_id: str,
    data: CollegeUpdate,
    service: DirectoryService = Depends(get_directory_service),
):
    return service.update_college(college_id, data)


@router.delete("/{college_id}", status_code=204)
def delete_college(college_id: str, service: DirectoryService = Depends(get_directory_service)):
    service.delete_college(college_id)
    return Response(status_code=204)


@router.put("/{college_id}/verification", response_model=College)
def set_verification(
    college_id: str,
    data: VerificationUpdate,
    admin: Principal = Depends(require_admin),
    service: DirectoryService = Depends(get_directory_service),
):
    """Admin only: make a college visible (or hidden) in the public directory."""
    return service.set_verified(college_id, data.is_verified)


# ============================================================
# COURSES
# ============================================================

@router.get("/{college_id}/courses", response_model=List[Course])
def list_courses(college_id: str, service: DirectoryService = Depends(get_directory_service)):
    return service.list_courses(college_id)


@router.post("/{college_id}/courses", response_model=Course, status_code=201)
def add_course(
    college_id: str,
    data: CourseCreate,
    service: DirectoryService = Depends(get_directory_service),
):
    return service.add_course(college_id, data)


@router.put("/{college_id}/courses/{course_id}", response_model=Course)
def update_course(
    college_id: str,
    course_id: str,
    data: CourseUpdate,
    service: DirectoryService = Depends(get_directory_service),
):
    return service.update_course(college_id, course_id, data)


@router.delete("/{college_id}/courses/{course_id}", status_code=204)
def delete_course(
    college_id: str,
    course_id: str,
    service: DirectoryService = Depends(get_directory_service),
):
    service.delete_course(college_id, course_id)
    return Response(status_code=204)


# ============================================================
# APPLICATIONS RECEIVED
# ============================================================

@router.get("/{college_id}/applications", response_model=List[Application])
def list_applications(
    college_id: str,
    status: Optional[ApplicationStatus] = Query(None),
    service: ApplicationService = Depends(get_application_service),
):
    """Applications to this college's courses, newest first."""
    return service.list_for_college(college_id, status.value if status else None)


@router.put("/{college_id}/applications/{application_id}", response_model=Application)
def decide_application(
    application_id: str,
    decision: DecisionRequest,
    college: College = Depends(get_current_college),
    service: ApplicationService = Depends(get_application_service),
):
    """Approve or reject a pending application. Requires the college's own token."""
    return service.decide(application_id, decision, college.id)
