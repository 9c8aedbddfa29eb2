"""
Student Routes

GET /students - List students
GET /students/{student_id} - Get profile with applied colleges and test results
PUT /students/{student_id} - Update profile
DELETE /students/{student_id} - Delete profile (must have no applications)
GET /students/{student_id}/applications - Applications of a student
POST /students/{student_id}/applications - Apply to a course
GET /students/{student_id}/test-results - Test results of a student
GET /students/{student_id}/pending-tests - Assigned tests not taken yet
"""

from fastapi import APIRouter, Depends, Response
from typing import List

from careerhub.api.deps import get_application_service, get_profile_service, get_test_service
from careerhub.schemas.schemas import (
    Application, ApplicationCreate, AptitudeTest, Student, StudentProfile, StudentUpdate, TestResult,
)
from careerhub.services.aptitude_service import AptitudeTestService
from careerhub.services.application_service import ApplicationService
from careerhub.services.profile_service import ProfileService

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("", response_model=List[Student])
def list_students(service: ProfileService = Depends(get_profile_service)):
    return service.list_students()


@router.get("/{student_id}", response_model=StudentProfile)
def get_student(student_id: str, service: ProfileService = Depends(get_profile_service)):
    """Student profile, with appliedColleges and testResults derived on read."""
    return service.get_student(student_id)


@router.put("/{student_id}", response_model=StudentProfile)
def update_student(
    student_id: str,
    data: StudentUpdate,
    service: ProfileService = Depends(get_profile_service),
):
    """Update student profile. Only provided fields are updated."""
    return service.update_student(student_id, data)


@router.delete("/{student_id}", status_code=204)
def delete_student(student_id: str, service: ProfileService = Depends(get_profile_service)):
    service.delete_student(student_id)
    return Response(status_code=204)


@router.get("/{student_id}/applications", response_model=List[Application])
def list_applications(student_id: str, service: ApplicationService = Depends(get_application_service)):
    """Newest first."""
    return service.list_for_student(student_id)


@router.post("/{student_id}/applications", response_model=Application, status_code=201)
def apply(
    student_id: str,
    data: ApplicationCreate,
    service: ApplicationService = Depends(get_application_service),
):
    """Apply to a course. One application per course."""
    return service.apply(student_id, data.course_id, data.notes)


@router.get("/{student_id}/test-results", response_model=List[TestResult])
def list_test_results(student_id: str, service: AptitudeTestService = Depends(get_test_service)):
    return service.results_for_student(student_id)


@router.get("/{student_id}/pending-tests", response_model=List[AptitudeTest])
def list_pending_tests(student_id: str, service: AptitudeTestService = Depends(get_test_service)):
    """Published tests assigned on approval that the student has not submitted."""
    return service.pending_for_student(student_id)
