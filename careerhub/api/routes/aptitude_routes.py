"""
Aptitude Test Routes

GET /tests - List tests (?collegeId=&includeDrafts=)
GET /tests/{test_id} - Get test
GET /tests/{test_id}/questions - Questions in test order
POST /tests - Create draft test
PUT /tests/{test_id} - Update draft test
DELETE /tests/{test_id} - Delete draft test
POST /tests/{test_id}/publish - Publish (draft -> published)
POST /tests/{test_id}/submit - Submit answers, returns the scored result
GET /tests/{test_id}/results - Results, newest first
"""

from fastapi import APIRouter, Depends, Query, Response
from typing import List, Optional

from careerhub.api.deps import get_test_service
from careerhub.schemas.schemas import (
    AptitudeTest, AptitudeTestCreate, AptitudeTestUpdate, Question, SubmissionRequest, TestResult,
)
from careerhub.services.aptitude_service import AptitudeTestService

router = APIRouter(prefix="/tests", tags=["Aptitude Tests"])


@router.get("", response_model=List[AptitudeTest])
def list_tests(
    college_id: Optional[str] = Query(None, alias="collegeId"),
    include_drafts: bool = Query(False, alias="includeDrafts"),
    service: AptitudeTestService = Depends(get_test_service),
):
    """Published tests, newest first. Colleges pass includeDrafts=true to see their drafts."""
    return service.list_tests(college_id, include_drafts)


@router.get("/{test_id}", response_model=AptitudeTest)
def get_test(test_id: str, service: AptitudeTestService = Depends(get_test_service)):
    return service.get_test(test_id)


@router.get("/{test_id}/questions", response_model=List[Question])
def get_test_questions(test_id: str, service: AptitudeTestService = Depends(get_test_service)):
    return service.get_test_questions(test_id)


@router.post("", response_model=AptitudeTest, status_code=201)
def create_test(data: AptitudeTestCreate, service: AptitudeTestService = Depends(get_test_service)):
    return service.create_test(data)


@router.put("/{test_id}", response_model=AptitudeTest)
def update_test(
    test_id: str,
    data: AptitudeTestUpdate,
    service: AptitudeTestService = Depends(get_test_service),
):
    """Drafts only."""
    return service.update_test(test_id, data)


@router.delete("/{test_id}", status_code=204)
def delete_test(test_id: str, service: AptitudeTestService = Depends(get_test_service)):
    """Drafts only."""
    service.delete_test(test_id)
    return Response(status_code=204)


@router.post("/{test_id}/publish", response_model=AptitudeTest)
def publish_test(test_id: str, service: AptitudeTestService = Depends(get_test_service)):
    return service.publish(test_id)


@router.post("/{test_id}/submit", response_model=TestResult, status_code=201)
def submit_test(
    test_id: str,
    submission: SubmissionRequest,
    service: AptitudeTestService = Depends(get_test_service),
):
    """One submission per student; a second one is rejected with 409."""
    return service.submit(test_id, submission)


@router.get("/{test_id}/results", response_model=List[TestResult])
def get_results(test_id: str, service: AptitudeTestService = Depends(get_test_service)):
    return service.get_results(test_id)
