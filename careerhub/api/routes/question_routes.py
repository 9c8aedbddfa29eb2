"""
Question Routes

GET /questions - List questions (optionally for one college or category)
GET /questions/{question_id} - Get question
POST /questions - Create question
PUT /questions/{question_id} - Update question
DELETE /questions/{question_id} - Delete question (idempotent)
POST /questions/bulk - Create many questions, per-item results
POST /questions/bulk/file - Same, from an uploaded .json file
"""

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from typing import List, Optional

from careerhub.api.deps import get_question_service
from careerhub.core.config import get_settings
from careerhub.schemas.schemas import (
    BulkUploadRequest, BulkUploadResult, Question, QuestionCreate, QuestionUpdate,
)
from careerhub.services.question_service import QuestionService
from careerhub.utils.file_upload import parse_questions_payload, read_upload

router = APIRouter(prefix="/questions", tags=["Questions"])


@router.get("", response_model=List[Question])
def list_questions(
    college_id: Optional[str] = Query(None, alias="collegeId"),
    category: Optional[str] = None,
    service: QuestionService = Depends(get_question_service),
):
    """All questions, oldest first. Filter with ?collegeId= and ?category=."""
    return service.list_questions(college_id, category)


@router.post("/bulk", response_model=BulkUploadResult, status_code=201)
def bulk_upload(request: BulkUploadRequest, service: QuestionService = Depends(get_question_service)):
    """
    Create many questions at once.
    Invalid items are reported in `failed` and do not stop the batch.
    """
    return service.bulk_upload(request.questions, request.college_id)


@router.post("/bulk/file", response_model=BulkUploadResult, status_code=201)
def bulk_upload_file(
    file: UploadFile = File(...),
    college_id: Optional[str] = Query(None, alias="collegeId"),
    service: QuestionService = Depends(get_question_service),
):
    """Bulk upload from a .json file (object, array, or {"questions": [...]})."""
    content = read_upload(file, get_settings().max_upload_bytes)
    return service.bulk_upload(parse_questions_payload(content), college_id)


@router.get("/{question_id}", response_model=Question)
def get_question(
    question_id: str,
    college_id: Optional[str] = Query(None, alias="collegeId"),
    service: QuestionService = Depends(get_question_service),
):
    return service.get_question(question_id, college_id)


@router.post("", response_model=Question, status_code=201)
def create_question(data: QuestionCreate, service: QuestionService = Depends(get_question_service)):
    return service.create_question(data)


@router.put("/{question_id}", response_model=Question)
def update_question(
    question_id: str,
    data: QuestionUpdate,
    service: QuestionService = Depends(get_question_service),
):
    """Partial update; only provided fields change."""
    return service.update_question(question_id, data)


@router.delete("/{question_id}", status_code=204)
def delete_question(
    question_id: str,
    college_id: Optional[str] = Query(None, alias="collegeId"),
    service: QuestionService = Depends(get_question_service),
):
    service.delete_question(question_id, college_id)
    return Response(status_code=204)
