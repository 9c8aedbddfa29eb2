"""
Question Service - the question bank.

Questions belong to a college (or to the shared bank when college_id is
absent). Multiple-choice questions must carry options with the right
number of correct answers; every create/update re-checks that on the
final, merged question.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from careerhub.core.errors import CareerHubError, NotFoundError, ValidationError
from careerhub.schemas.schemas import (
    MCQ_TYPES, BulkFailure, BulkUploadResult, Question, QuestionCreate, QuestionType, QuestionUpdate,
)
from careerhub.stores.base import QuestionStore
from careerhub.utils.helpers import new_id, utcnow

logger = logging.getLogger(__name__)


def check_question_invariants(question: Question) -> None:
    """Raise ValidationError unless the question is well-formed."""
    if question.type in MCQ_TYPES:
        if not question.options:
            raise ValidationError("Multiple-choice questions need at least one option", field="options")
        correct = sum(1 for option in question.options if option.is_correct)
        if question.type == QuestionType.mcq_single.value and correct != 1:
            raise ValidationError(
                f"Single-choice questions need exactly one correct option (got {correct})",
                field="options",
            )
        if question.type == QuestionType.mcq_multiple.value and correct < 1:
            raise ValidationError("Multiple-choice questions need at least one correct option", field="options")

    option_ids = [option.id for option in question.options]
    if len(option_ids) != len(set(option_ids)):
        raise ValidationError("Option ids must be unique within a question", field="options")


def _normalise_options(options: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # Options submitted without an id get one
    return [{**option, "id": option.get("id") or new_id()} for option in options]


def _normalise_categories(categories: List[str]) -> List[str]:
    return sorted({c.strip() for c in categories if c and c.strip()})


def _pydantic_message(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else first.get("msg", str(exc))


class QuestionService:
    """CRUD and bulk import for the question bank."""

    def __init__(self, store: QuestionStore, now: Callable = utcnow):
        self.store = store
        self.now = now

    def list_questions(self, college_id: Optional[str] = None, category: Optional[str] = None) -> List[Question]:
        questions = self.store.list(college_id)
        if category and category.strip():
            wanted = category.strip().lower()
            questions = [q for q in questions if wanted in {c.lower() for c in q.categories}]
        return questions

    def get_question(self, question_id: str, college_id: Optional[str] = None) -> Question:
        question = self.store.find(question_id, college_id)
        if not question:
            raise NotFoundError("Question", question_id)
        return question

    def create_question(self, data: QuestionCreate) -> Question:
        now = self.now()
        fields = data.model_dump()
        fields["options"] = _normalise_options(fields["options"])
        fields["categories"] = _normalise_categories(fields["categories"])
        question = Question(**fields, id=new_id(), created_at=now, updated_at=now)
        check_question_invariants(question)

        self.store.insert(question)
        logger.info(f"Question created: {question.id} ({question.type})")
        return question

    def update_question(self, question_id: str, data: QuestionUpdate) -> Question:
        current = self.get_question(question_id)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "options" in changes:
            changes["options"] = _normalise_options(changes["options"])
        if "categories" in changes:
            changes["categories"] = _normalise_categories(changes["categories"])
        changes["updated_at"] = max(self.now(), current.created_at)

        try:
            merged = Question.model_validate({**current.model_dump(), **changes})
        except PydanticValidationError as e:
            raise ValidationError(_pydantic_message(e))
        check_question_invariants(merged)

        stored_changes = merged.model_dump(include=set(changes))
        updated = self.store.update(question_id, stored_changes)
        if not updated:
            # Deleted between the read and the write
            raise NotFoundError("Question", question_id)
        return updated

    def delete_question(self, question_id: str, college_id: Optional[str] = None) -> None:
        """Idempotent: deleting an absent question is not an error."""
        if college_id and not self.store.find(question_id, college_id):
            return
        if self.store.delete(question_id):
            logger.info(f"Question deleted: {question_id}")

    def bulk_upload(self, items: List[Any], college_id: Optional[str] = None) -> BulkUploadResult:
        """
        Create every item independently.

        A malformed or invalid item is reported with reason "ValidationError";
        a storage failure is reported with its error kind. Neither stops the
        rest of the batch.
        """
        result = BulkUploadResult(total=len(items), created=0)

        for index, raw in enumerate(items):
            try:
                data = QuestionCreate.model_validate(raw)
                if college_id:
                    data.college_id = college_id
                question = self.create_question(data)
            except PydanticValidationError as e:
                failure = BulkFailure(index=index, reason="ValidationError", message=_pydantic_message(e))
            except CareerHubError as e:
                failure = BulkFailure(index=index, reason=type(e).__name__, message=e.message)
            else:
                result.created += 1
                result.question_ids.append(question.id)
                continue

            logger.warning(f"Bulk upload item {index} rejected: {failure.reason}: {failure.message}")
            result.failed.append(failure)

        logger.info(f"Bulk upload finished: {result.created}/{result.total} created")
        return result
