"""
Aptitude Test Service - test lifecycle, submission and scoring.

Lifecycle: draft -> published. Drafts can be edited and deleted; a
published test is frozen and open for submissions. Each student submits
a test at most once; the store's unique key on (test_id, student_id) makes
that hold even for concurrent submissions.

Scoring:
- mcq-single / mcq-multiple: correct iff the selected option set equals
  the correct option set (answers may name options by id or by text)
- short-answer / long-answer: handed to an AnswerGrader; the default
  grader defers, so those answers count as pending review and are left
  out of the denominator
- score = round_half_up(100 * correct / graded), 0 when nothing is graded
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Union

from careerhub.core.errors import (
    ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError,
)
from careerhub.schemas.schemas import (
    MCQ_TYPES, ApplicationStatus, AptitudeTest, AptitudeTestCreate, AptitudeTestUpdate, Question,
    SubmissionRequest, TestResult, TestStatus,
)
from careerhub.stores.base import ApplicationStore, QuestionStore, StudentStore, TestResultStore, TestStore
from careerhub.utils.helpers import new_id, utcnow

logger = logging.getLogger(__name__)

Answer = Union[str, List[str]]


# ============================================================
# GRADING
# ============================================================

class AnswerGrader(ABC):
    """Grades free-text answers. None means no verdict yet."""

    @abstractmethod
    def grade(self, question: Question, answer: Optional[Answer]) -> Optional[bool]:
        ...


class DeferredGrader(AnswerGrader):
    """Leaves every free-text answer for later review."""

    def grade(self, question: Question, answer: Optional[Answer]) -> Optional[bool]:
        return None


def percentage(correct: int, total: int) -> int:
    """Integer percentage, rounded half up. 0 when total is 0."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def _selected_option_ids(question: Question, answer: Optional[Answer]) -> Optional[set]:
    """Resolve an answer to option ids; None if any token matches no option."""
    if answer is None:
        return set()
    tokens = [answer] if isinstance(answer, str) else list(answer)
    by_id = {option.id: option.id for option in question.options}
    by_text = {option.text.strip(): option.id for option in question.options}

    selected = set()
    for token in tokens:
        token = token.strip() if isinstance(token, str) else token
        option_id = by_id.get(token) or by_text.get(token)
        if option_id is None:
            return None
        selected.add(option_id)
    return selected


def grade_mcq(question: Question, answer: Optional[Answer]) -> bool:
    selected = _selected_option_ids(question, answer)
    if not selected:
        return False
    correct = {option.id for option in question.options if option.is_correct}
    return selected == correct


def score_submission(
    questions: List[Question],
    answers: Dict[str, Answer],
    grader: AnswerGrader,
    passing_score: int,
) -> dict:
    """Score answers against questions; returns the TestResult scoring fields."""
    graded = correct = pending = 0
    per_category = defaultdict(lambda: [0, 0])  # category -> [correct, graded]

    for question in questions:
        answer = answers.get(question.id)
        if question.type in MCQ_TYPES:
            verdict = grade_mcq(question, answer)
        else:
            verdict = grader.grade(question, answer)
        if verdict is None:
            pending += 1
            continue

        graded += 1
        correct += int(verdict)
        for category in question.categories:
            per_category[category][0] += int(verdict)
            per_category[category][1] += 1

    score = percentage(correct, graded)
    return {
        "score": score,
        "max_score": 100,
        "passed": score >= passing_score,
        "category_scores": {
            category: percentage(c, t) for category, (c, t) in sorted(per_category.items())
        },
        "pending_review": pending,
    }


# ============================================================
# SERVICE
# ============================================================

class AptitudeTestService:

    def __init__(
        self,
        tests: TestStore,
        questions: QuestionStore,
        results: TestResultStore,
        students: StudentStore,
        applications: ApplicationStore,
        grader: Optional[AnswerGrader] = None,
        passing_score: int = 60,
        now: Callable = utcnow,
    ):
        self.tests = tests
        self.questions = questions
        self.results = results
        self.students = students
        self.applications = applications
        self.grader = grader or DeferredGrader()
        self.passing_score = passing_score
        self.now = now

    # ---------- definition ----------

    def create_test(self, data: AptitudeTestCreate) -> AptitudeTest:
        now = self.now()
        test = AptitudeTest(
            id=new_id(),
            college_id=data.college_id,
            title=data.title,
            description=data.description,
            question_ids=list(dict.fromkeys(data.question_ids)),
            status=TestStatus.draft,
            passing_score=self.passing_score if data.passing_score is None else data.passing_score,
            created_at=now,
            updated_at=now,
        )
        self.tests.insert(test)
        logger.info(f"Aptitude test created: {test.id}")
        return test

    def get_test(self, test_id: str) -> AptitudeTest:
        test = self.tests.get(test_id)
        if not test:
            raise NotFoundError("AptitudeTest", test_id)
        return test

    def list_tests(self, college_id: Optional[str] = None, include_drafts: bool = False) -> List[AptitudeTest]:
        status = None if include_drafts else TestStatus.published.value
        return self.tests.list(college_id, status)

    def get_test_questions(self, test_id: str) -> List[Question]:
        """Questions of a test, in test order."""
        test = self.get_test(test_id)
        by_id = {q.id: q for q in self.questions.get_many(test.question_ids)}
        return [by_id[qid] for qid in test.question_ids if qid in by_id]

    def _require_draft(self, test: AptitudeTest, action: str) -> None:
        if test.status != TestStatus.draft.value:
            raise InvalidStateError(f"Cannot {action} a {test.status} test", current_state=test.status)

    def update_test(self, test_id: str, data: AptitudeTestUpdate) -> AptitudeTest:
        test = self.get_test(test_id)
        self._require_draft(test, "update")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "question_ids" in changes:
            changes["question_ids"] = list(dict.fromkeys(changes["question_ids"]))
        changes["updated_at"] = max(self.now(), test.created_at)

        updated = self.tests.update(test_id, changes, expected={"status": TestStatus.draft.value})
        if not updated:
            # Published or deleted since it was read
            raise InvalidStateError("Test is no longer a draft")
        return updated

    def delete_test(self, test_id: str) -> None:
        test = self.get_test(test_id)
        self._require_draft(test, "delete")
        self.tests.delete(test_id)
        logger.info(f"Aptitude test deleted: {test_id}")

    def publish(self, test_id: str) -> AptitudeTest:
        test = self.get_test(test_id)
        self._require_draft(test, "publish")

        if not test.question_ids:
            raise ValidationError("A test needs at least one question before publishing", field="questionIds")
        found = {q.id for q in self.questions.get_many(test.question_ids)}
        missing = [qid for qid in test.question_ids if qid not in found]
        if missing:
            raise ValidationError(f"Unknown question ids: {', '.join(missing)}", field="questionIds")

        now = max(self.now(), test.created_at)
        published = self.tests.update(
            test_id,
            {"status": TestStatus.published.value, "published_at": now, "updated_at": now},
            expected={"status": TestStatus.draft.value},
        )
        if not published:
            raise InvalidStateError("Test was published concurrently", current_state=TestStatus.published.value)
        logger.info(f"Aptitude test published: {test_id}")
        return published

    # ---------- submissions ----------

    def submit(self, test_id: str, submission: SubmissionRequest) -> TestResult:
        test = self.get_test(test_id)
        if test.status != TestStatus.published.value:
            raise InvalidStateError("Test is not open for submissions", current_state=test.status)

        student_id = submission.student_id
        if not self.students.get(student_id):
            raise NotFoundError("Student", student_id)

        if self.results.find_for(test_id, student_id):
            raise ConflictError("Test already submitted", details={"test_id": test_id, "student_id": student_id})

        application = None
        if submission.application_id:
            application = self.applications.get(submission.application_id)
            if not application:
                raise NotFoundError("Application", submission.application_id)
            if application.student_id != student_id:
                raise ForbiddenError("Application belongs to another student")

        questions = self.get_test_questions(test_id)
        scoring = score_submission(questions, submission.answers, self.grader, test.passing_score)
        result = TestResult(
            id=new_id(),
            test_id=test_id,
            student_id=student_id,
            answers=submission.answers,
            application_id=application.id if application else None,
            date=self.now(),
            **scoring,
        )
        # The unique key on (test_id, student_id) rejects a concurrent duplicate
        self.results.insert(result)

        logger.info(
            f"Submission scored: test={test_id} student={student_id} "
            f"score={result.score} passed={result.passed} pending={result.pending_review}"
        )
        return result

    def get_results(self, test_id: str) -> List[TestResult]:
        self.get_test(test_id)
        return self.results.list_for_test(test_id)

    def has_completed(self, test_id: str, student_id: str) -> bool:
        return self.results.find_for(test_id, student_id) is not None

    def results_for_student(self, student_id: str) -> List[TestResult]:
        if not self.students.get(student_id):
            raise NotFoundError("Student", student_id)
        return self.results.list_for_student(student_id)

    def pending_for_student(self, student_id: str) -> List[AptitudeTest]:
        """
        Tests assigned to the student by approved applications that the
        student has not taken yet, in application order.
        """
        if not self.students.get(student_id):
            raise NotFoundError("Student", student_id)

        assigned = []
        for application in reversed(self.applications.list_for_student(student_id)):
            test_id = application.aptitude_test_id
            if application.status == ApplicationStatus.approved.value and test_id and test_id not in assigned:
                assigned.append(test_id)

        pending = []
        for test_id in assigned:
            test = self.tests.get(test_id)
            if test and test.status == TestStatus.published.value and not self.has_completed(test_id, student_id):
                pending.append(test)
        return pending
