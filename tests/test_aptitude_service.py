"""
Aptitude tests: lifecycle, submission and scoring.
"""
import pytest

from careerhub.core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from careerhub.schemas import schemas
from careerhub.services.aptitude_service import (
    AnswerGrader, AptitudeTestService, percentage, score_submission, DeferredGrader,
)
from careerhub.services.question_service import QuestionService
from careerhub.utils.helpers import new_id, utcnow


def make_student(stores, name='Asha'):
    now = utcnow()
    student = schemas.Student(
        id=new_id(), profile_id=new_id(), name=name, email=f'{name.lower()}-{new_id()[:6]}@example.com',
        created_at=now, updated_at=now,
    )
    return stores.students.insert(student)


@pytest.fixture
def questions(stores, clock):
    return QuestionService(stores.questions, now=clock)


@pytest.fixture
def service(stores, clock):
    return AptitudeTestService(
        stores.tests, stores.questions, stores.results, stores.students, stores.applications, now=clock,
    )


@pytest.fixture
def two_plus_two(questions):
    return questions.create_question(schemas.QuestionCreate.model_validate({
        'type': 'mcq-single',
        'text': '2+2?',
        'options': [{'text': '3', 'isCorrect': False}, {'text': '4', 'isCorrect': True}],
        'categories': ['math'],
    }))


@pytest.fixture
def published(service, two_plus_two):
    test = service.create_test(schemas.AptitudeTestCreate(title='Numeracy', question_ids=[two_plus_two.id]))
    return service.publish(test.id)


def submission(student_id, answers, **extra):
    return schemas.SubmissionRequest(student_id=student_id, answers=answers, **extra)


class TestLifecycle:

    def test_new_test_is_draft_with_default_passing_score(self, service):
        test = service.create_test(schemas.AptitudeTestCreate(title='Logic'))

        assert test.status == 'draft'
        assert test.passing_score == 60
        assert test.published_at is None

    def test_publish(self, service, two_plus_two):
        test = service.create_test(schemas.AptitudeTestCreate(title='Logic', question_ids=[two_plus_two.id]))

        published = service.publish(test.id)

        assert published.status == 'published'
        assert published.published_at is not None

    def test_publish_twice_is_invalid(self, service, published):
        with pytest.raises(InvalidStateError):
            service.publish(published.id)

    def test_publish_without_questions_is_rejected(self, service):
        test = service.create_test(schemas.AptitudeTestCreate(title='Empty'))

        with pytest.raises(ValidationError):
            service.publish(test.id)

    def test_publish_with_unknown_question_is_rejected(self, service, two_plus_two):
        test = service.create_test(schemas.AptitudeTestCreate(title='Broken', question_ids=[two_plus_two.id, 'gone']))

        with pytest.raises(ValidationError):
            service.publish(test.id)

    def test_update_draft(self, service):
        test = service.create_test(schemas.AptitudeTestCreate(title='Logic'))

        updated = service.update_test(test.id, schemas.AptitudeTestUpdate(title='Logic II', passing_score=75))

        assert updated.title == 'Logic II'
        assert updated.passing_score == 75

    def test_published_test_cannot_be_updated_or_deleted(self, service, published):
        with pytest.raises(InvalidStateError):
            service.update_test(published.id, schemas.AptitudeTestUpdate(title='Changed'))
        with pytest.raises(InvalidStateError):
            service.delete_test(published.id)

    def test_delete_draft(self, service):
        test = service.create_test(schemas.AptitudeTestCreate(title='Logic'))

        service.delete_test(test.id)

        with pytest.raises(NotFoundError):
            service.get_test(test.id)

    def test_delete_missing_test(self, service):
        with pytest.raises(NotFoundError):
            service.delete_test('missing')

    def test_students_only_see_published_tests(self, service, published):
        draft = service.create_test(schemas.AptitudeTestCreate(title='Draft'))

        assert [t.id for t in service.list_tests()] == [published.id]
        assert {t.id for t in service.list_tests(include_drafts=True)} == {published.id, draft.id}

    def test_questions_come_back_in_test_order(self, service, questions, two_plus_two):
        other = questions.create_question(schemas.QuestionCreate(type='short-answer', text='Why?'))
        test = service.create_test(schemas.AptitudeTestCreate(title='Mixed', question_ids=[other.id, two_plus_two.id]))

        assert [q.id for q in service.get_test_questions(test.id)] == [other.id, two_plus_two.id]


class TestSubmission:

    def test_correct_answer_by_text_scores_full_marks(self, stores, service, published):
        student = make_student(stores)
        question_id = published.question_ids[0]

        result = service.submit(published.id, submission(student.id, {question_id: '4'}))

        assert result.score == 100
        assert result.max_score == 100
        assert result.passed is True
        assert result.category_scores == {'math': 100}

    def test_wrong_answer_scores_zero(self, stores, service, published):
        student = make_student(stores)

        result = service.submit(published.id, submission(student.id, {published.question_ids[0]: '3'}))

        assert result.score == 0
        assert result.passed is False

    def test_answer_by_option_id(self, stores, service, published, two_plus_two):
        student = make_student(stores)
        correct = next(o for o in two_plus_two.options if o.is_correct)

        result = service.submit(published.id, submission(student.id, {two_plus_two.id: correct.id}))

        assert result.score == 100

    def test_second_submission_conflicts_and_keeps_first(self, stores, service, published):
        student = make_student(stores)
        question_id = published.question_ids[0]
        first = service.submit(published.id, submission(student.id, {question_id: '3'}))

        with pytest.raises(ConflictError):
            service.submit(published.id, submission(student.id, {question_id: '4'}))

        results = service.get_results(published.id)
        assert len(results) == 1
        assert results[0].id == first.id
        assert results[0].score == 0

    def test_store_rejects_duplicate_result(self, stores, service, published):
        student = make_student(stores)
        first = service.submit(published.id, submission(student.id, {}))
        duplicate = first.model_copy(update={'id': new_id()})

        with pytest.raises(ConflictError):
            stores.results.insert(duplicate)

    def test_draft_test_is_closed(self, stores, service):
        student = make_student(stores)
        draft = service.create_test(schemas.AptitudeTestCreate(title='Draft'))

        with pytest.raises(InvalidStateError):
            service.submit(draft.id, submission(student.id, {}))

    def test_unknown_student(self, service, published):
        with pytest.raises(NotFoundError):
            service.submit(published.id, submission('nobody', {}))

    def test_has_completed(self, stores, service, published):
        student = make_student(stores)
        assert service.has_completed(published.id, student.id) is False

        service.submit(published.id, submission(student.id, {}))

        assert service.has_completed(published.id, student.id) is True

    def test_results_for_student_newest_first(self, stores, service, questions, two_plus_two):
        student = make_student(stores)
        taken = []
        for title in ('First test', 'Second test'):
            test = service.create_test(schemas.AptitudeTestCreate(title=title, question_ids=[two_plus_two.id]))
            service.publish(test.id)
            taken.append(service.submit(test.id, submission(student.id, {})))

        assert [r.id for r in service.results_for_student(student.id)] == [taken[1].id, taken[0].id]

    def test_submission_records_application_on_result(self, stores, service, published):
        student = make_student(stores)
        now = utcnow()
        application = stores.applications.insert(schemas.Application(
            id=new_id(), student_id=student.id, course_id='course', college_id='college',
            created_at=now, updated_at=now,
        ))

        result = service.submit(published.id, submission(student.id, {}, application_id=application.id))

        assert result.application_id == application.id
        assert service.get_results(published.id)[0].application_id == application.id
        assert stores.applications.get(application.id).model_dump() == application.model_dump()

    def test_cannot_link_another_students_application(self, stores, service, published):
        student = make_student(stores, 'Asha')
        other = make_student(stores, 'Ravi')
        now = utcnow()
        application = stores.applications.insert(schemas.Application(
            id=new_id(), student_id=other.id, course_id='course', college_id='college',
            created_at=now, updated_at=now,
        ))

        with pytest.raises(ForbiddenError):
            service.submit(published.id, submission(student.id, {}, application_id=application.id))


def assigned_application(stores, student, test_id, status='approved'):
    now = utcnow()
    return stores.applications.insert(schemas.Application(
        id=new_id(), student_id=student.id, course_id=new_id(), college_id='college',
        status=status, aptitude_test_id=test_id, created_at=now, updated_at=now,
    ))


class TestPendingTests:

    def test_assigned_test_is_pending_until_submitted(self, stores, service, published):
        student = make_student(stores)
        assigned_application(stores, student, published.id)

        assert [t.id for t in service.pending_for_student(student.id)] == [published.id]

        service.submit(published.id, submission(student.id, {}))

        assert service.pending_for_student(student.id) == []

    def test_only_approved_applications_count(self, stores, service, published):
        student = make_student(stores)
        assigned_application(stores, student, published.id, status='pending')
        assigned_application(stores, student, None)

        assert service.pending_for_student(student.id) == []

    def test_test_assigned_twice_is_listed_once(self, stores, service, published):
        student = make_student(stores)
        assigned_application(stores, student, published.id)
        assigned_application(stores, student, published.id)

        assert len(service.pending_for_student(student.id)) == 1

    def test_unknown_student(self, service):
        with pytest.raises(NotFoundError):
            service.pending_for_student('nobody')


def _question(qtype, options=(), categories=('general',)):
    return schemas.Question(
        id=new_id(), type=qtype, text='q',
        options=[schemas.Option(id=oid, text=oid.upper(), is_correct=ok) for oid, ok in options],
        categories=list(categories), created_at=utcnow(), updated_at=utcnow(),
    )


class TestScoring:

    def test_percentage_rounds_half_up(self):
        assert percentage(1, 8) == 13  # 12.5
        assert percentage(2, 3) == 67
        assert percentage(1, 3) == 33
        assert percentage(0, 0) == 0

    def test_multiple_choice_needs_the_exact_set(self):
        question = _question('mcq-multiple', [('a', True), ('b', True), ('c', False)])

        exact = score_submission([question], {question.id: ['a', 'b']}, DeferredGrader(), 60)
        partial = score_submission([question], {question.id: ['a']}, DeferredGrader(), 60)
        extra = score_submission([question], {question.id: ['A', 'B', 'C']}, DeferredGrader(), 60)

        assert exact['score'] == 100
        assert partial['score'] == 0
        assert extra['score'] == 0

    def test_unknown_option_counts_as_wrong(self):
        question = _question('mcq-single', [('a', True), ('b', False)])

        result = score_submission([question], {question.id: 'zzz'}, DeferredGrader(), 60)

        assert result['score'] == 0

    def test_free_text_is_pending_and_left_out_of_the_score(self):
        mcq = _question('mcq-single', [('a', True), ('b', False)], categories=('math',))
        essay = _question('long-answer', categories=('writing',))

        result = score_submission([mcq, essay], {mcq.id: 'a', essay.id: 'my essay'}, DeferredGrader(), 60)

        assert result['score'] == 100
        assert result['pending_review'] == 1
        assert result['category_scores'] == {'math': 100}

    def test_only_free_text_scores_zero(self):
        essay = _question('short-answer')

        result = score_submission([essay], {essay.id: 'text'}, DeferredGrader(), 0)

        assert result['score'] == 0
        assert result['pending_review'] == 1

    def test_custom_grader_verdicts_count(self):
        class KeywordGrader(AnswerGrader):
            def grade(self, question, answer):
                return 'base case' in (answer or '')

        first = _question('short-answer', categories=('cs',))
        second = _question('short-answer', categories=('cs',))
        answers = {first.id: 'needs a base case', second.id: 'loops forever'}

        result = score_submission([first, second], answers, KeywordGrader(), 50)

        assert result['score'] == 50
        assert result['passed'] is True
        assert result['pending_review'] == 0
        assert result['category_scores'] == {'cs': 50}
