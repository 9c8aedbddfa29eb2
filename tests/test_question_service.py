"""
Question bank: invariants, CRUD and bulk import, on both backends.
"""
import pytest

from careerhub.core.errors import NotFoundError, ValidationError
from careerhub.schemas.schemas import QuestionCreate, QuestionUpdate
from careerhub.services.question_service import QuestionService


def mcq_single(text='2+2?', college_id=None, **overrides):
    data = {
        'collegeId': college_id,
        'type': 'mcq-single',
        'text': text,
        'options': [
            {'text': '3', 'isCorrect': False},
            {'text': '4', 'isCorrect': True},
        ],
        'categories': ['math'],
    }
    data.update(overrides)
    return data


@pytest.fixture
def service(stores, clock):
    return QuestionService(stores.questions, now=clock)


class TestCreate:

    def test_create_assigns_ids_and_timestamps(self, service):
        question = service.create_question(QuestionCreate.model_validate(mcq_single()))

        assert question.id
        assert all(option.id for option in question.options)
        assert question.created_at == question.updated_at
        assert question.difficulty_level == 'medium'

    def test_get_returns_created_question(self, service):
        created = service.create_question(QuestionCreate.model_validate(mcq_single()))

        fetched = service.get_question(created.id)

        assert fetched.model_dump() == created.model_dump()

    def test_categories_are_deduplicated_and_sorted(self, service):
        question = service.create_question(QuestionCreate.model_validate(
            mcq_single(categories=['verbal', 'math', ' math ', ''])
        ))

        assert question.categories == ['math', 'verbal']

    def test_single_choice_needs_exactly_one_correct_option(self, service):
        data = mcq_single(options=[
            {'text': 'a', 'isCorrect': True},
            {'text': 'b', 'isCorrect': True},
        ])

        with pytest.raises(ValidationError):
            service.create_question(QuestionCreate.model_validate(data))

    def test_single_choice_without_options_is_rejected(self, service):
        with pytest.raises(ValidationError):
            service.create_question(QuestionCreate.model_validate(mcq_single(options=[])))

    def test_multiple_choice_needs_a_correct_option(self, service):
        data = mcq_single(type='mcq-multiple', options=[
            {'text': 'a', 'isCorrect': False},
            {'text': 'b', 'isCorrect': False},
        ])

        with pytest.raises(ValidationError):
            service.create_question(QuestionCreate.model_validate(data))

    def test_multiple_choice_accepts_several_correct_options(self, service):
        data = mcq_single(type='mcq-multiple', options=[
            {'text': 'a', 'isCorrect': True},
            {'text': 'b', 'isCorrect': True},
            {'text': 'c', 'isCorrect': False},
        ])

        question = service.create_question(QuestionCreate.model_validate(data))

        assert sum(option.is_correct for option in question.options) == 2

    def test_free_text_questions_need_no_options(self, service):
        question = service.create_question(QuestionCreate.model_validate(
            {'type': 'short-answer', 'text': 'Explain recursion'}
        ))

        assert question.options == []

    def test_duplicate_option_ids_are_rejected(self, service):
        data = mcq_single(options=[
            {'id': 'x', 'text': 'a', 'isCorrect': True},
            {'id': 'x', 'text': 'b', 'isCorrect': False},
        ])

        with pytest.raises(ValidationError):
            service.create_question(QuestionCreate.model_validate(data))


class TestReadUpdateDelete:

    def test_list_is_scoped_by_college_and_oldest_first(self, service):
        first = service.create_question(QuestionCreate.model_validate(mcq_single('q1', college_id='c1')))
        second = service.create_question(QuestionCreate.model_validate(mcq_single('q2', college_id='c1')))
        service.create_question(QuestionCreate.model_validate(mcq_single('q3', college_id='c2')))

        assert [q.id for q in service.list_questions('c1')] == [first.id, second.id]
        assert len(service.list_questions()) == 3

    def test_get_with_other_college_is_not_found(self, service):
        question = service.create_question(QuestionCreate.model_validate(mcq_single(college_id='c1')))

        with pytest.raises(NotFoundError):
            service.get_question(question.id, college_id='c2')

    def test_get_missing_question(self, service):
        with pytest.raises(NotFoundError):
            service.get_question('missing')

    def test_partial_update_keeps_other_fields(self, service):
        question = service.create_question(QuestionCreate.model_validate(mcq_single()))

        updated = service.update_question(question.id, QuestionUpdate(text='What is 2+2?'))

        assert updated.text == 'What is 2+2?'
        assert updated.model_dump()['options'] == question.model_dump()['options']
        assert updated.updated_at > question.created_at

    def test_update_rechecks_invariants_on_merged_question(self, service):
        question = service.create_question(QuestionCreate.model_validate(mcq_single()))
        both_correct = [{'text': '3', 'isCorrect': True}, {'text': '4', 'isCorrect': True}]

        with pytest.raises(ValidationError):
            service.update_question(question.id, QuestionUpdate.model_validate({'options': both_correct}))

        assert service.get_question(question.id).model_dump()['options'] == question.model_dump()['options']

    def test_switching_to_multiple_choice_is_allowed(self, service):
        question = service.create_question(QuestionCreate.model_validate(mcq_single()))

        updated = service.update_question(question.id, QuestionUpdate(type='mcq-multiple'))

        assert updated.type == 'mcq-multiple'

    def test_update_missing_question(self, service):
        with pytest.raises(NotFoundError):
            service.update_question('missing', QuestionUpdate(text='x'))

    def test_delete_is_idempotent(self, service):
        question = service.create_question(QuestionCreate.model_validate(mcq_single()))

        service.delete_question(question.id)
        service.delete_question(question.id)

        with pytest.raises(NotFoundError):
            service.get_question(question.id)

    def test_delete_scoped_to_other_college_leaves_question(self, service):
        question = service.create_question(QuestionCreate.model_validate(mcq_single(college_id='c1')))

        service.delete_question(question.id, college_id='c2')

        assert service.get_question(question.id).id == question.id


class TestBulkUpload:

    def test_invalid_item_does_not_abort_batch(self, service):
        result = service.bulk_upload([mcq_single(), mcq_single(options=[])])

        assert result.total == 2
        assert result.created == 1
        assert len(result.failed) == 1
        assert result.failed[0].index == 1
        assert result.failed[0].reason == 'ValidationError'
        assert len(service.list_questions()) == 1

    def test_malformed_items_are_reported(self, service):
        result = service.bulk_upload(['not a question', {'type': 'essay', 'text': 'x'}, mcq_single()])

        assert result.created == 1
        assert [f.index for f in result.failed] == [0, 1]
        assert {f.reason for f in result.failed} == {'ValidationError'}

    def test_batch_college_overrides_items(self, service):
        result = service.bulk_upload([mcq_single(college_id='other')], college_id='c1')

        assert service.get_question(result.question_ids[0]).college_id == 'c1'

    def test_empty_batch(self, service):
        result = service.bulk_upload([])

        assert result.total == 0
        assert result.created == 0
        assert result.failed == []
