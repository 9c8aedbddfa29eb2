"""
Applications: apply once per course, decided once by the owning college.
"""
import pytest

from careerhub.core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from careerhub.schemas.schemas import (
    AptitudeTest, CollegeCreate, CourseCreate, DecisionRequest, StudentRegistration,
)
from careerhub.services.application_service import ApplicationService
from careerhub.services.directory_service import DirectoryService
from careerhub.services.profile_service import ProfileService
from careerhub.utils.helpers import new_id


class AlreadyDecided:
    """Application store whose conditional write always finds the row decided."""

    def __init__(self, inner):
        self.inner = inner

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def update(self, entity_id, changes, expected=None):
        return None


@pytest.fixture
def directory(stores, clock):
    return DirectoryService(stores.colleges, stores.courses, stores.applications, now=clock)


@pytest.fixture
def profiles(stores, clock):
    return ProfileService(stores.students, stores.applications, stores.results, now=clock)


@pytest.fixture
def service(stores, clock):
    return ApplicationService(
        stores.applications, stores.students, stores.courses, stores.colleges, stores.tests, now=clock,
    )


@pytest.fixture
def college(directory):
    return directory.create_college(CollegeCreate(
        profile_id=new_id(), name='Hill College', location='Pune', country='India',
    ))


@pytest.fixture
def course(directory, college):
    return directory.add_course(college.id, CourseCreate(name='Computer Science'))


@pytest.fixture
def student(profiles):
    return profiles.create_student(new_id(), StudentRegistration(
        email='asha@example.com', password='secret123', name='Asha',
    ))


class TestApply:

    def test_apply_creates_pending_application(self, service, student, course, college):
        application = service.apply(student.id, course.id, notes='Keen on ML')

        assert application.status == 'pending'
        assert application.college_id == college.id
        assert application.notes == 'Keen on ML'

    def test_duplicate_application_conflicts(self, service, student, course):
        service.apply(student.id, course.id)

        with pytest.raises(ConflictError):
            service.apply(student.id, course.id)

        assert len(service.list_for_student(student.id)) == 1

    def test_store_rejects_duplicate_pair(self, stores, service, student, course):
        application = service.apply(student.id, course.id)

        with pytest.raises(ConflictError):
            stores.applications.insert(application.model_copy(update={'id': new_id()}))

    def test_unknown_course(self, service, student):
        with pytest.raises(NotFoundError):
            service.apply(student.id, 'missing')

    def test_unknown_student(self, service, course):
        with pytest.raises(NotFoundError):
            service.apply('missing', course.id)


class TestDecide:

    def test_owner_approves(self, service, student, course, college):
        application = service.apply(student.id, course.id)

        decided = service.decide(application.id, DecisionRequest(status='approved', notes='Welcome'), college.id)

        assert decided.status == 'approved'
        assert decided.notes == 'Welcome'
        assert decided.updated_at > application.created_at

    def test_second_decision_is_invalid(self, service, student, course, college):
        application = service.apply(student.id, course.id)
        service.decide(application.id, DecisionRequest(status='rejected'), college.id)

        with pytest.raises(InvalidStateError):
            service.decide(application.id, DecisionRequest(status='approved'), college.id)

        assert service.get(application.id).status == 'rejected'

    def test_other_college_is_forbidden(self, service, student, course):
        application = service.apply(student.id, course.id)

        with pytest.raises(ForbiddenError):
            service.decide(application.id, DecisionRequest(status='approved'), 'someone-else')

    def test_conditional_update_only_matches_pending(self, stores, service, student, course):
        application = service.apply(student.id, course.id)
        stores.applications.update(application.id, {'status': 'approved'})

        lost = stores.applications.update(application.id, {'status': 'rejected'}, expected={'status': 'pending'})

        assert lost is None
        assert stores.applications.get(application.id).status == 'approved'

    def test_missing_application(self, service, college):
        with pytest.raises(NotFoundError):
            service.decide('missing', DecisionRequest(status='approved'), college.id)

    def test_decision_lost_to_concurrent_one_conflicts(self, stores, clock, student, course, college):
        application = ApplicationService(
            stores.applications, stores.students, stores.courses, stores.colleges, stores.tests, now=clock,
        ).apply(student.id, course.id)
        racing = ApplicationService(
            AlreadyDecided(stores.applications), stores.students, stores.courses, stores.colleges, stores.tests,
            now=clock,
        )

        with pytest.raises(ConflictError):
            racing.decide(application.id, DecisionRequest(status='approved'), college.id)


class TestAssignTest:

    @pytest.fixture
    def aptitude_test(self, stores, clock):
        now = clock()
        return stores.tests.insert(AptitudeTest(
            id=new_id(), title='Numeracy', question_ids=[new_id()], status='published',
            created_at=now, updated_at=now, published_at=now,
        ))

    def test_approval_assigns_published_test(self, service, student, course, college, aptitude_test):
        application = service.apply(student.id, course.id)

        decided = service.decide(
            application.id, DecisionRequest(status='approved', aptitude_test_id=aptitude_test.id), college.id,
        )

        assert decided.aptitude_test_id == aptitude_test.id
        assert service.get(application.id).aptitude_test_id == aptitude_test.id

    def test_rejection_cannot_assign(self, service, student, course, college, aptitude_test):
        application = service.apply(student.id, course.id)

        with pytest.raises(ValidationError):
            service.decide(
                application.id, DecisionRequest(status='rejected', aptitude_test_id=aptitude_test.id), college.id,
            )

        assert service.get(application.id).status == 'pending'

    def test_draft_test_cannot_be_assigned(self, stores, service, student, course, college, aptitude_test):
        stores.tests.update(aptitude_test.id, {'status': 'draft'})
        application = service.apply(student.id, course.id)

        with pytest.raises(InvalidStateError):
            service.decide(
                application.id, DecisionRequest(status='approved', aptitude_test_id=aptitude_test.id), college.id,
            )

    def test_unknown_test(self, service, student, course, college):
        application = service.apply(student.id, course.id)

        with pytest.raises(NotFoundError):
            service.decide(application.id, DecisionRequest(status='approved', aptitude_test_id='missing'), college.id)


class TestListing:

    def test_college_listing_newest_first_and_filtered(self, service, profiles, directory, college, course, student):
        other_course = directory.add_course(college.id, CourseCreate(name='Mathematics'))
        first = service.apply(student.id, course.id)
        second = service.apply(student.id, other_course.id)
        service.decide(first.id, DecisionRequest(status='approved'), college.id)

        assert [a.id for a in service.list_for_college(college.id)] == [second.id, first.id]
        assert [a.id for a in service.list_for_college(college.id, 'pending')] == [second.id]

    def test_unknown_college(self, service):
        with pytest.raises(NotFoundError):
            service.list_for_college('missing')
