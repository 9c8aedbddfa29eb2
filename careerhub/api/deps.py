"""
Request-scoped dependencies: stores and the services built on them.
"""

from typing import Optional
from fastapi import Depends

from careerhub.core.auth import get_current_principal, get_optional_principal
from careerhub.core.config import get_settings
from careerhub.core.errors import ForbiddenError
from careerhub.schemas.schemas import College, Principal
from careerhub.services.aptitude_service import AptitudeTestService
from careerhub.services.application_service import ApplicationService
from careerhub.services.auth_service import AuthService
from careerhub.services.directory_service import DirectoryService
from careerhub.services.identity import IdentityProvider, get_identity_provider
from careerhub.services.profile_service import ProfileService
from careerhub.services.question_service import QuestionService
from careerhub.stores import Stores, build_stores


def get_stores(principal: Optional[Principal] = Depends(get_optional_principal)) -> Stores:
    """Stores for the configured backend, scoped to the caller for row-level security."""
    return build_stores(get_settings(), principal.profile_id if principal else None)


def get_question_service(stores: Stores = Depends(get_stores)) -> QuestionService:
    return QuestionService(stores.questions)


def get_test_service(stores: Stores = Depends(get_stores)) -> AptitudeTestService:
    return AptitudeTestService(
        stores.tests,
        stores.questions,
        stores.results,
        stores.students,
        stores.applications,
        passing_score=get_settings().passing_score,
    )


def get_application_service(stores: Stores = Depends(get_stores)) -> ApplicationService:
    return ApplicationService(
        stores.applications, stores.students, stores.courses, stores.colleges, stores.tests,
    )


def get_directory_service(stores: Stores = Depends(get_stores)) -> DirectoryService:
    return DirectoryService(stores.colleges, stores.courses, stores.applications)


def get_profile_service(stores: Stores = Depends(get_stores)) -> ProfileService:
    return ProfileService(stores.students, stores.applications, stores.results)


def get_auth_service(
    stores: Stores = Depends(get_stores),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AuthService:
    return AuthService(
        identity,
        ProfileService(stores.students, stores.applications, stores.results),
        DirectoryService(stores.colleges, stores.courses, stores.applications),
    )


def get_current_college(
    college_id: str,
    principal: Principal = Depends(get_current_principal),
    directory: DirectoryService = Depends(get_directory_service),
) -> College:
    """Dependency - the college in the path, which the caller must own."""
    college = directory.get_college(college_id)
    if college.profile_id != principal.profile_id:
        raise ForbiddenError("Only the college account can act on its applications")
    return college
