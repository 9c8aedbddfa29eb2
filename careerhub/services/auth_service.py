"""
Auth Service - login, registration and logout.

Registration creates the identity first and then the profile row keyed
by the identity's user id (profile_id).
"""

import logging

from careerhub.schemas.schemas import (
    College, CollegeCreate, CollegeRegistration, Session, Student,
    StudentRegistration, UserRole,
)
from careerhub.services.directory_service import DirectoryService
from careerhub.services.identity import IdentityProvider
from careerhub.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


class AuthService:

    def __init__(self, identity: IdentityProvider, profiles: ProfileService, directory: DirectoryService):
        self.identity = identity
        self.profiles = profiles
        self.directory = directory

    def login(self, email: str, password: str) -> Session:
        session = self.identity.sign_in(email, password)
        logger.info(f"Login: {session.user.id}")
        return session

    def register_student(self, data: StudentRegistration) -> Student:
        user = self.identity.sign_up(
            data.email,
            data.password,
            {"user_type": UserRole.student.value, "name": data.name},
        )
        return self.profiles.create_student(user.id, data)

    def register_college(self, data: CollegeRegistration) -> College:
        user = self.identity.sign_up(
            data.email,
            data.password,
            {"user_type": UserRole.college.value, "name": data.name},
        )
        fields = data.model_dump(exclude={"email", "password"})
        if not fields.get("contact_email"):
            fields["contact_email"] = data.email
        return self.directory.create_college(CollegeCreate(**fields, profile_id=user.id))

    def logout(self, access_token: str) -> None:
        self.identity.sign_out(access_token)
