"""
Authentication Routes

POST /auth/login - Login through the identity provider
POST /auth/register/student - Register a student account and profile
POST /auth/register/college - Register a college account and profile
POST /auth/logout - Revoke the current session
GET /auth/verify - Who am I (verifies the bearer token)
"""

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials

from careerhub.api.deps import get_auth_service
from careerhub.core.auth import bearer_scheme, get_current_principal
from careerhub.schemas.schemas import (
    College, CollegeRegistration, LoginRequest, MessageResponse, Principal,
    Session, Student, StudentRegistration,
)
from careerhub.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=Session)
def login(request: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """
    Login and receive the provider's access token.

    Include token in requests: Authorization: Bearer <token>
    """
    return service.login(request.email, request.password)


@router.post("/register/student", response_model=Student, status_code=201)
def register_student(request: StudentRegistration, service: AuthService = Depends(get_auth_service)):
    """Create the identity and the student profile. Login afterwards."""
    return service.register_student(request)


@router.post("/register/college", response_model=College, status_code=201)
def register_college(request: CollegeRegistration, service: AuthService = Depends(get_auth_service)):
    """Create the identity and the college profile. New colleges start unverified."""
    return service.register_college(request)


@router.post("/logout", response_model=MessageResponse)
def logout(
    principal: Principal = Depends(get_current_principal),
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    service: AuthService = Depends(get_auth_service),
):
    service.logout(credentials.credentials)
    return MessageResponse(message="Logged out")


@router.get("/verify", response_model=Principal)
def verify(principal: Principal = Depends(get_current_principal)):
    return principal
