"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from careerhub.api.routes.auth_routes import router as auth_router
from careerhub.api.routes.question_routes import router as question_router
from careerhub.api.routes.college_routes import router as college_router
from careerhub.api.routes.student_routes import router as student_router
from careerhub.api.routes.aptitude_routes import router as aptitude_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(question_router)
api_router.include_router(college_router)
api_router.include_router(student_router)
api_router.include_router(aptitude_router)
