"""
CareerHub - Main Application

FastAPI backend with:
- Question bank, aptitude tests and scoring
- College / course directory
- Student profiles and course applications
- MongoDB or PostgreSQL (row-level security) storage
- Supabase authentication

Run: uvicorn careerhub.main:app --reload
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from careerhub import __version__
from careerhub.api.deps import get_stores
from careerhub.api.routes import api_router
from careerhub.core.config import Settings, get_settings
from careerhub.core.errors import CareerHubError, RemoteUnavailableError
from careerhub.core.logging_config import get_request_id, setup_logging
from careerhub.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware
from careerhub.schemas.schemas import HealthResponse
from careerhub.stores import Stores, init_storage

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_json)
    started_at = time.monotonic()

    app = FastAPI(
        title="CareerHub",
        description="""
    Career guidance platform connecting students and colleges.

    ## Features
    - **Questions**: Question bank with bulk import
    - **Aptitude Tests**: Draft, publish, submit and score
    - **Colleges**: Public directory of verified colleges and their courses
    - **Students**: Profiles, applications and test results
    - **Authentication**: Delegated to Supabase
    """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Rate limiting (per client address, /api only)
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Middleware (last added runs first)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.max_body_bytes)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- error handlers ----------

    @app.exception_handler(CareerHubError)
    async def careerhub_error_handler(request: Request, exc: CareerHubError):
        body = exc.to_dict()
        if isinstance(exc, RemoteUnavailableError) and not settings.is_development:
            body["message"] = "Service temporarily unavailable"
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        first = errors[0] if errors else {"loc": [], "msg": "Invalid request"}
        return JSONResponse(
            status_code=400,
            content={
                "error": "VALIDATION_ERROR",
                "message": f"{'.'.join(first['loc'])}: {first['msg']}",
                "details": {"errors": errors},
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(status_code=404, content={"error": "Route not found", "path": request.url.path})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Something went wrong!",
                "message": str(exc) if settings.is_development else "Internal server error",
            },
            headers={"X-Request-ID": get_request_id()},
        )

    # ---------- routes ----------

    app.include_router(api_router, prefix="/api")

    @app.get("/api/health", response_model=HealthResponse, tags=["Health"])
    def health_check(stores: Stores = Depends(get_stores)):
        """Liveness plus a storage ping."""
        return HealthResponse(
            status="OK",
            timestamp=datetime.now(timezone.utc).isoformat(),
            uptime=round(time.monotonic() - started_at, 3),
            storage="connected" if stores.ping() else "disconnected",
        )

    for route in app.routes:
        if hasattr(route, "endpoint") and not route.path.startswith("/api"):
            limiter.exempt(route.endpoint)

    @app.on_event("startup")
    async def startup_event():
        """Create indexes / tables for the configured storage backend."""
        try:
            init_storage(settings)
        except Exception as e:
            logger.warning(f"Storage initialisation failed: {e}")

    return app


app = create_app()
