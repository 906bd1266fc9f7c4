# type: ignore
# pyright: reportGeneralTypeIssues=false
# pyright: reportOptionalMemberAccess=false
"""
ASSA Registration Service
=========================
Collects alumni registrations, validates them against one shared rule set,
assigns each member an ``ASSA<year><sequence>`` identifier and exposes the
member list and aggregate statistics for the admin dashboard.

    POST /api/register          register a member
    GET  /api/members           all members, newest first
    GET  /api/stats             totals, per-graduation-year counts, recent sign-ups
    GET  /api/validation-rules  the active form rules, for browser clients

Port: 3000
"""
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.controllers import member_controller, system_controller
from app.core.config import Settings, settings as default_settings
from app.core.dependencies import (
    get_member_repo, get_registration_service, init_dependencies,
)
from app.core.exceptions import StorageError
from app.core.logging import configure_logging, get_logger
from app.middleware import (
    MetricsMiddleware, RateLimitMiddleware, RequestIDMiddleware, SecurityHeadersMiddleware,
)

logger = get_logger("assa-registration")


@asynccontextmanager
async def lifespan(application: FastAPI):
    repo = get_member_repo()
    try:
        repo.create_schema()
        get_registration_service().seed_gauges()
    except StorageError:
        logger.exception("Could not prepare the members table")
        raise
    logger.info("Service started")
    yield
    repo.dispose()
    logger.info("Shutting down — connection pool disposed")


def _field_from_loc(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body",)]
    return ".".join(parts) or "body"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)
    init_dependencies(settings)

    application = FastAPI(
        title="ASSA Registration Service",
        description="Alumni registration with member IDs and admin statistics.",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    # Starlette wraps in reverse order: CORS outermost, rate limiting innermost
    application.add_middleware(RateLimitMiddleware)
    application.add_middleware(MetricsMiddleware)
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_from_loc(e.get("loc", ())), "message": e.get("msg", "Invalid value")}
            for e in exc.errors()
        ]
        return JSONResponse(status_code=400, content={
            "success": False, "message": "Validation failed", "errors": errors,
        })

    @application.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message},
                            headers=getattr(exc, "headers", None))

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(status_code=500, content={"success": False, "message": "Something went wrong!"})

    application.include_router(system_controller.router)
    application.include_router(member_controller.router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
