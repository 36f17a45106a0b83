import logging
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studio_attendance.api import (
    admin,
    attendance,
    auth,
    export,
    groups,
    health,
    instructors,
    notifications,
    reports,
    students,
)
from studio_attendance.core.attendance_service import AttendanceService
from studio_attendance.core.cache import SimpleCache
from studio_attendance.core.config import Settings
from studio_attendance.core.exceptions import EmailDeliveryError, SheetsError
from studio_attendance.core.logging_config import setup_logging
from studio_attendance.core.sheets import GoogleSheetsClient
from studio_attendance.db import Base
from studio_attendance.db.session import build_engine, build_session_factory

logger = logging.getLogger(__name__)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query")),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"message": "Invalid request body", "errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(SheetsError)
    async def sheets_error_handler(request: Request, exc: SheetsError):
        logger.error(f"❌ Google Sheets error on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=502, content={"message": exc.message, "hint": exc.hint})

    @app.exception_handler(EmailDeliveryError)
    async def email_error_handler(request: Request, exc: EmailDeliveryError):
        return JSONResponse(status_code=502, content={"message": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


def create_app(settings: Optional[Settings] = None, sheets_client=None) -> FastAPI:
    settings = settings or Settings()
    settings.validate_for_startup()
    setup_logging(settings)

    engine = build_engine(settings.DATABASE_URL)
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)

    if sheets_client is None:
        # Fails fast when the service account credentials are missing.
        sheets_client = GoogleSheetsClient.from_settings(settings)

    app = FastAPI(title="Studio Attendance")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.attendance_service = AttendanceService(sheets_client, SimpleCache(settings.CACHE_TTL_SECONDS))
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            elapsed = (time.perf_counter() - started) * 1000
            logger.info(f"{request.method} {request.url.path} {response.status_code} in {elapsed:.0f}ms")
        return response

    _register_exception_handlers(app)

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(groups.router, prefix="/api/groups", tags=["groups"])
    app.include_router(students.router, prefix="/api/students", tags=["students"])
    app.include_router(attendance.router, prefix="/api/attendance", tags=["attendance"])
    app.include_router(reports.router, prefix="/api/reports", tags=["reports"])
    app.include_router(export.router, prefix="/api/export", tags=["export"])
    app.include_router(instructors.router, prefix="/api/instructors", tags=["instructors"])
    app.include_router(instructors.assignments_router, prefix="/api/instructor-groups", tags=["instructors"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
    app.include_router(health.router, tags=["health"])

    logger.info(f"🚀 Studio Attendance ready ({settings.ENVIRONMENT})")
    return app


def run() -> None:
    settings = Settings()
    uvicorn.run("studio_attendance.main:create_app", factory=True, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
