"""
FastAPI application for the gradebook engine

Run with:
    uvicorn gradebook.api.main:app --reload

Docs at /docs (Swagger UI) and /redoc.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..core.logging_config import configure_logging
from ..core.settings import get_settings
from ..database.config import init_database
from .exceptions import GradebookAPIException
from .routers import (
    academic_terms,
    evaluation_components,
    evaluation_plans,
    evaluative_activities,
    metrics,
    performance_scale,
    period_final_grades,
    preventive_cuts,
    student_grades,
)
from .schemas.common import HealthResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_database()
    logger.info("Gradebook API started", extra={"version": app.version})
    yield
    logger.info("Gradebook API stopped")


def _error_body(code: str, message: str, extra=None) -> dict:
    return {"success": False, "error": {"code": code, "message": message, "extra": extra or {}}}


async def gradebook_exception_handler(request: Request, exc: GradebookAPIException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"API error: {exc.detail}",
            extra={"path": request.url.path, "error_code": exc.error_code, **exc.extra},
        )
    else:
        logger.info(
            f"API error: {exc.detail}",
            extra={"path": request.url.path, "error_code": exc.error_code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_code or "ERROR", exc.detail, exc.extra),
        headers=exc.headers,
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Unhandled database error: {exc}", extra={"path": request.url.path}, exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_body("DATABASE_ERROR", "Database operation failed"),
    )


def create_app() -> FastAPI:
    """Build the application with every router and exception handler registered"""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Grading engine: component averages, term and annual grades, "
            "performance levels and preventive cuts."
        ),
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GradebookAPIException, gradebook_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)

    app.include_router(student_grades.router)
    app.include_router(period_final_grades.router)
    app.include_router(evaluation_plans.router)
    app.include_router(academic_terms.router)
    app.include_router(evaluation_components.router)
    app.include_router(evaluative_activities.router)
    app.include_router(performance_scale.router)
    app.include_router(preventive_cuts.router)
    app.include_router(metrics.router)

    @app.get("/health", response_model=HealthResponse, tags=["Monitoring"])
    def health() -> HealthResponse:
        return HealthResponse(status="ok", version=settings.app_version)

    return app


app = create_app()
