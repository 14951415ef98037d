"""FastAPI application wiring for the Intake Suite services.

Run locally with:

    uvicorn app.api.fastapi_app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes.builder import router as builder_router
from app.api.routes.form_responses import router as form_responses_router
from app.api.routes.form_templates import router as form_templates_router
from app.api.routes.intake_forms import router as intake_forms_router
from app.api.routes.maintenance import router as maintenance_router
from app.api.routes.metrics import router as metrics_router
from app.api.routes.patients import router as patients_router
from app.api.routes.question_types import router as question_types_router
from app.api.schemas import ErrorBody
from app.common.exceptions import (
    AccessDeniedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from config.settings import load_env_file
from observability.logging_config import configure_logging, get_logger

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: environment and logging. Stores are built lazily by the dependencies."""
    load_env_file()
    configure_logging()
    logger.info("Intake API starting")
    yield
    logger.info("Intake API stopped")


def _error(status_code: int, message: str, errors: list[str] | None = None) -> JSONResponse:
    body = ErrorBody(message=message, validation_errors=errors or []).to_wire()
    return JSONResponse(status_code=status_code, content=body)


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info(
        "Request rejected",
        extra={"path": request.url.path, "reason": exc.message, "errors": exc.errors},
    )
    return _error(400, exc.message, exc.errors)


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(404, str(exc))


async def _access_denied(request: Request, exc: AccessDeniedError) -> JSONResponse:
    logger.warning("Access denied", extra={"path": request.url.path, "reason": str(exc)})
    return _error(403, "Access denied")


async def _persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(
        "Persistence failure",
        extra={"path": request.url.path, "operation": exc.operation, "error": str(exc)},
    )
    return _error(500, "Storage failure")


def create_app() -> FastAPI:
    app = FastAPI(title="Intake Suite API", version="0.1.0", lifespan=lifespan)

    # CORS (dev-friendly defaults)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(AccessDeniedError, _access_denied)
    app.add_exception_handler(PersistenceError, _persistence_error)

    app.include_router(question_types_router)
    app.include_router(form_templates_router)
    app.include_router(builder_router)
    app.include_router(form_responses_router)
    app.include_router(intake_forms_router)
    app.include_router(patients_router)
    app.include_router(maintenance_router)
    app.include_router(metrics_router, tags=["metrics"])

    @app.get("/health")
    async def health() -> dict[str, bool]:
        # Liveness check; payload stays minimal.
        return {"ok": True}

    return app


app = create_app()
