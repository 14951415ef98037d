"""Dependency injection factories for API endpoints.

Clients and services are built once per process from settings. Tests swap
them through ``app.dependency_overrides`` (usually on ``get_document_store``
and ``get_object_store``).
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from app.forms.templates import TemplateService
from app.responses.attachments import AttachmentService
from app.store.db import create_tables, engine_for_url, resolve_database_url
from app.store.object_store import InMemoryObjectStore, ObjectStore, SupabaseObjectStore
from app.store.ports import DocumentStore
from app.store.sql_store import SqlDocumentStore
from app.submissions import PatientService, SubmissionService
from config.settings import AttachmentSettings, ExtractionSettings, IntakeStoreSettings
from observability.logging_config import get_logger

logger = get_logger("api_dependencies")


@lru_cache(maxsize=1)
def get_store_settings() -> IntakeStoreSettings:
    """Get cached IntakeStoreSettings from environment."""
    return IntakeStoreSettings()


@lru_cache(maxsize=1)
def get_attachment_settings() -> AttachmentSettings:
    return AttachmentSettings()


@lru_cache(maxsize=1)
def get_extraction_settings() -> ExtractionSettings:
    return ExtractionSettings()


@lru_cache(maxsize=1)
def get_document_store() -> DocumentStore:
    settings = get_store_settings()
    url = resolve_database_url(settings)
    engine = engine_for_url(url, settings.echo_sql)
    if settings.create_tables:
        create_tables(engine)
    logger.info("Document store ready", extra={"dialect": engine.dialect.name})
    return SqlDocumentStore(engine)


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    settings = get_attachment_settings()
    if settings.backend == "supabase":
        logger.info("Using Supabase attachment storage", extra={"bucket": settings.bucket})
        return SupabaseObjectStore(
            settings.supabase_url,
            settings.supabase_key,
            settings.bucket,
            public_base_url=settings.public_base_url,
        )
    return InMemoryObjectStore(base_url=settings.public_base_url or "memory://attachments")


def get_template_service(store: DocumentStore = Depends(get_document_store)) -> TemplateService:
    return TemplateService(store)


def get_submission_service(store: DocumentStore = Depends(get_document_store)) -> SubmissionService:
    return SubmissionService(store, midline=get_extraction_settings().body_map_midline)


def get_patient_service(store: DocumentStore = Depends(get_document_store)) -> PatientService:
    return PatientService(store)


def get_attachment_service(
    store: DocumentStore = Depends(get_document_store),
    objects: ObjectStore = Depends(get_object_store),
) -> AttachmentService:
    return AttachmentService(store, objects)


def reset_dependency_caches() -> None:
    """Forget cached settings and clients (tests change env between cases)."""
    for factory in (
        get_store_settings,
        get_attachment_settings,
        get_extraction_settings,
        get_document_store,
        get_object_store,
    ):
        factory.cache_clear()


__all__ = [
    "get_attachment_service",
    "get_attachment_settings",
    "get_document_store",
    "get_extraction_settings",
    "get_object_store",
    "get_patient_service",
    "get_store_settings",
    "get_submission_service",
    "get_template_service",
    "reset_dependency_caches",
]
