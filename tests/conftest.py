"""Shared fixtures: isolated stores, a registry metrics client and an API client."""

from __future__ import annotations

import os

os.environ.setdefault("INTAKE_SKIP_DOTENV", "1")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.api.dependencies import get_document_store, get_object_store
from app.api.fastapi_app import create_app
from app.forms.catalog import create_question
from app.store.db import create_tables
from app.store.memory_store import InMemoryDocumentStore
from app.store.object_store import InMemoryObjectStore
from app.store.sql_store import SqlDocumentStore
from intake_schemas import FormTemplate, PatientProfile
from observability.metrics import RegistryMetricsClient, reset_metrics_client, set_metrics_client

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
DOCTOR = {"X-User-Id": "doc-1", "X-User-Role": "doctor"}
OTHER_DOCTOR = {"X-User-Id": "doc-2", "X-User-Role": "doctor"}


@pytest.fixture
def metrics():
    client = RegistryMetricsClient()
    set_metrics_client(client)
    yield client
    reset_metrics_client()


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def sql_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine) -> SqlDocumentStore:
    return SqlDocumentStore(sql_engine)


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def client(sql_store, object_store, metrics):
    app = create_app()
    app.dependency_overrides[get_document_store] = lambda: sql_store
    app.dependency_overrides[get_object_store] = lambda: object_store
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def patient(memory_store) -> PatientProfile:
    return memory_store.create_patient(
        PatientProfile(first_name="Ada", last_name="Lovelace", assigned_doctor="doc-1")
    )


def allergy_template(store, *, title: str = "Allergy intake") -> FormTemplate:
    """A template with one required open answer, an allergy grid and a file question."""
    question = create_question("openAnswer").model_copy(
        update={"question_text": "Reason for visit", "is_required": True}
    )
    allergies = create_question("allergies")
    upload = create_question("fileAttachment").model_copy(update={"is_required": True})
    return store.create_template(FormTemplate(title=title, items=[question, allergies, upload]))
