"""SQLAlchemy base, portable column types and engine/session wiring."""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import JSON, Engine, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config.settings import IntakeStoreSettings

Base = declarative_base()
metadata = Base.metadata

# JSONB on Postgres, plain JSON on SQLite
JSONType = JSONB().with_variant(JSON(), "sqlite")


def resolve_database_url(settings: IntakeStoreSettings | None = None) -> str:
    """INTAKE_DATABASE_URL, then DATABASE_URL, then the local sqlite demo DB."""
    return (settings or IntakeStoreSettings()).database_url


def _engine_kwargs(url: str) -> dict:
    kwargs: dict = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # in-memory SQLite must share one connection across threads
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
    return kwargs


@lru_cache(maxsize=4)
def engine_for_url(url: str, echo: bool = False) -> Engine:
    return create_engine(url, echo=echo, **_engine_kwargs(url))


def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def create_tables(engine: Engine) -> None:
    from app.store import models as _models  # noqa: F401 - register models

    Base.metadata.create_all(bind=engine)


__all__ = [
    "Base",
    "metadata",
    "JSONType",
    "create_tables",
    "engine_for_url",
    "resolve_database_url",
    "session_factory",
]
