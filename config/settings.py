"""Configuration settings using pydantic-settings."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


_REPO_ROOT = Path(__file__).resolve().parents[1]


def _truthy_env(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")


def load_env_file() -> None:
    """Load ``.env`` from the repo root without overriding exported variables.

    Tests opt out by setting ``INTAKE_SKIP_DOTENV=1``.
    """
    if _truthy_env("INTAKE_SKIP_DOTENV"):
        return
    load_dotenv(dotenv_path=_REPO_ROOT / ".env", override=False)


class IntakeStoreSettings(BaseSettings):
    """Document store connection settings."""

    database_url: str = Field(
        default="sqlite:///./intake_demo.db",
        validation_alias=AliasChoices("INTAKE_DATABASE_URL", "DATABASE_URL"),
    )
    echo_sql: bool = Field(default=False, validation_alias="INTAKE_ECHO_SQL")
    create_tables: bool = Field(default=True, validation_alias="INTAKE_CREATE_TABLES")

    model_config = {"extra": "ignore"}


class AttachmentSettings(BaseSettings):
    """Object storage for file-attachment questions."""

    backend: Literal["memory", "supabase"] = "memory"
    bucket: str = "intake-attachments"
    supabase_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ATTACHMENTS_SUPABASE_URL", "SUPABASE_URL"),
    )
    supabase_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "ATTACHMENTS_SUPABASE_KEY", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_KEY"
        ),
    )
    public_base_url: Optional[str] = None

    model_config = {"env_prefix": "ATTACHMENTS_", "extra": "ignore"}

    @field_validator("supabase_url", "public_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        return value.rstrip("/") if value else value


class ExtractionSettings(BaseSettings):
    """Tunables for canonical extraction."""

    body_map_midline: float = 50.0

    model_config = {"env_prefix": "EXTRACTION_", "extra": "ignore"}
