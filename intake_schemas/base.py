"""Shared pydantic base for wire-format models.

Attributes are snake_case in Python and camelCase on the wire, matching the
clinic front-end payloads (``questionText``, ``matrixResponses``...).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self, **kwargs: Any) -> dict[str, Any]:
        """JSON-safe dict keyed by camelCase aliases."""
        return self.model_dump(by_alias=True, mode="json", **kwargs)
