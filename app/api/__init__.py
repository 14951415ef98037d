"""REST API surface for the Intake Suite.

Keep this module import-light: ``app.api.schemas`` and the guards are used
outside the HTTP process. The FastAPI app is only built when ``app`` is
accessed.
"""

from __future__ import annotations


def __getattr__(name: str):
    if name == "app":
        from .fastapi_app import app

        return app
    raise AttributeError(name)


__all__ = ["app"]
