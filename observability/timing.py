"""Timing helpers for the extraction and merge steps."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Generator

from .metrics import get_metrics_client


class TimingContext:
    """Measures one block and reports it as ``<name>`` timing metric."""

    def __init__(self, name: str, tags: dict[str, str] | None = None, emit_metric: bool = True):
        self.name = name
        self.tags = tags or {}
        self.emit_metric = emit_metric
        self.start_time: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self) -> "TimingContext":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        if self.emit_metric:
            tags = dict(self.tags)
            if exc_type is not None:
                tags["error"] = exc_type.__name__
            get_metrics_client().timing(self.name, self.elapsed_ms, tags)


@contextmanager
def timed(
    name: str, tags: dict[str, str] | None = None, emit_metric: bool = True
) -> Generator[TimingContext, None, None]:
    """Time a block.

    Usage:
        with timed("intake.extract", {"kind": "intake"}) as t:
            canonical = extract_canonical_data(record)
        logger.debug("extracted", extra={"elapsed_ms": t.elapsed_ms})
    """
    ctx = TimingContext(name, tags, emit_metric)
    with ctx:
        yield ctx
