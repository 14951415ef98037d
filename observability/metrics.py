"""Metrics client abstraction and implementations.

This module provides:
- MetricsClient: abstract base class for metrics emission
- NullMetricsClient: no-op implementation (default)
- StdoutMetricsClient: JSON lines on stderr for debugging
- RegistryMetricsClient: in-process counters/timings, readable from tests and
  exported as Prometheus text on ``GET /metrics``

The intake pipeline emits these counters:
    intake.submissions        tags: kind=form_response|intake, status
    intake.merges             tags: kind
    intake.merge_failures     tags: kind
    intake.uploads            tags: outcome=ok|failed
"""

from __future__ import annotations

import json
import os
import sys
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

SUBMISSIONS = "intake.submissions"
MERGES = "intake.merges"
MERGE_FAILURES = "intake.merge_failures"
UPLOADS = "intake.uploads"


class MetricsClient(ABC):
    """Abstract base class for metrics emission."""

    @abstractmethod
    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        """Increment a counter metric."""
        ...

    @abstractmethod
    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        """Record a timing value in milliseconds."""
        ...


class StdoutMetricsClient(MetricsClient):
    def __init__(self, prefix: str = "intake_suite"):
        self.prefix = prefix

    def _emit(self, metric_type: str, name: str, value: Any, tags: dict[str, str] | None) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": metric_type,
            "metric": f"{self.prefix}.{name}",
            "value": value,
            "tags": tags or {},
        }
        print(json.dumps(record), file=sys.stderr)

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        self._emit("counter", name, value, tags)

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        self._emit("timing", name, value_ms, tags)


class NullMetricsClient(MetricsClient):
    """No-op metrics client for when metrics are disabled."""

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        pass

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        pass


def _label_key(tags: dict[str, str] | None) -> tuple[tuple[str, str], ...]:
    return tuple(sorted((tags or {}).items()))


def _sanitize_metric_name(name: str) -> str:
    return name.replace(".", "_").replace("-", "_")


class RegistryMetricsClient(MetricsClient):
    """In-process registry of counters and timing summaries.

    Usage:
        client = RegistryMetricsClient()
        set_metrics_client(client)
        ...
        client.counter_value("intake.merges", {"kind": "intake"})
    """

    def __init__(self, prefix: str = "intake_suite"):
        self.prefix = prefix
        self._lock = threading.Lock()
        self._counters: dict[str, dict[tuple, float]] = defaultdict(lambda: defaultdict(float))
        self._timings: dict[str, dict[tuple, list[float]]] = defaultdict(lambda: defaultdict(list))

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        with self._lock:
            self._counters[name][_label_key(tags)] += value

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        with self._lock:
            self._timings[name][_label_key(tags)].append(value_ms)

    def counter_value(self, name: str, tags: dict[str, str] | None = None) -> float:
        """Counter value for an exact tag set; with no tags, the sum over all tag sets."""
        with self._lock:
            series = self._counters.get(name, {})
            if tags is None:
                return sum(series.values())
            return series.get(_label_key(tags), 0)

    def timing_count(self, name: str) -> int:
        with self._lock:
            return sum(len(values) for values in self._timings.get(name, {}).values())

    def export_prometheus(self) -> str:
        lines: list[str] = []
        with self._lock:
            for name, series in sorted(self._counters.items()):
                metric = f"{self.prefix}_{_sanitize_metric_name(name)}_total"
                lines.append(f"# TYPE {metric} counter")
                for labels, value in sorted(series.items()):
                    lines.append(f"{metric}{_render_labels(labels)} {value}")
            for name, series in sorted(self._timings.items()):
                metric = f"{self.prefix}_{_sanitize_metric_name(name)}_ms"
                lines.append(f"# TYPE {metric} summary")
                for labels, values in sorted(series.items()):
                    rendered = _render_labels(labels)
                    lines.append(f"{metric}_sum{rendered} {sum(values)}")
                    lines.append(f"{metric}_count{rendered} {len(values)}")
        return "\n".join(lines) + "\n"

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()


def _render_labels(labels: tuple[tuple[str, str], ...]) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f'{k}="{v}"' for k, v in labels) + "}"


_metrics_client: MetricsClient | None = None


def get_metrics_client() -> MetricsClient:
    """Get the global metrics client, initializing if needed.

    METRICS_BACKEND selects the client: ``registry``/``prometheus``, ``stdout``,
    or ``null`` (default).
    """
    global _metrics_client
    if _metrics_client is None:
        backend = os.getenv("METRICS_BACKEND", "null").lower()
        if backend in ("registry", "prometheus"):
            _metrics_client = RegistryMetricsClient()
        elif backend == "stdout":
            _metrics_client = StdoutMetricsClient()
        else:
            _metrics_client = NullMetricsClient()
    return _metrics_client


def set_metrics_client(client: MetricsClient) -> None:
    global _metrics_client
    _metrics_client = client


def reset_metrics_client() -> None:
    """Drop the global client; the next get re-reads METRICS_BACKEND."""
    global _metrics_client
    _metrics_client = None
