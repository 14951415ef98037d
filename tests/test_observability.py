import json
import logging

import pytest

from config.settings import AttachmentSettings, ExtractionSettings, IntakeStoreSettings
from observability.logging_config import StructuredFormatter, get_logger
from observability.metrics import NullMetricsClient, RegistryMetricsClient, get_metrics_client, reset_metrics_client
from observability.timing import timed


def test_timed_records_metric_and_error_tag(metrics):
    with timed("intake.extract", {"kind": "intake"}) as t:
        pass
    assert t.elapsed_ms >= 0

    with pytest.raises(RuntimeError):
        with timed("intake.extract", {"kind": "intake"}):
            raise RuntimeError("boom")

    assert metrics.timing_count("intake.extract") == 2
    assert 'error="RuntimeError"' in metrics.export_prometheus()


def test_registry_counters_and_export():
    client = RegistryMetricsClient(prefix="t")
    client.incr("intake.merges", {"kind": "intake"})
    client.incr("intake.merges", {"kind": "form_response"}, 2)

    assert client.counter_value("intake.merges") == 3
    assert client.counter_value("intake.merges", {"kind": "intake"}) == 1
    text = client.export_prometheus()
    assert "# TYPE t_intake_merges_total counter" in text
    assert 't_intake_merges_total{kind="form_response"} 2' in text

    client.reset()
    assert client.counter_value("intake.merges") == 0


def test_metrics_backend_from_env(monkeypatch):
    reset_metrics_client()
    monkeypatch.setenv("METRICS_BACKEND", "registry")
    assert isinstance(get_metrics_client(), RegistryMetricsClient)
    reset_metrics_client()
    monkeypatch.delenv("METRICS_BACKEND")
    assert isinstance(get_metrics_client(), NullMetricsClient)
    reset_metrics_client()


def test_structured_formatter_includes_extra_fields():
    captured = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            captured.append(StructuredFormatter().format(record))

    base = logging.getLogger("intake-test")
    handler = ListHandler()
    base.addHandler(handler)
    try:
        get_logger("intake-test", component="merge").bind(merge_id="m-1").warning("Merge failed", extra={"attempts": 2})
    finally:
        base.removeHandler(handler)

    payload = json.loads(captured[0])
    assert payload["message"] == "Merge failed"
    assert payload["level"] == "WARNING"
    assert payload["component"] == "merge"
    assert payload["attempts"] == 2
    assert payload["merge_id"] == "m-1"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///fallback.db")
    assert IntakeStoreSettings().database_url == "sqlite:///fallback.db"
    monkeypatch.setenv("INTAKE_DATABASE_URL", "sqlite:///primary.db")
    assert IntakeStoreSettings().database_url == "sqlite:///primary.db"

    monkeypatch.setenv("ATTACHMENTS_BACKEND", "supabase")
    monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.co/")
    attachments = AttachmentSettings()
    assert attachments.backend == "supabase"
    assert attachments.supabase_url == "https://proj.supabase.co"

    monkeypatch.setenv("EXTRACTION_BODY_MAP_MIDLINE", "42.5")
    assert ExtractionSettings().body_map_midline == 42.5
