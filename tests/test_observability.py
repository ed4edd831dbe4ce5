from __future__ import annotations

from types import SimpleNamespace

import pytest

from jiracli import observability


@pytest.fixture(autouse=True)
def _reset_telemetry(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(observability._telemetry_configured, "configured", False)


def test_configure_telemetry_without_sdk(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(observability, "_load_sdk", lambda: None)

    assert observability.configure_telemetry(service_name="jiracli") is False
    assert observability._telemetry_configured["configured"] is False


def test_configure_telemetry_with_otlp_exporter(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: dict[str, object] = {}

    class DummyResource:
        @classmethod
        def create(cls, attrs: dict[str, str]) -> str:
            calls["resource"] = attrs
            return "resource"

    class DummyTracerProvider:
        def __init__(self, resource: str) -> None:
            calls["resource_arg"] = resource

        def add_span_processor(self, processor: object) -> None:
            calls["processor"] = processor

    class DummyBatchSpanProcessor:
        def __init__(self, exporter: object) -> None:
            calls["exporter"] = exporter

    class DummyOTLPExporter:
        def __init__(self, endpoint: str | None = None) -> None:
            calls["endpoint"] = endpoint

    monkeypatch.setattr(
        observability,
        "_load_sdk",
        lambda: {
            "Resource": DummyResource,
            "TracerProvider": DummyTracerProvider,
            "BatchSpanProcessor": DummyBatchSpanProcessor,
            "ConsoleSpanExporter": lambda: "console",
            "OTLPSpanExporter": DummyOTLPExporter,
        },
    )
    monkeypatch.setattr(
        observability,
        "trace",
        SimpleNamespace(set_tracer_provider=lambda provider: calls.update({"provider": provider})),
    )

    assert observability.configure_telemetry(
        service_name="jiracli-test", exporter="OTLP", endpoint="https://otel.example.com"
    )

    assert calls["resource"] == {"service.name": "jiracli-test"}
    assert calls["resource_arg"] == "resource"
    assert calls["endpoint"] == "https://otel.example.com"
    assert isinstance(calls["provider"], DummyTracerProvider)
    assert observability._telemetry_configured["configured"] is True
    # second call is a no-op
    assert observability.configure_telemetry(service_name="other") is True


def test_spans_are_noops_without_provider() -> None:
    tracer = observability.get_tracer()
    with tracer.start_as_current_span("jira.request") as span:
        span.set_attribute("http.method", "GET")
