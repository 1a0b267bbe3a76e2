"""Observability Setup Tests."""

from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import REGISTRY

from tron_config.settings import Settings
from tron_obs.logging import get_logger, log_context, setup_logging
from tron_obs.metrics import ToolMetrics
from tron_obs.tracing import build_tracer_provider, get_tracer, setup_tracing
from tron_tools.engine import ToolEngine


def test_setup_logging_text_format():
    setup_logging(Settings(_env_file=None, LOG_FORMAT="text", LOG_LEVEL="DEBUG"))

    with log_context(composite_execution_id="c-1"):
        get_logger("tests.obs").bind(tool_id="t").info("logging_configured")


def test_tracing_disabled_by_default():
    assert setup_tracing(Settings(_env_file=None)) is False


def test_tracing_installs_provider():
    settings = Settings(_env_file=None, OTEL_TRACES_ENABLED=True)

    with patch("tron_obs.tracing.trace.set_tracer_provider") as set_provider:
        assert setup_tracing(settings, InMemorySpanExporter()) is True

    set_provider.assert_called_once()


def test_provider_exports_spans():
    settings = Settings(_env_file=None, OTEL_SERVICE_NAME="tron-test")
    exporter = InMemorySpanExporter()
    provider = build_tracer_provider(settings, exporter)

    with provider.get_tracer("tests.obs").start_as_current_span("tool.execute"):
        pass
    provider.force_flush()

    [span] = exporter.get_finished_spans()
    assert span.name == "tool.execute"
    assert span.resource.attributes["service.name"] == "tron-test"


def test_spans_are_noops_without_provider():
    with get_tracer("tests.obs").start_as_current_span("noop") as span:
        span.set_attribute("ok", True)


def test_disabled_metrics_record_nothing():
    metrics = ToolMetrics(enabled=False)

    metrics.execution("obs.quiet", success=True, duration_seconds=0.1)
    metrics.rejection("obs.quiet", "RATE_LIMIT_EXCEEDED")
    metrics.retry("obs.quiet")

    assert REGISTRY.get_sample_value("tool_retries_total", {"tool_id": "obs.quiet"}) is None
    assert (
        REGISTRY.get_sample_value(
            "tool_rejections_total", {"tool_id": "obs.quiet", "code": "RATE_LIMIT_EXCEEDED"}
        )
        is None
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("enabled, expected", [(True, 1.0), (False, None)])
async def test_engine_honours_metrics_setting(make_tool, enabled, expected):
    tool_id = f"obs.metrics.{enabled}"
    engine = ToolEngine(settings=Settings(_env_file=None, METRICS_ENABLED=enabled))
    engine.register_tool(make_tool(tool_id))

    result = await engine.execute_tool(tool_id, {})

    assert result.success is True
    assert engine.metrics.enabled is enabled
    assert (
        REGISTRY.get_sample_value(
            "tool_executions_total", {"tool_id": tool_id, "status": "success"}
        )
        == expected
    )
