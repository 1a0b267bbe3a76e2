"""
Prometheus Metrics Registration.

Counters and histograms for the tool execution engine.
"""

from prometheus_client import Counter, Gauge, Histogram

# ============================================================================
# COUNTERS
# ============================================================================

tool_executions_total = Counter(
    "tool_executions_total",
    "Total tool executions",
    ["tool_id", "status"],  # success, failure
)

tool_rejections_total = Counter(
    "tool_rejections_total",
    "Calls rejected by a pipeline gate before the handler ran",
    ["tool_id", "code"],
)

tool_retries_total = Counter(
    "tool_retries_total", "Handler re-invocations after a failed attempt", ["tool_id"]
)

composite_executions_total = Counter(
    "composite_executions_total",
    "Composite plan executions",
    ["mode", "status"],  # sequential/parallel, success/failure
)

# ============================================================================
# GAUGES
# ============================================================================

registered_tools = Gauge("registered_tools", "Tools currently registered")

# ============================================================================
# HISTOGRAMS
# ============================================================================

tool_execution_duration = Histogram(
    "tool_execution_duration_seconds",
    "Tool execution duration",
    ["tool_id"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)


# ============================================================================
# RECORDER
# ============================================================================


class ToolMetrics:
    """Records engine metrics unless disabled by ``METRICS_ENABLED``."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def execution(self, tool_id: str, success: bool, duration_seconds: float) -> None:
        if not self.enabled:
            return
        status = "success" if success else "failure"
        tool_executions_total.labels(tool_id=tool_id, status=status).inc()
        tool_execution_duration.labels(tool_id=tool_id).observe(duration_seconds)

    def rejection(self, tool_id: str, code: str) -> None:
        if self.enabled:
            tool_rejections_total.labels(tool_id=tool_id, code=code).inc()

    def retry(self, tool_id: str) -> None:
        if self.enabled:
            tool_retries_total.labels(tool_id=tool_id).inc()

    def composite(self, mode: str, success: bool) -> None:
        if self.enabled:
            status = "success" if success else "failure"
            composite_executions_total.labels(mode=mode, status=status).inc()

    def registered(self, count: int) -> None:
        if self.enabled:
            registered_tools.set(count)
