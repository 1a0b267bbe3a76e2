"""Execution Pipeline.

Every entry point (direct, capability-resolved, composite step) reduces
to ``ExecutionPipeline.execute``. Gates run in order and short-circuit:

    rate limit -> authorization -> validation -> lazy init -> invoke

Invocation is bounded by a timeout per attempt and retried with
exponential backoff. Nothing raised inside the pipeline reaches the
caller; every outcome is a ToolResult.
"""

import asyncio
import time
import uuid
from typing import Any

from tron_config.settings import Settings
from tron_obs.logging import get_logger
from tron_obs.metrics import ToolMetrics
from tron_obs.tracing import get_tracer
from tron_tools.auth import AuthorizationGate
from tron_tools.base import Tool, ToolContext, maybe_await
from tron_tools.exceptions import (
    CompositeExecutionError,
    ParameterValidationError,
    ToolTimeoutError,
)
from tron_tools.options import ExecutionOptions
from tron_tools.rate_limit import RateLimiter
from tron_tools.results import ErrorCode, ToolResult, describe_exception

logger = get_logger(__name__)
tracer = get_tracer(__name__)


def _elapsed_ms(started: float) -> float:
    return (time.monotonic() - started) * 1000


class ExecutionPipeline:
    """Runs one tool call under the uniform execution contract."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        auth_gate: AuthorizationGate,
        settings: Settings,
        metrics: ToolMetrics | None = None,
    ):
        self.rate_limiter = rate_limiter
        self.auth_gate = auth_gate
        self.settings = settings
        self.metrics = metrics or ToolMetrics(settings.METRICS_ENABLED)

    def backoff_ms(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return min(
            self.settings.TOOL_BACKOFF_BASE_MS * (2**attempt),
            self.settings.TOOL_BACKOFF_MAX_MS,
        )

    async def execute(
        self,
        tool: Tool,
        params: Any,
        options: ExecutionOptions | dict[str, Any] | None = None,
    ) -> ToolResult:
        execution_id = str(uuid.uuid4())
        started = time.monotonic()

        try:
            options = ExecutionOptions.coerce(options)
        except ValueError as e:
            return ToolResult.fail(
                ErrorCode.UNEXPECTED_ERROR,
                f"Invalid execution options: {e}",
                execution_id,
                _elapsed_ms(started),
            )

        requester_id = (
            options.requester.id if options.requester else self.settings.TOOL_REQUESTER_DEFAULT
        )
        log = logger.bind(
            tool_id=tool.id,
            execution_id=execution_id,
            parent_execution_id=options.parent_execution_id,
            requester_id=requester_id,
        )

        with tracer.start_as_current_span(
            "tool.execute",
            attributes={"tool.id": tool.id, "tool.execution_id": execution_id},
        ) as span:
            try:
                result = await self._run(
                    tool, params, options, execution_id, requester_id, started, log
                )
            except Exception as e:
                log.exception("tool_unexpected_error", error=str(e))
                result = ToolResult.fail(
                    ErrorCode.UNEXPECTED_ERROR,
                    str(e) or e.__class__.__name__,
                    execution_id,
                    _elapsed_ms(started),
                    details={"error": describe_exception(e)},
                )
            span.set_attribute("tool.success", result.success)
            if result.error:
                span.set_attribute("tool.error_code", result.error.code.value)

        self.metrics.execution(tool.id, result.success, result.execution_time_ms / 1000)
        return result

    async def _run(
        self,
        tool: Tool,
        params: Any,
        options: ExecutionOptions,
        execution_id: str,
        requester_id: str,
        started: float,
        log: Any,
    ) -> ToolResult:
        metadata = tool.metadata
        if params is None:
            params = {}

        def reject(code: ErrorCode, message: str, details: dict | None = None) -> ToolResult:
            self.metrics.rejection(tool.id, code.value)
            log.warning("tool_rejected", code=code.value, reason=message)
            return ToolResult.fail(code, message, execution_id, _elapsed_ms(started), details)

        # 1. Rate limit
        if metadata.rate_limit and not self.rate_limiter.allow(metadata.id, metadata.rate_limit):
            return reject(
                ErrorCode.RATE_LIMIT_EXCEEDED,
                f"Rate limit exceeded for tool {metadata.name}",
                {
                    "requests": metadata.rate_limit.requests,
                    "period_ms": metadata.rate_limit.period_ms,
                },
            )

        # 2. Authorization
        denial = self.auth_gate.check(metadata, options.credentials)
        if denial is not None:
            return reject(denial.code, denial.message)

        # 3. Parameter validation
        if tool.validator is not None:
            reason = None
            try:
                valid = await maybe_await(tool.validator(params))
            except (ParameterValidationError, ValueError, TypeError) as e:
                valid, reason = False, str(e)
            if not valid:
                return reject(
                    ErrorCode.INVALID_PARAMETERS,
                    f"Invalid parameters for tool {metadata.name}",
                    {"reason": reason} if reason else None,
                )

        # 4. Lazy initialization
        try:
            if await tool.ensure_initialized():
                log.info("tool_initialized")
        except Exception as e:
            log.error("tool_initialization_failed", error=str(e))
            return ToolResult.fail(
                ErrorCode.INITIALIZATION_FAILED,
                f"Tool {metadata.name} failed to initialize: {e}",
                execution_id,
                _elapsed_ms(started),
                details={"error": describe_exception(e)},
            )

        # 5. Timeout-bounded invocation with retry
        timeout_ms = (
            options.timeout_ms or metadata.timeout_ms or self.settings.TOOL_DEFAULT_TIMEOUT_MS
        )
        retries = (
            options.retries if options.retries is not None else self.settings.TOOL_DEFAULT_RETRIES
        )

        last_error: Exception | None = None
        for attempt in range(retries + 1):
            if attempt > 0:
                delay_ms = self.backoff_ms(attempt)
                self.metrics.retry(tool.id)
                log.warning("tool_retry", attempt=attempt, backoff_ms=delay_ms)
                await asyncio.sleep(delay_ms / 1000)

            ctx = ToolContext(
                execution_id=execution_id,
                requester_id=requester_id,
                credentials=options.credentials,
                start_time=time.time(),
                parent_execution_id=options.parent_execution_id,
                metadata=dict(options.metadata),
                deadline=time.monotonic() + timeout_ms / 1000,
                attempt=attempt,
            )
            try:
                data = await self._attempt(tool, params, ctx, timeout_ms)
            except Exception as e:
                last_error = e
                log.warning(
                    "tool_attempt_failed",
                    attempt=attempt,
                    error=str(e),
                    error_type=e.__class__.__name__,
                )
                continue

            # 6. Success
            elapsed = _elapsed_ms(started)
            log.debug("tool_succeeded", attempt=attempt, execution_time_ms=round(elapsed, 2))
            return ToolResult.ok(data, execution_id, elapsed)

        log.error("tool_execution_failed", attempts=retries + 1, error=str(last_error))
        details: dict[str, Any] = {
            "error": describe_exception(last_error),
            "attempts": retries + 1,
        }
        if isinstance(last_error, CompositeExecutionError):
            details["composite"] = {"code": last_error.code, "details": last_error.details}
        return ToolResult.fail(
            ErrorCode.EXECUTION_FAILED,
            str(last_error) or last_error.__class__.__name__,
            execution_id,
            _elapsed_ms(started),
            details=details,
        )

    async def _attempt(self, tool: Tool, params: Any, ctx: ToolContext, timeout_ms: int) -> Any:
        """One handler invocation raced against the timeout.

        On timeout a coroutine handler is cancelled; a thread-run handler is
        signalled through ``ctx.cancelled`` and its result discarded.
        """
        try:
            return await asyncio.wait_for(tool.invoke(params, ctx), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            ctx.cancel()
            raise ToolTimeoutError(tool.id, timeout_ms) from None
