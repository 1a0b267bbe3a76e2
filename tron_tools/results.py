"""Tool result envelope and error codes."""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Failure codes surfaced inside a failed ToolResult."""

    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    CAPABILITY_NOT_FOUND = "CAPABILITY_NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SECURITY_MODULE_NOT_CONFIGURED = "SECURITY_MODULE_NOT_CONFIGURED"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    INSUFFICIENT_SECURITY_LEVEL = "INSUFFICIENT_SECURITY_LEVEL"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    INITIALIZATION_FAILED = "INITIALIZATION_FAILED"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
    COMPOSITE_STEP_FAILED = "COMPOSITE_STEP_FAILED"
    COMPOSITE_EXECUTION_ERROR = "COMPOSITE_EXECUTION_ERROR"


class ToolError(BaseModel):
    """Error carried by a failed result."""

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None


class ToolResult(BaseModel, Generic[T]):
    """Outcome of any engine call: direct, capability-resolved or composite.

    Failed results are complete too (execution id and time are always set)
    so callers can trace them uniformly.
    """

    success: bool
    data: T | None = None
    error: ToolError | None = None
    execution_time_ms: float = Field(default=0.0, ge=0)
    execution_id: str

    @classmethod
    def ok(cls, data: Any, execution_id: str, execution_time_ms: float) -> "ToolResult":
        return cls(
            success=True,
            data=data,
            execution_id=execution_id,
            execution_time_ms=execution_time_ms,
        )

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        message: str,
        execution_id: str,
        execution_time_ms: float = 0.0,
        details: dict[str, Any] | None = None,
    ) -> "ToolResult":
        return cls(
            success=False,
            error=ToolError(code=code, message=message, details=details),
            execution_id=execution_id,
            execution_time_ms=execution_time_ms,
        )

    @property
    def error_code(self) -> ErrorCode | None:
        return self.error.code if self.error else None


def describe_exception(exc: BaseException) -> dict[str, Any]:
    """JSON-safe description of an exception for result details."""
    message = str(exc) or exc.__class__.__name__
    return {"type": exc.__class__.__name__, "message": message}
