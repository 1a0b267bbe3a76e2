"""Tool engine exceptions.

Only registry misuse and malformed plans escape the engine as
exceptions. Everything that happens during a call is reported inside a
``ToolResult``.
"""


class ToolSystemError(Exception):
    """Base exception for the tool engine."""

    pass


class DuplicateToolError(ToolSystemError):
    """A tool with the same id is already registered."""

    def __init__(self, tool_id: str):
        super().__init__(f"Tool with ID {tool_id} is already registered")
        self.tool_id = tool_id


class InvalidPlanError(ToolSystemError):
    """Composite plan is structurally invalid."""

    pass


class ParameterValidationError(ToolSystemError, ValueError):
    """Parameters rejected by a tool's validator."""

    pass


class MappingError(ToolSystemError):
    """A parameter or result mapping could not be evaluated."""

    pass


class ToolTimeoutError(ToolSystemError):
    """A handler attempt exceeded its timeout."""

    def __init__(self, tool_id: str, timeout_ms: int):
        super().__init__(f"Tool execution timed out after {timeout_ms}ms")
        self.tool_id = tool_id
        self.timeout_ms = timeout_ms


class CompositeExecutionError(ToolSystemError):
    """Raised by a composite tool's handler when its plan fails."""

    def __init__(self, message: str, code: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}
