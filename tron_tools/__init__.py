"""Tron Tool Execution Engine.

Tool registry, capability resolution, the execution pipeline and the
composite plan interpreter.
"""

from tron_tools.base import (
    ParameterSpec,
    RateLimit,
    ReturnSpec,
    Tool,
    ToolContext,
    ToolMetadata,
    ToolProtocol,
)
from tron_tools.composite import CompositeStep, CompositeToolPlan
from tron_tools.engine import ToolEngine
from tron_tools.exceptions import (
    CompositeExecutionError,
    DuplicateToolError,
    InvalidPlanError,
    MappingError,
    ParameterValidationError,
    ToolSystemError,
)
from tron_tools.mapping import Const, KeyRef, PathRef, StepCondition, TransformRef
from tron_tools.options import ExecutionOptions, RequesterInfo
from tron_tools.registry import ToolCapability, ToolFilter, ToolRegistry
from tron_tools.results import ErrorCode, ToolError, ToolResult
from tron_tools.validation import schema_validator

__all__ = [
    "CompositeExecutionError",
    "CompositeStep",
    "CompositeToolPlan",
    "Const",
    "DuplicateToolError",
    "ErrorCode",
    "ExecutionOptions",
    "InvalidPlanError",
    "KeyRef",
    "MappingError",
    "ParameterSpec",
    "ParameterValidationError",
    "PathRef",
    "RateLimit",
    "RequesterInfo",
    "ReturnSpec",
    "StepCondition",
    "Tool",
    "ToolCapability",
    "ToolContext",
    "ToolEngine",
    "ToolError",
    "ToolFilter",
    "ToolMetadata",
    "ToolProtocol",
    "ToolRegistry",
    "ToolResult",
    "ToolSystemError",
    "TransformRef",
    "schema_validator",
]
