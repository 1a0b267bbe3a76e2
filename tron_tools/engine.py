"""Tool Engine.

Composition root for the tool execution engine. Build one per process (or
per test) and pass it to agents and plugins; there is no global instance.

Example:
    engine = ToolEngine(authorizer=ClearanceAuthorizer())
    engine.register_tool(my_tool)
    result = await engine.execute_tool("my.tool", {"value": 1})
"""

import uuid
from typing import Any, Callable, Mapping

from tron_config.settings import Settings
from tron_obs.logging import get_logger
from tron_obs.metrics import ToolMetrics
from tron_security.authorizer import Authorizer
from tron_tools.auth import AuthorizationGate
from tron_tools.base import Tool, ToolMetadata
from tron_tools.capability import CapabilityResolver
from tron_tools.composite import CompositePlanInterpreter, CompositeToolPlan, build_composite_tool
from tron_tools.mapping import TransformRegistry
from tron_tools.options import ExecutionOptions
from tron_tools.pipeline import ExecutionPipeline
from tron_tools.rate_limit import RateLimiter
from tron_tools.registry import ToolCapability, ToolFilter, ToolRegistry
from tron_tools.results import ErrorCode, ToolResult

logger = get_logger(__name__)

Options = ExecutionOptions | Mapping[str, Any] | None


class ToolEngine:
    """Caller surface of the tool execution engine."""

    def __init__(
        self,
        settings: Settings | None = None,
        authorizer: Authorizer | None = None,
        registry: ToolRegistry | None = None,
        rate_limiter: RateLimiter | None = None,
        transforms: TransformRegistry | None = None,
    ):
        self.settings = settings or Settings()
        self.metrics = ToolMetrics(self.settings.METRICS_ENABLED)
        self.registry = registry or ToolRegistry(self.metrics)
        self.rate_limiter = rate_limiter or RateLimiter()
        self.transforms = transforms or TransformRegistry()
        self.auth_gate = AuthorizationGate(authorizer)
        self.pipeline = ExecutionPipeline(
            self.rate_limiter, self.auth_gate, self.settings, self.metrics
        )
        self.resolver = CapabilityResolver(self.registry, self.pipeline)
        self.interpreter = CompositePlanInterpreter(
            self.registry, self.pipeline, self.resolver, self.transforms
        )

    # ========================================================================
    # CONFIGURATION
    # ========================================================================

    @property
    def authorizer(self) -> Authorizer | None:
        return self.auth_gate.authorizer

    def set_authorizer(self, authorizer: Authorizer | None) -> None:
        self.auth_gate.authorizer = authorizer

    def register_transform(self, name: str, fn: Callable[[Any], Any], replace: bool = False) -> None:
        """Expose a pure function to composite plans under ``name``."""
        self.transforms.register(name, fn, replace=replace)

    # ========================================================================
    # REGISTRATION & DISCOVERY
    # ========================================================================

    def register_tool(self, tool: Tool) -> None:
        """Register a tool. Raises DuplicateToolError if the id is taken."""
        self.registry.register(tool)

    def unregister_tool(self, tool_id: str) -> bool:
        removed = self.registry.unregister(tool_id)
        if removed:
            self.rate_limiter.reset(tool_id)
        return removed

    def get_tool(self, tool_id: str) -> Tool | None:
        return self.registry.get(tool_id)

    def discover_tools(
        self, tool_filter: ToolFilter | Mapping[str, Any] | None = None
    ) -> list[ToolMetadata]:
        if tool_filter is not None and not isinstance(tool_filter, ToolFilter):
            tool_filter = ToolFilter.model_validate(tool_filter)
        return self.registry.discover(tool_filter)

    def discover_capabilities(self, tags: list[str] | None = None) -> list[ToolCapability]:
        return self.registry.discover_capabilities(tags)

    def create_composite_tool(
        self,
        metadata: ToolMetadata,
        plan: CompositeToolPlan | Mapping[str, Any],
        parameter_mapping: dict[str, str] | None = None,
    ) -> Tool:
        """Build a composite tool from a plan and register it.

        Raises:
            InvalidPlanError: If the plan does not validate
            DuplicateToolError: If the id is taken
        """
        plan = CompositeToolPlan.coerce(plan)
        tool = build_composite_tool(metadata, plan, self.interpreter, parameter_mapping)
        self.registry.register(tool)
        return tool

    # ========================================================================
    # EXECUTION
    # ========================================================================

    async def execute_tool(self, tool_id: str, params: Any = None, options: Options = None) -> ToolResult:
        tool = self.registry.get(tool_id)
        if tool is None:
            logger.warning("tool_not_found", tool_id=tool_id)
            return ToolResult.fail(
                ErrorCode.TOOL_NOT_FOUND,
                f"Tool with ID {tool_id} not found",
                str(uuid.uuid4()),
            )
        return await self.pipeline.execute(tool, params, options)

    async def execute_capability(
        self, capability_id: str, params: Any = None, options: Options = None
    ) -> ToolResult:
        return await self.resolver.execute_capability(capability_id, params, options)

    async def execute_composite(
        self,
        plan: CompositeToolPlan | Mapping[str, Any],
        initial_params: Mapping[str, Any] | None = None,
        options: Options = None,
    ) -> ToolResult:
        return await self.interpreter.execute(plan, initial_params, options)

    async def shutdown(self) -> None:
        """Run every registered tool's shutdown hook."""
        for tool in self.registry.list_tools():
            try:
                await tool.shutdown()
            except Exception as e:
                logger.error("tool_shutdown_failed", tool_id=tool.id, error=str(e))
