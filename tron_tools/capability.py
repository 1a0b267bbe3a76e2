"""Capability Resolver.

Several tools may advertise the same capability. The resolver prefers the
least-privileged, lowest-latency implementation:

1. ascending minimum security level
2. in-process (local) protocol before any remote protocol
3. descending version string (lexicographic)
"""

import uuid
from typing import Any

from tron_obs.logging import get_logger
from tron_tools.base import Tool, ToolProtocol
from tron_tools.options import ExecutionOptions
from tron_tools.pipeline import ExecutionPipeline
from tron_tools.registry import ToolRegistry
from tron_tools.results import ErrorCode, ToolResult

logger = get_logger(__name__)


class CapabilityResolver:
    """Selects and executes the best provider of a capability."""

    def __init__(self, registry: ToolRegistry, pipeline: ExecutionPipeline):
        self.registry = registry
        self.pipeline = pipeline

    def candidates(self, capability_id: str) -> list[Tool]:
        """Providers of a capability, best first."""
        tools = self.registry.filter_by_capability(capability_id)
        # Two stable passes: version descending, then level/protocol ascending.
        tools.sort(key=lambda t: t.metadata.version, reverse=True)
        tools.sort(
            key=lambda t: (
                t.metadata.min_security_level,
                t.metadata.protocol != ToolProtocol.LOCAL,
            )
        )
        return tools

    def resolve(self, capability_id: str) -> Tool | None:
        tools = self.candidates(capability_id)
        return tools[0] if tools else None

    async def execute_capability(
        self,
        capability_id: str,
        params: Any,
        options: ExecutionOptions | dict[str, Any] | None = None,
    ) -> ToolResult:
        tool = self.resolve(capability_id)
        if tool is None:
            logger.warning("capability_not_found", capability_id=capability_id)
            return ToolResult.fail(
                ErrorCode.CAPABILITY_NOT_FOUND,
                f"No tools provide capability {capability_id}",
                str(uuid.uuid4()),
            )

        logger.debug("capability_resolved", capability_id=capability_id, tool_id=tool.id)
        return await self.pipeline.execute(tool, params, options)
