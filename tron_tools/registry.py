"""Tool Registry.

Holds tool instances keyed by id and the capability index derived from
them. Discovery preserves registration order.
"""

import threading

from pydantic import BaseModel, ConfigDict, Field

from tron_obs.logging import get_logger
from tron_obs.metrics import ToolMetrics
from tron_security.levels import SecurityLevel
from tron_tools.base import ParameterSpec, ReturnSpec, Tool, ToolMetadata, ToolProtocol
from tron_tools.exceptions import DuplicateToolError

logger = get_logger(__name__)


class ToolCapability(BaseModel):
    """Capability view synthesized from the first tool advertising it."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    parameters: tuple[ParameterSpec, ...] = ()
    returns: ReturnSpec = Field(default_factory=ReturnSpec)
    tags: tuple[str, ...] = ()
    min_security_level: SecurityLevel = SecurityLevel.PUBLIC

    @classmethod
    def from_tool(cls, capability_id: str, metadata: ToolMetadata) -> "ToolCapability":
        return cls(
            id=capability_id,
            name=capability_id,
            description=f"Capability provided by {metadata.name}",
            parameters=metadata.parameters,
            returns=metadata.returns,
            tags=metadata.tags,
            min_security_level=metadata.min_security_level,
        )


class ToolFilter(BaseModel):
    """Discovery filter. Unset (or empty) fields impose no constraint."""

    category: str | None = None
    tags: list[str] | None = None
    capabilities: list[str] | None = None
    protocol: ToolProtocol | None = None
    requires_auth: bool | None = None
    max_security_level: SecurityLevel | None = None

    def matches(self, metadata: ToolMetadata) -> bool:
        if self.category is not None and metadata.category != self.category:
            return False
        if self.tags and not set(self.tags) & set(metadata.tags):
            return False
        if self.capabilities and not set(self.capabilities) & set(metadata.capabilities):
            return False
        if self.protocol is not None and metadata.protocol != self.protocol:
            return False
        if self.requires_auth is not None and metadata.requires_auth != self.requires_auth:
            return False
        if (
            self.max_security_level is not None
            and metadata.min_security_level > self.max_security_level
        ):
            return False
        return True


class ToolRegistry:
    """Tool registry with capability-based lookup."""

    def __init__(self, metrics: ToolMetrics | None = None):
        self.metrics = metrics or ToolMetrics()
        self._tools: dict[str, Tool] = {}
        self._capabilities: dict[str, ToolCapability] = {}
        self._lock = threading.RLock()

    def register(self, tool: Tool) -> None:
        """Register a tool.

        Raises:
            DuplicateToolError: If a tool with the same id exists
        """
        metadata = tool.metadata
        with self._lock:
            if metadata.id in self._tools:
                raise DuplicateToolError(metadata.id)

            self._tools[metadata.id] = tool
            for capability_id in metadata.capabilities:
                if capability_id not in self._capabilities:
                    self._capabilities[capability_id] = ToolCapability.from_tool(
                        capability_id, metadata
                    )
            self.metrics.registered(len(self._tools))

        logger.info(
            "tool_registered",
            tool_id=metadata.id,
            tool_name=metadata.name,
            capabilities=list(metadata.capabilities),
        )

    def unregister(self, tool_id: str) -> bool:
        """Remove a tool. Returns False if the id is unknown."""
        with self._lock:
            tool = self._tools.pop(tool_id, None)
            if tool is None:
                return False

            for capability_id in tool.metadata.capabilities:
                still_provided = any(
                    capability_id in other.metadata.capabilities
                    for other in self._tools.values()
                )
                if not still_provided:
                    self._capabilities.pop(capability_id, None)
            self.metrics.registered(len(self._tools))

        logger.info("tool_unregistered", tool_id=tool_id, tool_name=tool.metadata.name)
        return True

    def get(self, tool_id: str) -> Tool | None:
        """Get tool by id."""
        with self._lock:
            return self._tools.get(tool_id)

    def __contains__(self, tool_id: object) -> bool:
        with self._lock:
            return tool_id in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def list_tools(self) -> list[Tool]:
        """All tools in registration order."""
        with self._lock:
            return list(self._tools.values())

    def filter_by_capability(self, capability: str) -> list[Tool]:
        """Tools advertising a capability, in registration order."""
        with self._lock:
            return [t for t in self._tools.values() if capability in t.metadata.capabilities]

    def discover(self, tool_filter: ToolFilter | None = None) -> list[ToolMetadata]:
        """Metadata of every tool matching all supplied filter fields."""
        with self._lock:
            metadata = [t.metadata for t in self._tools.values()]
        if tool_filter is None:
            return metadata
        return [m for m in metadata if tool_filter.matches(m)]

    def get_capability(self, capability_id: str) -> ToolCapability | None:
        with self._lock:
            return self._capabilities.get(capability_id)

    def discover_capabilities(self, tags: list[str] | None = None) -> list[ToolCapability]:
        """Known capabilities, optionally those sharing a tag with ``tags``."""
        with self._lock:
            capabilities = list(self._capabilities.values())
        if not tags:
            return capabilities
        wanted = set(tags)
        return [c for c in capabilities if wanted & set(c.tags)]
