"""Built-in tools: file system, network, system and data.

Example:
    engine = ToolEngine()
    register_builtin_tools(engine)
"""

from typing import TYPE_CHECKING

from tron_config.settings import Settings
from tron_obs.logging import get_logger
from tron_tools.base import Tool
from tron_tools.builtin.data import create_json_parse_tool
from tron_tools.builtin.files import (
    create_list_directory_tool,
    create_read_file_tool,
    create_write_file_tool,
)
from tron_tools.builtin.network import create_http_request_tool
from tron_tools.builtin.system import create_system_info_tool

if TYPE_CHECKING:
    from tron_tools.engine import ToolEngine

logger = get_logger(__name__)


def create_builtin_tools(settings: Settings) -> list[Tool]:
    root = settings.BUILTIN_FILE_ROOT or None
    return [
        create_read_file_tool(root),
        create_write_file_tool(root),
        create_list_directory_tool(root),
        create_http_request_tool(settings.BUILTIN_HTTP_TIMEOUT_SECONDS),
        create_system_info_tool(),
        create_json_parse_tool(),
    ]


def register_builtin_tools(engine: "ToolEngine", settings: Settings | None = None) -> list[str]:
    """Register every built-in tool with ``engine``.

    Returns:
        Registered tool ids

    Raises:
        DuplicateToolError: If a built-in id is already registered
    """
    tools = create_builtin_tools(settings or engine.settings)
    for tool in tools:
        engine.register_tool(tool)
    logger.info("builtin_tools_registered", count=len(tools))
    return [tool.id for tool in tools]


__all__ = ["create_builtin_tools", "register_builtin_tools"]
