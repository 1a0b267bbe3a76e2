"""System Tools."""

import os
import platform
import socket
import time
from typing import Any

from tron_security.levels import SecurityLevel
from tron_tools.base import ParameterSpec, ReturnSpec, Tool, ToolContext, ToolMetadata
from tron_tools.builtin.schemas import SystemInfoInput
from tron_tools.validation import schema_validator


def _uptime_seconds() -> float | None:
    """Host uptime, where the platform exposes it."""
    try:
        return time.clock_gettime(time.CLOCK_BOOTTIME)
    except (AttributeError, OSError):
        return None


def _cpu_info() -> dict[str, Any]:
    info: dict[str, Any] = {"count": os.cpu_count(), "model": platform.processor() or None}
    if hasattr(os, "getloadavg"):
        info["load_average"] = list(os.getloadavg())
    return info


def _memory_info() -> dict[str, Any] | None:
    # POSIX only
    try:
        page_size = os.sysconf("SC_PAGE_SIZE")
        total = os.sysconf("SC_PHYS_PAGES") * page_size
        free = os.sysconf("SC_AVPHYS_PAGES") * page_size
    except (AttributeError, ValueError, OSError):
        return None
    return {"total": total, "free": free, "used": total - free}


def create_system_info_tool() -> Tool:
    metadata = ToolMetadata(
        id="system.info",
        name="System Information",
        description="Gets information about the host system",
        category="System",
        tags=("system", "info", "monitoring"),
        parameters=(
            ParameterSpec(name="include_memory", type="boolean", default=True),
            ParameterSpec(name="include_cpu", type="boolean", default=True),
        ),
        returns=ReturnSpec(type="object", description="System information"),
        requires_auth=True,
        min_security_level=SecurityLevel.LOW,
        capabilities=("system.info", "monitoring.system"),
    )

    def handler(params: dict[str, Any], ctx: ToolContext) -> dict[str, Any]:
        input_obj = SystemInfoInput(**params)
        info: dict[str, Any] = {
            "platform": platform.system().lower(),
            "release": platform.release(),
            "hostname": socket.gethostname(),
            "arch": platform.machine(),
            "python_version": platform.python_version(),
            "uptime": _uptime_seconds(),
        }
        if input_obj.include_cpu:
            info["cpu"] = _cpu_info()
        if input_obj.include_memory:
            info["memory"] = _memory_info()
        return info

    return Tool(metadata, handler, validator=schema_validator(metadata))
