"""File System Tools.

Handlers are blocking and run in a worker thread. When a file root is
configured, paths outside it are refused.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from tron_security.levels import SecurityLevel
from tron_tools.base import ParameterSpec, ReturnSpec, Tool, ToolContext, ToolMetadata
from tron_tools.builtin.schemas import (
    FileInfo,
    ListDirectoryInput,
    ReadFileInput,
    WriteFileInput,
)
from tron_tools.validation import schema_validator

CATEGORY = "File System"


def resolve_path(raw: str, root: str | None) -> Path:
    """Resolve ``raw``, enforcing the optional sandbox root.

    Raises:
        PermissionError: If the path escapes ``root``
    """
    path = Path(raw).expanduser()
    if not root:
        return path
    base = Path(root).expanduser().resolve()
    resolved = (base / path).resolve() if not path.is_absolute() else path.resolve()
    if resolved != base and base not in resolved.parents:
        raise PermissionError(f"Path {raw} is outside the allowed root")
    return resolved


def create_read_file_tool(root: str | None = None) -> Tool:
    metadata = ToolMetadata(
        id="file.read",
        name="Read File",
        description="Reads the contents of a file from the file system",
        category=CATEGORY,
        tags=("file", "io", "read"),
        parameters=(
            ParameterSpec(
                name="file_path",
                type="string",
                description="The path to the file to read",
                required=True,
                min_length=1,
            ),
            ParameterSpec(name="encoding", type="string", default="utf-8"),
        ),
        returns=ReturnSpec(type="string", description="The contents of the file"),
        requires_auth=True,
        min_security_level=SecurityLevel.MEDIUM,
        capabilities=("file.read", "io.read"),
    )

    def handler(params: dict[str, Any], ctx: ToolContext) -> str:
        input_obj = ReadFileInput(**params)
        path = resolve_path(input_obj.file_path, root)
        return path.read_text(encoding=input_obj.encoding)

    return Tool(metadata, handler, validator=schema_validator(metadata))


def create_write_file_tool(root: str | None = None) -> Tool:
    metadata = ToolMetadata(
        id="file.write",
        name="Write File",
        description="Writes content to a file in the file system",
        category=CATEGORY,
        tags=("file", "io", "write"),
        parameters=(
            ParameterSpec(name="file_path", type="string", required=True, min_length=1),
            ParameterSpec(name="content", type="string", required=True),
            ParameterSpec(name="encoding", type="string", default="utf-8"),
            ParameterSpec(
                name="create_path",
                type="boolean",
                description="Create missing parent directories",
                default=False,
            ),
        ),
        returns=ReturnSpec(type="boolean", description="True if the file was written"),
        requires_auth=True,
        min_security_level=SecurityLevel.HIGH,
        capabilities=("file.write", "io.write"),
    )

    def handler(params: dict[str, Any], ctx: ToolContext) -> bool:
        input_obj = WriteFileInput(**params)
        path = resolve_path(input_obj.file_path, root)
        if input_obj.create_path:
            path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(input_obj.content, encoding=input_obj.encoding)
        return True

    return Tool(metadata, handler, validator=schema_validator(metadata))


def _describe(entry: Path) -> FileInfo:
    info = FileInfo(name=entry.name, path=str(entry), is_directory=entry.is_dir())
    try:
        stat = entry.stat()
    except OSError:
        return info
    info.size = stat.st_size
    info.modified_time = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
    return info


def create_list_directory_tool(root: str | None = None) -> Tool:
    metadata = ToolMetadata(
        id="file.list",
        name="List Directory",
        description="Lists files and directories in a specified directory",
        category=CATEGORY,
        tags=("file", "directory", "list"),
        parameters=(
            ParameterSpec(name="directory_path", type="string", required=True, min_length=1),
            ParameterSpec(name="recursive", type="boolean", default=False),
            ParameterSpec(
                name="pattern",
                type="string",
                description="Only entries whose path contains this text",
            ),
        ),
        returns=ReturnSpec(type="array", description="File and directory information"),
        requires_auth=True,
        min_security_level=SecurityLevel.MEDIUM,
        capabilities=("file.list", "directory.list"),
    )

    def handler(params: dict[str, Any], ctx: ToolContext) -> list[dict[str, Any]]:
        input_obj = ListDirectoryInput(**params)
        directory = resolve_path(input_obj.directory_path, root)
        entries = directory.rglob("*") if input_obj.recursive else directory.iterdir()

        listing = []
        for entry in sorted(entries):
            if ctx.cancelled:
                break
            if input_obj.pattern and input_obj.pattern not in str(entry):
                continue
            listing.append(_describe(entry).model_dump(mode="json"))
        return listing

    return Tool(metadata, handler, validator=schema_validator(metadata))
