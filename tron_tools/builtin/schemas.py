"""Built-in Tool Schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ReadFileInput(BaseModel):
    """Input for file.read."""

    file_path: str = Field(..., min_length=1)
    encoding: str = "utf-8"


class WriteFileInput(BaseModel):
    """Input for file.write."""

    file_path: str = Field(..., min_length=1)
    content: str
    encoding: str = "utf-8"
    create_path: bool = False


class ListDirectoryInput(BaseModel):
    """Input for file.list."""

    directory_path: str = Field(..., min_length=1)
    recursive: bool = False
    pattern: str | None = None  # Substring match on the entry path


class FileInfo(BaseModel):
    """Directory entry returned by file.list."""

    name: str
    path: str
    is_directory: bool
    size: int | None = None
    modified_time: datetime | None = None


class HttpRequestInput(BaseModel):
    """Input for network.http."""

    url: str = Field(..., min_length=1)
    method: Literal["GET", "POST", "PUT", "DELETE", "PATCH"] = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body: dict[str, Any] | None = None
    timeout: float | None = Field(default=None, gt=0, description="Seconds")


class HttpResponseOutput(BaseModel):
    """Response returned by network.http."""

    status: int
    status_text: str
    headers: dict[str, str]
    data: Any = None


class SystemInfoInput(BaseModel):
    """Input for system.info."""

    include_memory: bool = True
    include_cpu: bool = True


class JsonParseInput(BaseModel):
    """Input for data.json.parse."""

    input: str = Field(..., min_length=1)
