"""Tool Interface & Metadata.

A tool is immutable metadata plus a handler. Handlers take
``(params, ctx)`` and may be coroutine functions or plain callables;
plain callables run in a worker thread so blocking I/O does not stall the
event loop.
"""

import asyncio
import inspect
import threading
import time
import uuid
from enum import Enum
from typing import Any, Awaitable, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from tron_security.levels import Credentials, SecurityLevel

ParamType = Literal["string", "number", "integer", "boolean", "object", "array"]

_JSON_TYPES = {
    "string": "string",
    "number": "number",
    "integer": "integer",
    "boolean": "boolean",
    "object": "object",
    "array": "array",
}


class ToolProtocol(str, Enum):
    """Declared execution protocol of a tool."""

    LOCAL = "local"  # In-process
    HTTP = "http"
    GRPC = "grpc"
    SHELL = "shell"
    PYTHON = "python"  # Sub-process
    PLUGIN = "plugin"
    COMPOSITE = "composite"


class ParameterSpec(BaseModel):
    """Declared tool parameter with optional constraints."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ParamType = "string"
    description: str = ""
    required: bool = False
    default: Any = None
    enum: tuple[Any, ...] | None = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: float | None = None
    maximum: float | None = None
    pattern: str | None = None
    format: str | None = None

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": _JSON_TYPES[self.type]}
        if self.description:
            schema["description"] = self.description
        if self.default is not None:
            schema["default"] = self.default
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.min_length is not None:
            schema["minLength"] = self.min_length
        if self.max_length is not None:
            schema["maxLength"] = self.max_length
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        if self.pattern is not None:
            schema["pattern"] = self.pattern
        if self.format is not None:
            schema["format"] = self.format
        return schema


class ReturnSpec(BaseModel):
    """Return type descriptor."""

    model_config = ConfigDict(frozen=True)

    type: ParamType = "object"
    description: str = ""


class RateLimit(BaseModel):
    """Max requests per rolling period."""

    model_config = ConfigDict(frozen=True)

    requests: int = Field(gt=0)
    period_ms: int = Field(gt=0)


class ToolMetadata(BaseModel):
    """Immutable tool descriptor, owned by the registry once registered."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    description: str = ""
    version: str = "1.0.0"
    author: str | None = None
    category: str = "general"
    tags: tuple[str, ...] = ()
    parameters: tuple[ParameterSpec, ...] = ()
    returns: ReturnSpec = Field(default_factory=ReturnSpec)
    protocol: ToolProtocol = ToolProtocol.LOCAL
    protocol_config: dict[str, Any] = Field(default_factory=dict)
    requires_auth: bool = False
    min_security_level: SecurityLevel = SecurityLevel.PUBLIC
    timeout_ms: int | None = Field(default=None, gt=0)
    rate_limit: RateLimit | None = None
    capabilities: tuple[str, ...] = ()

    def input_schema(self) -> dict[str, Any]:
        """Parameter specs rendered as a JSON Schema object."""
        return {
            "type": "object",
            "properties": {p.name: p.to_json_schema() for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required],
        }

    def to_function_definition(self) -> dict[str, Any]:
        """OpenAI-style function definition for exposing the tool to an LLM."""
        return {
            "name": self.id,
            "description": self.description or self.name,
            "parameters": self.input_schema(),
        }


class ToolContext(BaseModel):
    """Per-invocation context handed to a handler.

    ``cancelled`` flips when the pipeline gives up on the attempt (timeout).
    Coroutine handlers are cancelled outright; thread-run handlers should
    poll ``cancelled`` or ``remaining_ms()`` during long work.
    """

    execution_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    requester_id: str = "anonymous"
    credentials: Credentials | None = None
    start_time: float = Field(default_factory=time.time)
    parent_execution_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    deadline: float | None = None  # time.monotonic() based
    attempt: int = 0

    _cancel_event: threading.Event = PrivateAttr(default_factory=threading.Event)

    @property
    def cancelled(self) -> bool:
        if self._cancel_event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def cancel(self) -> None:
        self._cancel_event.set()

    def remaining_ms(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, (self.deadline - time.monotonic()) * 1000)


Handler = Callable[[dict[str, Any], ToolContext], Any]
Validator = Callable[[dict[str, Any]], bool]
Hook = Callable[[], Awaitable[None] | None]


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Tool:
    """Registered unit of capability: metadata, handler, optional hooks."""

    def __init__(
        self,
        metadata: ToolMetadata,
        handler: Handler,
        validator: Validator | None = None,
        initializer: Hook | None = None,
        shutdown: Hook | None = None,
        initialized: bool = False,
    ):
        self.metadata = metadata
        self.handler = handler
        self.validator = validator
        self.initializer = initializer
        self.shutdown_hook = shutdown
        self.initialized = initialized
        self._init_lock: asyncio.Lock | None = None
        self._init_loop: asyncio.AbstractEventLoop | None = None

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def name(self) -> str:
        return self.metadata.name

    def __repr__(self) -> str:
        return f"Tool(id={self.id!r}, version={self.metadata.version!r})"

    def _lock_for_running_loop(self) -> asyncio.Lock:
        # asyncio locks bind to the loop they are first contended on
        loop = asyncio.get_running_loop()
        if self._init_lock is None or self._init_loop is not loop:
            self._init_lock = asyncio.Lock()
            self._init_loop = loop
        return self._init_lock

    async def ensure_initialized(self) -> bool:
        """Run the initializer once. Returns True if it ran on this call."""
        if self.initialized or self.initializer is None:
            return False
        async with self._lock_for_running_loop():
            if self.initialized:
                return False
            await maybe_await(self.initializer())
            self.initialized = True
            return True

    async def invoke(self, params: dict[str, Any], ctx: ToolContext) -> Any:
        """Run the handler once, without timeout or retry."""
        if inspect.iscoroutinefunction(self.handler):
            return await self.handler(params, ctx)
        return await maybe_await(await asyncio.to_thread(self.handler, params, ctx))

    async def shutdown(self) -> None:
        if self.shutdown_hook is not None:
            await maybe_await(self.shutdown_hook())
