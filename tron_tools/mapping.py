"""Composite plan mappings, transforms and step conditions.

Plans never carry executable code. A value is produced by one of a closed
set of serializable mapping kinds:

- ``KeyRef``: copy a key of the results map verbatim
- ``PathRef``: extract a nested value, e.g. ``step0.items[0].name``
- ``TransformRef``: apply a named pure function from a TransformRegistry
- ``Const``: a literal

A bare string wherever a mapping is expected is shorthand for ``KeyRef``.
"""

import json
import re
from typing import Annotated, Any, Callable, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tron_tools.exceptions import MappingError

_PATH_RE = re.compile(r"(?:[^.\[\]]+|\[\d+\])(?:\.[^.\[\]]+|\[\d+\])*")
_TOKEN_RE = re.compile(r"([^.\[\]]+)|\[(\d+)\]")

_MISSING = object()


def _parse_path(path: str) -> list[str | int]:
    tokens: list[str | int] = []
    for name, index in _TOKEN_RE.findall(path):
        tokens.append(int(index) if index else name)
    return tokens


def _lookup(value: Any, token: str | int) -> Any:
    if isinstance(token, int):
        if isinstance(value, (list, tuple)) and -len(value) <= token < len(value):
            return value[token]
        return _MISSING
    if isinstance(value, Mapping):
        return value.get(token, _MISSING)
    if isinstance(value, BaseModel):
        return getattr(value, token, _MISSING)
    return _MISSING


def resolve_path(data: Any, path: str) -> Any:
    """Resolve a dotted/indexed path.

    Raises:
        MappingError: If any segment is missing
    """
    value = data
    for token in _parse_path(path):
        value = _lookup(value, token)
        if value is _MISSING:
            raise MappingError(f"Path '{path}' not found (missing '{token}')")
    return value


def _check_path(path: str) -> str:
    if not _PATH_RE.fullmatch(path):
        raise ValueError(f"Invalid path expression: {path!r}")
    return path


# ============================================================================
# TRANSFORMS
# ============================================================================


def _first(value: Any) -> Any:
    return value[0] if value else None


def _last(value: Any) -> Any:
    return value[-1] if value else None


BUILTIN_TRANSFORMS: dict[str, Callable[[Any], Any]] = {
    "identity": lambda value: value,
    "json.dumps": lambda value: json.dumps(value, separators=(",", ":")),
    "json.loads": json.loads,
    "str": str,
    "upper": lambda value: str(value).upper(),
    "lower": lambda value: str(value).lower(),
    "strip": lambda value: str(value).strip(),
    "len": len,
    "int": int,
    "float": float,
    "bool": bool,
    "keys": lambda value: list(value.keys()),
    "values": lambda value: list(value.values()),
    "first": _first,
    "last": _last,
    "sorted": sorted,
}


class TransformRegistry:
    """Named pure functions available to TransformRef mappings."""

    def __init__(self, include_builtins: bool = True):
        self._transforms: dict[str, Callable[[Any], Any]] = (
            dict(BUILTIN_TRANSFORMS) if include_builtins else {}
        )

    def register(self, name: str, fn: Callable[[Any], Any], replace: bool = False) -> None:
        if name in self._transforms and not replace:
            raise ValueError(f"Transform '{name}' is already registered")
        self._transforms[name] = fn

    def get(self, name: str) -> Callable[[Any], Any]:
        try:
            return self._transforms[name]
        except KeyError:
            raise MappingError(f"Unknown transform '{name}'") from None

    def names(self) -> list[str]:
        return sorted(self._transforms)

    def __contains__(self, name: object) -> bool:
        return name in self._transforms


# ============================================================================
# MAPPING KINDS
# ============================================================================


class KeyRef(BaseModel):
    """Copy a key verbatim. Missing keys map to None."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["key"] = "key"
    key: str

    def evaluate(self, scope: Any, transforms: TransformRegistry) -> Any:
        if isinstance(scope, Mapping):
            return scope.get(self.key)
        return getattr(scope, self.key, None)


class PathRef(BaseModel):
    """Extract a nested value. Missing paths fail unless a default is set."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["path"] = "path"
    path: str
    default: Any = None

    @field_validator("path")
    @classmethod
    def validate_path(cls, value: str) -> str:
        return _check_path(value)

    def evaluate(self, scope: Any, transforms: TransformRegistry) -> Any:
        try:
            return resolve_path(scope, self.path)
        except MappingError:
            if "default" in self.model_fields_set:
                return self.default
            raise


class Const(BaseModel):
    """Literal value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["const"] = "const"
    value: Any = None

    def evaluate(self, scope: Any, transforms: TransformRegistry) -> Any:
        return self.value


class TransformRef(BaseModel):
    """Apply a registered transform to another mapping's value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["transform"] = "transform"
    transform: str
    source: "ValueMapping"

    @field_validator("source", mode="before")
    @classmethod
    def key_shorthand(cls, value: Any) -> Any:
        return coerce_mapping(value)

    def evaluate(self, scope: Any, transforms: TransformRegistry) -> Any:
        fn = transforms.get(self.transform)
        value = self.source.evaluate(scope, transforms)
        try:
            return fn(value)
        except Exception as e:
            raise MappingError(f"Transform '{self.transform}' failed: {e}") from e


ValueMapping = Annotated[
    Union[KeyRef, PathRef, TransformRef, Const], Field(discriminator="kind")
]

TransformRef.model_rebuild()


def coerce_mapping(value: Any) -> Any:
    """Turn the bare-string shorthand into a KeyRef."""
    if isinstance(value, str):
        return KeyRef(key=value)
    return value


# ============================================================================
# CONDITIONS
# ============================================================================

ConditionOp = Literal["exists", "missing", "truthy", "falsy", "eq", "ne", "in", "gt", "lt"]


class StepCondition(BaseModel):
    """Predicate over the results map deciding whether a step runs."""

    model_config = ConfigDict(frozen=True)

    path: str
    op: ConditionOp = "truthy"
    value: Any = None

    @field_validator("path")
    @classmethod
    def validate_path(cls, value: str) -> str:
        return _check_path(value)

    def evaluate(self, scope: Any) -> bool:
        try:
            actual = resolve_path(scope, self.path)
        except MappingError:
            actual = _MISSING

        if self.op == "exists":
            return actual is not _MISSING
        if self.op == "missing":
            return actual is _MISSING
        if actual is _MISSING:
            # Absent values are falsy and never equal, contained or ordered.
            return self.op in ("falsy", "ne")

        try:
            if self.op == "truthy":
                return bool(actual)
            if self.op == "falsy":
                return not actual
            if self.op == "eq":
                return actual == self.value
            if self.op == "ne":
                return actual != self.value
            if self.op == "in":
                return actual in self.value
            if self.op == "gt":
                return actual > self.value
            return actual < self.value
        except TypeError as e:
            raise MappingError(f"Condition '{self.op}' on '{self.path}' failed: {e}") from e
