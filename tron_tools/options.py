"""Per-call execution options."""

from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from tron_security.levels import Credentials


class RequesterInfo(BaseModel):
    """Who is calling, with credentials already resolved upstream."""

    model_config = ConfigDict(frozen=True)

    id: str
    credentials: Credentials | None = None


class ExecutionOptions(BaseModel):
    """Overrides for a single engine call.

    Unset values fall back to the tool's metadata, then to Settings. Mappings
    may use the camelCase names (``timeout``, ``requesterInfo``,
    ``parentExecutionId``) as well; unknown keys are rejected.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout_ms: int | None = Field(
        default=None, gt=0, validation_alias=AliasChoices("timeout_ms", "timeout")
    )
    retries: int | None = Field(default=None, ge=0)
    requester: RequesterInfo | None = Field(
        default=None, validation_alias=AliasChoices("requester", "requesterInfo")
    )
    parent_execution_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("parent_execution_id", "parentExecutionId"),
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def coerce(cls, options: "ExecutionOptions | Mapping[str, Any] | None") -> "ExecutionOptions":
        """Accept an instance, a plain mapping or None.

        Raises:
            ValueError: If the mapping has unknown keys or invalid values
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(options)

    @property
    def credentials(self) -> Credentials | None:
        return self.requester.credentials if self.requester else None

    def for_child(self, parent_execution_id: str) -> "ExecutionOptions":
        """Options for a sub-call made on behalf of ``parent_execution_id``."""
        return self.model_copy(update={"parent_execution_id": parent_execution_id})
