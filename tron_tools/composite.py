"""Composite Plan Interpreter.

Executes a plan of steps over a shared results map. The map starts as a
copy of the initial params and gains a ``step<N>`` entry per completed
step; it is the only channel between steps.

Sequential plans run in order and stop at the first failing step.
Parallel plans evaluate every condition and parameter mapping against the
initial params only, run the steps concurrently and either merge all
results or fail as a whole.
"""

import asyncio
import time
import uuid
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from tron_obs.logging import get_logger, log_context
from tron_obs.tracing import get_tracer
from tron_tools.base import Tool, ToolContext, ToolMetadata, ToolProtocol
from tron_tools.capability import CapabilityResolver
from tron_tools.exceptions import CompositeExecutionError, InvalidPlanError, MappingError
from tron_tools.mapping import StepCondition, TransformRegistry, ValueMapping, coerce_mapping
from tron_tools.options import ExecutionOptions, RequesterInfo
from tron_tools.pipeline import ExecutionPipeline
from tron_tools.registry import ToolRegistry
from tron_tools.results import ErrorCode, ToolResult, describe_exception

logger = get_logger(__name__)
tracer = get_tracer(__name__)


def step_key(index: int) -> str:
    return f"step{index}"


class CompositeStep(BaseModel):
    """One plan node: a target, its input mapping, optional result mapping and condition."""

    model_config = ConfigDict(frozen=True)

    tool_id: str | None = None
    capability: str | None = None
    parameter_mapping: dict[str, ValueMapping] = Field(default_factory=dict)
    result_mapping: ValueMapping | None = None
    condition: StepCondition | None = None

    @field_validator("parameter_mapping", mode="before")
    @classmethod
    def expand_parameter_shorthand(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {name: coerce_mapping(mapping) for name, mapping in value.items()}
        return value

    @field_validator("result_mapping", mode="before")
    @classmethod
    def expand_result_shorthand(cls, value: Any) -> Any:
        return coerce_mapping(value)

    @model_validator(mode="after")
    def check_target(self) -> "CompositeStep":
        if (self.tool_id is None) == (self.capability is None):
            raise ValueError("A step needs exactly one of tool_id or capability")
        return self

    @property
    def target(self) -> str:
        return self.tool_id or self.capability


class CompositeToolPlan(BaseModel):
    """Ordered steps plus the execution mode."""

    model_config = ConfigDict(frozen=True)

    steps: list[CompositeStep] = Field(default_factory=list)
    parallel: bool = False

    @classmethod
    def coerce(cls, plan: "CompositeToolPlan | Mapping[str, Any]") -> "CompositeToolPlan":
        """Accept a plan or its serialized form.

        Raises:
            InvalidPlanError: If the plan does not validate
        """
        if isinstance(plan, cls):
            return plan
        try:
            return cls.model_validate(plan)
        except ValidationError as e:
            raise InvalidPlanError(f"Invalid composite plan: {e}") from e


class CompositePlanInterpreter:
    """Runs composite plans through the execution pipeline."""

    def __init__(
        self,
        registry: ToolRegistry,
        pipeline: ExecutionPipeline,
        resolver: CapabilityResolver,
        transforms: TransformRegistry,
    ):
        self.registry = registry
        self.pipeline = pipeline
        self.resolver = resolver
        self.transforms = transforms

    async def execute(
        self,
        plan: CompositeToolPlan | Mapping[str, Any],
        initial_params: Mapping[str, Any] | None = None,
        options: ExecutionOptions | dict[str, Any] | None = None,
    ) -> ToolResult:
        execution_id = str(uuid.uuid4())
        started = time.monotonic()

        def fail(code: ErrorCode, message: str, details: dict | None = None) -> ToolResult:
            return ToolResult.fail(
                code, message, execution_id, (time.monotonic() - started) * 1000, details
            )

        try:
            plan = CompositeToolPlan.coerce(plan)
            options = ExecutionOptions.coerce(options)
            if initial_params is not None and not isinstance(initial_params, Mapping):
                raise TypeError(
                    f"Initial params must be a mapping, not {type(initial_params).__name__}"
                )
            results: dict[str, Any] = dict(initial_params or {})
        except (InvalidPlanError, ValueError, TypeError) as e:
            return fail(ErrorCode.COMPOSITE_EXECUTION_ERROR, str(e))

        mode = "parallel" if plan.parallel else "sequential"
        log = logger.bind(
            execution_id=execution_id,
            parent_execution_id=options.parent_execution_id,
            mode=mode,
            steps=len(plan.steps),
        )
        child_options = options.for_child(execution_id)

        with log_context(composite_execution_id=execution_id), tracer.start_as_current_span(
            "tool.composite",
            attributes={"composite.execution_id": execution_id, "composite.mode": mode},
        ):
            try:
                if plan.parallel:
                    failure = await self._run_parallel(plan, results, child_options, fail, log)
                else:
                    failure = await self._run_sequential(plan, results, child_options, fail, log)
            except Exception as e:
                log.exception("composite_unexpected_error", error=str(e))
                failure = fail(
                    ErrorCode.COMPOSITE_EXECUTION_ERROR,
                    str(e) or e.__class__.__name__,
                    {"error": describe_exception(e)},
                )

        if failure is not None:
            self.pipeline.metrics.composite(mode, success=False)
            log.warning("composite_failed", code=failure.error.code.value)
            return failure

        self.pipeline.metrics.composite(mode, success=True)
        log.info("composite_succeeded")
        return ToolResult.ok(results, execution_id, (time.monotonic() - started) * 1000)

    async def _run_sequential(self, plan, results, options, fail, log) -> ToolResult | None:
        for index, step in enumerate(plan.steps):
            try:
                if step.condition is not None and not step.condition.evaluate(results):
                    log.debug("composite_step_skipped", step_index=index, target=step.target)
                    continue
                params = self._map_parameters(step, results)
            except MappingError as e:
                return self._mapping_failure(fail, index, step, e)

            result = await self._execute_step(step, params, options)
            if not result.success:
                return fail(
                    ErrorCode.COMPOSITE_STEP_FAILED,
                    f"Step {index} failed: {result.error.message}",
                    {
                        "step_index": index,
                        "target": step.target,
                        "error": result.error.model_dump(mode="json"),
                    },
                )

            try:
                results[step_key(index)] = self._map_result(step, result.data)
            except MappingError as e:
                return self._mapping_failure(fail, index, step, e)
        return None

    async def _run_parallel(self, plan, results, options, fail, log) -> ToolResult | None:
        # Conditions and mappings see the map as it was before any step ran.
        scheduled: list[tuple[int, CompositeStep, dict[str, Any]]] = []
        for index, step in enumerate(plan.steps):
            try:
                if step.condition is not None and not step.condition.evaluate(results):
                    log.debug("composite_step_skipped", step_index=index, target=step.target)
                    continue
                scheduled.append((index, step, self._map_parameters(step, results)))
            except MappingError as e:
                return self._mapping_failure(fail, index, step, e)

        outcomes = await asyncio.gather(
            *(self._execute_step(step, params, options) for _, step, params in scheduled)
        )

        merged: dict[str, Any] = {}
        for (index, step, _), result in zip(scheduled, outcomes):
            if not result.success:
                return fail(
                    ErrorCode.COMPOSITE_EXECUTION_ERROR,
                    f"Step execution failed: {result.error.message}",
                    {
                        "step_index": index,
                        "target": step.target,
                        "error": result.error.model_dump(mode="json"),
                    },
                )
            try:
                merged[step_key(index)] = self._map_result(step, result.data)
            except MappingError as e:
                return self._mapping_failure(fail, index, step, e)

        results.update(merged)
        return None

    async def _execute_step(
        self, step: CompositeStep, params: dict[str, Any], options: ExecutionOptions
    ) -> ToolResult:
        if step.capability is not None:
            return await self.resolver.execute_capability(step.capability, params, options)

        tool = self.registry.get(step.tool_id)
        if tool is None:
            return ToolResult.fail(
                ErrorCode.TOOL_NOT_FOUND,
                f"Tool with ID {step.tool_id} not found",
                str(uuid.uuid4()),
            )
        return await self.pipeline.execute(tool, params, options)

    def _map_parameters(self, step: CompositeStep, results: dict[str, Any]) -> dict[str, Any]:
        return {
            name: mapping.evaluate(results, self.transforms)
            for name, mapping in step.parameter_mapping.items()
        }

    def _map_result(self, step: CompositeStep, data: Any) -> Any:
        if step.result_mapping is None:
            return data
        return step.result_mapping.evaluate(data, self.transforms)

    @staticmethod
    def _mapping_failure(fail, index: int, step: CompositeStep, error: MappingError) -> ToolResult:
        return fail(
            ErrorCode.COMPOSITE_EXECUTION_ERROR,
            f"Step {index} mapping failed: {error}",
            {"step_index": index, "target": step.target},
        )


def build_composite_tool(
    metadata: ToolMetadata,
    plan: CompositeToolPlan,
    interpreter: CompositePlanInterpreter,
    parameter_mapping: dict[str, str] | None = None,
) -> Tool:
    """Wrap a plan as an ordinary tool.

    ``parameter_mapping`` maps the tool's input names to initial-param keys;
    without it inputs pass through unchanged. The handler returns the whole
    results map.
    """
    metadata = metadata.model_copy(
        update={
            "protocol": ToolProtocol.COMPOSITE,
            "protocol_config": {"plan": plan.model_dump(mode="json")},
        }
    )

    async def handler(params: dict[str, Any], ctx: ToolContext) -> dict[str, Any]:
        if parameter_mapping:
            initial_params = {
                target: params.get(source) for source, target in parameter_mapping.items()
            }
        else:
            initial_params = dict(params)

        result = await interpreter.execute(
            plan,
            initial_params,
            ExecutionOptions(
                requester=RequesterInfo(id=ctx.requester_id, credentials=ctx.credentials),
                parent_execution_id=ctx.execution_id,
                metadata=ctx.metadata,
            ),
        )
        if not result.success:
            raise CompositeExecutionError(
                f"Composite tool execution failed: {result.error.message}",
                code=result.error.code.value,
                details=result.error.details,
            )
        return result.data

    return Tool(metadata=metadata, handler=handler, initialized=True)
