"""Parameter validation from declared parameter specs."""

from typing import Any

from jsonschema import Draft7Validator

from tron_tools.base import ToolMetadata, Validator
from tron_tools.exceptions import ParameterValidationError


def schema_validator(metadata: ToolMetadata) -> Validator:
    """Build a validator enforcing ``metadata.parameters``.

    The validator raises ParameterValidationError with the first schema
    violation, which the pipeline reports as INVALID_PARAMETERS.
    """
    validator = Draft7Validator(metadata.input_schema())

    def validate(params: dict[str, Any]) -> bool:
        errors = sorted(validator.iter_errors(params), key=lambda e: list(e.path))
        if errors:
            error = errors[0]
            location = ".".join(str(p) for p in error.path) or "params"
            raise ParameterValidationError(f"{location}: {error.message}")
        return True

    return validate
