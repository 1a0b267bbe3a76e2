"""Data Tools."""

import json
from typing import Any

from tron_tools.base import ParameterSpec, ReturnSpec, Tool, ToolContext, ToolMetadata
from tron_tools.builtin.schemas import JsonParseInput
from tron_tools.validation import schema_validator


def create_json_parse_tool() -> Tool:
    metadata = ToolMetadata(
        id="data.json.parse",
        name="Parse JSON",
        description="Parses a JSON string into an object",
        category="Data",
        tags=("data", "json", "parse"),
        parameters=(
            ParameterSpec(
                name="input",
                type="string",
                description="The JSON string to parse",
                required=True,
                min_length=1,
            ),
        ),
        returns=ReturnSpec(type="object", description="The parsed value"),
        capabilities=("data.parse", "json.parse"),
    )

    async def handler(params: dict[str, Any], ctx: ToolContext) -> Any:
        input_obj = JsonParseInput(**params)
        return json.loads(input_obj.input)

    return Tool(metadata, handler, validator=schema_validator(metadata))
