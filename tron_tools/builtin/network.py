"""Network Tools."""

from typing import Any

import httpx

from tron_security.levels import SecurityLevel
from tron_tools.base import ParameterSpec, ReturnSpec, Tool, ToolContext, ToolMetadata
from tron_tools.builtin.schemas import HttpRequestInput, HttpResponseOutput
from tron_tools.validation import schema_validator

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")


def _decode_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type and response.content:
        return response.json()
    return response.text


def create_http_request_tool(default_timeout_seconds: float = 30.0) -> Tool:
    metadata = ToolMetadata(
        id="network.http",
        name="HTTP Request",
        description="Makes HTTP requests to external services",
        category="Network",
        tags=("network", "http", "request"),
        parameters=(
            ParameterSpec(
                name="url",
                type="string",
                description="The URL to send the request to",
                required=True,
                min_length=1,
            ),
            ParameterSpec(name="method", type="string", enum=HTTP_METHODS, default="GET"),
            ParameterSpec(name="headers", type="object", description="Request headers"),
            ParameterSpec(name="body", type="object", description="Request body (JSON encoded)"),
            ParameterSpec(
                name="timeout",
                type="number",
                description="Request timeout in seconds",
                minimum=0,
            ),
        ),
        returns=ReturnSpec(type="object", description="Status, headers and decoded body"),
        requires_auth=True,
        min_security_level=SecurityLevel.MEDIUM,
        timeout_ms=60000,
        capabilities=("network.http", "api.call"),
    )

    async def handler(params: dict[str, Any], ctx: ToolContext) -> dict[str, Any]:
        input_obj = HttpRequestInput(**params)
        timeout = input_obj.timeout or default_timeout_seconds

        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.request(
                input_obj.method,
                input_obj.url,
                headers=input_obj.headers,
                json=input_obj.body,
            )

        output = HttpResponseOutput(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            data=_decode_body(response),
        )
        return output.model_dump()

    return Tool(metadata, handler, validator=schema_validator(metadata))
