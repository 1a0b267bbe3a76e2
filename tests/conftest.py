"""Pytest fixtures."""

import pytest

from tron_config.settings import Settings
from tron_security.authorizer import ClearanceAuthorizer
from tron_security.levels import AuthMethod, Credentials, SecurityLevel
from tron_tools.base import Tool, ToolMetadata
from tron_tools.engine import ToolEngine
from tron_tools.options import ExecutionOptions, RequesterInfo


@pytest.fixture
def settings():
    """Settings with no retry backoff and a short default timeout."""
    return Settings(TOOL_BACKOFF_BASE_MS=0, TOOL_DEFAULT_TIMEOUT_MS=2000)


@pytest.fixture
def engine(settings):
    """Engine with the default clearance authorizer."""
    return ToolEngine(settings=settings, authorizer=ClearanceAuthorizer())


@pytest.fixture
def bare_engine(settings):
    """Engine without a security module."""
    return ToolEngine(settings=settings)


@pytest.fixture
def make_tool():
    """Factory for tools with an echo handler unless one is given."""

    def _make(tool_id, handler=None, validator=None, initializer=None, shutdown=None, **fields):
        if handler is None:

            async def handler(params, ctx):
                return params

        fields.setdefault("name", tool_id)
        metadata = ToolMetadata(id=tool_id, **fields)
        return Tool(
            metadata,
            handler,
            validator=validator,
            initializer=initializer,
            shutdown=shutdown,
        )

    return _make


@pytest.fixture
def as_user():
    """Factory for execution options carrying credentials at a level."""

    def _options(level=SecurityLevel.PUBLIC, roles=(), user_id="test_user", **overrides):
        credentials = Credentials(
            id=user_id,
            auth_method=AuthMethod.JWT,
            security_level=level,
            roles=list(roles),
        )
        return ExecutionOptions(
            requester=RequesterInfo(id=user_id, credentials=credentials), **overrides
        )

    return _options
