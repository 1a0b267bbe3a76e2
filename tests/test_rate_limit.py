"""Rate Limiter Tests."""

import pytest

from tron_tools.base import RateLimit
from tron_tools.engine import ToolEngine
from tron_tools.rate_limit import RateLimiter
from tron_tools.results import ErrorCode


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)


def test_allows_up_to_limit(limiter):
    """Test requests are admitted until the window is full."""
    limit = RateLimit(requests=2, period_ms=1000)

    assert limiter.allow("t", limit) is True
    assert limiter.allow("t", limit) is True
    assert limiter.allow("t", limit) is False
    assert limiter.usage("t") == 2


def test_window_resets_after_period(limiter, clock):
    """Test the window resets only once the period has fully elapsed."""
    limit = RateLimit(requests=1, period_ms=1000)
    assert limiter.allow("t", limit) is True

    clock.advance(1000)
    assert limiter.allow("t", limit) is False

    clock.advance(1)
    assert limiter.allow("t", limit) is True
    assert limiter.usage("t") == 1


def test_limits_are_per_tool(limiter):
    """Test trackers are keyed by tool id."""
    limit = RateLimit(requests=1, period_ms=1000)

    assert limiter.allow("a", limit) is True
    assert limiter.allow("b", limit) is True
    assert limiter.allow("a", limit) is False


def test_reset(limiter):
    """Test resetting one tool or all trackers."""
    limit = RateLimit(requests=1, period_ms=1000)
    limiter.allow("a", limit)
    limiter.allow("b", limit)

    limiter.reset("a")
    assert limiter.usage("a") == 0
    assert limiter.usage("b") == 1

    limiter.reset()
    assert limiter.usage("b") == 0


def test_rate_limit_rejects_invalid_values():
    """Test RateLimit requires positive values."""
    with pytest.raises(ValueError):
        RateLimit(requests=0, period_ms=1000)
    with pytest.raises(ValueError):
        RateLimit(requests=1, period_ms=0)


@pytest.mark.asyncio
async def test_engine_enforces_rate_limit(settings, clock, make_tool):
    """Test the third call in a window is rejected without running the handler."""
    calls = []

    async def handler(params, ctx):
        calls.append(params)
        return "ok"

    engine = ToolEngine(settings=settings, rate_limiter=RateLimiter(clock=clock))
    engine.register_tool(
        make_tool("limited", handler, name="Limited", rate_limit={"requests": 2, "period_ms": 1000})
    )

    first = await engine.execute_tool("limited", {})
    second = await engine.execute_tool("limited", {})
    third = await engine.execute_tool("limited", {})

    assert first.success and second.success
    assert third.success is False
    assert third.error.code == ErrorCode.RATE_LIMIT_EXCEEDED
    assert third.error.message == "Rate limit exceeded for tool Limited"
    assert third.error.details == {"requests": 2, "period_ms": 1000}
    assert len(calls) == 2

    clock.advance(1001)
    assert (await engine.execute_tool("limited", {})).success


@pytest.mark.asyncio
async def test_unregister_clears_rate_limit_state(settings, clock, make_tool):
    """Test a re-registered tool starts with a fresh window."""
    engine = ToolEngine(settings=settings, rate_limiter=RateLimiter(clock=clock))
    engine.register_tool(make_tool("limited", rate_limit={"requests": 1, "period_ms": 1000}))
    await engine.execute_tool("limited", {})

    engine.unregister_tool("limited")
    engine.register_tool(make_tool("limited", rate_limit={"requests": 1, "period_ms": 1000}))

    assert (await engine.execute_tool("limited", {})).success
