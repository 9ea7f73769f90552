import httpx
import pytest

from warning_tracker.core import TimeSourceException
from warning_tracker.escalation.infrastructure import (
    CircuitBreaker, CircuitState, LocalTimeSource, WorldTimeSource
)

from tests.helpers import at

URL = "https://time.example/api/timezone/Europe/Bucharest"
FALLBACK = at(20, 12)


def _source(handler, breaker=None) -> WorldTimeSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WorldTimeSource(
        URL, client=client, circuit_breaker=breaker, fallback_clock=lambda: FALLBACK
    )


class FakeMonotonic:
    def __init__(self):
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value


class TestWorldTimeSource:
    @pytest.mark.asyncio
    async def test_uses_remote_time(self):
        def handler(request):
            assert str(request.url) == URL
            return httpx.Response(200, json={"datetime": "2024-01-17T11:30:00.123456+02:00"})

        source = _source(handler)
        moment = await source.now()
        await source.close()

        assert moment == at(17, 9, 30).replace(microsecond=123456)

    @pytest.mark.asyncio
    async def test_accepts_z_suffix(self):
        source = _source(lambda request: httpx.Response(200, json={"datetime": "2024-01-17T09:30:00Z"}))
        assert await source.fetch() == at(17, 9, 30)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, kwargs", [
        (500, {"text": "boom"}),
        (200, {"text": "not json"}),
        (200, {"json": {"utc_datetime": "2024-01-17T09:30:00Z"}}),
        (200, {"json": {"datetime": "yesterday"}}),
        (200, {"json": {"datetime": "2024-01-17T09:30:00"}}),
    ])
    async def test_bad_responses_fall_back(self, status, kwargs):
        source = _source(lambda request: httpx.Response(status, **kwargs))

        with pytest.raises(TimeSourceException):
            await source.fetch()
        assert await source.now() == FALLBACK

    @pytest.mark.asyncio
    async def test_network_error_falls_back(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        source = _source(handler)
        assert await source.now() == FALLBACK

    @pytest.mark.asyncio
    async def test_open_circuit_skips_remote(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        breaker = CircuitBreaker(failure_threshold=2, monotonic=FakeMonotonic())
        source = _source(handler, breaker)

        for _ in range(4):
            assert await source.now() == FALLBACK

        assert len(calls) == 2
        assert breaker.state == CircuitState.OPEN


class TestCircuitBreaker:
    def test_half_open_after_recovery_timeout(self):
        clock = FakeMonotonic()
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60, monotonic=clock)

        breaker.record_failure()
        assert not breaker.allow_request()

        clock.value += 60
        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.allow_request()

        breaker.record_success()
        assert breaker.state == CircuitState.CLOSED

    def test_failure_while_half_open_reopens(self):
        clock = FakeMonotonic()
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=10, monotonic=clock)
        breaker.record_failure()
        breaker.record_failure()

        clock.value += 10
        assert breaker.allow_request()
        breaker.record_failure()

        assert breaker.state == CircuitState.OPEN


@pytest.mark.asyncio
async def test_local_time_source_is_aware():
    moment = await LocalTimeSource().now()
    assert moment.tzinfo is not None
