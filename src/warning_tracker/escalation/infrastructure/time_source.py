"""
Time Sources
============

The escalation clock. Business-day counting must not depend on a skewed
workstation clock, so the current time comes from a remote time API
(WorldTimeAPI, Europe/Bucharest by default). The remote clock is best
effort: when it fails, the local UTC clock is used and the check goes on.

A small circuit breaker stops calling the API for a while after repeated
failures, so a dead endpoint costs one timeout per recovery window instead of
one per check.
"""

import time
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx

from warning_tracker.core import TimeSourceException
from warning_tracker.escalation.application import ITimeSource
from warning_tracker.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def _local_now() -> datetime:
    return datetime.now(timezone.utc)


class CircuitState:
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Consecutive-failure breaker.

    Opens after ``failure_threshold`` failures in a row. Once
    ``recovery_timeout`` seconds have passed since the last failure, it lets a
    trial request through (half open). A success closes it and another
    failure opens it again.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        recovery_timeout: float = 60.0,
        monotonic: Callable[[], float] = time.monotonic
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._monotonic = monotonic
        self._consecutive_failures = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> str:
        if self._opened_at is None:
            return CircuitState.CLOSED
        if self._monotonic() - self._opened_at >= self.recovery_timeout:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    def allow_request(self) -> bool:
        return self.state != CircuitState.OPEN

    def record_success(self) -> None:
        if self._opened_at is not None:
            logger.info("Time API recovered, circuit closed")
        self._consecutive_failures = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._consecutive_failures < self.failure_threshold:
            return

        if self._opened_at is None:
            logger.warning(
                "Time API circuit opened",
                extra={
                    "failure_count": self._consecutive_failures,
                    "recovery_timeout": self.recovery_timeout,
                }
            )
        self._opened_at = self._monotonic()


class LocalTimeSource(ITimeSource):
    """System clock in UTC."""

    async def now(self) -> datetime:
        return _local_now()


class WorldTimeSource(ITimeSource):
    """
    Remote clock with local fallback.

    Expects a JSON body with an ISO 8601 ``datetime`` field that carries a UTC
    offset, as WorldTimeAPI returns:

        {"datetime": "2024-01-17T11:30:00.123456+02:00", ...}
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        fallback_clock: Callable[[], datetime] = _local_now
    ):
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._client = client
        self._breaker = circuit_breaker or CircuitBreaker()
        self._fallback_clock = fallback_clock

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._breaker

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._client

    async def fetch(self) -> datetime:
        """
        Ask the remote clock for the time, without fallback.

        Raises:
            TimeSourceException: transport error, non-200 status or a body
                without a readable, offset-aware ``datetime``
        """
        try:
            response = await self._http().get(self._url)
        except httpx.HTTPError as e:
            raise TimeSourceException("request failed", {"error": str(e)}) from e

        if response.status_code != 200:
            raise TimeSourceException(
                f"unexpected status {response.status_code}",
                {"status_code": response.status_code}
            )

        try:
            raw = response.json()["datetime"]
            moment = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise TimeSourceException("unreadable payload", {"error": str(e)}) from e

        if moment.tzinfo is None:
            raise TimeSourceException("payload has no UTC offset", {"datetime": raw})
        return moment

    async def now(self) -> datetime:
        if not self._breaker.allow_request():
            logger.debug("Time API circuit open, using local clock")
            return self._fallback_clock()

        try:
            moment = await self.fetch()
        except TimeSourceException as e:
            self._breaker.record_failure()
            logger.warning(
                "Failed to fetch remote time, using local clock",
                extra={"url": self._url, "error": e.message, **e.details}
            )
            return self._fallback_clock()

        self._breaker.record_success()
        return moment

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
