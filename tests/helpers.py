"""Test doubles and date helpers."""

from datetime import datetime, timezone

from warning_tracker.escalation.application import IEscalationConfigProvider, ITimeSource
from warning_tracker.escalation.domain import EscalationConfig

# 2024-01-15 is a Monday
MONDAY = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


def at(day: int, hour: int = 9, minute: int = 0) -> datetime:
    """UTC moment in January 2024 (the 15th is a Monday)."""
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


class FixedTimeSource(ITimeSource):
    """Time source returning a settable moment."""

    def __init__(self, moment: datetime):
        self.moment = moment
        self.calls = 0

    async def now(self) -> datetime:
        self.calls += 1
        return self.moment


class StaticConfigProvider(IEscalationConfigProvider):
    def __init__(self, config: EscalationConfig = None):
        self.config = config or EscalationConfig()

    def get_config(self) -> EscalationConfig:
        return self.config
