"""
Escalation Value Objects
=========================

Immutable value objects for the escalation domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator, model_validator

from warning_tracker.config import TicketStatus, TRACKABLE_STATUSES
from warning_tracker.escalation.domain.entities import Notification

ONE_DAY = timedelta(days=1)
WEEKEND_DAYS = (5, 6)  # Saturday, Sunday


class BusinessCalendar:
    """
    Business-day arithmetic over Monday to Friday.

    Both ends of a span are read in the calendar's timezone before counting,
    so the weekday of a moment is the weekday seen by the support team.
    Naive datetimes are taken to be in that timezone already.
    """

    def __init__(self, tz: Union[str, tzinfo, None] = None):
        if isinstance(tz, str):
            tz = ZoneInfo(tz)
        self._tz = tz or timezone.utc

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def localize(self, moment: datetime) -> datetime:
        """Express a moment in the calendar's timezone."""
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self._tz)
        return moment.astimezone(self._tz)

    @staticmethod
    def is_business_day(moment: datetime) -> bool:
        return moment.weekday() not in WEEKEND_DAYS

    def count_business_days(self, start: datetime, end: datetime) -> int:
        """
        Count weekdays strictly after start up to and including end.

        The cursor moves in whole days from start, so a day is only counted
        once a full 24 hours have passed relative to start's time of day.

        Example:
            Monday 09:00 -> Wednesday 10:00 = 2
            Monday 09:00 -> Wednesday 08:00 = 1
            Thursday 09:00 -> Monday 09:00 = 2
        """
        start = self.localize(start)
        end = self.localize(end)

        count = 0
        cursor = start + ONE_DAY
        while cursor <= end:
            if self.is_business_day(cursor):
                count += 1
            cursor += ONE_DAY
        return count

    def add_business_days(self, start: datetime, days: int) -> datetime:
        """Return the moment `days` weekdays after start, same time of day."""
        if days < 0:
            raise ValueError("days must be non-negative")

        cursor = self.localize(start)
        added = 0
        while added < days:
            cursor += ONE_DAY
            if self.is_business_day(cursor):
                added += 1
        return cursor


class EscalationThresholds(BaseModel):
    """Business-day thresholds for each automatic hop."""
    pending_warning_1: int = Field(
        default=2, ge=1,
        description="Business days since last activity before Pending Warning 1"
    )
    pending_warning_2: int = Field(
        default=2, ge=1,
        description="Business days after Warning 1 Sent before Pending Warning 2"
    )
    pending_warning_3: int = Field(
        default=3, ge=1,
        description="Business days after Warning 2 Sent before Pending Warning 3"
    )

    @model_validator(mode="after")
    def validate_ladder(self) -> "EscalationThresholds":
        """
        Later hops may not be shorter than the first one.

        A Pending Warning ticket whose activity is younger than
        pending_warning_1 is restored, so a shorter later hop would undo its
        own escalation on the next check.
        """
        for name in ("pending_warning_2", "pending_warning_3"):
            if getattr(self, name) < self.pending_warning_1:
                raise ValueError(
                    f"{name} ({getattr(self, name)}) must be at least "
                    f"pending_warning_1 ({self.pending_warning_1})"
                )
        return self


class EscalationConfig(BaseModel):
    """
    Escalation configuration loaded from YAML.

    This is a value object - immutable and defined by its attributes.
    """
    thresholds: EscalationThresholds = Field(default_factory=EscalationThresholds)
    default_restore_status: TicketStatus = Field(
        default=TicketStatus.PENDING_CUSTOMER_RESPONSE,
        description="Status restored on de-escalation when none was recorded"
    )

    model_config = {"frozen": True}

    @field_validator("default_restore_status")
    @classmethod
    def validate_restore_status(cls, v: TicketStatus) -> TicketStatus:
        """Only a trackable status can be restored to."""
        if v not in TRACKABLE_STATUSES:
            raise ValueError(f"default_restore_status must be a trackable status, got '{v.value}'")
        return v


@dataclass(frozen=True)
class EscalationDecision:
    """Outcome of evaluating one ticket at one moment."""
    status: TicketStatus
    pre_warning_status: Optional[TicketStatus]
    notifications: Tuple[Notification, ...] = field(default_factory=tuple)
