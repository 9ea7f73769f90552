"""Shared fixtures for the escalation test suite."""

import itertools

import pytest

from warning_tracker.config import Region, TicketStatus
from warning_tracker.escalation.application import TicketTrackerService
from warning_tracker.escalation.domain import BusinessCalendar, Ticket
from warning_tracker.escalation.infrastructure import JsonTrackerRepository

from tests.helpers import MONDAY, FixedTimeSource, StaticConfigProvider


@pytest.fixture
def calendar() -> BusinessCalendar:
    return BusinessCalendar("UTC")


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def make_ticket():
    counter = itertools.count(1)

    def _make(**overrides) -> Ticket:
        n = next(counter)
        fields = {
            "id": f"ticket-{n}",
            "ticket_number": f"TKT-{1000 + n}",
            "title": f"Ticket {n}",
            "label": "Bug",
            "region": Region.EU,
            "status": TicketStatus.PENDING_INITIAL_CONTACT,
            "created_at": MONDAY,
            "last_modified": MONDAY,
            "warning_tracking_start": MONDAY,
        }
        fields.update(overrides)
        return Ticket(**fields)

    return _make


@pytest.fixture
def repository(tmp_path) -> JsonTrackerRepository:
    return JsonTrackerRepository(tmp_path / "tickets.json")


@pytest.fixture
def time_source() -> FixedTimeSource:
    return FixedTimeSource(MONDAY)


@pytest.fixture
def service(repository, time_source, calendar, id_factory) -> TicketTrackerService:
    return TicketTrackerService(
        repository=repository,
        time_source=time_source,
        config_provider=StaticConfigProvider(),
        calendar=calendar,
        clock=lambda: time_source.moment,
        id_factory=id_factory
    )
