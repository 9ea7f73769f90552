"""
Escalation Application Services
================================

Application services orchestrate the escalation policy, the ticket store and
the time source.

Following SOLID principles:
- Single Responsibility: the runner applies the policy, the tracker service
  handles operator actions
- Dependency Inversion: depend on abstractions (repository, time source,
  config provider), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from warning_tracker.config import REGIONS, STATUS_ORDER, Region, Severity, TicketStatus
from warning_tracker.core import (
    NotificationNotFoundException, TicketFieldsException, TicketNotFoundException, ValidationException
)
from warning_tracker.escalation.domain import (
    BusinessCalendar, EscalationConfig, EscalationPolicy, Notification, Ticket
)
from warning_tracker.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)

EDITABLE_FIELDS = frozenset({
    "ticket_number", "title", "label", "severity",
    "note", "has_draft_email", "last_modified",
})

# Fields an edit may clear by sending null
NULLABLE_FIELDS = frozenset({"note"})


# ========== Interfaces (Dependency Inversion) ==========

class ITrackerRepository(ABC):
    """Interface for ticket and notification storage."""

    @abstractmethod
    def get_tickets(self, region: Region) -> List[Ticket]:
        """Get a copy of the region's ticket list."""

    @abstractmethod
    def replace_tickets(self, region: Region, tickets: List[Ticket]) -> None:
        """Replace the region's ticket list."""

    @abstractmethod
    def get_notifications(self) -> List[Notification]:
        """Get a copy of the notification list, newest first."""

    @abstractmethod
    def replace_notifications(self, notifications: List[Notification]) -> None:
        """Replace the notification list."""

    @abstractmethod
    def save(self) -> None:
        """Persist current state."""


class ITimeSource(ABC):
    """Interface for the authoritative clock."""

    @abstractmethod
    async def now(self) -> datetime:
        """Current time. Implementations fall back rather than raise."""


class IEscalationConfigProvider(ABC):
    """Interface for escalation configuration access."""

    @abstractmethod
    def get_config(self) -> EscalationConfig:
        """Get current escalation configuration."""


# ========== Runner ==========

@dataclass(frozen=True)
class BatchResult:
    """Tickets after one escalation pass and the notifications it produced."""
    updated_tickets: List[Ticket]
    new_notifications: List[Notification]
    changed_count: int = 0


class EscalationRunner:
    """
    Applies the escalation policy across a collection of tickets.

    Input tickets are never modified; changed tickets are replaced by
    updated copies and unchanged ones are passed through as-is.
    """

    def __init__(self, policy: EscalationPolicy):
        self._policy = policy

    def run_batch(self, tickets: Iterable[Ticket], now: datetime) -> BatchResult:
        """
        Evaluate every ticket at `now`.

        Returns:
            BatchResult with tickets in input order and notifications in
            ticket order
        """
        updated = []
        notifications = []
        changed = 0

        for ticket in tickets:
            decision = self._policy.evaluate(ticket, now)
            notifications.extend(decision.notifications)

            if (decision.status != ticket.status or
                    decision.pre_warning_status != ticket.pre_warning_status):
                logger.info(
                    "Ticket status changed by escalation",
                    extra={
                        "ticket_id": ticket.id,
                        "ticket_number": ticket.ticket_number,
                        "region": ticket.region,
                        "from_status": ticket.status,
                        "to_status": decision.status,
                    }
                )
                ticket = replace(
                    ticket,
                    status=decision.status,
                    pre_warning_status=decision.pre_warning_status
                )
                changed += 1

            updated.append(ticket)

        return BatchResult(
            updated_tickets=updated,
            new_notifications=notifications,
            changed_count=changed
        )


@dataclass(frozen=True)
class EscalationCheckResult:
    """Summary of an escalation check across both regions."""
    now: datetime
    tickets_evaluated: int
    tickets_changed: int
    new_notifications: List[Notification] = field(default_factory=list)


# ========== Application Service ==========

def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TicketTrackerService:
    """
    Service for operator actions and scheduled escalation checks.

    All state changes for one action are computed first and written to the
    repository in a single step, so an escalation check never observes a
    half-applied edit.
    """

    def __init__(
        self,
        repository: ITrackerRepository,
        time_source: ITimeSource,
        config_provider: IEscalationConfigProvider,
        calendar: Optional[BusinessCalendar] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self._repo = repository
        self._time_source = time_source
        self._config_provider = config_provider
        self._calendar = calendar or BusinessCalendar()
        self._clock = clock or _utc_now
        self._id_factory = id_factory or (lambda: str(uuid4()))

    def _runner(self) -> EscalationRunner:
        """Build a runner from the current (possibly reloaded) config."""
        policy = EscalationPolicy(
            calendar=self._calendar,
            config=self._config_provider.get_config(),
            id_factory=self._id_factory
        )
        return EscalationRunner(policy)

    # ---------- Escalation checks ----------

    async def run_escalation_check(self, trigger: str = "manual") -> EscalationCheckResult:
        """
        Run the policy over both regions and persist the result.

        New notifications (EU first, then Global) are placed ahead of the
        existing ones.
        """
        now = await self._time_source.now()
        runner = self._runner()

        evaluated = 0
        changed = 0
        new_notifications: List[Notification] = []

        with log_latency(logger, "escalation_check", trigger=trigger):
            for region in REGIONS:
                tickets = self._repo.get_tickets(region)
                result = runner.run_batch(tickets, now)
                evaluated += len(tickets)
                changed += result.changed_count
                new_notifications.extend(result.new_notifications)
                if result.changed_count:
                    self._repo.replace_tickets(region, result.updated_tickets)

            if new_notifications:
                self._repo.replace_notifications(
                    new_notifications + self._repo.get_notifications()
                )
            if changed or new_notifications:
                self._repo.save()

        logger.info(
            "Escalation check finished",
            extra={
                "trigger": trigger,
                "tickets_evaluated": evaluated,
                "tickets_changed": changed,
                "notifications_created": len(new_notifications),
            }
        )

        return EscalationCheckResult(
            now=now,
            tickets_evaluated=evaluated,
            tickets_changed=changed,
            new_notifications=new_notifications
        )

    async def startup_check(self) -> EscalationCheckResult:
        """Escalation pass over all persisted tickets at application start."""
        return await self.run_escalation_check(trigger="startup")

    async def periodic_check(self) -> EscalationCheckResult:
        """Escalation pass invoked by the scheduler."""
        return await self.run_escalation_check(trigger="periodic")

    # ---------- Tickets ----------

    def list_tickets(
        self,
        region: Region,
        status: Optional[TicketStatus] = None
    ) -> List[Ticket]:
        """List a region's tickets in status display order."""
        tickets = self._repo.get_tickets(region)
        if status is not None:
            tickets = [t for t in tickets if t.status == status]
        return sorted(tickets, key=lambda t: STATUS_ORDER.get(t.status, len(STATUS_ORDER)))

    def search(self, query: str) -> List[Ticket]:
        """Case-insensitive match on ticket number, title or label, EU first."""
        q = query.strip().lower()
        if not q:
            return []

        results = []
        for region in REGIONS:
            for ticket in self._repo.get_tickets(region):
                if (q in ticket.ticket_number.lower() or
                        q in ticket.title.lower() or
                        q in ticket.label.lower()):
                    results.append(ticket)
        return results

    def add_ticket(self, region: Region, data: Dict[str, Any]) -> Ticket:
        """
        Create a ticket.

        Args:
            region: Region list to add to
            data: ticket_number, title and optional label, severity, status,
                last_modified, note, has_draft_email

        Returns:
            The stored ticket
        """
        ticket_number = (data.get("ticket_number") or "").strip()
        title = (data.get("title") or "").strip()
        if not ticket_number or not title:
            raise ValidationException("Ticket number and title are required.")

        now = self._clock()
        ticket = Ticket(
            id=self._id_factory(),
            ticket_number=ticket_number,
            title=title,
            label=data.get("label") or "",
            severity=data.get("severity") or Severity.MEDIUM,
            region=region,
            status=data.get("status") or TicketStatus.PENDING_INITIAL_CONTACT,
            created_at=now,
            last_modified=data.get("last_modified") or now,
            warning_tracking_start=now,
            note=data.get("note"),
            has_draft_email=bool(data.get("has_draft_email", False))
        )

        tickets = self._repo.get_tickets(region)
        tickets.append(ticket)
        self._repo.replace_tickets(region, tickets)
        self._repo.save()

        logger.info(
            "Ticket created",
            extra={"ticket_id": ticket.id, "ticket_number": ticket.ticket_number, "region": region}
        )
        return ticket

    def delete_ticket(self, region: Region, ticket_id: str) -> None:
        tickets = self._repo.get_tickets(region)
        index = self._find_ticket(tickets, region, ticket_id)
        del tickets[index]
        self._repo.replace_tickets(region, tickets)
        self._repo.save()
        logger.info("Ticket deleted", extra={"ticket_id": ticket_id, "region": region})

    def update_status(self, region: Region, ticket_id: str, status: TicketStatus) -> Ticket:
        """Apply a manual status change and reset the activity clock."""
        tickets = self._repo.get_tickets(region)
        index = self._find_ticket(tickets, region, ticket_id)

        previous = tickets[index]
        ticket = previous.change_status(status, self._clock())
        tickets[index] = ticket
        self._repo.replace_tickets(region, tickets)
        self._repo.save()

        logger.info(
            "Ticket status set manually",
            extra={
                "ticket_id": ticket_id,
                "region": region,
                "from_status": previous.status,
                "to_status": status,
            }
        )
        return ticket

    async def update_ticket(
        self,
        region: Region,
        ticket_id: str,
        changes: Dict[str, Any]
    ) -> Tuple[Ticket, List[Notification]]:
        """
        Edit ticket fields.

        When last_modified is edited the ticket is re-anchored and evaluated
        straight away against the edited value, and both the edit and the
        escalation outcome are stored together.

        Returns:
            Tuple of (stored ticket, notifications raised by re-evaluation)
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise TicketFieldsException(unknown)

        last_modified = changes.get("last_modified")
        # Fetch time before reading state so nothing awaits between read and write
        now = await self._time_source.now() if last_modified is not None else None

        tickets = self._repo.get_tickets(region)
        index = self._find_ticket(tickets, region, ticket_id)

        edits = {
            k: v for k, v in changes.items()
            if k != "last_modified" and (v is not None or k in NULLABLE_FIELDS)
        }
        ticket = replace(tickets[index], **edits)

        new_notifications: List[Notification] = []
        if last_modified is not None:
            ticket = ticket.edit_last_modified(last_modified)
            result = self._runner().run_batch([ticket], now)
            ticket = result.updated_tickets[0]
            new_notifications = result.new_notifications

        tickets[index] = ticket
        self._repo.replace_tickets(region, tickets)
        if new_notifications:
            self._repo.replace_notifications(new_notifications + self._repo.get_notifications())
        self._repo.save()

        return ticket, new_notifications

    @staticmethod
    def _find_ticket(tickets: List[Ticket], region: Region, ticket_id: str) -> int:
        for index, ticket in enumerate(tickets):
            if ticket.id == ticket_id:
                return index
        raise TicketNotFoundException(ticket_id, region)

    # ---------- Notifications ----------

    def list_notifications(self) -> List[Notification]:
        return self._repo.get_notifications()

    def unread_count(self) -> int:
        return sum(1 for n in self._repo.get_notifications() if not n.read)

    def mark_all_read(self) -> int:
        """Mark every notification read (panel opened). Returns how many changed."""
        notifications = self._repo.get_notifications()
        unread = sum(1 for n in notifications if not n.read)
        if unread:
            self._repo.replace_notifications([n.mark_read() for n in notifications])
            self._repo.save()
        return unread

    def dismiss_notification(self, notification_id: str) -> None:
        notifications = self._repo.get_notifications()
        remaining = [n for n in notifications if n.id != notification_id]
        if len(remaining) == len(notifications):
            raise NotificationNotFoundException(notification_id)
        self._repo.replace_notifications(remaining)
        self._repo.save()

    def clear_notifications(self) -> int:
        """Remove all notifications. Returns how many were removed."""
        count = len(self._repo.get_notifications())
        self._repo.replace_notifications([])
        self._repo.save()
        return count
