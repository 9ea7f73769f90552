"""
Escalation Domain Services
===========================

Stateless escalation policy. Given one ticket and the current time it
decides the ticket's next status and the notifications to emit.

Transitions:
- Trackable -> Pending Warning 1 after N business days without activity
- Pending Warning N -> previous status when activity is recent again
- Warning 1 Sent -> Pending Warning 2 after N business days
- Warning 2 Sent -> Pending Warning 3 after N business days
- Warning 3 Sent is terminal for automatic escalation
"""

from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from warning_tracker.config import (
    TicketStatus, TRACKABLE_STATUSES, PENDING_WARNING_STATUSES
)
from warning_tracker.escalation.domain.entities import Ticket, Notification
from warning_tracker.escalation.domain.value_objects import (
    BusinessCalendar, EscalationConfig, EscalationDecision
)


def _coerce_status(value) -> Optional[TicketStatus]:
    """Map a raw status to the enum; unknown statuses map to None."""
    if isinstance(value, TicketStatus):
        return value
    try:
        return TicketStatus(value)
    except ValueError:
        return None


class EscalationPolicy:
    """
    Pure escalation state machine.

    Calling evaluate() twice with the same inputs yields the same decision;
    notifications get fresh ids from id_factory each time, so callers must
    apply a decision only once.
    """

    def __init__(
        self,
        calendar: Optional[BusinessCalendar] = None,
        config: Optional[EscalationConfig] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self._calendar = calendar or BusinessCalendar()
        self._config = config or EscalationConfig()
        self._id_factory = id_factory or (lambda: str(uuid4()))

    @property
    def config(self) -> EscalationConfig:
        return self._config

    def evaluate(self, ticket: Ticket, now: datetime) -> EscalationDecision:
        """
        Decide a ticket's status at `now`.

        Args:
            ticket: Ticket to evaluate
            now: Authoritative current time

        Returns:
            EscalationDecision with the resulting status, pre-warning status
            and any notifications for a forward transition
        """
        status = _coerce_status(ticket.status)
        thresholds = self._config.thresholds

        if status == TicketStatus.WARNING_1_SENT:
            return self._after_sent_warning(
                ticket, now, ticket.warning1_sent_at,
                thresholds.pending_warning_2, TicketStatus.PENDING_WARNING_2
            )

        if status == TicketStatus.WARNING_2_SENT:
            return self._after_sent_warning(
                ticket, now, ticket.warning2_sent_at,
                thresholds.pending_warning_3, TicketStatus.PENDING_WARNING_3
            )

        if status not in TRACKABLE_STATUSES and status not in PENDING_WARNING_STATUSES:
            # Warning 3 Sent and unknown statuses pass through
            return self._unchanged(ticket)

        anchor = ticket.activity_anchor
        if anchor is None:
            return self._unchanged(ticket)

        elapsed = self._calendar.count_business_days(anchor, now)
        is_pending = status in PENDING_WARNING_STATUSES

        if elapsed >= thresholds.pending_warning_1 and not is_pending:
            return EscalationDecision(
                status=TicketStatus.PENDING_WARNING_1,
                pre_warning_status=status,
                notifications=(self._notify(ticket, TicketStatus.PENDING_WARNING_1, now),)
            )

        if elapsed < thresholds.pending_warning_1 and is_pending:
            restored = _coerce_status(ticket.pre_warning_status)
            return EscalationDecision(
                status=restored or self._config.default_restore_status,
                pre_warning_status=None
            )

        return self._unchanged(ticket)

    def _after_sent_warning(
        self,
        ticket: Ticket,
        now: datetime,
        sent_at: Optional[datetime],
        threshold: int,
        next_status: TicketStatus
    ) -> EscalationDecision:
        """Move a sent warning to the next pending level once its clock runs out."""
        if sent_at is None:
            return self._unchanged(ticket)

        if self._calendar.count_business_days(sent_at, now) < threshold:
            return self._unchanged(ticket)

        return EscalationDecision(
            status=next_status,
            pre_warning_status=ticket.pre_warning_status,
            notifications=(self._notify(ticket, next_status, now),)
        )

    @staticmethod
    def _unchanged(ticket: Ticket) -> EscalationDecision:
        return EscalationDecision(
            status=ticket.status,
            pre_warning_status=ticket.pre_warning_status
        )

    def _notify(self, ticket: Ticket, status: TicketStatus, now: datetime) -> Notification:
        return Notification(
            id=self._id_factory(),
            ticket_number=ticket.ticket_number,
            region=ticket.region,
            message=f"Ticket #{ticket.ticket_number} escalated to {status.value}",
            timestamp=now,
            read=False
        )
