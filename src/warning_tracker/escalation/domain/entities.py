"""
Escalation Domain Entities
===========================

Pure Python domain entities for warning escalation.

Entities are frozen: every change produces a new instance, so a batch of
tickets handed to the escalation runner is never mutated in place.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from warning_tracker.config import (
    Region, Severity, TicketStatus,
    PENDING_WARNING_STATUSES, WARNING_STATUSES
)


@dataclass(frozen=True)
class Ticket:
    """
    Support ticket tracked for warning escalation.

    Timestamps are optional so that tickets loaded from damaged data can
    still be represented; the escalation policy skips a ticket that has no
    usable anchor.
    """

    id: str
    ticket_number: str
    title: str
    region: Region
    status: TicketStatus
    label: str = ""
    severity: Severity = Severity.MEDIUM

    # Timestamps
    created_at: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    warning_tracking_start: Optional[datetime] = None
    warning1_sent_at: Optional[datetime] = None
    warning2_sent_at: Optional[datetime] = None

    # Status held before the ticket was moved into a Pending Warning state
    pre_warning_status: Optional[TicketStatus] = None

    # Operator annotations
    note: Optional[str] = None
    has_draft_email: bool = False

    @property
    def activity_anchor(self) -> Optional[datetime]:
        """Timestamp the first warning threshold is measured from."""
        return self.last_modified or self.warning_tracking_start or self.created_at

    def change_status(self, new_status: TicketStatus, at: datetime) -> "Ticket":
        """
        Apply a manual status change.

        Resets the activity clock and stamps the matching "sent" timestamp
        when an operator confirms a warning went out.
        """
        changes = {
            "status": new_status,
            "last_modified": at,
            "warning_tracking_start": at,
        }
        if new_status == TicketStatus.WARNING_1_SENT:
            changes["warning1_sent_at"] = at
        elif new_status == TicketStatus.WARNING_2_SENT:
            changes["warning2_sent_at"] = at

        if new_status in PENDING_WARNING_STATUSES:
            if self.status not in WARNING_STATUSES:
                changes["pre_warning_status"] = self.status
        elif new_status not in WARNING_STATUSES:
            changes["pre_warning_status"] = None

        return replace(self, **changes)

    def edit_last_modified(self, moment: datetime) -> "Ticket":
        """
        Re-anchor escalation tracking on an edited last-modified time.

        For tickets waiting on a sent warning, the sent timestamp follows the
        edit so the next hop is measured from the new date.
        """
        changes = {"last_modified": moment, "warning_tracking_start": moment}
        if self.status == TicketStatus.WARNING_1_SENT:
            changes["warning1_sent_at"] = moment
        elif self.status == TicketStatus.WARNING_2_SENT:
            changes["warning2_sent_at"] = moment
        return replace(self, **changes)


@dataclass(frozen=True)
class Notification:
    """Escalation notice shown to operators."""

    id: str
    ticket_number: str
    region: Region
    message: str
    timestamp: datetime
    read: bool = False

    def mark_read(self) -> "Notification":
        if self.read:
            return self
        return replace(self, read=True)
