"""
Escalation Application DTOs
============================

Data Transfer Objects for the API layer and the persisted data file.

Field names are snake_case in Python and camelCase on the wire, matching
the JSON layout written by earlier versions of the tracker:

    {"eu": [...], "global": [...], "notifications": [...]}

Both spellings are accepted on input.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from warning_tracker.config import Region, Severity, TicketStatus
from warning_tracker.escalation.domain import Ticket, Notification

_datetime_adapter = TypeAdapter(datetime)


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _coerce_id(v: Any) -> Any:
    # Older data files store numeric (often fractional) ids
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return repr(v)
    return v


# ========== Persisted records ==========

class TicketRecord(CamelModel):
    """Ticket as stored in the data file and returned by the API."""
    id: str
    ticket_number: str
    title: str = ""
    label: str = ""
    severity: Severity = Severity.MEDIUM
    region: Optional[Region] = None
    status: TicketStatus
    created_at: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    warning_tracking_start: Optional[datetime] = None
    warning1_sent_at: Optional[datetime] = None
    warning2_sent_at: Optional[datetime] = None
    pre_warning_status: Optional[TicketStatus] = None
    note: Optional[str] = None
    has_draft_email: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_id(v)

    @field_validator(
        "created_at", "last_modified", "warning_tracking_start",
        "warning1_sent_at", "warning2_sent_at",
        mode="before"
    )
    @classmethod
    def lenient_timestamp(cls, v: Any) -> Optional[datetime]:
        """Unreadable timestamps load as missing instead of failing the file."""
        if v is None or v == "":
            return None
        try:
            return _datetime_adapter.validate_python(v)
        except ValidationError:
            return None

    def to_domain(self, region: Region) -> Ticket:
        """Convert to domain entity; the owning collection decides the region."""
        return Ticket(
            id=self.id,
            ticket_number=self.ticket_number,
            title=self.title,
            label=self.label,
            severity=self.severity,
            region=region,
            status=self.status,
            created_at=self.created_at,
            last_modified=self.last_modified,
            warning_tracking_start=self.warning_tracking_start,
            warning1_sent_at=self.warning1_sent_at,
            warning2_sent_at=self.warning2_sent_at,
            pre_warning_status=self.pre_warning_status,
            note=self.note,
            has_draft_email=self.has_draft_email
        )

    @classmethod
    def from_domain(cls, ticket: Ticket) -> "TicketRecord":
        """Create from domain entity."""
        return cls(
            id=ticket.id,
            ticket_number=ticket.ticket_number,
            title=ticket.title,
            label=ticket.label,
            severity=ticket.severity,
            region=ticket.region,
            status=ticket.status,
            created_at=ticket.created_at,
            last_modified=ticket.last_modified,
            warning_tracking_start=ticket.warning_tracking_start,
            warning1_sent_at=ticket.warning1_sent_at,
            warning2_sent_at=ticket.warning2_sent_at,
            pre_warning_status=ticket.pre_warning_status,
            note=ticket.note,
            has_draft_email=ticket.has_draft_email
        )


class NotificationRecord(CamelModel):
    """Notification as stored in the data file and returned by the API."""
    id: str
    ticket_number: str
    region: Region
    message: str
    timestamp: datetime
    read: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_id(v)

    def to_domain(self) -> Notification:
        return Notification(
            id=self.id,
            ticket_number=self.ticket_number,
            region=self.region,
            message=self.message,
            timestamp=self.timestamp,
            read=self.read
        )

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationRecord":
        return cls(
            id=notification.id,
            ticket_number=notification.ticket_number,
            region=notification.region,
            message=notification.message,
            timestamp=notification.timestamp,
            read=notification.read
        )


class PersistedData(CamelModel):
    """Whole data file: one ticket list per region plus all notifications."""
    eu: List[TicketRecord] = Field(default_factory=list)
    global_: List[TicketRecord] = Field(default_factory=list, alias="global")
    notifications: List[NotificationRecord] = Field(default_factory=list)


# ========== Request DTOs ==========

class TicketCreateDTO(CamelModel):
    """DTO for creating a ticket."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True
    )

    ticket_number: str = Field(..., min_length=1, description="Display number, e.g. TKT-1234")
    title: str = Field(..., min_length=1, description="Ticket title")
    label: str = Field(default="", description="Free-form label, e.g. Bug")
    severity: Severity = Field(default=Severity.MEDIUM)
    status: TicketStatus = Field(default=TicketStatus.PENDING_INITIAL_CONTACT, description="Initial status")
    last_modified: Optional[datetime] = Field(None, description="Defaults to creation time")
    note: Optional[str] = None
    has_draft_email: bool = False


class TicketStatusUpdateDTO(CamelModel):
    """DTO for a manual status change."""
    status: TicketStatus


class TicketUpdateDTO(CamelModel):
    """
    DTO for editing a ticket.

    Only fields present in the request are applied. Editing last_modified
    re-anchors escalation tracking and re-evaluates the ticket immediately.
    """
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True
    )

    ticket_number: Optional[str] = Field(None, min_length=1)
    title: Optional[str] = Field(None, min_length=1)
    label: Optional[str] = None
    severity: Optional[Severity] = None
    note: Optional[str] = None
    has_draft_email: Optional[bool] = None
    last_modified: Optional[datetime] = None


# ========== Response DTOs ==========

class TicketUpdateResponse(CamelModel):
    """Edited ticket plus any notifications raised by re-evaluation."""
    ticket: TicketRecord
    new_notifications: List[NotificationRecord] = Field(default_factory=list)


class NotificationListResponse(CamelModel):
    """Notification panel contents."""
    notifications: List[NotificationRecord]
    total: int
    unread_count: int


class EscalationRunResponse(CamelModel):
    """Summary of an escalation check."""
    now: datetime
    tickets_evaluated: int
    tickets_changed: int
    new_notifications: List[NotificationRecord] = Field(default_factory=list)
