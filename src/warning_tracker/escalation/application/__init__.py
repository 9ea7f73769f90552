"""
Escalation Application Layer
============================

Application layer for the warning escalation module.

Contains:
- Services: Escalation runner and the tracker service for operator actions
- DTOs: Data transfer objects for API and data file serialization

This layer depends on the domain layer and on repository / time source
interfaces, but not on concrete infrastructure implementations.
"""

from warning_tracker.escalation.application.dto import (
    TicketRecord,
    NotificationRecord,
    PersistedData,
    TicketCreateDTO,
    TicketStatusUpdateDTO,
    TicketUpdateDTO,
    TicketUpdateResponse,
    NotificationListResponse,
    EscalationRunResponse,
)
from warning_tracker.escalation.application.services import (
    BatchResult,
    EscalationCheckResult,
    EscalationRunner,
    TicketTrackerService,
    ITrackerRepository,
    ITimeSource,
    IEscalationConfigProvider,
)

__all__ = [
    # DTOs
    "TicketRecord",
    "NotificationRecord",
    "PersistedData",
    "TicketCreateDTO",
    "TicketStatusUpdateDTO",
    "TicketUpdateDTO",
    "TicketUpdateResponse",
    "NotificationListResponse",
    "EscalationRunResponse",
    # Services
    "BatchResult",
    "EscalationCheckResult",
    "EscalationRunner",
    "TicketTrackerService",
    # Interfaces
    "ITrackerRepository",
    "ITimeSource",
    "IEscalationConfigProvider",
]
