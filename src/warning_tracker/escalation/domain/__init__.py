"""
Escalation Domain Layer
=======================

Domain layer for the warning escalation module.

Contains:
- Entities: Core business objects with identity (Ticket, Notification)
- Value Objects: Immutable objects defined by attributes (BusinessCalendar,
  EscalationConfig, EscalationDecision)
- Domain Services: Stateless business logic (EscalationPolicy)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from warning_tracker.escalation.domain.entities import Ticket, Notification
from warning_tracker.escalation.domain.value_objects import (
    BusinessCalendar,
    EscalationConfig,
    EscalationThresholds,
    EscalationDecision,
)
from warning_tracker.escalation.domain.services import EscalationPolicy

__all__ = [
    # Entities
    "Ticket",
    "Notification",
    # Value Objects
    "BusinessCalendar",
    "EscalationConfig",
    "EscalationThresholds",
    "EscalationDecision",
    # Domain Services
    "EscalationPolicy",
]
