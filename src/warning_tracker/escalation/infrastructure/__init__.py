"""
Escalation Infrastructure Layer
===============================

Infrastructure implementations for warning escalation:
- repositories: JSON data file storage
- config_watcher: escalation YAML with hot reload
- time_source: remote clock with local fallback
- scheduler: periodic escalation check
"""

from warning_tracker.escalation.infrastructure.repositories import JsonTrackerRepository
from warning_tracker.escalation.infrastructure.config_watcher import (
    EscalationConfigManager,
    read_escalation_config,
)
from warning_tracker.escalation.infrastructure.time_source import (
    CircuitBreaker,
    CircuitState,
    LocalTimeSource,
    WorldTimeSource,
)
from warning_tracker.escalation.infrastructure.scheduler import EscalationScheduler

__all__ = [
    "JsonTrackerRepository",
    "EscalationConfigManager",
    "read_escalation_config",
    "CircuitBreaker",
    "CircuitState",
    "LocalTimeSource",
    "WorldTimeSource",
    "EscalationScheduler",
]
