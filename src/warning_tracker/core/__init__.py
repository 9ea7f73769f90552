"""
Core Module
============

Exception hierarchy shared by every layer of the tracker.
"""

from warning_tracker.core.exceptions import (
    ApplicationException,
    RepositoryException,
    DataFileException,
    ValidationException,
    TicketFieldsException,
    ResourceNotFoundException,
    TicketNotFoundException,
    NotificationNotFoundException,
    ConfigurationException,
    ExternalServiceException,
    TimeSourceException,
)

__all__ = [
    "ApplicationException",
    "RepositoryException",
    "DataFileException",
    "ValidationException",
    "TicketFieldsException",
    "ResourceNotFoundException",
    "TicketNotFoundException",
    "NotificationNotFoundException",
    "ConfigurationException",
    "ExternalServiceException",
    "TimeSourceException",
]
