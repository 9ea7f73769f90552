"""
Core Exceptions
================

Exception hierarchy for the ticket tracker.

Services raise the specific subclasses below; controllers and the API error
handler only look at the base classes and at ``http_status``.
"""

from pathlib import Path
from typing import Optional, Union


class ApplicationException(Exception):
    """Base exception for all application errors."""

    http_status = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class RepositoryException(ApplicationException):
    """Base exception for ticket store errors."""

    http_status = 503


class DataFileException(RepositoryException):
    """The tickets data file could not be read or written."""

    def __init__(self, action: str, path: Union[str, Path], error: Exception):
        self.action = action
        self.path = Path(path)
        super().__init__(
            f"Failed to {action} data file {self.path}",
            {"path": str(self.path), "error": str(error)}
        )


class ValidationException(ApplicationException):
    """Request rejected by service-level checks."""

    http_status = 400


class TicketFieldsException(ValidationException):
    """An edit touched fields that are not editable."""

    def __init__(self, fields):
        self.fields = sorted(fields)
        super().__init__(
            f"Fields cannot be edited: {', '.join(self.fields)}",
            {"fields": self.fields}
        )


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    http_status = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class TicketNotFoundException(ResourceNotFoundException):
    def __init__(self, ticket_id: str, region: str):
        self.region = region
        super().__init__("Ticket", ticket_id, {"region": getattr(region, "value", region)})


class NotificationNotFoundException(ResourceNotFoundException):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


class ConfigurationException(ApplicationException):
    """Escalation config file is unreadable or invalid."""

    def __init__(self, path: Union[str, Path], error: Exception):
        self.path = Path(path)
        super().__init__(
            f"Invalid escalation config {self.path}",
            {"path": str(self.path), "error": str(error)}
        )


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class TimeSourceException(ExternalServiceException):
    """Remote clock failure. Always handled by falling back to the local clock."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Time API", message, details)
