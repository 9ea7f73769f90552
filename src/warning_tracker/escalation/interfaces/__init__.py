"""
Escalation Interfaces Layer
===========================

Interface adapters (controllers) for the ticket tracker.

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from warning_tracker.escalation.interfaces.controllers import tracker_router, get_tracker_service

__all__ = ["tracker_router", "get_tracker_service"]
