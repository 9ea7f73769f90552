"""
Shared Kernel Module
====================

Shared infrastructure used by the escalation module and the application
entry point: structured logging and HTTP middleware.

DO NOT add escalation business logic to the shared kernel.
"""
