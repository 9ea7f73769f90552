"""
Warning Escalation Module
=========================

Bounded context for ticket warning escalation.

Responsibilities:
- Count business days since a ticket's last activity
- Escalate tickets through Pending Warning states and back
- Emit notifications on forward transitions
- Re-evaluate tickets at startup, periodically and after edits
- Provide the ticket and notification API
"""
