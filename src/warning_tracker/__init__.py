"""
Ticket Warning Tracker
======================

Tracks EU and Global support tickets and escalates idle ones through
warning states by business days since last activity.
"""

__version__ = "1.0.0"
