"""MyLife Companion — personal life companion backend.

Tasks, calendar, health metrics, health-calendar events and mood logs,
each owned by one user and served behind JWT authentication.
"""

__version__ = "0.1.0"
