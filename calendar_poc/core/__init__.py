"""Core logic of the calendar PoC.

Module Structure:
    - events.py          : mock calendar event generation (calendar-service)
    - claims.py          : realm role lookup in token claims (both services)
    - models.py          : CalendarEvent record (frontend)
    - calendar_client.py : HTTP client for the calendar service (frontend)
    - rbac.py            : session RBAC and token refresh helpers (frontend, needs Flask)

These modules are not auto-imported; rbac.py pulls in Flask and Authlib.
Import explicitly when needed:
    from calendar_poc.core.events import generate_events, GenerationFailure
    from calendar_poc.core.calendar_client import CalendarClient, FetchFailure
"""
