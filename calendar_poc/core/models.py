"""Calendar event model used by the frontend."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"


@dataclass(frozen=True)
class CalendarEvent:
    """Calendar event fetched from the calendar service."""
    id: int
    title: str
    time: datetime

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CalendarEvent":
        """Build an event from its JSON form. Unknown keys are ignored.

        Raises:
            ValueError: If a field is missing or has the wrong type.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"Calendar event must be an object, got {type(payload).__name__}")

        event_id = payload.get("id")
        # bool is an int subclass
        if not isinstance(event_id, int) or isinstance(event_id, bool):
            raise ValueError(f"Calendar event 'id' must be an integer, got {event_id!r}")

        title = payload.get("title")
        if not isinstance(title, str):
            raise ValueError(f"Calendar event 'title' must be a string, got {title!r}")

        raw_time = payload.get("time")
        if not isinstance(raw_time, str):
            raise ValueError(f"Calendar event 'time' must be a string, got {raw_time!r}")

        # %f alone would take 1 to 6 digits; the wire format has exactly milliseconds
        _, dot, fraction = raw_time.rpartition(".")
        if not dot or len(fraction) != 3 or not fraction.isdigit():
            raise ValueError(f"Calendar event 'time' must look like YYYY-MM-DDTHH:MM:SS.fff, got {raw_time!r}")

        return cls(id=event_id, title=title, time=datetime.strptime(raw_time, TIME_FORMAT))
