"""Mock calendar event generation.

Produces a small batch of events with random titles, scheduled within the
next 72 hours and rounded to a quarter hour. Batches are built fresh on every
call and never cached.
"""
from __future__ import annotations
import logging
import random
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Callable, NamedTuple, Optional

logger = logging.getLogger(__name__)

TASKS = (
    "Team meeting",
    "Doctor appointment",
    "Project review",
    "Client call",
    "One-on-one meeting",
    "Lunch with team",
    "Code review",
    "Product demo",
    "Client feedback session",
    "Design brainstorming",
)

MIN_EVENTS = 3
MAX_EVENTS = 6
WINDOW_MINUTES = 72 * 60

# SystemRandom draws from os.urandom and keeps no shared state between callers
_default_rng = random.SystemRandom()


class GenerationFailure(Exception):
    """Raised when a batch of calendar events cannot be generated."""
    pass


@dataclass(frozen=True)
class EventRecord:
    """Public calendar event, as serialized on the wire."""
    id: int
    title: str
    time: str

    def to_dict(self) -> dict:
        return asdict(self)


class _Draft(NamedTuple):
    when: datetime
    title: str


def round_to_quarter_hour(value: datetime) -> datetime:
    """Round to the nearest quarter hour.

    Minutes 0-7 past a quarter round down, 8-14 round up. Seconds and
    sub-seconds are left as they are.
    """
    mod = value.minute % 15
    if mod < 8:
        rounded = value - timedelta(minutes=mod)
    else:
        rounded = value + timedelta(minutes=15 - mod)
    logger.debug("Rounded time from %s to %s", value, rounded)
    return rounded


def format_event_time(value: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:mm:ss.SSS`` (milliseconds, no zone)."""
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}"


def generate_events(
    rng: Optional[random.Random] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> list[EventRecord]:
    """Generate between 3 and 6 calendar events sorted by time.

    Args:
        rng: Randomness provider (``random.Random`` interface). Defaults to a
            shared ``SystemRandom`` instance.
        clock: Returns the current local time. Defaults to ``datetime.now``.

    Returns:
        Events ordered by ascending time, with ids 1..n in that order.

    Raises:
        GenerationFailure: If anything goes wrong while building the batch.
    """
    rng = rng or _default_rng
    clock = clock or datetime.now

    logger.info("Generating calendar events")
    try:
        count = rng.randint(MIN_EVENTS, MAX_EVENTS)
        drafts: list[_Draft] = []

        for _ in range(count):
            title = rng.choice(TASKS)
            when = clock() + timedelta(minutes=rng.randrange(WINDOW_MINUTES))
            when = round_to_quarter_hour(when)
            drafts.append(_Draft(when, title))
            logger.debug("Created event: title='%s', time='%s'", title, format_event_time(when))

        # list.sort is stable: equal times keep generation order
        drafts.sort(key=lambda draft: draft.when)
        logger.info("Sorted %d events by date/time", len(drafts))

        events = [
            EventRecord(id=position, title=draft.title, time=format_event_time(draft.when))
            for position, draft in enumerate(drafts, start=1)
        ]
    except Exception as exc:
        logger.error("Failed to generate calendar events", exc_info=True)
        raise GenerationFailure("Error occurred while generating calendar events") from exc

    logger.info("Assigned IDs and finalized event list")
    return events
