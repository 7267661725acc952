"""HTTP client for the calendar service.

The frontend calls ``GET /calendar`` with the user's delegated access token
and turns the JSON answer into ``CalendarEvent`` records. Every failure is
reported as ``FetchFailure``; ``reason`` tells transport errors (non-2xx)
apart from decode and other unexpected errors.
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

import requests

from .models import CalendarEvent

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10
MAX_RESPONSE_BYTES = 16 * 1024 * 1024
READ_CHUNK_BYTES = 64 * 1024


@dataclass(frozen=True)
class TransportError:
    """Calendar service answered with a non-2xx status."""
    status: int


@dataclass(frozen=True)
class DecodeError:
    """Response body could not be turned into calendar events."""
    cause: Exception


@dataclass(frozen=True)
class UnexpectedError:
    """Request failed before a response was received (connection, timeout...)."""
    cause: Exception


FetchReason = Union[TransportError, DecodeError, UnexpectedError]


class FetchFailure(Exception):
    """Raised when calendar events cannot be fetched from the calendar service."""

    def __init__(self, message: str, reason: Optional[FetchReason] = None):
        self.reason = reason
        super().__init__(message)


class CalendarClient:
    """Fetch calendar events from the calendar service.

    Usage:
        client = CalendarClient("http://calendar-service:9090")
        events = client.fetch_events(access_token)
    """

    def __init__(self, base_url: str, timeout: int = REQUEST_TIMEOUT, max_response_bytes: int = MAX_RESPONSE_BYTES):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_response_bytes = max_response_bytes

    @classmethod
    def from_config(cls, cfg) -> "CalendarClient":
        """Build a client from ``FrontendConfig``."""
        return cls(
            cfg.calendar_service_url,
            timeout=cfg.calendar_request_timeout,
            max_response_bytes=cfg.calendar_max_response_bytes,
        )

    def fetch_events(self, access_token: str) -> list[CalendarEvent]:
        """Fetch events using the given bearer token.

        Returns:
            Events in the order sent by the service; empty list for an empty body.

        Raises:
            FetchFailure: On HTTP errors or unparseable responses.
        """
        url = f"{self.base_url}/calendar"
        logger.debug("Fetching calendar events from %s with access token: [REDACTED]", url)

        try:
            response = requests.get(
                url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
                stream=True,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            if e.response is not None:
                e.response.close()
            status = e.response.status_code if e.response is not None else 0
            logger.error("HTTP error while fetching calendar events: %s", status, exc_info=True)
            raise FetchFailure(
                f"Failed to fetch calendar events due to HTTP error: {status}",
                TransportError(status=status),
            ) from e
        except Exception as e:
            logger.error("Unexpected error while fetching calendar events", exc_info=True)
            raise FetchFailure(
                "Unexpected error occurred while fetching calendar events",
                UnexpectedError(cause=e),
            ) from e

        try:
            return self._parse_events(self._read_body(response))
        except Exception as e:
            logger.error("Unexpected error while fetching calendar events", exc_info=True)
            raise FetchFailure(
                "Unexpected error occurred while fetching calendar events",
                DecodeError(cause=e),
            ) from e
        finally:
            response.close()

    def _read_body(self, response) -> bytes:
        """Read the streamed body, stopping as soon as it passes the size cap."""
        body = bytearray()
        for chunk in response.iter_content(chunk_size=READ_CHUNK_BYTES):
            body.extend(chunk)
            if len(body) > self.max_response_bytes:
                raise ValueError(f"Calendar response exceeds {self.max_response_bytes} bytes")
        return bytes(body)

    def _parse_events(self, body: bytes) -> list[CalendarEvent]:
        if not body.strip():
            logger.info("No calendar events returned from calendar service.")
            return []

        logger.debug("Received calendar events response: %s", body.decode("utf-8", errors="replace"))

        payload = json.loads(body)
        if not isinstance(payload, list):
            raise ValueError(f"Calendar response must be a JSON array, got {type(payload).__name__}")

        events = [CalendarEvent.from_dict(item) for item in payload]
        logger.info("Successfully parsed %d calendar events.", len(events))
        return events
