"""Tests for GET /calendar on the calendar service."""
import random
from datetime import datetime

import pytest

from calendar_poc.api import calendar as calendar_routes
from calendar_poc.core.events import GenerationFailure, TASKS


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_calendar_requires_token(calendar_client):
    response = calendar_client.get("/calendar")
    assert response.status_code == 401


def test_calendar_rejects_garbage_token(calendar_client, jwks_stub):
    response = calendar_client.get("/calendar", headers=_bearer("not-a-jwt"))
    assert response.status_code == 401
    assert "malformed" in response.get_json()["message"]


def test_calendar_rejects_token_without_role(calendar_client, jwks_stub, make_token, monkeypatch):
    def fail_if_called(*args, **kwargs):
        raise AssertionError("generator must not run for unauthorized callers")

    monkeypatch.setattr(calendar_routes, "generate_events", fail_if_called)

    response = calendar_client.get("/calendar", headers=_bearer(make_token(roles=["offline_access"])))
    assert response.status_code == 403
    assert response.get_json()["message"] == "Required role: my-role"


def test_calendar_returns_events(calendar_client, jwks_stub, make_token):
    response = calendar_client.get("/calendar", headers=_bearer(make_token(roles=["my-role"])))

    assert response.status_code == 200
    assert response.content_type.startswith("application/json")
    events = response.get_json()
    assert 3 <= len(events) <= 6
    assert [event["id"] for event in events] == list(range(1, len(events) + 1))
    for event in events:
        assert set(event) == {"id", "title", "time"}
        assert event["title"] in TASKS
        parsed = datetime.strptime(event["time"], "%Y-%m-%dT%H:%M:%S.%f")
        assert parsed.minute % 15 == 0


def test_calendar_accepts_lowercase_bearer_scheme(calendar_client, jwks_stub, make_token):
    token = make_token(roles=["my-role"])
    response = calendar_client.get("/calendar", headers={"Authorization": f"bearer {token}"})

    assert response.status_code == 200
    assert 3 <= len(response.get_json()) <= 6


def test_calendar_logs_token_subject(calendar_app, jwks_stub, make_token, monkeypatch):
    seen = []
    monkeypatch.setattr(calendar_app.logger, "info", lambda msg, *args: seen.append(msg % args))

    with calendar_app.test_client() as client:
        response = client.get("/calendar", headers=_bearer(make_token(roles=["my-role"])))

    assert response.status_code == 200
    assert "Fetching calendar events for user-123 (client: frontend-app)" in seen


def test_calendar_uses_configured_random_source(calendar_app, jwks_stub, make_token):
    token = make_token(roles=["my-role"])

    calendar_app.config["EVENT_RNG"] = random.Random(99)
    with calendar_app.test_client() as client:
        first = [event["title"] for event in client.get("/calendar", headers=_bearer(token)).get_json()]

    calendar_app.config["EVENT_RNG"] = random.Random(99)
    with calendar_app.test_client() as client:
        second = [event["title"] for event in client.get("/calendar", headers=_bearer(token)).get_json()]

    assert first == second


def test_generation_failure_returns_500_text(calendar_client, jwks_stub, make_token, monkeypatch):
    def broken(*args, **kwargs):
        raise GenerationFailure("Error occurred while generating calendar events")

    monkeypatch.setattr(calendar_routes, "generate_events", broken)

    response = calendar_client.get("/calendar", headers=_bearer(make_token(roles=["my-role"])))
    assert response.status_code == 500
    assert response.content_type.startswith("text/plain")
    assert response.get_data(as_text=True) == (
        "Calendar service error: Error occurred while generating calendar events"
    )


def test_unexpected_error_returns_internal_server_error(calendar_client, jwks_stub, make_token, monkeypatch):
    def broken(*args, **kwargs):
        raise KeyError("oops")

    monkeypatch.setattr(calendar_routes, "generate_events", broken)

    response = calendar_client.get("/calendar", headers=_bearer(make_token(roles=["my-role"])))
    assert response.status_code == 500
    assert response.get_data(as_text=True).startswith("Internal server error:")


@pytest.mark.parametrize("path", ["/health", "/ready"])
def test_probes_are_public(calendar_client, path):
    response = calendar_client.get(path)
    assert response.status_code == 200


def test_unknown_path_is_json_404(calendar_client):
    response = calendar_client.get("/nope")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Not Found", "message": "Resource not found"}


def test_post_not_allowed(calendar_client):
    response = calendar_client.post("/calendar")
    assert response.status_code == 405
