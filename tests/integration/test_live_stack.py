"""Checks against a running stack (Keycloak, calendar service, frontend).

Run with:
    pytest -m integration

Base URLs come from CALENDAR_BASE_URL, FRONTEND_BASE_URL and KEYCLOAK_ISSUER.
A user token can be supplied via CALENDAR_TEST_TOKEN to exercise the 200 path.
"""
import os
from datetime import datetime

import pytest
import requests

CALENDAR_URL = os.environ.get("CALENDAR_BASE_URL", "http://localhost:9090")
FRONTEND_URL = os.environ.get("FRONTEND_BASE_URL", "http://localhost:5000")
ISSUER = os.environ.get("KEYCLOAK_ISSUER", "http://localhost:8080/realms/demo")


def _get(url, **kwargs):
    try:
        return requests.get(url, timeout=5, **kwargs)
    except requests.exceptions.ConnectionError:
        pytest.skip(f"{url} not reachable (stack not running)")


@pytest.mark.integration
def test_calendar_service_health():
    response = _get(f"{CALENDAR_URL}/health")
    assert response.status_code == 200
    assert response.text == "ok"


@pytest.mark.integration
def test_calendar_requires_bearer_token():
    response = _get(f"{CALENDAR_URL}/calendar")
    assert response.status_code == 401
    assert response.headers.get("WWW-Authenticate", "").startswith("Bearer")


@pytest.mark.integration
def test_calendar_rejects_forged_token():
    response = _get(f"{CALENDAR_URL}/calendar", headers={"Authorization": "Bearer not.a.token"})
    assert response.status_code == 401


@pytest.mark.integration
def test_calendar_with_real_token():
    token = os.environ.get("CALENDAR_TEST_TOKEN")
    if not token:
        pytest.skip("CALENDAR_TEST_TOKEN not set")

    response = _get(f"{CALENDAR_URL}/calendar", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200

    events = response.json()
    assert 3 <= len(events) <= 6
    for event in events:
        assert datetime.strptime(event["time"], "%Y-%m-%dT%H:%M:%S.%f").minute % 15 == 0


@pytest.mark.integration
def test_frontend_redirects_to_login():
    response = _get(f"{FRONTEND_URL}/calendar", allow_redirects=False)
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/login")


@pytest.mark.integration
def test_keycloak_discovery_document():
    response = _get(f"{ISSUER}/.well-known/openid-configuration")
    assert response.status_code == 200
    metadata = response.json()
    assert metadata["issuer"] == ISSUER
    assert "S256" in metadata.get("code_challenge_methods_supported", [])
