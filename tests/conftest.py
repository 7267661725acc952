"""Pytest shared fixtures."""
import os
import pathlib
import sys
import time
from types import SimpleNamespace
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")
os.environ.setdefault("FLASK_SESSION_COOKIE_SECURE", "false")

import jwt
import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa

from calendar_poc.api import decorators

DEMO_ISSUER = "http://localhost:8080/realms/demo"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting live endpoints.

    Integration tests are explicitly marked with @pytest.mark.integration.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _unexpected(method):
        def _stub(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _stub

    monkeypatch.setattr(requests, "get", _unexpected("GET"))
    monkeypatch.setattr(requests, "post", _unexpected("POST"))


@pytest.fixture(autouse=True)
def _reset_jwks_client():
    decorators._jwks_client = None
    yield
    decorators._jwks_client = None


# ─────────────────────────────────────────────────────────────────────────────
# Flask Apps
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def calendar_app():
    from calendar_poc.calendar_app import create_app

    app = create_app()
    app.config.update(TESTING=True)
    return app


@pytest.fixture()
def calendar_client(calendar_app):
    with calendar_app.test_client() as client:
        yield client


@pytest.fixture()
def frontend_app():
    from calendar_poc.frontend_app import create_app

    app = create_app()
    app.config.update(TESTING=True)
    return app


@pytest.fixture()
def frontend_client(frontend_app):
    with frontend_app.test_client() as client:
        yield client


# ─────────────────────────────────────────────────────────────────────────────
# RSA Key Pair + JWT Helpers
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(scope="session")
def rsa_key_pair():
    """Generate RSA key pair for JWT signing in tests."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return {"private_key": private_key, "public_key": private_key.public_key()}


@pytest.fixture()
def jwks_stub(monkeypatch, rsa_key_pair):
    """Serve the test public key instead of Keycloak's JWKS endpoint."""

    class _JWKSStub:
        def __init__(self):
            self.requested_kids = []

        def get_signing_key_from_jwt(self, token):
            self.requested_kids.append(jwt.get_unverified_header(token).get("kid"))
            return SimpleNamespace(key=rsa_key_pair["public_key"])

    stub = _JWKSStub()
    monkeypatch.setattr(decorators, "get_jwks_client", lambda: stub)
    return stub


@pytest.fixture()
def make_token(rsa_key_pair):
    """Return a factory minting RS256 access tokens like Keycloak's."""

    def _make_token(
        roles: Optional[list] = None,
        issuer: str = DEMO_ISSUER,
        exp_offset: int = 300,
        nbf_offset: int = 0,
        extra_claims: Optional[dict] = None,
        key=None,
    ) -> str:
        now = int(time.time())
        payload = {
            "iss": issuer,
            "sub": "user-123",
            "azp": "frontend-app",
            "exp": now + exp_offset,
            "nbf": now + nbf_offset,
            "iat": now,
            "preferred_username": "alice",
        }
        if roles is not None:
            payload["realm_access"] = {"roles": roles}
        payload.update(extra_claims or {})
        return jwt.encode(
            payload,
            key or rsa_key_pair["private_key"],
            algorithm="RS256",
            headers={"kid": "test-key"},
        )

    return _make_token


# ─────────────────────────────────────────────────────────────────────────────
# Session Helpers
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def login_as(frontend_client):
    """Put an authenticated user with the given realm roles in the session."""

    def _login_as(roles, username="alice", access_token="user-access-token"):
        with frontend_client.session_transaction() as session:
            session["token"] = {
                "access_token": access_token,
                "id_token": "stub-id-token",
                "expires_at": time.time() + 3600,
            }
            session["userinfo"] = {"preferred_username": username}
            session["id_claims"] = {"preferred_username": username}
            session["roles"] = list(roles)

    return _login_as


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires running stack)"
    )
