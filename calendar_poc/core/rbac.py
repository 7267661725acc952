"""Role-Based Access Control helpers for the frontend session."""
from __future__ import annotations
import time
from functools import wraps
from typing import Optional

from flask import session, current_app, redirect, url_for
from authlib.jose import JsonWebKey, jwt
import requests

from .claims import realm_roles


# JWKS Cache
_JWKS_CACHE: Optional[JsonWebKey] = None


def collect_roles(*sources) -> list[str]:
    """Collect realm roles from ID claims, userinfo, and access token claims."""
    roles = []
    for source in sources:
        roles.extend(sorted(r for r in realm_roles(source) if r not in roles))
    return roles


def decode_access_token(access_token: str, issuer: str) -> dict:
    """Decode and validate access token JWT."""
    global _JWKS_CACHE

    if not access_token:
        return {}

    try:
        if _JWKS_CACHE is None:
            from calendar_poc.api.auth import get_oidc_client
            client = get_oidc_client()
            metadata = client.load_server_metadata()
            jwks_uri = metadata.get("jwks_uri")
            if not jwks_uri:
                raise RuntimeError("jwks_uri missing from Keycloak metadata")
            resp = requests.get(jwks_uri, timeout=5)
            resp.raise_for_status()
            _JWKS_CACHE = JsonWebKey.import_key_set(resp.json())

        claims = jwt.decode(
            access_token,
            key=_JWKS_CACHE,
            claims_options={"iss": {"values": [issuer]}},
        )
        claims.validate()
        return dict(claims)
    except Exception as exc:
        current_app.logger.warning("Access token could not be decoded: %s", exc)
        return {}


def is_authenticated() -> bool:
    """Check if user is authenticated."""
    return bool(session.get("token"))


def current_roles() -> list[str]:
    """Roles stored for the current session (set at login)."""
    if not is_authenticated():
        return []
    roles = session.get("roles")
    if roles is None:
        roles = collect_roles(session.get("id_claims"), session.get("userinfo"))
        session["roles"] = roles
    return list(roles)


def user_has_role(role: str) -> bool:
    """Check if current user has specific role."""
    return role in current_roles()


def current_username() -> str:
    """Get current user's username."""
    for source in (session.get("userinfo") or {}, session.get("id_claims") or {}):
        if not isinstance(source, dict):
            continue
        for key in ("preferred_username", "email", "name"):
            value = source.get(key)
            if isinstance(value, str) and value:
                return value
    return ""


def current_access_token() -> Optional[str]:
    """Access token of the current session, if any."""
    token = session.get("token") or {}
    return token.get("access_token")


def filter_display_roles(roles: list[str], realm: str) -> list[str]:
    """Filter out Keycloak's composite default role from display."""
    default_role_name = f"default-roles-{realm.lower()}" if realm else ""
    hidden = {default_role_name} if default_role_name else set()
    return [role for role in roles if role.lower() not in hidden]


def refresh_session_token() -> Optional[bool]:
    """Refresh user's session token if needed.

    Returns:
        None if no token or not expired
        True if refresh successful
        False if refresh failed
    """
    cfg = current_app.config["APP_CONFIG"]

    token = session.get("token") or {}
    if not token:
        return None

    now = time.time()
    expires_at = token.get("expires_at")

    if expires_at is None:
        expires_in = token.get("expires_in")
        if expires_in is not None:
            try:
                expires_at = now + int(expires_in)
                token["expires_at"] = expires_at
                session["token"] = token
            except (TypeError, ValueError):
                pass

    if expires_at is None:
        return None

    if expires_at - cfg.token_refresh_leeway > now:
        return None

    refresh_token = token.get("refresh_token")
    if not refresh_token:
        current_app.logger.warning("Session access token expired without refresh token; clearing session.")
        clear_session_tokens()
        return False

    try:
        token_endpoint = f"{cfg.keycloak_server_url}/protocol/openid-connect/token"
        response = requests.post(
            token_endpoint,
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": cfg.oidc_client_id,
                "client_secret": cfg.oidc_client_secret,
            },
            timeout=10,
        )
        response.raise_for_status()
        new_token = response.json()
    except Exception as exc:
        current_app.logger.warning("Token refresh failed: %s", exc)
        clear_session_tokens()
        return False

    if not new_token:
        clear_session_tokens()
        return False

    if "refresh_token" not in new_token:
        new_token["refresh_token"] = refresh_token

    expires_in = new_token.get("expires_in")
    if expires_in is not None:
        try:
            new_token["expires_at"] = time.time() + int(expires_in)
        except (TypeError, ValueError):
            new_token.pop("expires_at", None)

    session["token"] = new_token
    return True


def clear_session_tokens() -> None:
    """Clear all session tokens."""
    for key in ("token", "userinfo", "id_claims", "roles"):
        session.pop(key, None)


def require_role(role: Optional[str] = None):
    """Decorator for pages restricted to a realm role.

    Anonymous users are sent to the login flow; users without the role
    (default: configured ``required_role``) to the access-denied page.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not is_authenticated():
                return redirect(url_for("auth.login"), code=302)

            required = role or current_app.config["APP_CONFIG"].required_role
            if not user_has_role(required):
                current_app.logger.warning(
                    "User %s lacks role %s", current_username() or "unknown", required
                )
                return redirect(url_for("pages.access_denied"), code=302)

            return fn(*args, **kwargs)
        return wrapper
    return decorator
