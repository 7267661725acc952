"""Authentication routes and OIDC helpers for the frontend.

The frontend logs users in against Keycloak with the authorization code flow
(PKCE S256), keeps the delegated token in the server-side session and reads
realm roles from the access token (``realm_access.roles``).
"""
from __future__ import annotations
import hashlib
import base64
import secrets
import string
from urllib.parse import urlencode

from flask import Blueprint, session, redirect, url_for, current_app
from authlib.integrations.flask_client import OAuth

bp = Blueprint("auth", __name__)

# Module-level OAuth instance (initialized by create_app)
oauth: OAuth = None
_client = None


def init_oauth(app, cfg):
    """Initialize the OAuth client for the configured Keycloak registration."""
    global oauth, _client

    oauth = OAuth(app)
    _client = oauth.register(
        name=cfg.oidc_registration_id,
        server_metadata_url=f"{cfg.keycloak_server_url}/.well-known/openid-configuration",
        client_id=cfg.oidc_client_id,
        client_secret=cfg.oidc_client_secret or None,
        client_kwargs={"scope": "openid profile email roles"},
        fetch_token=lambda: session.get("token"),
    )
    return oauth


def get_oidc_client():
    """Get the registered OIDC client instance."""
    if _client is None:
        raise RuntimeError("OIDC client not initialized. Call init_oauth first.")
    return _client


# ─────────────────────────────────────────────────────────────────────────────
# PKCE Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _generate_code_verifier(length: int = 64) -> str:
    """Generate PKCE code verifier."""
    alphabet = string.ascii_letters + string.digits + "-._~"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _build_code_challenge(code_verifier: str) -> str:
    """Build PKCE code challenge from verifier."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("/login")
def login():
    """Initiate OIDC login flow with PKCE."""
    cfg = current_app.config["APP_CONFIG"]
    client = get_oidc_client()

    code_verifier = _generate_code_verifier()
    session["pkce_code_verifier"] = code_verifier

    return client.authorize_redirect(
        redirect_uri=cfg.oidc_redirect_uri,
        code_challenge=_build_code_challenge(code_verifier),
        code_challenge_method="S256",
    )


@bp.route("/callback")
def callback():
    """Handle OIDC callback after successful authentication."""
    cfg = current_app.config["APP_CONFIG"]
    client = get_oidc_client()

    code_verifier = session.pop("pkce_code_verifier", None)
    if not code_verifier:
        return redirect(url_for("auth.login"))

    token = client.authorize_access_token(code_verifier=code_verifier)
    session["token"] = token

    # Authlib validates the ID token against the login nonce and exposes its claims as "userinfo"
    session["id_claims"] = dict(token.get("userinfo") or {})

    try:
        userinfo_url = f"{cfg.keycloak_server_url}/protocol/openid-connect/userinfo"
        session["userinfo"] = client.get(userinfo_url, token=token).json()
    except Exception as exc:
        current_app.logger.warning("Userinfo request failed: %s", exc)
        session["userinfo"] = {}

    from calendar_poc.core.rbac import collect_roles, decode_access_token

    access_claims = decode_access_token(token.get("access_token"), cfg.keycloak_issuer)
    roles = collect_roles(access_claims, session.get("id_claims"), session.get("userinfo"))
    session["roles"] = roles

    current_app.logger.info(f"[Auth] Realm roles extracted from token: {roles}")

    return redirect(url_for("pages.index"))


@bp.route("/logout", methods=["GET", "POST"])
def logout():
    """Logout locally, then end the Keycloak session."""
    cfg = current_app.config["APP_CONFIG"]

    token = session.get("token") or {}
    id_token = token.get("id_token")

    session.clear()

    end_session_endpoint = f"{cfg.keycloak_public_issuer.rstrip('/')}/protocol/openid-connect/logout"
    params = {"post_logout_redirect_uri": cfg.post_logout_redirect_uri}
    if id_token:
        params["id_token_hint"] = id_token
    else:
        params["client_id"] = cfg.oidc_client_id

    response = redirect(f"{end_session_endpoint}?{urlencode(params)}")
    response.delete_cookie(current_app.config.get("SESSION_COOKIE_NAME", "session"))
    return response
