"""Frontend application factory and bootstrap.

Logs users in against Keycloak, calls the calendar service with their
delegated access token and renders the events server-side.

Run with:
    gunicorn -c gunicorn.conf.py calendar_poc.frontend_app:app
"""
from __future__ import annotations
import hmac
import logging
import os
import secrets
from tempfile import gettempdir

from flask import Flask, session, request, g, abort, redirect, url_for
from flask_session import Session
from werkzeug.middleware.proxy_fix import ProxyFix

from calendar_poc.config import load_frontend_settings


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> Flask:
    """Create and configure the frontend application."""
    cfg = load_frontend_settings()

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg

    logging.getLogger("calendar_poc").setLevel(cfg.log_level)

    # Flask session configuration
    app.config["SECRET_KEY"] = cfg.secret_key
    app.config["SESSION_TYPE"] = os.environ.get("FLASK_SESSION_TYPE", "filesystem")
    if app.config["SESSION_TYPE"] == "filesystem":
        session_dir = os.environ.get("FLASK_SESSION_DIR") or os.path.join(gettempdir(), "calendar_poc_flask_session")
        os.makedirs(session_dir, exist_ok=True)
        app.config["SESSION_FILE_DIR"] = session_dir

    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = cfg.session_cookie_secure
    app.config["CSRF_SESSION_KEY"] = "_csrf_token"

    Session(app)

    # Trust X-Forwarded-* headers from proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    from calendar_poc.api import auth
    auth.init_oauth(app, cfg)

    from calendar_poc.api import errors, health, pages

    app.register_blueprint(auth.bp)
    app.register_blueprint(pages.bp)
    app.register_blueprint(health.bp)

    errors.register_page_error_handlers(app)

    _register_middleware(app)
    _register_context_processors(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    print(f"[frontend_app] Mode={mode_label}")
    print(f"[frontend_app] Calendar service at {cfg.calendar_service_url}")

    if cfg.demo_mode:
        print("[frontend_app] WARNING: Demo mode active - do not deploy with demo settings")

    return app


def _register_middleware(app: Flask):
    """Register before_request middleware."""

    @app.before_request
    def enforce_csrf() -> None:
        """Validate CSRF token for state-changing requests."""
        if request.method not in {"POST", "PUT", "PATCH", "DELETE"}:
            return

        submitted_token = request.form.get("csrf_token") or request.headers.get("X-CSRF-Token", "")
        session_token = session.get(app.config["CSRF_SESSION_KEY"], "")

        if not session_token or not submitted_token or not hmac.compare_digest(session_token, submitted_token):
            abort(400, description="CSRF validation failed")

    @app.before_request
    def ensure_fresh_token():
        """Refresh OIDC token if expiring soon."""
        from calendar_poc.core.rbac import is_authenticated, refresh_session_token

        if not is_authenticated():
            return

        endpoint = (request.endpoint or "").rsplit(".", 1)[-1]
        if endpoint in {"login", "logout", "callback", "health_check", "readiness_check", "static"}:
            return

        outcome = refresh_session_token()
        if outcome is False and not is_authenticated():
            return redirect(url_for("auth.login"))


def _register_context_processors(app: Flask):
    """Register context processors for templates."""

    @app.context_processor
    def inject_global_context():
        from calendar_poc.core.rbac import is_authenticated

        return {
            "csrf_token": g.get("csrf_token") or _generate_csrf_token(),
            "is_authenticated": is_authenticated(),
        }


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions
# ─────────────────────────────────────────────────────────────────────────────
def _generate_csrf_token() -> str:
    """Generate or retrieve CSRF token for current session."""
    csrf_session_key = "_csrf_token"
    token = session.get(csrf_session_key)
    if not token:
        token = secrets.token_urlsafe(32)
        session[csrf_session_key] = token
    g.csrf_token = token
    return token


# ─────────────────────────────────────────────────────────────────────────────
# Application Instance (for Gunicorn)
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
