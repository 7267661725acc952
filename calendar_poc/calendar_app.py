"""Calendar service application factory.

Exposes ``GET /calendar`` as an OAuth2 resource server: callers present a
Keycloak-issued bearer token carrying the required realm role.

Run with:
    gunicorn -c gunicorn.conf.py calendar_poc.calendar_app:app
"""
from __future__ import annotations
import logging

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from calendar_poc.config import load_calendar_settings


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> Flask:
    """Create and configure the calendar service."""
    cfg = load_calendar_settings()

    app = Flask(__name__, static_folder=None)
    app.config["APP_CONFIG"] = cfg
    # Randomness provider for event generation; None selects the default source
    app.config.setdefault("EVENT_RNG", None)

    logging.getLogger("calendar_poc").setLevel(cfg.log_level)

    # Trust X-Forwarded-* headers from proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    from calendar_poc.api import calendar, errors, health

    app.register_blueprint(health.bp)
    app.register_blueprint(calendar.bp)

    errors.register_api_error_handlers(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    print(f"[calendar_app] Mode={mode_label}")
    print(f"[calendar_app] GET /calendar requires realm role '{cfg.required_role}'")

    return app


# ─────────────────────────────────────────────────────────────────────────────
# Application Instance (for Gunicorn)
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=9090, debug=True)
