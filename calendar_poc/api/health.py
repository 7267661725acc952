"""Liveness and readiness probes, shared by both services."""
from flask import Blueprint, current_app

bp = Blueprint("health", __name__)

_TEXT_PLAIN = {"Content-Type": "text/plain"}


@bp.route("/health")
def health_check():
    """Liveness: the process answers requests."""
    return ("ok", 200, _TEXT_PLAIN)


@bp.route("/ready")
def readiness_check():
    """Readiness: settings are loaded, so the service can take traffic."""
    if current_app.config.get("APP_CONFIG") is None:
        return ("not ready", 503, _TEXT_PLAIN)
    return ("ready", 200, _TEXT_PLAIN)
