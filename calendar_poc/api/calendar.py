"""Calendar endpoint of the calendar service."""
from flask import Blueprint, jsonify, current_app

from calendar_poc.api.decorators import get_oauth_claims, require_realm_role
from calendar_poc.core.events import generate_events

bp = Blueprint("calendar", __name__)


@bp.route("/calendar", methods=["GET"])
@require_realm_role()
def get_calendar():
    """Return a freshly generated list of calendar events.

    Generation failures propagate to the registered error handlers.
    """
    claims = get_oauth_claims() or {}
    current_app.logger.info(
        "Fetching calendar events for %s (client: %s)", claims.get("sub"), claims.get("azp", "unknown")
    )
    events = generate_events(rng=current_app.config.get("EVENT_RNG"))
    return jsonify([event.to_dict() for event in events])
