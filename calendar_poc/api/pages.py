"""Frontend pages: home, calendar view and access denied."""
from __future__ import annotations

from flask import Blueprint, render_template, current_app

from calendar_poc.core.calendar_client import CalendarClient
from calendar_poc.core.rbac import (
    require_role,
    current_roles,
    current_username,
    current_access_token,
    filter_display_roles,
    is_authenticated,
)

bp = Blueprint("pages", __name__)


def _user_context() -> dict:
    cfg = current_app.config["APP_CONFIG"]
    return {
        "username": current_username(),
        "roles": filter_display_roles(current_roles(), cfg.keycloak_realm),
    }


def get_calendar_client() -> CalendarClient:
    """Calendar client bound to the current app."""
    client = current_app.extensions.get("calendar_client")
    if client is None:
        client = CalendarClient.from_config(current_app.config["APP_CONFIG"])
        current_app.extensions["calendar_client"] = client
    return client


@bp.route("/")
@bp.route("/home")
@require_role()
def index():
    """Home page."""
    current_app.logger.debug("Rendering home page for user: %s", current_username())
    return render_template("index.html", title="Home", calendar_events=None, **_user_context())


@bp.route("/calendar")
@require_role()
def calendar():
    """Fetch calendar events and render the calendar view.

    FetchFailure is left to the registered error handlers.
    """
    username = current_username()
    current_app.logger.debug("Received request for calendar data from user: %s", username)

    events = get_calendar_client().fetch_events(current_access_token())

    current_app.logger.info("Fetched %d calendar events for user %s", len(events), username)
    return render_template("index.html", title="Calendar", calendar_events=events, **_user_context())


@bp.route("/access-denied")
def access_denied():
    """Access denied page."""
    current_app.logger.warning("Access denied page requested.")
    cfg = current_app.config["APP_CONFIG"]
    return render_template(
        "access-denied.html",
        title="Access Denied",
        required_role=cfg.required_role,
        is_authenticated=is_authenticated(),
    ), 403
