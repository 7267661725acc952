"""Calendar PoC: a Keycloak-protected calendar service and its OIDC frontend.

To use the Flask apps:
    from calendar_poc.calendar_app import app    # resource server, GET /calendar
    from calendar_poc.frontend_app import app    # OIDC client rendering the events

To generate events without Flask:
    from calendar_poc.core.events import generate_events
"""
# Note: the apps are not imported here; importing one builds it from the environment
