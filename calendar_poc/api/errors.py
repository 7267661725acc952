"""Error handlers for the calendar service and the frontend."""
from flask import render_template, jsonify, request
from werkzeug.exceptions import HTTPException

from calendar_poc.core.calendar_client import FetchFailure
from calendar_poc.core.events import GenerationFailure

GENERIC_PAGE_ERROR = "An unexpected error occurred. Please try again later."


def _plain_text(body: str, status: int):
    return body, status, {"Content-Type": "text/plain; charset=utf-8"}


def register_api_error_handlers(app):
    """Register calendar service (JSON API) error handlers."""

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({"error": "Unauthorized", "message": "Authentication required"}), 401

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({"error": "Forbidden", "message": "Insufficient permissions"}), 403

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not Found", "message": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method Not Allowed", "message": str(error.description)}), 405

    @app.errorhandler(GenerationFailure)
    def generation_failure(error):
        app.logger.error(f"Calendar generation failed: {error}", exc_info=True)
        return _plain_text(f"Calendar service error: {error}", 500)

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        if isinstance(error, HTTPException):
            return error

        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return _plain_text(f"Internal server error: {error}", 500)


def register_page_error_handlers(app):
    """Register frontend (HTML pages) error handlers."""

    @app.errorhandler(404)
    def not_found(error):
        if _wants_json():
            return jsonify({"error": "Not Found", "message": "Resource not found"}), 404
        return render_template("error.html", title="Not Found", message="The requested page does not exist."), 404

    @app.errorhandler(FetchFailure)
    def fetch_failure(error):
        app.logger.error(f"FetchFailure caught: {error}", exc_info=True)
        return _page_error(f"Calendar service error: {error}")

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal error: {error}", exc_info=True)
        return _page_error(GENERIC_PAGE_ERROR)

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        if isinstance(error, HTTPException):
            return error

        app.logger.error(f"Unexpected exception caught: {error}", exc_info=True)
        return _page_error(GENERIC_PAGE_ERROR)


def _page_error(message: str):
    if _wants_json():
        return jsonify({"error": "Internal Server Error", "message": message}), 500
    return render_template("error.html", title="Internal Server Error", message=message), 500


def _wants_json():
    """Check if the client wants a JSON response."""
    return request.accept_mimetypes.accept_json and \
           not request.accept_mimetypes.accept_html
