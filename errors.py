"""
JSON error responses.

Every failure the API reports has the shape ``{"error": "<message>"}``.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


def db_error_message(exc):
    """The driver's own message for a failed statement, unmodified."""
    return str(getattr(exc, "orig", None) or exc)


def register_error_handlers(app):
    @app.errorhandler(429)
    def ratelimit_handler(e):
        # Flask-Limiter sets Retry-After; read it back for the JSON body.
        retry_after = e.get_headers().get("Retry-After") if hasattr(e, "get_headers") else None
        try:
            retry_after_seconds = int(retry_after) if retry_after else 60
        except (TypeError, ValueError):
            retry_after_seconds = 60
        return jsonify({
            "error": "Too many requests. Please try again later.",
            "retry_after": retry_after_seconds,
        }), 429

    @app.errorhandler(413)
    def too_large_handler(e):
        return jsonify({"error": "Request body too large"}), 413

    @app.errorhandler(HTTPException)
    def http_error_handler(e):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def unhandled_error_handler(e):
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500
