import os
import logging

import click
from flask import Flask, request
from flask_cors import CORS

from sanitize import sanitize_dict
from extensions import limiter
from app_config import config
from errors import register_error_handlers
from middleware import RequestIdMiddleware, configure_logging
from auth_routes import auth_bp
from models import db
from socket_events import socketio
from routes import (
    site_bp, companies_bp, pickups_bp, chat_bp, agreements_bp, points_bp,
    analysis_bp, contact_bp, dashboard_bp
)

_startup_logger = logging.getLogger("greencycle.startup")

_CRITICAL_ENV_VARS = [
    "JWT_SECRET",
    "SECRET_KEY",
    "DATABASE_URL",
]

_RECOMMENDED_ENV_VARS = [
    "AI_GATEWAY_API_KEY",
    "CORS_ORIGINS",
    "TWILIO_ACCOUNT_SID",
    "RESEND_API_KEY",
]

_DEFAULT_ORIGINS = [
    "https://nexogreencycle.co.ke",
    "https://www.nexogreencycle.co.ke",
    "https://app.nexogreencycle.co.ke",
]

# Paths whose bodies must NOT be sanitized (base64 image uploads).
_SANITIZE_SKIP_PREFIXES = ("/api/analyze-waste",)


# ---------------------------------------------------------------------------
# Sentry error monitoring (optional -- only active when SENTRY_DSN is set)
# ---------------------------------------------------------------------------
def _init_sentry():
    dsn = os.environ.get("SENTRY_DSN")
    if not dsn:
        return False
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )
    return True


# ---------------------------------------------------------------------------
# Production startup checks
# ---------------------------------------------------------------------------
def _startup_checks(sentry_enabled):
    missing_critical = [v for v in _CRITICAL_ENV_VARS if not os.environ.get(v)]
    missing_recommended = [v for v in _RECOMMENDED_ENV_VARS if not os.environ.get(v)]

    if missing_critical:
        _startup_logger.critical(
            "MISSING CRITICAL ENV VARS (app may not work correctly): %s",
            ", ".join(missing_critical),
        )
    if missing_recommended:
        _startup_logger.warning(
            "Missing recommended env vars: %s",
            ", ".join(missing_recommended),
        )
    if not sentry_enabled:
        _startup_logger.warning("SENTRY_DSN is not set -- error monitoring is disabled.")


# ---------------------------------------------------------------------------
# CORS configuration
# ---------------------------------------------------------------------------
def _allowed_origins(app, is_development):
    cors_env = app.config.get("CORS_ORIGINS") or ""
    if cors_env:
        origins = [o.strip() for o in cors_env.split(",") if o.strip()]
        # Block wildcard CORS in production -- it must be an explicit list
        if not is_development and "*" in origins:
            _startup_logger.critical(
                "CORS_ORIGINS is set to '*' in a non-development environment! "
                "Falling back to the default allow-list for safety."
            )
            return _DEFAULT_ORIGINS
        return origins
    if is_development:
        return "*"
    return _DEFAULT_ORIGINS


def create_app(config_name=None):
    """
    Application factory

    Args:
        config_name (str): development, production or testing
                           (defaults to FLASK_ENV)

    Returns:
        Flask: Configured Flask application
    """
    config_name = config_name or os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config["default"]))

    configure_logging(app.config["LOG_LEVEL"])
    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)

    is_development = config_name in ("development", "testing")
    if not is_development:
        _startup_checks(_init_sentry())

    # -----------------------------------------------------------------------
    # Initialize extensions
    # -----------------------------------------------------------------------
    origins = _allowed_origins(app, is_development)
    CORS(app, resources={r"/api/*": {"origins": origins}})
    db.init_app(app)
    socketio.init_app(app, cors_allowed_origins=origins, async_mode=app.config["SOCKETIO_ASYNC_MODE"])
    limiter.init_app(app)

    register_error_handlers(app)

    # -----------------------------------------------------------------------
    # Register blueprints
    # -----------------------------------------------------------------------
    app.register_blueprint(auth_bp)
    app.register_blueprint(site_bp)
    app.register_blueprint(companies_bp)
    app.register_blueprint(pickups_bp)
    app.register_blueprint(chat_bp)
    app.register_blueprint(agreements_bp)
    app.register_blueprint(points_bp)
    app.register_blueprint(analysis_bp)
    app.register_blueprint(contact_bp)
    app.register_blueprint(dashboard_bp)

    # -----------------------------------------------------------------------
    # Input sanitization middleware (XSS / injection prevention)
    # -----------------------------------------------------------------------
    @app.before_request
    def sanitize_json_input():
        """Sanitize all string values in incoming JSON bodies.

        Skips the image upload endpoint so base64 payloads are not corrupted.
        """
        if request.path.startswith(_SANITIZE_SKIP_PREFIXES) or not request.is_json:
            return None

        raw = request.get_json(silent=True)
        if raw is not None:
            # Downstream get_json() calls read this cache (silent, non-silent)
            sanitized = sanitize_dict(raw)
            request._cached_json = (sanitized, sanitized)
        return None

    # -----------------------------------------------------------------------
    # Security headers middleware
    # -----------------------------------------------------------------------
    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(self), microphone=(), geolocation=()"
        response.headers["Content-Security-Policy"] = "default-src 'none'"
        if not is_development:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # -----------------------------------------------------------------------
    # Create all SQLAlchemy tables on startup
    # -----------------------------------------------------------------------
    with app.app_context():
        db.create_all()

    # -----------------------------------------------------------------------
    # Background scheduler (pickup reminders)
    # -----------------------------------------------------------------------
    from scheduler import init_scheduler, _send_pickup_reminders
    app.extensions["greencycle_scheduler"] = init_scheduler(app)

    # -----------------------------------------------------------------------
    # Flask CLI commands
    # -----------------------------------------------------------------------
    @app.cli.command("init-db")
    def cli_init_db():
        """Create any missing tables."""
        db.create_all()
        click.echo("Database tables are up to date.")

    @app.cli.command("send-reminders")
    def cli_send_reminders():
        """Send tomorrow's pickup reminders once."""
        count = _send_pickup_reminders(app)
        click.echo("Reminders sent for {} pickup(s).".format(count))

    return app
