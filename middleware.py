"""
Request ID middleware for request tracing and logging
"""
import logging
import uuid

from flask import has_request_context, request


class RequestIdMiddleware:
    """
    WSGI middleware to add unique request ID to each request.
    An incoming X-Request-ID header is reused so IDs survive proxies.
    """

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        request_id = environ.get('HTTP_X_REQUEST_ID') or str(uuid.uuid4())
        environ['request_id'] = request_id

        def custom_start_response(status, headers, exc_info=None):
            headers.append(('X-Request-ID', request_id))
            return start_response(status, headers, exc_info)

        return self.app(environ, custom_start_response)


class RequestIdFilter(logging.Filter):
    """Stamp log records with the current request ID ("-" outside requests)."""

    def filter(self, record):
        record.request_id = request.environ.get('request_id', '-') if has_request_context() else '-'
        return True


def configure_logging(level):
    """Root logger with request IDs in every line; idempotent."""
    root = logging.getLogger()
    root.setLevel(level)
    if any(getattr(h, '_greencycle', False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s'
    ))
    handler.addFilter(RequestIdFilter())
    handler._greencycle = True
    root.addHandler(handler)
