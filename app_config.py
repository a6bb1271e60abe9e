import os
import secrets
import logging
from dotenv import load_dotenv

load_dotenv()


def _require_in_production(var_name, default):
    """Return env var value. In production, warn loudly if still using default."""
    value = os.environ.get(var_name, "")
    if value:
        return value
    env = os.environ.get("FLASK_ENV", "development")
    if env != "development" and default:
        logging.getLogger(__name__).warning(
            "%s is using an insecure default. Set it via environment variable!", var_name
        )
    return default


def _database_url():
    url = os.environ.get('DATABASE_URL', '')
    if not url:
        return 'sqlite:///greencycle.db'
    # SQLAlchemy 2.x only understands the postgresql:// scheme
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration"""

    # Flask
    SECRET_KEY = _require_in_production(
        'SECRET_KEY', 'dev-only-' + secrets.token_hex(16)
    )
    DEBUG = os.environ.get('FLASK_ENV', 'development') == 'development'
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # JWT Authentication
    JWT_SECRET = _require_in_production(
        'JWT_SECRET', 'dev-only-' + secrets.token_hex(32)
    )
    JWT_EXPIRY_DAYS = int(os.environ.get('JWT_EXPIRY_DAYS', '30'))

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Agreement PDFs travel inline as data URIs, images as base64
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB

    # CORS (comma-separated list; "*" only honoured in development)
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '')

    # Realtime
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'eventlet')

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'

    # AI classification gateway (OpenAI-compatible chat completions)
    AI_GATEWAY_URL = os.environ.get(
        'AI_GATEWAY_URL', 'https://ai.gateway.lovable.dev/v1/chat/completions'
    )
    AI_GATEWAY_API_KEY = os.environ.get('AI_GATEWAY_API_KEY') or os.environ.get('LOVABLE_API_KEY', '')
    AI_MODEL = os.environ.get('AI_MODEL', 'google/gemini-3-flash-preview')
    AI_GATEWAY_TIMEOUT = float(os.environ.get('AI_GATEWAY_TIMEOUT', '60'))

    # Contact form inbox
    CONTACT_INBOX = os.environ.get('CONTACT_INBOX', 'support@nexogreencycle.co.ke')

    # Background jobs (pickup reminders)
    ENABLE_SCHEDULER = os.environ.get('ENABLE_SCHEDULER', '').lower() == 'true'

    # Server
    PORT = int(os.environ.get('PORT', '8080'))


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True
    LOG_LEVEL = 'WARNING'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET = 'test-jwt-secret'
    SECRET_KEY = 'test-secret-key'
    SOCKETIO_ASYNC_MODE = 'threading'
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'
    AI_GATEWAY_URL = 'https://ai-gateway.test/v1/chat/completions'
    AI_GATEWAY_API_KEY = 'test-gateway-key'
    ENABLE_SCHEDULER = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
