"""
Nexo Greencycle API Route Blueprints
"""
from .site import site_bp
from .companies import companies_bp
from .pickups import pickups_bp
from .chat import chat_bp
from .agreements import agreements_bp
from .points import points_bp
from .analysis import analysis_bp
from .contact import contact_bp
from .dashboard import dashboard_bp

__all__ = [
    "site_bp",
    "companies_bp",
    "pickups_bp",
    "chat_bp",
    "agreements_bp",
    "points_bp",
    "analysis_bp",
    "contact_bp",
    "dashboard_bp",
]
