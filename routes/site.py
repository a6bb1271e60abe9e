"""
Site-level API routes: health check, navigation and home page content.
"""

from flask import Blueprint, jsonify
from sqlalchemy import func

from models import db, WasteAnalysis
from extensions import limiter
import catalog

site_bp = Blueprint("site", __name__, url_prefix="/api")

SERVICE_NAME = "Nexo Greencycle API"
API_VERSION = "1.0.0"

NAV_ITEMS = [
    {"label": "Home", "path": "/"},
    {"label": "About", "path": "/about"},
    {"label": "Companies", "path": "/companies"},
    {"label": "Points", "path": "/points"},
    {"label": "Contact", "path": "/contact"},
]

# Every client page and whether it needs a signed-in user
PAGES = [
    {"path": "/", "name": "Home", "requires_auth": False},
    {"path": "/about", "name": "About", "requires_auth": False},
    {"path": "/companies", "name": "Companies", "requires_auth": False},
    {"path": "/contact", "name": "Contact", "requires_auth": False},
    {"path": "/ai-analysis", "name": "AI Analysis", "requires_auth": False},
    {"path": "/login", "name": "Login", "requires_auth": False},
    {"path": "/register", "name": "Register", "requires_auth": False},
    {"path": "/points", "name": "Points", "requires_auth": True},
    {"path": "/dashboard", "name": "Dashboard", "requires_auth": True},
    {"path": "/chat", "name": "Chat", "requires_auth": True},
]

HOW_IT_WORKS = [
    {"title": "Upload Photo", "desc": "Take a photo of your waste material"},
    {"title": "AI Analyzes", "desc": "Our AI identifies the waste type instantly"},
    {"title": "Get Recommendation", "desc": "Receive recycling or disposal guidance"},
    {"title": "Request Pickup", "desc": "Schedule a pickup from nearby companies"},
]


@site_bp.route("/health", methods=["GET"])
@limiter.exempt
def health_check():
    """Health check endpoint (exempt from rate limiting)"""
    return jsonify({"status": "healthy", "service": SERVICE_NAME, "version": API_VERSION}), 200


@site_bp.route("/site/navigation", methods=["GET"])
def get_navigation():
    return jsonify({"success": True, "nav_items": NAV_ITEMS, "pages": PAGES}), 200


@site_bp.route("/site/stats", methods=["GET"])
def get_home_stats():
    """Live figures for the home page stats strip."""
    analyses = db.session.query(func.count(WasteAnalysis.id)).scalar() or 0
    return jsonify({
        "success": True,
        "stats": {
            "waste_analyses": analyses,
            "partner_companies": len(catalog.COMPANIES),
            "verified_companies": sum(1 for c in catalog.COMPANIES if c["verified"]),
            "counties_covered": len({c["location"] for c in catalog.COMPANIES}),
        },
        "how_it_works": HOW_IT_WORKS,
    }), 200
