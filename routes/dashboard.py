"""
Dashboard API route: summary cards, recent AI analyses and nearby companies
for the signed-in user.
"""

from flask import Blueprint, jsonify

from models import db, User, PickupRequest, WasteAnalysis, get_user_points_balance
from auth_routes import require_auth
import catalog

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")

RECENT_LIMIT = 3


def _analysis_card(analysis):
    item = analysis.primary_item or {}
    return {
        "id": analysis.id,
        "item": item.get("item") or analysis.summary,
        "type": item.get("type"),
        "confidence": item.get("confidence"),
        "created_at": analysis.created_at.isoformat() if analysis.created_at else None,
    }


@dashboard_bp.route("", methods=["GET"])
@require_auth
def get_dashboard(user_id):
    user = db.session.get(User, user_id)

    if user.is_company_account:
        pickups = PickupRequest.query.filter_by(company_id=user.company_id)
    else:
        pickups = PickupRequest.query.filter_by(user_id=user_id)

    analyses = WasteAnalysis.query.filter_by(user_id=user_id)
    recent_analyses = analyses.order_by(WasteAnalysis.created_at.desc()).limit(RECENT_LIMIT).all()
    recent_pickups = pickups.order_by(PickupRequest.created_at.desc()).limit(RECENT_LIMIT).all()

    return jsonify({
        "success": True,
        "user": user.to_dict(),
        "summary": {
            "waste_uploads": analyses.count(),
            "pending_pickups": pickups.filter(PickupRequest.status == "pending").count(),
            "completed_orders": pickups.filter(PickupRequest.status == "completed").count(),
            "points_balance": get_user_points_balance(user_id),
        },
        "recent_analyses": [_analysis_card(a) for a in recent_analyses],
        "recent_pickups": [p.to_dict() for p in recent_pickups],
        "nearby_companies": catalog.nearby_companies(user.location, limit=RECENT_LIMIT),
    }), 200
