"""
AI waste analysis API routes.
POST /api/analyze-waste -- classification proxy (optionally authenticated).
GET  /api/analyses      -- the caller's stored results.
"""

import logging

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db, WasteAnalysis
from auth_routes import require_auth, optional_auth
from extensions import limiter
from classifier import classify_waste_image, ClassificationError

logger = logging.getLogger(__name__)

analysis_bp = Blueprint("analysis", __name__, url_prefix="/api")


def _store_analysis(user_id, result):
    """Keep a signed-in user's result for the dashboard; best effort."""
    try:
        items = result.get("items") if isinstance(result, dict) else None
        db.session.add(WasteAnalysis(
            user_id=user_id,
            summary=result.get("summary") if isinstance(result, dict) else None,
            items=items if isinstance(items, list) else [],
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to store waste analysis for user %s", user_id)


@analysis_bp.route("/analyze-waste", methods=["POST"])
@limiter.limit("10 per minute")
@optional_auth
def analyze_waste(user_id):
    """
    Classify the waste in an image.
    Body: { "imageBase64": "data:image/jpeg;base64,..." }

    The gateway's structured result is relayed unchanged.
    """
    data = request.get_json(silent=True) or {}
    image_base64 = data.get("imageBase64")
    if not image_base64 or not isinstance(image_base64, str):
        return jsonify({"error": "imageBase64 is required"}), 400

    config = current_app.config
    try:
        result = classify_waste_image(
            image_base64,
            api_key=config.get("AI_GATEWAY_API_KEY"),
            url=config["AI_GATEWAY_URL"],
            model=config["AI_MODEL"],
            timeout=config.get("AI_GATEWAY_TIMEOUT", 60),
        )
    except ClassificationError as e:
        logger.warning("Waste analysis failed (%s): %s", e.status_code, e.message)
        return jsonify({"error": e.message}), e.status_code

    if user_id:
        _store_analysis(user_id, result)

    return jsonify(result), 200


@analysis_bp.route("/analyses", methods=["GET"])
@require_auth
def list_analyses(user_id):
    """The caller's stored analyses, newest first (?limit=, max 50)."""
    try:
        limit = min(max(int(request.args.get("limit", 20)), 1), 50)
    except ValueError:
        limit = 20

    analyses = (
        WasteAnalysis.query
        .filter_by(user_id=user_id)
        .order_by(WasteAnalysis.created_at.desc())
        .limit(limit)
        .all()
    )
    return jsonify({
        "success": True,
        "analyses": [a.to_dict() for a in analyses],
    }), 200
