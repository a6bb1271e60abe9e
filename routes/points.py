"""
Loyalty points API routes for Nexo Greencycle.
Balance, history, redemption options and QR-code redemptions.
"""

import json
import logging
import time

from flask import Blueprint, request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from models import db, PointsTransaction, Redemption, get_user_points_balance, generate_uuid
from auth_routes import require_auth
from extensions import limiter
from errors import db_error_message
from validators import parse_points
import catalog

logger = logging.getLogger(__name__)

points_bp = Blueprint("points", __name__, url_prefix="/api/points")

RECENT_TRANSACTIONS = 20
RECENT_REDEMPTIONS = 10


def validate_redemption(redemption_type, points, balance):
    """Check a redemption request.

    Returns (option, points, error). ``error`` is None when the redemption
    may proceed.
    """
    option = catalog.get_redemption_option(redemption_type)
    if not option:
        return None, 0, "Unknown redemption option"

    points = parse_points(points)
    if points < option["min_points"]:
        return option, points, "Minimum {} points required.".format(option["min_points"])
    if points > balance:
        return option, points, "Insufficient points balance."
    return option, points, None


def build_qr_payload(redemption_id, user_id, redemption_type, points, timestamp_ms=None):
    """The exact JSON encoded into the redemption QR code."""
    return json.dumps({
        "redemption_id": redemption_id,
        "user_id": user_id,
        "type": redemption_type,
        "points": points,
        "timestamp": timestamp_ms if timestamp_ms is not None else int(time.time() * 1000),
    })


@points_bp.route("", methods=["GET"])
@require_auth
def get_points_summary(user_id):
    """Balance, 20 newest transactions, 10 newest redemptions and the options."""
    transactions = (
        PointsTransaction.query
        .filter_by(user_id=user_id)
        .order_by(PointsTransaction.created_at.desc())
        .limit(RECENT_TRANSACTIONS)
        .all()
    )
    redemptions = (
        Redemption.query
        .filter_by(user_id=user_id)
        .order_by(Redemption.created_at.desc())
        .limit(RECENT_REDEMPTIONS)
        .all()
    )

    return jsonify({
        "success": True,
        "balance": get_user_points_balance(user_id),
        "earn_rate": "Earn {} points for every KES 1,000 spent".format(catalog.POINTS_PER_KES_1000),
        "transactions": [t.to_dict() for t in transactions],
        "redemptions": [r.to_dict() for r in redemptions],
        "options": catalog.REDEMPTION_OPTIONS,
    }), 200


@points_bp.route("/balance", methods=["GET"])
@require_auth
def get_balance(user_id):
    return jsonify({"success": True, "balance": get_user_points_balance(user_id)}), 200


@points_bp.route("/options", methods=["GET"])
def get_options():
    return jsonify({"success": True, "options": catalog.REDEMPTION_OPTIONS}), 200


@points_bp.route("/redeem", methods=["POST"])
@limiter.limit("10 per minute")
@require_auth
def redeem_points(user_id):
    """
    Redeem points for a reward.
    Body: { "type": "airtime", "points": 20 }

    Writes the ledger debit and the redemption in one commit and returns the
    QR payload the partner scans.
    """
    data = request.get_json(silent=True) or {}
    balance = get_user_points_balance(user_id)

    option, points, error = validate_redemption(data.get("type"), data.get("points"), balance)
    if error:
        return jsonify({"error": error}), 400

    redemption_id = generate_uuid()
    qr_code = build_qr_payload(redemption_id, user_id, option["type"], points)

    try:
        db.session.add(PointsTransaction(
            user_id=user_id,
            amount=points,
            type="redeemed",
            description="Redeemed for {}".format(option["label"]),
        ))
        redemption = Redemption(
            id=redemption_id,
            user_id=user_id,
            points_used=points,
            redemption_type=option["type"],
            qr_code=qr_code,
            status="active",
        )
        db.session.add(redemption)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Redemption failed for user %s", user_id)
        return jsonify({"error": db_error_message(e)}), 500

    return jsonify({
        "success": True,
        "message": "Redemption successful! Show the QR code at checkout.",
        "redemption": redemption.to_dict(),
        "qr_code": qr_code,
        "balance": balance - points,
    }), 201
