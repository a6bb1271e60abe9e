"""
Pickup request API routes for Nexo Greencycle.
Producers request a pickup from a catalog company; the company works the
request through its status lifecycle.
"""

import logging

from flask import Blueprint, request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from models import (
    db, User, PickupRequest, ChatMessage, PointsTransaction, AgreementSignature,
    PREFERRED_TIMES, PICKUP_STATUSES, TERMINAL_PICKUP_STATUSES, utcnow
)
from auth_routes import require_auth
from extensions import limiter
from errors import db_error_message
from socket_events import broadcast_chat_message, broadcast_pickup_status
from validators import parse_iso_date, text_value
import catalog

logger = logging.getLogger(__name__)

pickups_bp = Blueprint("pickups", __name__, url_prefix="/api/pickups")

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields."
REQUEST_SENT_MESSAGE = "Pickup request sent! The company will review your request."

MAX_DESCRIPTION_LENGTH = 500
MAX_LOCATION_LENGTH = 255

# Moves a company account may make from each non-terminal status
COMPANY_TRANSITIONS = {
    "pending": ("accepted", "in_progress", "completed", "cancelled"),
    "accepted": ("in_progress", "completed", "cancelled"),
    "in_progress": ("completed", "cancelled"),
}

STATUS_ANNOUNCEMENTS = {
    "accepted": "{company} accepted this pickup request.",
    "in_progress": "{company} is on the way to collect this pickup.",
    "completed": "{company} marked this pickup as completed.",
    "cancelled": "This pickup request was cancelled by {actor}.",
}


def get_pickup_for_participant(user_id, pickup_id):
    """Load a pickup the caller takes part in.

    Returns (pickup, user, role, None) or (None, None, None, error_response).
    """
    pickup = db.session.get(PickupRequest, pickup_id)
    if not pickup:
        return None, None, None, (jsonify({"error": "Pickup request not found"}), 404)

    user = db.session.get(User, user_id)
    role = pickup.participant_role(user)
    if role is None:
        return None, None, None, (jsonify({"error": "You do not have access to this pickup request"}), 403)
    return pickup, user, role, None


def _validate_pickup_request(data):
    """Return (fields, company, (error, status)) for a pickup request body."""
    company_id = data.get("company_id")
    if company_id in (None, ""):
        return None, None, ("Please select a company for pickup.", 400)
    company = catalog.get_company(company_id)
    if not company:
        return None, None, ("Company not found", 404)

    location = text_value(data.get("location"))
    preferred_date_raw = text_value(data.get("preferred_date"))
    if not location.strip() or not preferred_date_raw.strip():
        return None, None, (REQUIRED_FIELDS_MESSAGE, 400)

    preferred_date = parse_iso_date(preferred_date_raw)
    if not preferred_date:
        return None, None, ("preferred_date must be a YYYY-MM-DD date", 400)

    preferred_time = text_value(data.get("preferred_time")) or "morning"
    if preferred_time not in PREFERRED_TIMES:
        return None, None, ("preferred_time must be one of: {}".format(", ".join(PREFERRED_TIMES)), 400)

    description = text_value(data.get("waste_description"))[:MAX_DESCRIPTION_LENGTH]

    return {
        "location": location[:MAX_LOCATION_LENGTH],
        "preferred_date": preferred_date,
        "preferred_time": preferred_time,
        "waste_type": text_value(data.get("waste_type")).strip()[:50] or "general",
        "waste_description": description or None,
    }, company, None


# ---------------------------------------------------------------------------
# Create / list / get
# ---------------------------------------------------------------------------

@pickups_bp.route("", methods=["POST"])
@limiter.limit("20 per minute")
@require_auth
def create_pickup(user_id):
    """
    Request a pickup from a partner company.
    Body: { company_id, location, preferred_date, preferred_time,
            waste_description, waste_type }
    """
    data = request.get_json(silent=True) or {}
    fields, company, error = _validate_pickup_request(data)
    if error:
        message, status = error
        return jsonify({"error": message}), status

    pickup = PickupRequest(
        user_id=user_id,
        company_id=company["id"],
        company_name=company["name"],
        status="pending",
        **fields
    )
    try:
        db.session.add(pickup)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Failed to create pickup request for user %s", user_id)
        return jsonify({"error": db_error_message(e)}), 500

    # Notifications must never block the main flow
    try:
        from notifications import send_pickup_request_sms, send_pickup_request_email
        date_str = pickup.preferred_date.isoformat()
        send_pickup_request_sms(company["phone"], pickup.id, pickup.location, date_str, pickup.preferred_time)
        user = db.session.get(User, user_id)
        if user and user.email:
            send_pickup_request_email(
                user.email, user.display_name, pickup.id, pickup.company_name,
                pickup.location, date_str, pickup.preferred_time,
            )
    except Exception:
        logger.exception("Pickup request notifications failed for %s", pickup.id)

    return jsonify({
        "success": True,
        "message": REQUEST_SENT_MESSAGE,
        "pickup": pickup.to_dict(),
    }), 201


@pickups_bp.route("", methods=["GET"])
@require_auth
def list_pickups(user_id):
    """
    Pickups visible to the caller, newest first.
    Producers see their own requests; company accounts see requests
    addressed to their company. Optional ?status= filter.
    """
    user = db.session.get(User, user_id)
    if user.is_company_account:
        query = PickupRequest.query.filter_by(company_id=user.company_id)
    else:
        query = PickupRequest.query.filter_by(user_id=user_id)

    status_filter = request.args.get("status")
    if status_filter in PICKUP_STATUSES:
        query = query.filter_by(status=status_filter)

    pickups = query.order_by(PickupRequest.created_at.desc()).all()
    return jsonify({
        "success": True,
        "pickups": [p.to_dict() for p in pickups],
    }), 200


@pickups_bp.route("/<pickup_id>", methods=["GET"])
@require_auth
def get_pickup(user_id, pickup_id):
    pickup, _user, role, error = get_pickup_for_participant(user_id, pickup_id)
    if error:
        return error

    data = pickup.to_dict()
    data["role"] = role
    data["signatures"] = [s.to_dict() for s in pickup.signatures.order_by(AgreementSignature.created_at).all()]
    return jsonify({"success": True, "pickup": data}), 200


# ---------------------------------------------------------------------------
# Status lifecycle
# ---------------------------------------------------------------------------

def _parse_amount(value):
    if value in (None, ""):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValueError("amount_spent must be a number")
    if amount < 0:
        raise ValueError("amount_spent cannot be negative")
    return amount


@pickups_bp.route("/<pickup_id>/status", methods=["PUT"])
@require_auth
def update_pickup_status(user_id, pickup_id):
    """
    Move a pickup through its lifecycle.
    Body: { status, amount_spent? }

    The company may accept, start, complete or cancel; the requester may
    only cancel while the request is still pending. Completing with an
    ``amount_spent`` (KES) credits the requester loyalty points.
    """
    pickup, user, role, error = get_pickup_for_participant(user_id, pickup_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    new_status = data.get("status")
    if new_status not in PICKUP_STATUSES:
        return jsonify({"error": "status must be one of: {}".format(", ".join(PICKUP_STATUSES))}), 400

    if pickup.status in TERMINAL_PICKUP_STATUSES:
        return jsonify({"error": "Pickup request is already {}".format(pickup.status)}), 409

    if role == "user":
        if new_status != "cancelled" or pickup.status != "pending":
            return jsonify({"error": "You can only cancel a pending pickup request"}), 403
    elif new_status not in COMPANY_TRANSITIONS.get(pickup.status, ()):
        return jsonify({"error": "Cannot move a {} pickup to {}".format(pickup.status, new_status)}), 409

    try:
        amount_spent = _parse_amount(data.get("amount_spent"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    points_awarded = 0
    pickup.status = new_status
    if new_status == "completed":
        pickup.completed_at = utcnow()
        points_awarded = catalog.points_for_spend(amount_spent)
        if points_awarded:
            db.session.add(PointsTransaction(
                user_id=pickup.user_id,
                amount=points_awarded,
                type="earned",
                description="Pickup completed with {}".format(pickup.company_name),
                pickup_request_id=pickup.id,
            ))

    announcement = ChatMessage.system_message(
        pickup.id,
        user_id,
        STATUS_ANNOUNCEMENTS[new_status].format(company=pickup.company_name, actor=user.display_name),
    )
    db.session.add(announcement)

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Failed to update status of pickup %s", pickup_id)
        return jsonify({"error": db_error_message(e)}), 500

    broadcast_chat_message(announcement.to_dict())
    broadcast_pickup_status(pickup.id, new_status, {"points_awarded": points_awarded})

    return jsonify({
        "success": True,
        "pickup": pickup.to_dict(),
        "points_awarded": points_awarded,
    }), 200
