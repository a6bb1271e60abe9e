"""
Agreement API routes: share the collection agreement PDF in a pickup's chat,
download it, and capture typed-name signatures.
"""

import io
import logging

from flask import Blueprint, request, jsonify, send_file
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db, AgreementSignature, ChatMessage
from auth_routes import require_auth
from socket_events import broadcast_chat_message
from routes.pickups import get_pickup_for_participant
from agreement_pdf import generate_agreement_pdf, render_agreement_pdf, agreement_filename

logger = logging.getLogger(__name__)

agreements_bp = Blueprint("agreements", __name__, url_prefix="/api/pickups")

AGREEMENT_SHARED_TEXT = "📄 Waste Collection Agreement generated. Please review and sign below."
SIGNED_TEXT = "✅ {} has digitally signed the agreement."

SIGNATURE_FLAGS = {
    "user": "agreement_signed_user",
    "company": "agreement_signed_company",
}


def agreement_data_for(pickup):
    """Agreement fields for a pickup, including any signatures so far."""
    owner = pickup.user
    user_signature = pickup.signature_for("user")
    company_signature = pickup.signature_for("company")
    return {
        "pickup_request_id": pickup.id,
        "user_name": owner.display_name if owner else "Client",
        "company_name": pickup.company_name,
        "waste_type": pickup.waste_type,
        "waste_description": pickup.waste_description,
        "location": pickup.location,
        "preferred_date": pickup.preferred_date.isoformat() if pickup.preferred_date else "",
        "preferred_time": pickup.preferred_time,
        "created_at": pickup.created_at,
        "user_signature": user_signature.signature_data if user_signature else None,
        "company_signature": company_signature.signature_data if company_signature else None,
    }


@agreements_bp.route("/<pickup_id>/agreement", methods=["POST"])
@require_auth
def share_agreement(user_id, pickup_id):
    """Generate the agreement PDF and post it to the thread for signing."""
    pickup, user, _role, error = get_pickup_for_participant(user_id, pickup_id)
    if error:
        return error

    try:
        data_uri = generate_agreement_pdf(agreement_data_for(pickup))
    except Exception:
        logger.exception("Agreement rendering failed for pickup %s", pickup_id)
        return jsonify({"error": "Failed to share agreement"}), 500

    msg = ChatMessage.agreement_message(
        pickup.id, user_id, user.display_name, AGREEMENT_SHARED_TEXT, data_uri,
        requires_signature=True,
    )
    try:
        db.session.add(msg)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to save agreement message on pickup %s", pickup_id)
        return jsonify({"error": "Failed to share agreement"}), 500

    msg_dict = msg.to_dict()
    broadcast_chat_message(msg_dict)

    return jsonify({
        "success": True,
        "message": "Agreement shared in chat!",
        "chat_message": msg_dict,
    }), 201


@agreements_bp.route("/<pickup_id>/agreement.pdf", methods=["GET"])
@require_auth
def download_agreement(user_id, pickup_id):
    """Download a freshly rendered copy with the current signatures."""
    pickup, _user, _role, error = get_pickup_for_participant(user_id, pickup_id)
    if error:
        return error

    pdf_bytes = render_agreement_pdf(agreement_data_for(pickup))
    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=agreement_filename(pickup.id),
    )


@agreements_bp.route("/<pickup_id>/sign", methods=["POST"])
@require_auth
def sign_agreement(user_id, pickup_id):
    """
    Sign the agreement by typing a full name.
    Body: { "signature_name": "Jane Wanjiku" }

    The signature row, the pickup's signed flag and the announcement in the
    thread are written in one transaction.
    """
    pickup, _user, role, error = get_pickup_for_participant(user_id, pickup_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    name = data.get("signature_name")
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        return jsonify({"error": "Please type your full name to sign."}), 400
    if len(name) > 255:
        return jsonify({"error": "Signature name is too long"}), 400

    if pickup.signature_for(role):
        return jsonify({"error": "Agreement already signed"}), 409

    signature = AgreementSignature(
        pickup_request_id=pickup.id,
        user_id=user_id,
        signature_data=name,
        signer_role=role,
    )
    announcement = ChatMessage.system_message(pickup.id, user_id, SIGNED_TEXT.format(name))

    try:
        db.session.add(signature)
        setattr(pickup, SIGNATURE_FLAGS[role], True)
        db.session.add(announcement)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Agreement already signed"}), 409
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to sign agreement for pickup %s", pickup_id)
        return jsonify({"error": "Failed to sign agreement"}), 500

    broadcast_chat_message(announcement.to_dict())

    return jsonify({
        "success": True,
        "message": "Agreement signed successfully!",
        "pickup": pickup.to_dict(),
        "signature": signature.to_dict(),
    }), 201
