"""
Contact page API route.
POST /api/contact -- public (rate-limited) contact form.
"""

import logging

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db, ContactMessage
from auth_routes import optional_auth
from extensions import limiter
from validators import validate_email, text_value

logger = logging.getLogger(__name__)

contact_bp = Blueprint("contact", __name__)

MAX_CONTACT_MESSAGE_LENGTH = 5000


@contact_bp.route("/api/contact", methods=["POST"])
@limiter.limit("10 per minute")
@optional_auth
def create_contact_message(user_id):
    """Accept a message from the Contact page.

    Body: { name, email, message }
    A valid bearer token links the message to the signed-in user.
    """
    data = request.get_json(silent=True) or {}

    name = text_value(data.get("name")).strip()
    email = text_value(data.get("email")).strip()
    message = text_value(data.get("message")).strip()

    if not message:
        return jsonify({"error": "message is required"}), 400
    if not email:
        return jsonify({"error": "email is required"}), 400
    if not validate_email(email):
        return jsonify({"error": "Invalid email address"}), 400
    if len(message) > MAX_CONTACT_MESSAGE_LENGTH:
        return jsonify({"error": "message is too long"}), 400

    msg = ContactMessage(
        user_id=user_id,
        name=name[:255] or "Guest",
        email=email,
        message=message,
        status="open",
    )
    try:
        db.session.add(msg)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to store contact message from %s", email)
        return jsonify({"error": "Failed to send message"}), 500

    # Best-effort email notification to the support inbox
    try:
        from notifications import send_contact_notification
        send_contact_notification(current_app.config["CONTACT_INBOX"], msg.name, email, message)
    except Exception:
        logger.exception("Contact notification failed for %s", msg.id)

    return jsonify({
        "success": True,
        "message": "Message sent! We'll get back to you soon.",
        "id": msg.id,
    }), 201
