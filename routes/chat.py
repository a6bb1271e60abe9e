"""
Chat API routes for the per-pickup conversation between a producer and the
company handling the request.
"""

import logging

from flask import Blueprint, request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from models import db, ChatMessage
from auth_routes import require_auth
from socket_events import broadcast_chat_message
from routes.pickups import get_pickup_for_participant

logger = logging.getLogger(__name__)

chat_bp = Blueprint("chat", __name__, url_prefix="/api/pickups")

MAX_MESSAGE_LENGTH = 2000


@chat_bp.route("/<pickup_id>/messages", methods=["GET"])
@require_auth
def get_messages(user_id, pickup_id):
    """
    All messages of a pickup thread, oldest first.
    Caller must be the requester or an account of the addressed company.
    """
    pickup, _user, _role, error = get_pickup_for_participant(user_id, pickup_id)
    if error:
        return error

    messages = (
        ChatMessage.query
        .filter_by(pickup_request_id=pickup.id)
        .order_by(ChatMessage.created_at.asc())
        .all()
    )

    return jsonify({
        "success": True,
        "messages": [m.to_dict() for m in messages],
    }), 200


@chat_bp.route("/<pickup_id>/messages", methods=["POST"])
@require_auth
def send_message(user_id, pickup_id):
    """
    Post a text message to the thread.
    Body: { "message": "..." }
    """
    pickup, user, _role, error = get_pickup_for_participant(user_id, pickup_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}
    message = data.get("message")
    message = message.strip() if isinstance(message, str) else ""

    if not message:
        return jsonify({"error": "Message is required"}), 400
    if len(message) > MAX_MESSAGE_LENGTH:
        return jsonify({"error": "Message too long (max {} characters)".format(MAX_MESSAGE_LENGTH)}), 400

    msg = ChatMessage.text_message(pickup.id, user_id, user.display_name, message)
    try:
        db.session.add(msg)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to save chat message on pickup %s", pickup_id)
        return jsonify({"error": "Failed to send message"}), 500

    msg_dict = msg.to_dict()
    broadcast_chat_message(msg_dict)

    return jsonify({"success": True, "message": msg_dict}), 201
