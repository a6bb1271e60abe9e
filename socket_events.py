"""
Socket.IO event handlers for Nexo Greencycle real-time features.
- Live chat threads (one room per pickup request)
- Pickup status broadcasts

Each connection follows at most one chat thread at a time. Joining a new
thread releases the previous one; leaving or disconnecting releases it too.
"""

import logging
import threading

from flask_socketio import SocketIO, emit, join_room, leave_room
from flask import request

from models import db, PickupRequest, User

socketio = SocketIO()

logger = logging.getLogger(__name__)


def room_for(pickup_request_id):
    return "pickup:{}".format(pickup_request_id)


class ChatSubscriptions:
    """Which pickup thread each socket connection is following."""

    def __init__(self):
        self._by_sid = {}
        self._lock = threading.Lock()

    def acquire(self, sid, pickup_request_id):
        """Record the new thread for ``sid``; return the one it replaced."""
        with self._lock:
            previous = self._by_sid.get(sid)
            self._by_sid[sid] = pickup_request_id
        return previous if previous != pickup_request_id else None

    def release(self, sid):
        with self._lock:
            return self._by_sid.pop(sid, None)

    def current(self, sid):
        with self._lock:
            return self._by_sid.get(sid)

    def __len__(self):
        with self._lock:
            return len(self._by_sid)


subscriptions = ChatSubscriptions()


def _release(sid):
    pickup_request_id = subscriptions.release(sid)
    if pickup_request_id:
        leave_room(room_for(pickup_request_id))
    return pickup_request_id


@socketio.on("connect")
def handle_connect():
    logger.debug("Socket client connected: %s", request.sid)


@socketio.on("disconnect")
def handle_disconnect(*args):
    released = subscriptions.release(request.sid)
    logger.debug("Socket client disconnected: %s (released %s)", request.sid, released)


@socketio.on("chat:join")
def handle_chat_join(data):
    """
    Follow a pickup request's chat thread.
    data = { pickup_request_id, token }
    """
    from auth_routes import verify_token

    data = data or {}
    pickup_request_id = data.get("pickup_request_id")
    user_id = verify_token(data.get("token"))
    if not user_id:
        emit("chat:error", {"error": "Unauthorized"}, room=request.sid)
        return

    pickup = db.session.get(PickupRequest, pickup_request_id) if pickup_request_id else None
    if not pickup:
        emit("chat:error", {"error": "Pickup request not found"}, room=request.sid)
        return

    user = db.session.get(User, user_id)
    if pickup.participant_role(user) is None:
        emit("chat:error", {"error": "You do not have access to this chat"}, room=request.sid)
        return

    previous = subscriptions.acquire(request.sid, pickup.id)
    if previous:
        leave_room(room_for(previous))
    join_room(room_for(pickup.id))
    emit("chat:joined", {"room": room_for(pickup.id), "pickup_request_id": pickup.id}, room=request.sid)


@socketio.on("chat:leave")
def handle_chat_leave(data=None):
    released = _release(request.sid)
    emit("chat:left", {"pickup_request_id": released}, room=request.sid)


@socketio.on("chat:typing")
def handle_chat_typing(data):
    """
    Broadcast typing indicator to the thread the connection follows.
    data = { sender_name, is_typing }
    """
    pickup_request_id = subscriptions.current(request.sid)
    if not pickup_request_id:
        return
    data = data or {}
    emit("chat:typing", {
        "pickup_request_id": pickup_request_id,
        "sender_name": data.get("sender_name"),
        "is_typing": data.get("is_typing", True),
    }, room=room_for(pickup_request_id), include_self=False)


def broadcast_chat_message(msg_dict):
    """Utility called from REST routes after a chat message is committed."""
    socketio.emit("chat:message", msg_dict, room=room_for(msg_dict["pickup_request_id"]))


def broadcast_pickup_status(pickup_request_id, status, extra=None):
    """Utility called from REST routes to push status updates via socket."""
    payload = {"pickup_request_id": pickup_request_id, "status": status}
    if extra:
        payload.update(extra)
    socketio.emit("pickup:status", payload, room=room_for(pickup_request_id))
