"""
SocketIO Event Handlers for Real-time Updates

Clients connect to the /ws namespace and refetch the leaderboard, matches
and predictions whenever a "leaderboard_update" signal arrives. Messages are
invalidation hints only and carry no data the client must apply.
"""

import logging
from datetime import datetime, timezone

from flask import request
from flask_login import current_user
from flask_socketio import emit, join_room, leave_room

from fantaschedina import socketio

logger = logging.getLogger(__name__)

NAMESPACE = "/ws"

# Track connected clients
connected_users = {}


@socketio.on("connect", namespace=NAMESPACE)
def on_connect():
    """Handle client connection"""
    user_id = current_user.id if current_user.is_authenticated else None
    client_id = request.sid

    connected_users[client_id] = {
        "user_id": user_id,
        "connected_at": datetime.now(timezone.utc).isoformat(),
    }

    # Personal room for prediction confirmations
    if user_id:
        join_room(f"user_{user_id}")

    logger.info(f"Client connected to {NAMESPACE}: {client_id} (user: {user_id})")
    emit("connected", {"type": "connected", "user_id": user_id})


@socketio.on("disconnect", namespace=NAMESPACE)
def on_disconnect(*args):
    """Handle client disconnection"""
    client_id = request.sid
    client = connected_users.pop(client_id, None)
    if client and client["user_id"]:
        leave_room(f"user_{client['user_id']}")
    logger.info(f"Client disconnected from {NAMESPACE}: {client_id}")


@socketio.on("heartbeat", namespace=NAMESPACE)
def on_heartbeat(data=None):
    """Application-level keepalive"""
    emit(
        "heartbeat_ack",
        {"type": "heartbeat_ack", "timestamp": datetime.now(timezone.utc).isoformat()},
    )


# Broadcast functions (called from the routes after writes)
def broadcast_leaderboard_update(reason, match_day=None):
    """Tell every connected client to refresh standings"""
    payload = {
        "type": "leaderboard_update",
        "reason": reason,
        "match_day": match_day,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    try:
        socketio.emit("leaderboard_update", payload, namespace=NAMESPACE)
        logger.debug(f"Broadcasted leaderboard update ({reason})")
    except Exception as e:
        # Delivery is best effort, the write already happened
        logger.error(f"Error broadcasting leaderboard update: {e}")


def broadcast_prediction_update(prediction, action="updated"):
    """Notify the owner's open sessions about a prediction change"""
    payload = {
        "type": "prediction_update",
        "action": action,
        "prediction_id": prediction.id,
        "match_id": prediction.match_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    try:
        socketio.emit(
            "prediction_update",
            payload,
            room=f"user_{prediction.user_id}",
            namespace=NAMESPACE,
        )
        logger.debug(f"Broadcasted prediction {action} for prediction {prediction.id}")
    except Exception as e:
        logger.error(f"Error broadcasting prediction update: {e}")


def get_connection_stats():
    """Get detailed connection statistics"""
    return {
        "total_connections": len(connected_users),
        "authenticated_users": len(
            [u for u in connected_users.values() if u["user_id"]]
        ),
        "anonymous_users": len(
            [u for u in connected_users.values() if not u["user_id"]]
        ),
    }
