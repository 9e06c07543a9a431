# Overview: Flask API routes for buyer/seller chat rooms and messages.

from flask import Blueprint, current_app, jsonify, request

from ..models import ChatMessage, ChatRoom
from ..services import chat_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)

ROOM_POLICY = ModelValidationPolicy(
    writable_fields={"item_id", "buyer_id"},
    required_on_create={"item_id", "buyer_id"},
)

MESSAGE_POLICY = ModelValidationPolicy(
    writable_fields={"sender_id", "content"},
    required_on_create={"sender_id", "content"},
)

chat_bp = Blueprint("chat", __name__, url_prefix="/api/chat")


@chat_bp.get("/rooms")
def list_rooms_route():
    """
    Query params:
    - user_id: int (required) - rooms where the user is buyer or seller
    """
    user_id = request.args.get("user_id", type=int)
    if user_id is None:
        return jsonify({"error": "user_id is required"}), 400

    try:
        return jsonify(chat_service.list_rooms(user_id)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch chat rooms")
        return jsonify({"error": "Failed to fetch chat rooms"}), 500


@chat_bp.post("/rooms")
def open_room_route():
    """Return the existing (item, buyer) room (200) or create it (201)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=ChatRoom, payload=payload, policy=ROOM_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        room, created = chat_service.open_room(item_id=patch["item_id"], buyer_id=patch["buyer_id"])
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create chat room")
        return jsonify({"error": "Failed to create chat room"}), 500

    return jsonify(room.to_dict()), 201 if created else 200


@chat_bp.get("/rooms/<int:room_id>")
def get_room_route(room_id: int):
    try:
        room = chat_service.get_room(room_id)
    except Exception:
        current_app.logger.exception("Failed to fetch chat room")
        return jsonify({"error": "Failed to fetch chat room"}), 500

    if room is None:
        return jsonify({"error": "Chat room not found"}), 404
    return jsonify(room), 200


@chat_bp.post("/rooms/<int:room_id>/messages")
def send_message_route(room_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=ChatMessage, payload=payload, policy=MESSAGE_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        message = chat_service.send_message(
            room_id=room_id,
            sender_id=patch["sender_id"],
            content=patch["content"],
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to send message")
        return jsonify({"error": "Failed to send message"}), 500

    return jsonify(message.to_dict()), 201
