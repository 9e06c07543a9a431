# Overview: Flask API routes for wishlists.

from flask import Blueprint, current_app, jsonify, request

from ..models import Wishlist
from ..services import wishlist_service
from ..validation import ModelValidationPolicy, NotFoundError, ValidationError, validate_payload

WISHLIST_POLICY = ModelValidationPolicy(
    writable_fields={"user_id", "item_id"},
    required_on_create={"user_id", "item_id"},
)

wishlist_bp = Blueprint("wishlist", __name__, url_prefix="/api/wishlist")


@wishlist_bp.get("/<int:user_id>")
def list_wishlist_route(user_id: int):
    try:
        return jsonify(wishlist_service.list_wishlist(user_id)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch wishlist")
        return jsonify({"error": "Failed to fetch wishlist"}), 500


@wishlist_bp.get("/<int:user_id>/check/<int:item_id>")
def check_wishlist_route(user_id: int, item_id: int):
    try:
        return jsonify({"isWished": wishlist_service.is_wished(user_id, item_id)}), 200
    except Exception:
        current_app.logger.exception("Failed to check wishlist")
        return jsonify({"error": "Failed to check wishlist"}), 500


@wishlist_bp.post("")
def add_wishlist_route():
    """Adding a pair that is already wished is a no-op (200 instead of 201)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Wishlist, payload=payload, policy=WISHLIST_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        entry, created = wishlist_service.add_to_wishlist(user_id=patch["user_id"], item_id=patch["item_id"])
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add to wishlist")
        return jsonify({"error": "Failed to add to wishlist"}), 500

    return jsonify({"success": True, "created": created, "data": entry.to_dict()}), 201 if created else 200


@wishlist_bp.delete("/<int:user_id>/<int:item_id>")
def remove_wishlist_route(user_id: int, item_id: int):
    try:
        removed = wishlist_service.remove_from_wishlist(user_id=user_id, item_id=item_id)
    except Exception:
        current_app.logger.exception("Failed to remove from wishlist")
        return jsonify({"error": "Failed to remove from wishlist"}), 500

    return jsonify({"success": True, "removed": removed}), 200


@wishlist_bp.get("/count/<int:item_id>")
def count_wishlist_route(item_id: int):
    try:
        return jsonify({"count": wishlist_service.count_wishes(item_id)}), 200
    except Exception:
        current_app.logger.exception("Failed to count wishlist")
        return jsonify({"error": "Failed to count wishlist"}), 500
