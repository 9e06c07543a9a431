# Overview: Flask API routes for user profiles, listings, purchases and reviews.

from flask import Blueprint, current_app, jsonify

from ..services import review_service, transaction_service, users_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
def list_users_route():
    try:
        return jsonify(users_service.list_users()), 200
    except Exception:
        current_app.logger.exception("Failed to fetch users")
        return jsonify({"error": "Failed to fetch users"}), 500


@users_bp.get("/<int:user_id>")
def get_user_route(user_id: int):
    try:
        profile = users_service.get_user_profile(user_id)
    except Exception:
        current_app.logger.exception("Failed to fetch user")
        return jsonify({"error": "Failed to fetch user"}), 500

    if profile is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify(profile), 200


@users_bp.get("/<int:user_id>/items")
def user_items_route(user_id: int):
    try:
        return jsonify(users_service.list_user_items(user_id)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch user items")
        return jsonify({"error": "Failed to fetch user items"}), 500


@users_bp.get("/<int:user_id>/purchases")
def user_purchases_route(user_id: int):
    try:
        return jsonify(transaction_service.list_purchases(user_id)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch purchases")
        return jsonify({"error": "Failed to fetch purchases"}), 500


@users_bp.get("/<int:user_id>/reviews")
def user_reviews_route(user_id: int):
    try:
        return jsonify(review_service.list_reviews_received(user_id)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch reviews")
        return jsonify({"error": "Failed to fetch reviews"}), 500
