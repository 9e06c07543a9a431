# Overview: Flask API routes for the category tree.

from flask import Blueprint, current_app, jsonify

from ..services import category_service

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories_route():
    try:
        return jsonify(category_service.list_categories()), 200
    except Exception:
        current_app.logger.exception("Failed to fetch categories")
        return jsonify({"error": "Failed to fetch categories"}), 500


@categories_bp.get("/tree")
def category_tree_route():
    try:
        return jsonify(category_service.get_category_tree()), 200
    except Exception:
        current_app.logger.exception("Failed to fetch category tree")
        return jsonify({"error": "Failed to fetch categories"}), 500


@categories_bp.get("/<int:category_id>/descendants")
def category_descendants_route(category_id: int):
    """Ids of the category and everything under it (empty for unknown ids)."""
    try:
        closure = category_service.get_category_closure(category_id)
    except Exception:
        current_app.logger.exception("Failed to resolve category closure")
        return jsonify({"error": "Failed to fetch categories"}), 500

    return jsonify({"category_id": category_id, "ids": sorted(closure)}), 200
