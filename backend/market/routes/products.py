# Overview: Flask API routes for standard products (SKUs).

from flask import Blueprint, current_app, jsonify, request

from ..services import catalog_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("/autocomplete")
def autocomplete_route():
    """
    Query params:
    - q: str (required) - substring of the product code, case-insensitive
    """
    q = (request.args.get("q") or "").strip()
    if not q:
        return jsonify({"error": "Query parameter q is required"}), 400

    try:
        return jsonify(catalog_service.autocomplete_products(q)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch product autocomplete")
        return jsonify({"error": "Failed to fetch products"}), 500
