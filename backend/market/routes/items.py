# Overview: Flask API routes for item listings; parses input and returns JSON responses.

# backend/market/routes/items.py
"""
Item listing routes.

GET accepts the listing filters (search, category, event_option_id,
seat_sector, seat_row, seat_number, type, status, seller_id, min_price,
max_price) plus page/limit. Filters are permissive: malformed values are
ignored rather than rejected.
"""
from flask import Blueprint, current_app, jsonify, request

from ..models import Item, TicketDetails
from ..services import items_service
from ..services.item_filters import ItemFilter, Page
from ..services.items_service import ItemError
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_item,
    enforce_rules_ticket,
    validate_payload,
)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"seller_id", "std_id", "category_id", "title", "description", "price"},
    required_on_create={"title", "price"},
)

TICKET_POLICY = ModelValidationPolicy(
    writable_fields={"event_option_id", "seat_info", "original_price"},
    required_on_create={"event_option_id", "seat_info", "original_price"},
)

items_bp = Blueprint("items", __name__, url_prefix="/api/items")


@items_bp.get("")
def list_items_route():
    """List items matching every supplied filter, newest first."""
    item_filter = ItemFilter.from_args(request.args)
    page = Page.from_args(request.args)

    try:
        return jsonify(items_service.list_items(item_filter, page)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch items")
        return jsonify({"error": "Failed to fetch items"}), 500


@items_bp.get("/<int:item_id>")
def get_item_route(item_id: int):
    try:
        item = items_service.get_item_detail(item_id)
    except Exception:
        current_app.logger.exception("Failed to fetch item")
        return jsonify({"error": "Failed to fetch item"}), 500

    if item is None:
        return jsonify({"error": "Item not found"}), 404
    return jsonify(item), 200


@items_bp.post("")
def create_item_route():
    """
    Create a listing.

    Body:
    - title, price (required)
    - seller_id, category_id, std_id, description (optional)
    - ticket: {event_option_id, seat_info, original_price} (optional)

    A ticket listing is written atomically with its ticket details; a price
    above the anti-scalping cap is rejected with the rule's message.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    ticket_payload = payload.pop("ticket", None)

    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
        enforce_rules_item(patch)

        ticket = None
        if ticket_payload is not None:
            ticket = validate_payload(
                model=TicketDetails, payload=ticket_payload, policy=TICKET_POLICY, partial=False
            )
            enforce_rules_ticket(ticket)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        created = items_service.create_item(patch=patch, ticket=ticket)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ItemError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to insert item")
        return jsonify({"error": "Failed to insert item"}), 500

    if ticket is not None:
        created["item_id"] = created["id"]
    return jsonify(created), 201


@items_bp.patch("/<int:item_id>/status")
def update_item_status_route(item_id: int):
    """Body: {"status": "ON_SALE" | "RESERVED" | "SOLD"}"""
    payload = request.get_json(silent=True) or {}
    status = payload.get("status") if isinstance(payload, dict) else None
    if not isinstance(status, str) or not status.strip():
        return jsonify({"error": "status is required"}), 400

    try:
        updated = items_service.update_item_status(item_id, status.strip().upper())
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update item status")
        return jsonify({"error": "Failed to update item status"}), 500

    if updated is None:
        return jsonify({"error": "Item not found"}), 404
    return jsonify(updated), 200
