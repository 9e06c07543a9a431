# Overview: Flask API routes for purchases and reviews; parses input and returns JSON responses.

# backend/market/routes/transactions.py
from flask import Blueprint, current_app, jsonify, request

from ..models import Review, Transaction
from ..services import review_service, transaction_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_review,
    enforce_rules_transaction,
    validate_payload,
)

TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={"item_id", "buyer_id", "final_price"},
    required_on_create={"item_id", "buyer_id", "final_price"},
)

REVIEW_POLICY = ModelValidationPolicy(
    writable_fields={"reviewer_id", "rating", "comment"},
    required_on_create={"reviewer_id", "rating"},
)

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.post("")
def create_transaction_route():
    """
    Finalize a purchase: records the transaction and marks the item SOLD.

    409 when the item is no longer available or the buyer is its seller.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=Transaction, payload=payload, policy=TRANSACTION_POLICY, partial=False
        )
        enforce_rules_transaction(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        transaction = transaction_service.create_transaction(
            item_id=patch["item_id"],
            buyer_id=patch["buyer_id"],
            final_price=patch["final_price"],
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return jsonify({"error": "Failed to create transaction"}), 500

    return jsonify(transaction.to_dict()), 201


@transactions_bp.get("/<int:transaction_id>")
def get_transaction_route(transaction_id: int):
    try:
        transaction = transaction_service.get_transaction_detail(transaction_id)
    except Exception:
        current_app.logger.exception("Failed to fetch transaction")
        return jsonify({"error": "Failed to fetch transaction"}), 500

    if transaction is None:
        return jsonify({"error": "Transaction not found"}), 404
    return jsonify(transaction), 200


@transactions_bp.post("/<int:transaction_id>/review")
def create_review_route(transaction_id: int):
    """Body: {"reviewer_id", "rating" (1-5), "comment" (optional)}"""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Review, payload=payload, policy=REVIEW_POLICY, partial=False)
        enforce_rules_review(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        review = review_service.create_review(
            transaction_id=transaction_id,
            reviewer_id=patch["reviewer_id"],
            rating=patch["rating"],
            comment=patch.get("comment"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create review")
        return jsonify({"error": "Failed to create review"}), 500

    return jsonify(review.to_dict()), 201
