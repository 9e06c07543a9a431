"""
Post-transaction reviews.

A review is written by one party of a transaction about the other. Who the
reviewee is follows from who the reviewer is: the buyer reviews the item's
seller and the seller reviews the buyer.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Item, Review, Transaction
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import transaction_scope


def resolve_reviewee(*, buyer_id: int, seller_id: int, reviewer_id: int) -> int:
    """Return the counterparty of reviewer_id, or reject an outsider."""
    if reviewer_id == buyer_id:
        return seller_id
    if reviewer_id == seller_id:
        return buyer_id
    raise ConflictError("You are not part of this transaction")


def create_review(
    *,
    transaction_id: int,
    reviewer_id: int,
    rating: int,
    comment: str | None = None,
) -> Review:
    """
    Create the single review reviewer_id may leave on a transaction.

    A second review by the same reviewer is rejected; the existing one is
    never overwritten.

    Raises:
        ValidationError: rating outside 1..5
        NotFoundError: transaction does not exist
        ConflictError: reviewer not a party, or already reviewed
    """
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")

    row = (
        db.session.query(Transaction.buyer_id, Item.seller_id)
        .join(Item, Transaction.item_id == Item.id)
        .filter(Transaction.id == transaction_id)
        .first()
    )
    if row is None:
        raise NotFoundError("Transaction not found")

    reviewee_id = resolve_reviewee(
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        reviewer_id=reviewer_id,
    )

    existing = (
        db.session.query(Review.id)
        .filter_by(transaction_id=transaction_id, reviewer_id=reviewer_id)
        .first()
    )
    if existing is not None:
        raise ConflictError("You have already reviewed this transaction")

    review = Review(
        transaction_id=transaction_id,
        reviewer_id=reviewer_id,
        reviewee_id=reviewee_id,
        rating=rating,
        comment=comment or None,
    )
    try:
        with transaction_scope() as session:
            session.add(review)
    except IntegrityError as exc:
        # Lost a race with a concurrent submit from the same reviewer
        current_app.logger.info("Duplicate review for transaction %s by %s", transaction_id, reviewer_id)
        raise ConflictError("You have already reviewed this transaction") from exc

    return review


def list_reviews_received(user_id: int) -> list[dict]:
    reviews = (
        db.session.query(Review)
        .filter(Review.reviewee_id == user_id)
        .order_by(Review.id.desc())
        .all()
    )
    result = []
    for review in reviews:
        data = review.to_dict()
        data["reviewer_name"] = review.reviewer.username if review.reviewer else None
        result.append(data)
    return result
