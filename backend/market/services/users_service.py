# backend/market/services/users_service.py
from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Item, Review, TicketDetails, User


def list_users() -> list[dict]:
    users = db.session.query(User).order_by(User.id.asc()).all()
    return [u.to_dict() for u in users]


def get_user_profile(user_id: int) -> dict | None:
    """User plus the average rating (one decimal) and count of reviews received."""
    user = db.session.get(User, user_id)
    if user is None:
        return None

    avg_rating, review_count = (
        db.session.query(func.coalesce(func.avg(Review.rating), 0), func.count(Review.id))
        .filter(Review.reviewee_id == user_id)
        .one()
    )

    data = user.to_dict()
    data["avg_rating"] = round(float(avg_rating), 1)
    data["review_count"] = int(review_count)
    return data


def list_user_items(user_id: int) -> list[dict]:
    """Everything the user has listed, newest first, with ticket/event context."""
    items = (
        db.session.query(Item)
        .options(
            selectinload(Item.standard_product),
            selectinload(Item.ticket).selectinload(TicketDetails.event_option),
        )
        .filter(Item.seller_id == user_id)
        .order_by(Item.created_at.desc(), Item.id.desc())
        .all()
    )
    return [item.to_detail_dict() for item in items]
