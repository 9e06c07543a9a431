# backend/market/services/wishlist_service.py
from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Item, User, Wishlist
from ..validation import NotFoundError
from .concurrency import transaction_scope


def list_wishlist(user_id: int) -> list[dict]:
    entries = (
        db.session.query(Wishlist)
        .options(selectinload(Wishlist.item).selectinload(Item.ticket))
        .filter(Wishlist.user_id == user_id)
        .order_by(Wishlist.created_at.desc(), Wishlist.id.desc())
        .all()
    )
    result = []
    for entry in entries:
        data = entry.item.to_dict()
        data["wishlist_id"] = entry.id
        data["wished_at"] = entry.to_dict()["created_at"]
        result.append(data)
    return result


def is_wished(user_id: int, item_id: int) -> bool:
    return (
        db.session.query(Wishlist.id)
        .filter_by(user_id=user_id, item_id=item_id)
        .first()
        is not None
    )


def add_to_wishlist(*, user_id: int, item_id: int) -> tuple[Wishlist, bool]:
    """
    Idempotent on (user, item). Returns (entry, created).

    Raises:
        NotFoundError: user or item does not exist
    """
    if db.session.get(User, user_id) is None:
        raise NotFoundError("User not found")
    if db.session.get(Item, item_id) is None:
        raise NotFoundError("Item not found")

    existing = db.session.query(Wishlist).filter_by(user_id=user_id, item_id=item_id).first()
    if existing is not None:
        return existing, False

    entry = Wishlist(user_id=user_id, item_id=item_id)
    try:
        with transaction_scope() as session:
            session.add(entry)
    except IntegrityError:
        # Concurrent add of the same pair already landed
        existing = db.session.query(Wishlist).filter_by(user_id=user_id, item_id=item_id).one()
        return existing, False
    return entry, True


def remove_from_wishlist(*, user_id: int, item_id: int) -> bool:
    with transaction_scope() as session:
        deleted = (
            session.query(Wishlist)
            .filter_by(user_id=user_id, item_id=item_id)
            .delete(synchronize_session=False)
        )
    return deleted > 0


def count_wishes(item_id: int) -> int:
    return db.session.query(Wishlist).filter_by(item_id=item_id).count()
