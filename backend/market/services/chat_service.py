# backend/market/services/chat_service.py
"""
Buyer/seller chat.

A room is keyed by (item, buyer); the seller is copied from the item when the
room is opened. Messages are an append-only log ordered by send time.
"""
from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from ..extensions import db
from ..models import ChatMessage, ChatRoom, Item, User
from ..validation import ConflictError, NotFoundError
from .concurrency import transaction_scope
from market.time_utils import to_utc_z


def _room_summary(room: ChatRoom) -> dict:
    data = room.to_dict()
    data.update({
        "item_title": room.item.title,
        "item_price": room.item.price,
        "item_status": room.item.status,
        "buyer_name": room.buyer.username,
        "seller_name": room.seller.username,
    })
    return data


def list_rooms(user_id: int) -> list[dict]:
    """Rooms the user takes part in, most recently active first."""
    last = aliased(ChatMessage)
    last_content = (
        db.session.query(last.content)
        .filter(last.room_id == ChatRoom.id)
        .order_by(last.sent_at.desc(), last.id.desc())
        .limit(1)
        .correlate(ChatRoom)
        .scalar_subquery()
    )
    last_sent_at = (
        db.session.query(db.func.max(ChatMessage.sent_at))
        .filter(ChatMessage.room_id == ChatRoom.id)
        .correlate(ChatRoom)
        .scalar_subquery()
    )

    rows = (
        db.session.query(ChatRoom, last_content.label("last_message"), last_sent_at.label("last_message_at"))
        .filter(or_(ChatRoom.buyer_id == user_id, ChatRoom.seller_id == user_id))
        .order_by(last_sent_at.desc().nulls_last(), ChatRoom.id.desc())
        .all()
    )

    result = []
    for room, last_message, last_message_at in rows:
        data = _room_summary(room)
        data["last_message"] = last_message
        data["last_message_at"] = to_utc_z(last_message_at)
        result.append(data)
    return result


def open_room(*, item_id: int, buyer_id: int) -> tuple[ChatRoom, bool]:
    """
    Return the (item, buyer) room, creating it on first contact.

    Raises:
        NotFoundError: item or buyer does not exist
        ConflictError: the buyer is the item's seller
    """
    item = db.session.get(Item, item_id)
    if item is None:
        raise NotFoundError("Item not found")
    if db.session.get(User, buyer_id) is None:
        raise NotFoundError("User not found")
    if item.seller_id == buyer_id:
        raise ConflictError("Cannot chat on your own item")

    existing = db.session.query(ChatRoom).filter_by(item_id=item_id, buyer_id=buyer_id).first()
    if existing is not None:
        return existing, False

    room = ChatRoom(item_id=item_id, buyer_id=buyer_id, seller_id=item.seller_id)
    try:
        with transaction_scope() as session:
            session.add(room)
    except IntegrityError:
        existing = db.session.query(ChatRoom).filter_by(item_id=item_id, buyer_id=buyer_id).one()
        return existing, False
    return room, True


def get_room(room_id: int) -> dict | None:
    """Room summary plus its messages in send order."""
    room = db.session.get(ChatRoom, room_id)
    if room is None:
        return None

    messages = (
        db.session.query(ChatMessage)
        .filter(ChatMessage.room_id == room_id)
        .order_by(ChatMessage.sent_at.asc(), ChatMessage.id.asc())
        .all()
    )
    return {
        "room": _room_summary(room),
        "messages": [m.to_dict() for m in messages],
    }


def send_message(*, room_id: int, sender_id: int, content: str) -> ChatMessage:
    """
    Raises:
        NotFoundError: room does not exist
        ConflictError: sender is neither the room's buyer nor its seller
    """
    room = db.session.get(ChatRoom, room_id)
    if room is None:
        raise NotFoundError("Chat room not found")
    if not room.has_participant(sender_id):
        raise ConflictError("You are not part of this chat room")

    message = ChatMessage(room_id=room_id, sender_id=sender_id, content=content)
    with transaction_scope() as session:
        session.add(message)
    return message
