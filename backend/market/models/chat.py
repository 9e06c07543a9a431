from __future__ import annotations

from ..extensions import db
from market.time_utils import to_utc_z


class ChatRoom(db.Model):
    """One conversation per (item, buyer). seller_id is copied from the item at creation."""
    __tablename__ = "chat_rooms"
    __table_args__ = (
        db.UniqueConstraint("item_id", "buyer_id", name="uq_chat_rooms_item_buyer"),
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item = db.relationship("Item")
    buyer = db.relationship("User", foreign_keys=[buyer_id])
    seller = db.relationship("User", foreign_keys=[seller_id])

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.buyer_id, self.seller_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "buyer_id": self.buyer_id,
            "seller_id": self.seller_id,
            "created_at": to_utc_z(self.created_at),
        }


class ChatMessage(db.Model):
    """Append-only message log; ordered by (sent_at, id) within a room."""
    __tablename__ = "chat_messages"
    __table_args__ = (
        db.Index("ix_chat_messages_room_sent", "room_id", "sent_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False)
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    content = db.Column(db.Text, nullable=False)
    sent_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sender = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "room_id": self.room_id,
            "sender_id": self.sender_id,
            "sender_name": self.sender.username if self.sender else None,
            "content": self.content,
            "sent_at": to_utc_z(self.sent_at),
        }
