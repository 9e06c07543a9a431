from __future__ import annotations

import enum

from ..extensions import db
from .catalog import JSONType
from market.time_utils import to_utc_z

ITEM_STATUS_ON_SALE = "ON_SALE"
ITEM_STATUS_RESERVED = "RESERVED"
ITEM_STATUS_SOLD = "SOLD"

ITEM_STATUSES = (ITEM_STATUS_ON_SALE, ITEM_STATUS_RESERVED, ITEM_STATUS_SOLD)

# A purchase may only be finalized from one of these
PURCHASABLE_STATUSES = (ITEM_STATUS_ON_SALE, ITEM_STATUS_RESERVED)


class ItemKind(str, enum.Enum):
    """
    Listing kind as seen by API callers.

    Storage has no discriminator column: an item is a ticket exactly when a
    ticket_details row exists for it. The kind is derived once here so callers
    never have to null-check the ticket relationship themselves.
    """
    TICKET = "ticket"
    PRODUCT = "product"


class Item(db.Model):
    """
    A listing posted by a seller.

    Status moves ON_SALE -> RESERVED -> SOLD (RESERVED may be skipped). The
    flip to SOLD happens together with the Transaction insert in
    transaction_service.create_transaction.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('ON_SALE', 'RESERVED', 'SOLD')",
            name="ck_items_status",
        ),
        db.CheckConstraint("price > 0", name="ck_items_price_positive"),
        db.Index("ix_items_status", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    std_id = db.Column(db.Integer, db.ForeignKey("standard_products.id"), nullable=True, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Whole currency units (KRW)
    price = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=ITEM_STATUS_ON_SALE)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    seller = db.relationship("User", foreign_keys=[seller_id])
    standard_product = db.relationship("StandardProduct")
    category = db.relationship("Category")
    ticket = db.relationship(
        "TicketDetails",
        back_populates="item",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def kind(self) -> ItemKind:
        return ItemKind.TICKET if self.ticket is not None else ItemKind.PRODUCT

    def __repr__(self) -> str:
        return f"<Item id={self.id} title={self.title!r} status={self.status} kind={self.kind.value}>"

    def to_dict(self) -> dict:
        sku = self.standard_product
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "std_id": self.std_id,
            "category_id": self.category_id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "status": self.status,
            "kind": self.kind.value,
            "created_at": to_utc_z(self.created_at),
            "product_code": sku.product_code if sku else None,
            "brand_name": sku.brand_name if sku else None,
            "model_name": sku.model_name if sku else None,
            "ticket": self.ticket.to_dict() if self.ticket else None,
        }

    def to_detail_dict(self) -> dict:
        """Listing plus its SKU, category, seller and (for tickets) event context."""
        data = self.to_dict()
        data["seller_name"] = self.seller.username if self.seller else None
        data["category"] = self.category.to_dict() if self.category else None
        data["standard_product"] = self.standard_product.to_dict() if self.standard_product else None
        if self.ticket is not None:
            option = self.ticket.event_option
            data["event_option"] = option.to_dict() if option else None
            data["event"] = option.event.to_dict() if option and option.event else None
        else:
            data["event_option"] = None
            data["event"] = None
        return data


class TicketDetails(db.Model):
    """
    1:1 extension of an Item that represents an event ticket.

    seat_info is schema-less ({"grade", "sector", "row", "number"}) and is
    filtered by key path. Resale price is capped relative to original_price.
    """
    __tablename__ = "ticket_details"
    __table_args__ = (
        db.CheckConstraint("original_price > 0", name="ck_ticket_details_original_price_positive"),
    )

    item_id = db.Column(db.Integer, db.ForeignKey("items.id", ondelete="CASCADE"), primary_key=True)
    event_option_id = db.Column(db.Integer, db.ForeignKey("event_options.id"), nullable=False, index=True)
    seat_info = db.Column(JSONType, nullable=False)
    original_price = db.Column(db.Integer, nullable=False)

    item = db.relationship("Item", back_populates="ticket")
    event_option = db.relationship("EventOption")

    def to_dict(self) -> dict:
        return {
            "event_option_id": self.event_option_id,
            "seat_info": self.seat_info,
            "original_price": self.original_price,
        }
