from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB

from ..extensions import db
from market.time_utils import to_utc_z

# JSONB on PostgreSQL so attribute maps can be queried by key path;
# plain JSON elsewhere (SQLite in development and tests).
JSONType = db.JSON().with_variant(JSONB(), "postgresql")


class Category(db.Model):
    """
    Self-referential category tree node.

    Roots have parent_id NULL. The tree is read-only at runtime; listing under
    a parent implicitly includes every descendant (see category_service).
    """
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    parent = db.relationship("Category", remote_side=[id], backref=db.backref("children", lazy=True))

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} parent_id={self.parent_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "parent_id": self.parent_id,
        }


class StandardProduct(db.Model):
    """Canonical catalog entry (SKU) a listing may optionally point at."""
    __tablename__ = "standard_products"

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.String(50), nullable=False, unique=True)
    brand_name = db.Column(db.String(50), nullable=False)
    model_name = db.Column(db.String(100), nullable=False)
    specs = db.Column(JSONType, nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    category = db.relationship("Category")

    def __repr__(self) -> str:
        return f"<StandardProduct id={self.id} code={self.product_code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_code": self.product_code,
            "brand_name": self.brand_name,
            "model_name": self.model_name,
            "specs": self.specs,
            "category_id": self.category_id,
        }


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    event_name = db.Column(db.String(100), nullable=False)
    artist_name = db.Column(db.String(100), nullable=True)

    options = db.relationship(
        "EventOption",
        back_populates="event",
        order_by="EventOption.id",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_name": self.event_name,
            "artist_name": self.artist_name,
        }


class EventOption(db.Model):
    """A single performance of an event (venue + datetime). Tickets attach here."""
    __tablename__ = "event_options"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False, index=True)
    venue = db.Column(db.String(100), nullable=False)
    event_datetime = db.Column(db.DateTime(timezone=True), nullable=False)

    event = db.relationship("Event", back_populates="options")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "venue": self.venue,
            "event_datetime": to_utc_z(self.event_datetime),
        }
