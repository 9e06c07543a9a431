# backend/market/services/catalog_service.py
"""Read-only catalog lookups: events, event options and SKU autocomplete."""
from __future__ import annotations

from ..extensions import db
from ..models import Event, EventOption, StandardProduct

AUTOCOMPLETE_LIMIT = 5


def list_events() -> list[dict]:
    events = db.session.query(Event).order_by(Event.id.asc()).all()
    return [e.to_dict() for e in events]


def list_event_options(event_id: int) -> list[dict]:
    options = (
        db.session.query(EventOption)
        .filter(EventOption.event_id == event_id)
        .order_by(EventOption.id.asc())
        .all()
    )
    return [o.to_dict() for o in options]


def autocomplete_products(q: str) -> list[dict]:
    """Top matches on product_code, case-insensitive substring."""
    products = (
        db.session.query(StandardProduct)
        .filter(StandardProduct.product_code.icontains(q, autoescape=True))
        .order_by(StandardProduct.product_code.asc())
        .limit(AUTOCOMPLETE_LIMIT)
        .all()
    )
    return [p.to_dict() for p in products]
