# backend/market/services/item_filters.py
"""
Listing filters for GET /api/items.

Each recognized query parameter maps to one predicate builder. A builder
looks at the parsed ItemFilter and contributes either one SQLAlchemy clause
(with its values bound as parameters) or None. The listing query ANDs every
non-None clause, so filters compose freely and an absent filter never
narrows the result.

Parsing is permissive: a malformed value (non-numeric id, unknown status or
type) disables that one filter instead of failing the request.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from ..models import Item, ItemKind, StandardProduct, TicketDetails, ITEM_STATUSES
from .category_service import get_category_closure

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _parse_int(value) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _parse_text(value) -> Optional[str]:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


@dataclass(frozen=True)
class ItemFilter:
    search: Optional[str] = None
    category_id: Optional[int] = None
    event_option_id: Optional[int] = None
    seat_sector: Optional[str] = None
    seat_row: Optional[int] = None
    seat_number: Optional[int] = None
    kind: Optional[ItemKind] = None
    status: Optional[str] = None
    seller_id: Optional[int] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None

    @classmethod
    def from_args(cls, args: Mapping) -> "ItemFilter":
        kind = None
        raw_kind = _parse_text(args.get("type"))
        if raw_kind:
            try:
                kind = ItemKind(raw_kind.lower())
            except ValueError:
                kind = None

        status = _parse_text(args.get("status"))
        if status is not None:
            status = status.upper()
            if status not in ITEM_STATUSES:
                status = None

        return cls(
            search=_parse_text(args.get("search")),
            category_id=_parse_int(args.get("category")),
            event_option_id=_parse_int(args.get("event_option_id")),
            seat_sector=_parse_text(args.get("seat_sector")),
            seat_row=_parse_int(args.get("seat_row")),
            seat_number=_parse_int(args.get("seat_number")),
            kind=kind,
            status=status,
            seller_id=_parse_int(args.get("seller_id")),
            min_price=_parse_int(args.get("min_price")),
            max_price=_parse_int(args.get("max_price")),
        )


@dataclass(frozen=True)
class Page:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_args(cls, args: Mapping) -> "Page":
        page = _parse_int(args.get("page"))
        limit = _parse_int(args.get("limit"))
        if page is None or page < 1:
            page = 1
        if limit is None:
            limit = DEFAULT_PAGE_SIZE
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# Builders below assume the listing query outer-joins standard_products and
# ticket_details onto items.

def _search(f: ItemFilter) -> Optional[ColumnElement]:
    if f.search is None:
        return None
    return or_(
        Item.title.icontains(f.search, autoescape=True),
        StandardProduct.model_name.icontains(f.search, autoescape=True),
    )


def _category(f: ItemFilter) -> Optional[ColumnElement]:
    if f.category_id is None:
        return None
    # Empty closure (unknown category) renders as an always-false IN ()
    return Item.category_id.in_(sorted(get_category_closure(f.category_id)))


def _event_option(f: ItemFilter) -> Optional[ColumnElement]:
    if f.event_option_id is None:
        return None
    return TicketDetails.event_option_id == f.event_option_id


def _seat_sector(f: ItemFilter) -> Optional[ColumnElement]:
    if f.seat_sector is None:
        return None
    return TicketDetails.seat_info["sector"].as_string() == f.seat_sector


def _seat_row(f: ItemFilter) -> Optional[ColumnElement]:
    if f.seat_row is None:
        return None
    return TicketDetails.seat_info["row"].as_integer() == f.seat_row


def _seat_number(f: ItemFilter) -> Optional[ColumnElement]:
    if f.seat_number is None:
        return None
    return TicketDetails.seat_info["number"].as_integer() == f.seat_number


def _kind(f: ItemFilter) -> Optional[ColumnElement]:
    if f.kind is ItemKind.TICKET:
        return TicketDetails.item_id.isnot(None)
    if f.kind is ItemKind.PRODUCT:
        return TicketDetails.item_id.is_(None)
    return None


def _status(f: ItemFilter) -> Optional[ColumnElement]:
    if f.status is None:
        return None
    return Item.status == f.status


def _seller(f: ItemFilter) -> Optional[ColumnElement]:
    if f.seller_id is None:
        return None
    return Item.seller_id == f.seller_id


def _min_price(f: ItemFilter) -> Optional[ColumnElement]:
    if f.min_price is None:
        return None
    return Item.price >= f.min_price


def _max_price(f: ItemFilter) -> Optional[ColumnElement]:
    if f.max_price is None:
        return None
    return Item.price <= f.max_price


PREDICATE_BUILDERS: tuple[Callable[[ItemFilter], Optional[ColumnElement]], ...] = (
    _search,
    _category,
    _event_option,
    _seat_sector,
    _seat_row,
    _seat_number,
    _kind,
    _status,
    _seller,
    _min_price,
    _max_price,
)


def build_conditions(f: ItemFilter) -> list[ColumnElement]:
    """Run every builder in order and keep the clauses that were produced."""
    conditions = []
    for builder in PREDICATE_BUILDERS:
        clause = builder(f)
        if clause is not None:
            conditions.append(clause)
    return conditions
