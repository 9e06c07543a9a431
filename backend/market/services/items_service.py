# backend/market/services/items_service.py
"""
Item listing, detail, creation and status updates.

Creation of a ticket listing writes two rows (items + ticket_details) and
must be all-or-nothing; see create_item.
"""
from __future__ import annotations

import math

from flask import current_app
from sqlalchemy.exc import IntegrityError, InternalError
from sqlalchemy.orm import contains_eager, joinedload

from ..extensions import db
from ..models import (
    Category,
    EventOption,
    Item,
    StandardProduct,
    TicketDetails,
    User,
    ITEM_STATUSES,
    ITEM_STATUS_ON_SALE,
    ITEM_STATUS_SOLD,
)
from ..validation import ConflictError, NotFoundError, ValidationError
from .category_service import get_category_closure
from .concurrency import lock_for_update, transaction_scope
from .item_filters import ItemFilter, Page, build_conditions


class ItemError(Exception):
    """
    The store rejected a listing write (constraint or trigger).

    The message is the database's own and is meant to reach the caller as is,
    e.g. the anti-scalping rule.
    """


def _store_message(exc: Exception) -> str:
    orig = getattr(exc, "orig", None) or exc
    diag = getattr(orig, "diag", None)
    primary = getattr(diag, "message_primary", None)
    if primary:
        return primary
    return str(orig).strip().splitlines()[0]


def _listing_query():
    return (
        db.session.query(Item)
        .outerjoin(StandardProduct, Item.std_id == StandardProduct.id)
        .outerjoin(TicketDetails, TicketDetails.item_id == Item.id)
    )


def list_items(item_filter: ItemFilter, page: Page) -> dict:
    """
    Filtered, paginated listing, newest first.

    The count and the page are computed from the same condition list, so
    total/totalPages always describe the rows being paged through.
    """
    query = _listing_query()
    for condition in build_conditions(item_filter):
        query = query.filter(condition)

    total = query.order_by(None).count()
    total_pages = math.ceil(total / page.limit) if total else 0

    items = (
        query.options(contains_eager(Item.standard_product), contains_eager(Item.ticket))
        .order_by(Item.id.desc())
        .offset(page.offset)
        .limit(page.limit)
        .all()
    )

    return {
        "items": [item.to_dict() for item in items],
        "pagination": {
            "page": page.page,
            "limit": page.limit,
            "total": total,
            "totalPages": total_pages,
            "hasMore": page.page < total_pages,
        },
    }


def get_item_detail(item_id: int) -> dict | None:
    item = (
        db.session.query(Item)
        .options(
            joinedload(Item.standard_product),
            joinedload(Item.category),
            joinedload(Item.seller),
            joinedload(Item.ticket).joinedload(TicketDetails.event_option).joinedload(EventOption.event),
        )
        .filter(Item.id == item_id)
        .first()
    )
    if item is None:
        return None
    return item.to_detail_dict()


def _require(model, entity_id: int, label: str):
    if db.session.get(model, entity_id) is None:
        raise NotFoundError(f"{label} not found")


def _check_ticket_category(category_id: int | None) -> None:
    """Ticket listings may only sit under the ticket category subtree."""
    if category_id is None:
        return
    ticket_root = current_app.config["TICKET_ROOT_CATEGORY_ID"]
    if category_id not in get_category_closure(ticket_root):
        raise ValidationError("Ticket items must be listed under a ticket category")


def _check_ticket_price(price: int, original_price: int) -> None:
    """Anti-scalping: resale price may not exceed the configured % of face value."""
    max_percent = current_app.config["ANTI_SCALPING_MAX_PERCENT"]
    if price * 100 > original_price * max_percent:
        max_price = original_price * max_percent // 100
        raise ItemError(
            f"Ticket price cannot exceed {max_percent}% of the original price (max {max_price})"
        )


def create_item(*, patch: dict, ticket: dict | None = None) -> dict:
    """
    Create a listing from a validated patch, optionally with ticket details.

    Without ticket data this is a single insert. With ticket data the item
    and its ticket_details row are written in one transaction: if the ticket
    insert is rejected (anti-scalping rule in code or the store's trigger)
    the item insert is rolled back as well, so neither row persists.

    Raises:
        NotFoundError: seller, category, SKU or event option does not exist
        ValidationError: ticket listed outside the ticket category subtree
        ItemError: price rule or store constraint rejected the write
    """
    seller_id = patch.get("seller_id") or current_app.config["DEFAULT_SELLER_ID"]
    category_id = patch.get("category_id")
    std_id = patch.get("std_id")

    _require(User, seller_id, "Seller")
    if category_id is not None:
        _require(Category, category_id, "Category")
    if std_id is not None:
        _require(StandardProduct, std_id, "Product")
    if ticket is not None:
        _require(EventOption, ticket["event_option_id"], "Event option")
        _check_ticket_category(category_id)

    item = Item(
        seller_id=seller_id,
        std_id=std_id,
        category_id=category_id,
        title=patch["title"],
        description=patch.get("description"),
        price=patch["price"],
        status=ITEM_STATUS_ON_SALE,
    )

    try:
        with transaction_scope() as session:
            session.add(item)
            session.flush()

            if ticket is not None:
                _check_ticket_price(item.price, ticket["original_price"])
                session.add(TicketDetails(
                    item_id=item.id,
                    event_option_id=ticket["event_option_id"],
                    seat_info=ticket["seat_info"],
                    original_price=ticket["original_price"],
                ))
                session.flush()
    except (IntegrityError, InternalError) as exc:
        current_app.logger.info("Listing rejected by store: %s", _store_message(exc))
        raise ItemError(_store_message(exc)) from exc

    return item.to_dict()


def update_item_status(item_id: int, status: str) -> dict | None:
    """
    Set status under a row lock so it cannot interleave with a purchase.

    Raises:
        ValidationError: unknown status
        ConflictError: the item is SOLD and the new status is not
    """
    if status not in ITEM_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(ITEM_STATUSES)}")

    with transaction_scope() as session:
        item = lock_for_update(session.query(Item).filter_by(id=item_id)).first()
        if item is None:
            return None
        # SOLD is terminal: the Transaction row for it already exists
        if item.status == ITEM_STATUS_SOLD and status != ITEM_STATUS_SOLD:
            raise ConflictError("Item has already been sold")
        item.status = status

    return item.to_dict()
