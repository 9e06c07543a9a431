"""
Purchase finalization.

WHY: Two buyers hitting "buy" on the same listing at the same moment must not
both succeed. The item row is read with SELECT ... FOR UPDATE inside the
transaction that inserts the Transaction and flips the status, so the second
buyer blocks until the first commits and then sees SOLD.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import (
    EventOption,
    Item,
    TicketDetails,
    Transaction,
    User,
    ITEM_STATUS_SOLD,
    PURCHASABLE_STATUSES,
)
from ..validation import ConflictError, NotFoundError
from .concurrency import begin_write_transaction, lock_for_update, transaction_scope


def create_transaction(*, item_id: int, buyer_id: int, final_price: int) -> Transaction:
    """
    Record a purchase and mark the item SOLD as one atomic unit.

    Steps, all inside one transaction:
    1. lock the item row
    2. item must exist, be ON_SALE or RESERVED, and not belong to the buyer
    3. insert the Transaction
    4. set the item's status to SOLD
    5. commit

    Any failure rolls everything back. Not retried: a lock timeout or other
    database error propagates to the caller.

    Raises:
        NotFoundError: item or buyer does not exist
        ConflictError: item not available, or buyer is the seller
    """
    with transaction_scope() as session:
        begin_write_transaction()

        item = lock_for_update(session.query(Item).filter_by(id=item_id)).first()
        if item is None:
            raise NotFoundError("Item not found")

        if item.status not in PURCHASABLE_STATUSES:
            raise ConflictError("Item is not available for purchase")

        if item.seller_id == buyer_id:
            raise ConflictError("Cannot buy your own item")

        if session.get(User, buyer_id) is None:
            raise NotFoundError("Buyer not found")

        transaction = Transaction(item_id=item.id, buyer_id=buyer_id, final_price=final_price)
        session.add(transaction)
        item.status = ITEM_STATUS_SOLD

    current_app.logger.info(
        "Item %s sold to user %s for %s (transaction %s)",
        item_id, buyer_id, final_price, transaction.id,
    )
    return transaction


def get_transaction_detail(transaction_id: int) -> dict | None:
    """Transaction with item, both parties' names and ticket/event context."""
    transaction = (
        db.session.query(Transaction)
        .options(
            joinedload(Transaction.buyer),
            joinedload(Transaction.item).joinedload(Item.seller),
            joinedload(Transaction.item)
            .joinedload(Item.ticket)
            .joinedload(TicketDetails.event_option)
            .joinedload(EventOption.event),
        )
        .filter(Transaction.id == transaction_id)
        .first()
    )
    if transaction is None:
        return None
    return transaction_summary(transaction)


def transaction_summary(transaction: Transaction) -> dict:
    item = transaction.item
    data = transaction.to_dict()
    data.update({
        "title": item.title,
        "item_price": item.price,
        "seller_id": item.seller_id,
        "seller_name": item.seller.username if item.seller else None,
        "buyer_name": transaction.buyer.username if transaction.buyer else None,
        "seat_info": None,
        "event_name": None,
        "venue": None,
        "event_datetime": None,
    })
    if item.ticket is not None:
        option = item.ticket.event_option
        data["seat_info"] = item.ticket.seat_info
        if option is not None:
            option_dict = option.to_dict()
            data["venue"] = option_dict["venue"]
            data["event_datetime"] = option_dict["event_datetime"]
            data["event_name"] = option.event.event_name if option.event else None
    return data


def list_purchases(buyer_id: int) -> list[dict]:
    transactions = (
        db.session.query(Transaction)
        .filter(Transaction.buyer_id == buyer_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )
    return [transaction_summary(t) for t in transactions]
