from .users import User
from .catalog import Category, StandardProduct, Event, EventOption
from .items import (
    Item,
    ItemKind,
    TicketDetails,
    ITEM_STATUSES,
    ITEM_STATUS_ON_SALE,
    ITEM_STATUS_RESERVED,
    ITEM_STATUS_SOLD,
    PURCHASABLE_STATUSES,
)
from .trades import Transaction, Review, Wishlist
from .chat import ChatRoom, ChatMessage

__all__ = [
    'User',
    'Category', 'StandardProduct', 'Event', 'EventOption',
    'Item', 'ItemKind', 'TicketDetails',
    'ITEM_STATUSES', 'ITEM_STATUS_ON_SALE', 'ITEM_STATUS_RESERVED', 'ITEM_STATUS_SOLD',
    'PURCHASABLE_STATUSES',
    'Transaction', 'Review', 'Wishlist',
    'ChatRoom', 'ChatMessage',
]
