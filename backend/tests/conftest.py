"""
Pytest fixtures for marketplace backend tests.

Provides the app on in-memory SQLite, a per-test clean database, the test
client, and the demo scenario (users, category tree, events, listings).
"""

from datetime import datetime

import pytest

from market import create_app
from market.extensions import db
from market.models import (
    Category,
    Event,
    EventOption,
    Item,
    StandardProduct,
    TicketDetails,
    User,
)


# (id, name, parent_id): 4-6 under 1, 7-9 under 3
CATEGORY_TREE = [
    (1, "Digital", None),
    (2, "Home Appliances", None),
    (3, "Tickets & Vouchers", None),
    (4, "Smartphones", 1),
    (5, "Laptops", 1),
    (6, "Audio & Headphones", 1),
    (7, "Concerts", 3),
    (8, "Sports", 3),
    (9, "Musicals & Theater", 3),
]


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Clear all data (schema stays) before each test."""
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()
    db.session.expunge_all()


@pytest.fixture(scope='function')
def users(db_session):
    """seller (id 1, the default seller), buyer (2) and an outsider (3)."""
    seller = User(id=1, username="demo_seller")
    buyer = User(id=2, username="demo_buyer")
    outsider = User(id=3, username="bystander")
    db_session.add_all([seller, buyer, outsider])
    db_session.commit()
    return {"seller": seller.id, "buyer": buyer.id, "outsider": outsider.id}


@pytest.fixture(scope='function')
def categories(db_session):
    for category_id, name, parent_id in CATEGORY_TREE:
        db_session.add(Category(id=category_id, name=name, parent_id=parent_id))
    db_session.commit()
    return {name: category_id for category_id, name, _ in CATEGORY_TREE}


@pytest.fixture(scope='function')
def event_options(db_session):
    event = Event(event_name="PSY Summer Swag 2025", artist_name="PSY")
    seoul = EventOption(event=event, venue="Seoul Olympic Stadium", event_datetime=datetime(2025, 7, 20, 18, 42))
    busan = EventOption(event=event, venue="Busan Asiad Stadium", event_datetime=datetime(2025, 7, 27, 18, 42))
    db_session.add_all([event, seoul, busan])
    db_session.commit()
    return {"seoul": seoul.id, "busan": busan.id}


@pytest.fixture(scope='function')
def product(db_session, categories):
    sku = StandardProduct(
        product_code="SM-F731N",
        brand_name="Samsung",
        model_name="Galaxy Z Flip5",
        specs={"color": "mint", "storage": "256GB"},
        category_id=categories["Smartphones"],
    )
    db_session.add(sku)
    db_session.commit()
    return sku.id


def make_item(session, *, seller_id, title, price, category_id=None, std_id=None, status="ON_SALE", ticket=None):
    """Insert a listing directly (bypasses the API and its rules) and return its id."""
    item = Item(
        seller_id=seller_id,
        title=title,
        price=price,
        category_id=category_id,
        std_id=std_id,
        status=status,
    )
    if ticket is not None:
        item.ticket = TicketDetails(**ticket)
    session.add(item)
    session.commit()
    return item.id


@pytest.fixture(scope='function')
def listings(db_session, users, categories, event_options, product):
    """
    Mixed listings across the tree:
    - two tickets under Concerts (sector A row 10, sector C row 5)
    - SKU-linked phone under Smartphones, laptop under Laptops
    - a listing filed directly under Digital and one under Home Appliances
    """
    seller = users["seller"]
    ids = {}
    ids["ticket_a"] = make_item(
        db_session, seller_id=seller, title="PSY Seoul R seat, sector A", price=150000,
        category_id=categories["Concerts"],
        ticket={"event_option_id": event_options["seoul"], "original_price": 130000,
                "seat_info": {"grade": "R", "sector": "A", "row": 10, "number": 15}},
    )
    ids["ticket_c"] = make_item(
        db_session, seller_id=seller, title="PSY Busan S seat, sector C", price=120000,
        category_id=categories["Concerts"],
        ticket={"event_option_id": event_options["busan"], "original_price": 110000,
                "seat_info": {"grade": "S", "sector": "C", "row": 5, "number": 22}},
    )
    ids["phone"] = make_item(
        db_session, seller_id=seller, title="Flip5 mint condition", price=850000,
        category_id=categories["Smartphones"], std_id=product,
    )
    ids["laptop"] = make_item(
        db_session, seller_id=users["outsider"], title="MacBook Pro 14 M3", price=2100000,
        category_id=categories["Laptops"],
    )
    ids["digital_misc"] = make_item(
        db_session, seller_id=seller, title="USB-C cable bundle", price=9000,
        category_id=categories["Digital"],
    )
    ids["fridge"] = make_item(
        db_session, seller_id=seller, title="Mini fridge", price=90000,
        category_id=categories["Home Appliances"],
    )
    return ids


@pytest.fixture(scope='function')
def item_factory(db_session):
    """make_item bound to the test session."""
    def factory(**kwargs):
        return make_item(db_session, **kwargs)
    return factory
