# Overview: Flask CLI commands for schema bootstrap, demo data and consistency checks.

# backend/market/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP (PowerShell: $env:FLASK_APP="market"; bash: export FLASK_APP=market).
# - Use: python -m flask market <command> [options]
#
# - python -m flask market init-db
#   Create all tables (development; production uses `flask db upgrade`).
#   On PostgreSQL also (re)installs the ticket price trigger using the
#   configured ANTI_SCALPING_MAX_PERCENT. Migrations pin it at 120.
# - python -m flask market reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask market seed [--bulk 200] [--random-seed 7]
#   Insert the demo scenario, optionally followed by random filler listings.
# - python -m flask market check
#   Report data that breaks application-level conventions.

import random
from datetime import datetime

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import text

from .extensions import db
from .models import (
    Category,
    Event,
    EventOption,
    Item,
    StandardProduct,
    TicketDetails,
    Transaction,
    User,
    ITEM_STATUS_SOLD,
)
from .services.category_service import get_category_closure


TICKET_PRICE_TRIGGER_TEMPLATE = """
CREATE OR REPLACE FUNCTION check_ticket_price() RETURNS trigger AS $$
DECLARE
    sale_price INTEGER;
BEGIN
    SELECT price INTO sale_price FROM items WHERE id = NEW.item_id;
    IF sale_price * 100 > NEW.original_price * {max_percent} THEN
        RAISE EXCEPTION 'Ticket price cannot exceed {max_percent} percent of the original price';
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS trg_check_ticket_price ON ticket_details;

CREATE TRIGGER trg_check_ticket_price
BEFORE INSERT OR UPDATE ON ticket_details
FOR EACH ROW EXECUTE FUNCTION check_ticket_price();
"""


def ticket_price_trigger_sql(max_percent: int) -> str:
    return TICKET_PRICE_TRIGGER_TEMPLATE.format(max_percent=int(max_percent))


def install_ticket_price_trigger() -> bool:
    """
    Install the store-level resale cap on PostgreSQL. Returns False on other
    dialects, where items_service is the only enforcement.
    """
    if db.engine.dialect.name != "postgresql":
        return False
    max_percent = current_app.config["ANTI_SCALPING_MAX_PERCENT"]
    with db.engine.begin() as conn:
        conn.exec_driver_sql(ticket_price_trigger_sql(max_percent))
    return True


def _echo_trigger_result(installed: bool) -> None:
    if installed:
        click.echo(f"PASS Ticket price trigger installed ({current_app.config['ANTI_SCALPING_MAX_PERCENT']}%)")
    else:
        click.echo(f"SKIP Ticket price trigger ({db.engine.dialect.name} has no plpgsql)")


@click.group('market')
def market_group():
    """Marketplace bootstrap and maintenance commands."""


@market_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created")
    _echo_trigger_result(install_ticket_price_trigger())


@market_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """Drop and recreate every table."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")
    _echo_trigger_result(install_ticket_price_trigger())


CATEGORIES = [
    # (id, name, parent_id)
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

STANDARD_PRODUCTS = [
    ("SM-R177", "Samsung", "Galaxy Buds2", {"color": "white", "bluetooth": "5.2"}, 6),
    ("SM-F731N", "Samsung", "Galaxy Z Flip5", {"color": "mint", "storage": "256GB"}, 4),
    ("M3-PRO-14", "Apple", "MacBook Pro 14 M3", {"chip": "M3 Pro", "memory": "18GB"}, 5),
]

EVENTS = [
    ("PSY Summer Swag 2025", "PSY", [
        ("Seoul Olympic Stadium", datetime(2025, 7, 20, 18, 42)),
        ("Busan Asiad Stadium", datetime(2025, 7, 27, 18, 42)),
    ]),
    ("IU Concert 2025", "IU", [
        ("Seoul World Cup Stadium", datetime(2025, 9, 20, 19, 0)),
    ]),
]


def _seed_scenario() -> None:
    seller = User(username="demo_seller")
    buyer = User(username="demo_buyer")
    db.session.add_all([seller, buyer])

    for category_id, name, parent_id in CATEGORIES:
        db.session.add(Category(id=category_id, name=name, parent_id=parent_id))
    db.session.flush()
    if db.engine.dialect.name == "postgresql":
        # Explicit ids above bypass the serial sequence
        db.session.execute(text(
            "SELECT setval(pg_get_serial_sequence('categories', 'id'), (SELECT MAX(id) FROM categories))"
        ))

    products = []
    for code, brand, model, specs, category_id in STANDARD_PRODUCTS:
        product = StandardProduct(
            product_code=code, brand_name=brand, model_name=model, specs=specs, category_id=category_id
        )
        db.session.add(product)
        products.append(product)

    options = []
    for event_name, artist, venues in EVENTS:
        event = Event(event_name=event_name, artist_name=artist)
        db.session.add(event)
        for venue, when in venues:
            option = EventOption(event=event, venue=venue, event_datetime=when)
            db.session.add(option)
            options.append(option)
    db.session.flush()

    # Ticket listing matched by the sector filter demo (sector A)
    first = Item(seller_id=seller.id, title="PSY Seoul final night R seat, sector A",
                 price=150000, description="Can't make it, selling fast.", category_id=7)
    first.ticket = TicketDetails(event_option_id=options[0].id, original_price=130000,
                                 seat_info={"grade": "R", "sector": "A", "row": 10, "number": 15})
    # Ticket listing outside that filter
    second = Item(seller_id=seller.id, title="PSY Busan S seat, sector C",
                  price=120000, description="Seats got split up, selling one.", category_id=7)
    second.ticket = TicketDetails(event_option_id=options[1].id, original_price=110000,
                                  seat_info={"grade": "S", "sector": "C", "row": 5, "number": 22})
    # SKU-linked electronics listing
    third = Item(seller_id=seller.id, title="Galaxy Z Flip5 mint, mint condition",
                 price=850000, description="Full box.", category_id=4, std_id=products[1].id)
    db.session.add_all([first, second, third])


def _seed_bulk(count: int, rng: random.Random) -> None:
    users = [User(username=f"member_{i:03d}") for i in range(1, 21)]
    db.session.add_all(users)
    db.session.flush()

    products = db.session.query(StandardProduct).all()
    options = db.session.query(EventOption).all()
    grades = ["VIP", "R", "S", "A"]
    sectors = ["A", "B", "C", "D", "E"]

    for i in range(count):
        seller = rng.choice(users)
        if i % 5 == 0 and options:
            original = rng.randrange(50, 200) * 1000
            item = Item(
                seller_id=seller.id,
                title=f"Concert ticket #{i}",
                price=original + original // 10,
                category_id=7,
            )
            item.ticket = TicketDetails(
                event_option_id=rng.choice(options).id,
                original_price=original,
                seat_info={
                    "grade": rng.choice(grades),
                    "sector": rng.choice(sectors),
                    "row": rng.randint(1, 30),
                    "number": rng.randint(1, 40),
                },
            )
        else:
            product = rng.choice(products)
            item = Item(
                seller_id=seller.id,
                title=f"{product.model_name} listing #{i}",
                price=rng.randrange(100, 2000) * 1000,
                category_id=product.category_id,
                std_id=product.id,
            )
        db.session.add(item)


@market_group.command('seed')
@click.option('--bulk', default=0, show_default=True, help='Extra random listings to add')
@click.option('--random-seed', default=None, type=int, help='Seed for reproducible bulk data')
@with_appcontext
def seed(bulk, random_seed):
    """
    Insert the demo scenario: demo_seller (1) and demo_buyer (2), the
    category tree (4-6 under 1, 7-9 under 3), three SKUs, two events with
    three options, two ticket listings and one SKU listing.
    """
    if db.session.query(User).first() is not None:
        click.echo("WARN  Database already has users; run reset-db --yes first")
        raise SystemExit(1)

    try:
        _seed_scenario()
        if bulk:
            _seed_bulk(bulk, random.Random(random_seed))
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Seeding failed")
        raise

    click.echo(f"PASS Seeded scenario data (+{bulk} bulk listings)")


def find_inconsistencies() -> dict[str, list[int]]:
    """
    Rows that violate conventions the schema itself does not enforce:
    - ticket listings whose category is outside the ticket subtree
    - SOLD items without a transaction
    - transactions whose item is not SOLD
    """
    ticket_categories = get_category_closure(current_app.config["TICKET_ROOT_CATEGORY_ID"])

    misfiled_tickets = [
        row.id for row in
        db.session.query(Item.id)
        .join(TicketDetails, TicketDetails.item_id == Item.id)
        .filter(Item.category_id.isnot(None), Item.category_id.notin_(sorted(ticket_categories)))
        .order_by(Item.id)
    ]
    sold_without_transaction = [
        row.id for row in
        db.session.query(Item.id)
        .outerjoin(Transaction, Transaction.item_id == Item.id)
        .filter(Item.status == ITEM_STATUS_SOLD, Transaction.id.is_(None))
        .order_by(Item.id)
    ]
    transaction_on_unsold = [
        row.id for row in
        db.session.query(Transaction.id)
        .join(Item, Transaction.item_id == Item.id)
        .filter(Item.status != ITEM_STATUS_SOLD)
        .order_by(Transaction.id)
    ]
    return {
        "tickets_outside_ticket_categories": misfiled_tickets,
        "sold_items_without_transaction": sold_without_transaction,
        "transactions_on_unsold_items": transaction_on_unsold,
    }


@market_group.command('check')
@with_appcontext
def check():
    """Report data consistency problems; exits 1 when any are found."""
    problems = find_inconsistencies()
    failed = False
    for name, ids in problems.items():
        if ids:
            failed = True
            click.echo(f"FAIL {name}: {ids[:20]}{' ...' if len(ids) > 20 else ''}")
        else:
            click.echo(f"PASS {name}")
    if failed:
        raise SystemExit(1)


def register_commands(app):
    app.cli.add_command(market_group)
