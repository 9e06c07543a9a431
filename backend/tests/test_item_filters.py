"""Parsing and predicate-builder tests for the listing filters."""

from werkzeug.datastructures import MultiDict

from market.models import ItemKind
from market.services.item_filters import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ItemFilter,
    Page,
    build_conditions,
)


def test_empty_args_build_no_conditions():
    assert build_conditions(ItemFilter.from_args(MultiDict())) == []


def test_parses_recognized_filters():
    f = ItemFilter.from_args(MultiDict({
        "search": "  flip  ",
        "category": "1",
        "event_option_id": "2",
        "seat_sector": "A",
        "seat_row": "10",
        "seat_number": "15",
        "type": "Ticket",
        "status": "on_sale",
        "seller_id": "7",
        "min_price": "1000",
        "max_price": "200000",
    }))
    assert f.search == "flip"
    assert f.category_id == 1
    assert f.event_option_id == 2
    assert f.seat_sector == "A"
    assert (f.seat_row, f.seat_number) == (10, 15)
    assert f.kind is ItemKind.TICKET
    assert f.status == "ON_SALE"
    assert f.seller_id == 7
    assert (f.min_price, f.max_price) == (1000, 200000)


def test_malformed_values_disable_only_that_filter(categories):
    f = ItemFilter.from_args(MultiDict({
        "category": "digital",
        "event_option_id": "1.5",
        "type": "service",
        "status": "GONE",
        "seat_sector": "B",
    }))
    assert f.category_id is None
    assert f.event_option_id is None
    assert f.kind is None
    assert f.status is None
    assert f.seat_sector == "B"
    assert len(build_conditions(f)) == 1


def test_blank_values_are_absent():
    f = ItemFilter.from_args(MultiDict({"search": "   ", "seat_sector": ""}))
    assert f.search is None
    assert f.seat_sector is None


def test_one_condition_per_supplied_filter(categories):
    f = ItemFilter.from_args(MultiDict({"search": "x", "category": "1", "type": "product"}))
    assert len(build_conditions(f)) == 3


def test_page_defaults_and_clamping():
    assert Page.from_args(MultiDict()) == Page(page=1, limit=DEFAULT_PAGE_SIZE)
    assert Page.from_args(MultiDict({"page": "0", "limit": "0"})) == Page(page=1, limit=1)
    assert Page.from_args(MultiDict({"page": "-3", "limit": "5000"})) == Page(page=1, limit=MAX_PAGE_SIZE)
    assert Page.from_args(MultiDict({"page": "abc", "limit": "x"})) == Page(page=1, limit=DEFAULT_PAGE_SIZE)


def test_page_offset():
    assert Page(page=3, limit=10).offset == 20
    assert Page(page=1, limit=10).offset == 0
