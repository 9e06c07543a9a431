"""
Listing, detail, creation and status endpoints for /api/items.
"""

import pytest
from sqlalchemy import text

from market.models import Item, TicketDetails, Transaction


def _ids(response):
    return [item["id"] for item in response.json["items"]]


class TestListItems:
    def test_lists_everything_newest_first(self, client, listings):
        response = client.get('/api/items')
        assert response.status_code == 200
        ids = _ids(response)
        assert ids == sorted(listings.values(), reverse=True)

    def test_category_includes_descendants_only(self, client, listings):
        response = client.get('/api/items?category=1')
        assert response.status_code == 200
        assert set(_ids(response)) == {listings["phone"], listings["laptop"], listings["digital_misc"]}
        assert all(item["category_id"] in {1, 4, 5, 6} for item in response.json["items"])

    def test_unknown_category_matches_nothing(self, client, listings):
        response = client.get('/api/items?category=999')
        assert response.status_code == 200
        assert response.json["items"] == []
        assert response.json["pagination"]["total"] == 0
        assert response.json["pagination"]["totalPages"] == 0

    def test_filters_are_conjunctive(self, client, listings, event_options):
        response = client.get('/api/items?category=3&seat_sector=A')
        assert _ids(response) == [listings["ticket_a"]]

        response = client.get(f'/api/items?event_option_id={event_options["busan"]}&seat_sector=A')
        assert _ids(response) == []

        response = client.get('/api/items?type=ticket&seat_row=5&seat_number=22')
        assert _ids(response) == [listings["ticket_c"]]

    def test_type_filter(self, client, listings):
        tickets = client.get('/api/items?type=ticket')
        assert set(_ids(tickets)) == {listings["ticket_a"], listings["ticket_c"]}
        assert all(item["kind"] == "ticket" for item in tickets.json["items"])

        products = client.get('/api/items?type=product')
        assert len(_ids(products)) == 4
        assert all(item["kind"] == "product" and item["ticket"] is None for item in products.json["items"])

    def test_search_matches_title_or_model_name(self, client, listings):
        # "galaxy" only appears in the SKU model name
        assert _ids(client.get('/api/items?search=galaxy')) == [listings["phone"]]
        assert _ids(client.get('/api/items?search=FRIDGE')) == [listings["fridge"]]

    def test_search_treats_wildcards_literally(self, client, listings):
        assert _ids(client.get('/api/items?search=%25')) == []

    def test_status_seller_and_price_range(self, client, listings, users):
        assert _ids(client.get(f'/api/items?seller_id={users["outsider"]}')) == [listings["laptop"]]
        assert set(_ids(client.get('/api/items?min_price=100000&max_price=150000'))) == {
            listings["ticket_a"], listings["ticket_c"],
        }
        assert _ids(client.get('/api/items?status=SOLD')) == []

    def test_absent_or_malformed_filters_do_not_narrow(self, client, listings):
        everything = _ids(client.get('/api/items'))
        assert _ids(client.get('/api/items?category=abc&status=LOST&type=other')) == everything

    def test_pagination(self, client, listings):
        first = client.get('/api/items?limit=4')
        assert first.json["pagination"] == {
            "page": 1, "limit": 4, "total": 6, "totalPages": 2, "hasMore": True,
        }
        second = client.get('/api/items?limit=4&page=2')
        assert second.json["pagination"]["hasMore"] is False
        assert len(second.json["items"]) == 2
        assert set(_ids(first)).isdisjoint(_ids(second))

        beyond = client.get('/api/items?limit=4&page=9')
        assert beyond.json["items"] == []
        assert beyond.json["pagination"]["total"] == 6

    def test_total_counts_filtered_rows(self, client, listings):
        response = client.get('/api/items?category=1&limit=2')
        assert response.json["pagination"]["total"] == 3
        assert response.json["pagination"]["totalPages"] == 2

    def test_repeated_reads_are_identical(self, client, listings):
        url = '/api/items?category=3&type=ticket&limit=1'
        assert client.get(url).json == client.get(url).json

    def test_ticket_fields_in_listing(self, client, listings):
        response = client.get('/api/items?seat_sector=C')
        ticket = response.json["items"][0]["ticket"]
        assert ticket["seat_info"]["sector"] == "C"
        assert ticket["original_price"] == 110000


class TestItemDetail:
    def test_ticket_detail_carries_event_context(self, client, listings):
        response = client.get(f'/api/items/{listings["ticket_a"]}')
        assert response.status_code == 200
        data = response.json
        assert data["kind"] == "ticket"
        assert data["seller_name"] == "demo_seller"
        assert data["category"]["name"] == "Concerts"
        assert data["event"]["event_name"] == "PSY Summer Swag 2025"
        assert data["event_option"]["venue"] == "Seoul Olympic Stadium"

    def test_sku_detail(self, client, listings):
        data = client.get(f'/api/items/{listings["phone"]}').json
        assert data["kind"] == "product"
        assert data["standard_product"]["product_code"] == "SM-F731N"
        assert data["model_name"] == "Galaxy Z Flip5"
        assert data["event"] is None

    def test_missing_item(self, client, listings):
        response = client.get('/api/items/99999')
        assert response.status_code == 404
        assert response.json == {"error": "Item not found"}


class TestCreateItem:
    def _ticket_payload(self, event_option_id, price, original_price, category_id=7):
        return {
            "title": "PSY Seoul VIP",
            "price": price,
            "category_id": category_id,
            "ticket": {
                "event_option_id": event_option_id,
                "original_price": original_price,
                "seat_info": {"grade": "VIP", "sector": "B", "row": 1, "number": 3},
            },
        }

    def test_plain_item_defaults_to_default_seller(self, client, users, categories, db_session):
        response = client.post('/api/items', json={"title": "Galaxy Buds2", "price": 60000, "category_id": 6})
        assert response.status_code == 201
        assert response.json["seller_id"] == users["seller"]
        assert response.json["status"] == "ON_SALE"
        assert response.json["kind"] == "product"
        assert db_session.query(Item).count() == 1

    def test_ticket_over_cap_is_rejected_and_nothing_persists(self, client, users, categories, event_options, db_session):
        response = client.post('/api/items', json=self._ticket_payload(event_options["seoul"], 130000, 100000))
        assert response.status_code == 400
        assert response.json["error"] == "Ticket price cannot exceed 120% of the original price (max 120000)"

        db_session.expire_all()
        assert db_session.query(Item).count() == 0
        assert db_session.query(TicketDetails).count() == 0

    def test_ticket_within_cap_writes_both_rows(self, client, users, categories, event_options, db_session):
        response = client.post('/api/items', json=self._ticket_payload(event_options["seoul"], 115000, 100000))
        assert response.status_code == 201
        assert response.json["item_id"] == response.json["id"]
        assert response.json["kind"] == "ticket"
        assert response.json["ticket"]["seat_info"]["grade"] == "VIP"

        db_session.expire_all()
        assert db_session.query(Item).count() == 1
        assert db_session.query(TicketDetails).count() == 1

    def test_ticket_at_exactly_cap_is_allowed(self, client, users, categories, event_options):
        response = client.post('/api/items', json=self._ticket_payload(event_options["seoul"], 120000, 100000))
        assert response.status_code == 201

    def test_ticket_outside_ticket_categories(self, client, users, categories, event_options, db_session):
        response = client.post(
            '/api/items',
            json=self._ticket_payload(event_options["seoul"], 100000, 100000, category_id=4),
        )
        assert response.status_code == 400
        assert db_session.query(Item).count() == 0

    def test_unknown_event_option(self, client, users, categories):
        response = client.post('/api/items', json=self._ticket_payload(4242, 100000, 100000))
        assert response.status_code == 404
        assert response.json["error"] == "Event option not found"

    @pytest.mark.parametrize("payload, message", [
        ({"price": 1000}, "Missing required fields: title"),
        ({"title": "x"}, "Missing required fields: price"),
        ({"title": "x", "price": 0}, "price must be > 0"),
        ({"title": "x", "price": "12.5"}, "price must be an integer (no decimals)"),
        ({"title": "x", "price": 100, "status": "SOLD"}, "Field not allowed: status"),
    ])
    def test_invalid_payloads(self, client, users, payload, message):
        response = client.post('/api/items', json=payload)
        assert response.status_code == 400
        assert response.json["error"] == message

    def test_ticket_requires_seat_info_object(self, client, users, categories, event_options):
        payload = self._ticket_payload(event_options["seoul"], 100000, 100000)
        payload["ticket"]["seat_info"] = "A-10-15"
        response = client.post('/api/items', json=payload)
        assert response.status_code == 400
        assert response.json["error"] == "seat_info must be an object"

    def test_seat_numbers_must_be_positive(self, client, users, categories, event_options, db_session):
        payload = self._ticket_payload(event_options["seoul"], 100000, 100000)
        payload["ticket"]["seat_info"]["row"] = 0
        response = client.post('/api/items', json=payload)
        assert response.status_code == 400
        assert response.json["error"] == "seat_info.row must be a positive integer"
        assert db_session.query(Item).count() == 0

    def test_store_rejection_is_surfaced_and_rolls_back_item(
        self, app, client, users, categories, event_options, db_session, monkeypatch
    ):
        # Lift the in-code cap so only the store-level trigger can reject
        monkeypatch.setitem(app.config, "ANTI_SCALPING_MAX_PERCENT", 1000)
        db_session.execute(text(
            "CREATE TRIGGER trg_reject_ticket BEFORE INSERT ON ticket_details "
            "BEGIN SELECT RAISE(ABORT, 'Ticket price cannot exceed 120 percent of the original price'); END"
        ))
        db_session.commit()
        try:
            response = client.post('/api/items', json=self._ticket_payload(event_options["seoul"], 130000, 100000))
        finally:
            db_session.execute(text("DROP TRIGGER IF EXISTS trg_reject_ticket"))
            db_session.commit()

        assert response.status_code == 400
        assert response.json == {"error": "Ticket price cannot exceed 120 percent of the original price"}

        db_session.expire_all()
        assert db_session.query(Item).count() == 0
        assert db_session.query(TicketDetails).count() == 0


class TestItemStatus:
    def test_update_status(self, client, listings, db_session):
        response = client.patch(f'/api/items/{listings["phone"]}/status', json={"status": "reserved"})
        assert response.status_code == 200
        assert response.json["status"] == "RESERVED"

        db_session.expire_all()
        assert db_session.get(Item, listings["phone"]).status == "RESERVED"

    def test_unknown_status(self, client, listings):
        response = client.patch(f'/api/items/{listings["phone"]}/status', json={"status": "LOST"})
        assert response.status_code == 400

    def test_missing_item(self, client, listings):
        response = client.patch('/api/items/99999/status', json={"status": "SOLD"})
        assert response.status_code == 404

    def test_sold_item_cannot_be_reopened(self, client, listings, users, db_session):
        bought = client.post('/api/transactions', json={
            "item_id": listings["phone"], "buyer_id": users["buyer"], "final_price": 850000,
        })
        assert bought.status_code == 201

        response = client.patch(f'/api/items/{listings["phone"]}/status', json={"status": "ON_SALE"})
        assert response.status_code == 409
        assert response.json == {"error": "Item has already been sold"}

        db_session.expire_all()
        assert db_session.get(Item, listings["phone"]).status == "SOLD"

        # A later buyer still gets the availability rejection, not a store error
        again = client.post('/api/transactions', json={
            "item_id": listings["phone"], "buyer_id": users["outsider"], "final_price": 850000,
        })
        assert again.status_code == 409
        assert again.json == {"error": "Item is not available for purchase"}
        assert db_session.query(Transaction).count() == 1

    def test_sold_to_sold_is_a_no_op(self, client, item_factory, users):
        item_id = item_factory(seller_id=users["seller"], title="Sold elsewhere", price=1000, status="SOLD")
        response = client.patch(f'/api/items/{item_id}/status', json={"status": "SOLD"})
        assert response.status_code == 200
        assert response.json["status"] == "SOLD"
