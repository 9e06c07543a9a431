"""Events, SKU autocomplete, user endpoints and the health check."""

from market.models import StandardProduct


def test_events_and_options(client, event_options):
    events = client.get('/api/events').json
    assert [e["event_name"] for e in events] == ["PSY Summer Swag 2025"]

    options = client.get(f'/api/events/{events[0]["id"]}/options').json
    assert [o["venue"] for o in options] == ["Seoul Olympic Stadium", "Busan Asiad Stadium"]
    assert options[0]["event_datetime"] == "2025-07-20T18:42:00Z"

    assert client.get('/api/events/99999/options').json == []


def test_autocomplete(client, db_session, product):
    for code in ["SM-R177", "SM-S918N", "M3-PRO-14"]:
        db_session.add(StandardProduct(product_code=code, brand_name="b", model_name=code))
    db_session.commit()

    codes = [p["product_code"] for p in client.get('/api/products/autocomplete?q=sm-').json]
    assert codes == ["SM-F731N", "SM-R177", "SM-S918N"]

    assert client.get('/api/products/autocomplete?q=zzz').json == []
    assert client.get('/api/products/autocomplete').status_code == 400


def test_autocomplete_is_capped(client, db_session):
    for i in range(8):
        db_session.add(StandardProduct(product_code=f"CODE-{i}", brand_name="b", model_name="m"))
    db_session.commit()

    assert len(client.get('/api/products/autocomplete?q=code').json) == 5


def test_users(client, users):
    listed = client.get('/api/users').json
    assert [u["username"] for u in listed] == ["demo_seller", "demo_buyer", "bystander"]

    assert client.get('/api/users/99999').status_code == 404


def test_user_items(client, listings, users):
    items = client.get(f'/api/users/{users["outsider"]}/items').json
    assert [i["id"] for i in items] == [listings["laptop"]]

    seller_items = client.get(f'/api/users/{users["seller"]}/items').json
    assert len(seller_items) == 5
    assert {i["kind"] for i in seller_items} == {"ticket", "product"}


def test_health(client, db_session):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json["status"] == "ok"
    assert response.json["database"]["dialect"] == "sqlite"


def test_cors_allows_dev_origin(client, db_session):
    response = client.get('/health', headers={"Origin": "http://localhost:5173"})
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    response = client.get('/health', headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in response.headers
