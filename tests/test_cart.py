from datetime import datetime, timezone

from bson import ObjectId

import carts
import catalog


def _item(pid, check_in="2026-01-01", check_out="2027-01-01", total=180000):
    return {"propertyId": pid, "checkIn": check_in, "checkOut": check_out, "totalPrice": total}


def test_cart_is_created_empty_on_first_read(client, db, auth_headers):
    resp = client.get("/cart", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["items"] == []
    assert db["cart"].count_documents({}) == 1

    client.get("/cart", headers=auth_headers)
    assert db["cart"].count_documents({}) == 1


def test_cart_requires_auth(client):
    assert client.get("/cart").status_code == 401
    assert client.post("/cart/add", json={}).status_code == 401


def test_adding_same_property_twice_keeps_one_line_with_latest_values(client, auth_headers, property_factory):
    pid = property_factory()

    client.post("/cart/add", json=_item(pid, total=180000), headers=auth_headers)
    resp = client.post(
        "/cart/add",
        json=_item(pid, check_in="2027-01-01", check_out="2028-01-01", total=190000),
        headers=auth_headers,
    )
    assert resp.status_code == 200, resp.text
    items = resp.json()["items"]
    assert len(items) == 1
    assert items[0]["total_price"] == 190000
    assert items[0]["check_in"].startswith("2027-01-01")
    assert items[0]["property"]["id"] == pid
    assert resp.json()["total_price"] == 190000


def test_cart_holds_several_properties_and_totals_them(client, auth_headers, property_factory):
    first = property_factory(title="First")
    second = property_factory(title="Second")

    client.post("/cart/add", json=_item(first, total=96000), headers=auth_headers)
    resp = client.post("/cart/add", json=_item(second, total=120000), headers=auth_headers)

    body = resp.json()
    assert [it["property_id"] for it in body["items"]] == [first, second]
    assert body["total_price"] == 216000


def test_remove_filters_out_line_item(client, auth_headers, property_factory):
    first = property_factory(title="First")
    second = property_factory(title="Second")
    client.post("/cart/add", json=_item(first), headers=auth_headers)
    client.post("/cart/add", json=_item(second), headers=auth_headers)

    resp = client.delete(f"/cart/remove/{first}", headers=auth_headers)
    assert resp.status_code == 200
    assert [it["property_id"] for it in resp.json()["items"]] == [second]

    # removing something that is not there is a no-op
    again = client.delete(f"/cart/remove/{first}", headers=auth_headers)
    assert [it["property_id"] for it in again.json()["items"]] == [second]


def test_add_rejects_checkout_not_after_checkin(client, auth_headers, property_factory):
    pid = property_factory()
    resp = client.post(
        "/cart/add",
        json=_item(pid, check_in="2026-06-01", check_out="2026-06-01"),
        headers=auth_headers,
    )
    assert resp.status_code == 400


def test_add_rejects_unknown_or_sold_property(client, db, auth_headers, property_factory):
    assert client.post("/cart/add", json=_item(str(ObjectId())), headers=auth_headers).status_code == 404

    pid = property_factory()
    catalog.mark_sold(db, ObjectId(pid), "someone", datetime.now(timezone.utc))
    resp = client.post("/cart/add", json=_item(pid), headers=auth_headers)
    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"


def test_add_rejects_unknown_fields(client, auth_headers, property_factory):
    body = _item(property_factory())
    body["leaseDurationYears"] = 1
    assert client.post("/cart/add", json=body, headers=auth_headers).status_code == 400


def test_carts_are_per_user(client, register_user, property_factory):
    alice, _ = register_user()
    bob, _ = register_user(name="Bob", email="bob@example.com")
    pid = property_factory()

    client.post("/cart/add", json=_item(pid), headers={"Authorization": f"Bearer {alice}"})

    bob_cart = client.get("/cart", headers={"Authorization": f"Bearer {bob}"}).json()
    assert bob_cart["items"] == []


def test_clear_empties_items_but_keeps_the_cart(client, db, register_user, property_factory):
    token, user = register_user()
    client.post("/cart/add", json=_item(property_factory()), headers={"Authorization": f"Bearer {token}"})

    cleared = carts.clear(db, user["id"])
    assert cleared["items"] == []
    assert db["cart"].count_documents({"user_id": user["id"]}) == 1


def test_property_id_case_does_not_split_line_items(client, auth_headers, property_factory):
    pid = property_factory()

    client.post("/cart/add", json=_item(pid, total=180000), headers=auth_headers)
    resp = client.post("/cart/add", json=_item(pid.upper(), total=200000), headers=auth_headers)

    items = resp.json()["items"]
    assert len(items) == 1
    assert items[0]["property_id"] == pid
    assert items[0]["total_price"] == 200000

    removed = client.delete(f"/cart/remove/{pid.upper()}", headers=auth_headers)
    assert removed.json()["items"] == []


def test_add_rejects_malformed_property_id(client, auth_headers):
    resp = client.post("/cart/add", json=_item("not-an-id"), headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"


def test_add_rejects_zero_total(client, auth_headers, property_factory):
    resp = client.post("/cart/add", json=_item(property_factory(), total=0), headers=auth_headers)
    assert resp.status_code == 400


def test_get_cart_keeps_existing_cart_and_never_duplicates(db, register_user, property_factory):
    _, user = register_user()
    pid = property_factory()
    db["cart"].insert_one({"user_id": user["id"], "items": [{"property_id": pid, "total_price": 5}]})

    for _ in range(3):
        cart = carts.get_cart(db, user["id"])

    assert [it["property_id"] for it in cart["items"]] == [pid]
    assert db["cart"].count_documents({"user_id": user["id"]}) == 1
