"""Customers and price sheets."""

from __future__ import annotations

import json

from conftest import add_customer, set_prices


def test_seeded_price_sheet_is_current(client):
    current = client.get("/settings/prices/current").json()
    assert current["order_price"] == 60
    assert current["shop_price"] == 25
    assert current["monthly_price"] == 30


def test_new_sheet_replaces_current(client):
    set_prices(client, order_price=70, shop_price=28, monthly_price=32)
    sheets = client.get("/settings/prices").json()
    assert len(sheets) == 2
    assert sheets[0]["order_price"] == 70
    assert client.get("/settings/prices/current").json()["id"] == sheets[0]["id"]


def test_no_current_sheet(unpriced_client):
    r = unpriced_client.get("/settings/prices/current")
    assert r.status_code == 503
    assert r.json() == {
        "detail": "No price sheet has been configured",
        "field": "prices",
        "kind": "PricingUnavailable",
        "retryable": True,
    }


def test_negative_price_rejected(client):
    r = client.post("/settings/prices", json={"order_price": -1})
    assert r.status_code == 422


def test_customer_create_and_duplicate(client):
    created = add_customer(client, "M1", "monthly", can_qty=2, name="Meena")
    assert created["customer_type"] == "monthly"
    assert created["can_qty"] == 2
    r = client.post("/customers", json={"customer_id": "M1", "name": "Other"})
    assert r.status_code == 409


def test_customer_type_is_checked(client):
    r = client.post("/customers", json={"customer_id": "X", "name": "X", "customer_type": "weekly"})
    assert r.status_code == 422


def test_customer_update_and_missing(client):
    add_customer(client, "S1", "shop")
    updated = client.put("/customers/S1", json={"customer_type": "monthly", "address": "Main Bazaar"}).json()
    assert updated["customer_type"] == "monthly"
    assert updated["address"] == "Main Bazaar"
    assert updated["name"] == "Customer S1"
    assert client.get("/customers/NOPE").status_code == 404
    assert client.put("/customers/NOPE", json={"name": "x"}).status_code == 404


def test_customer_search(client):
    add_customer(client, "A", "shop", name="Anand Stores", phone="9000000001")
    add_customer(client, "B", "order", name="Bharat", phone="9000000002")
    r = client.get("/customers", params={"filter": json.dumps({"q": "anand"})})
    assert [c["customer_id"] for c in r.json()] == ["A"]
    r = client.get("/customers", params={"filter": json.dumps({"customer_type": "order"})})
    assert [c["customer_id"] for c in r.json()] == ["B"]
    assert r.headers["content-range"] == "items 0-0/1"
