"""Shared fixtures: a fresh SQLite database per test, created by the app lifespan."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from services import config


@pytest.fixture
def db_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite://{tmp_path / 'test.sqlite3'}")
    monkeypatch.setattr(config, "BILL_CSV_MAP_FILE", "")
    monkeypatch.setattr(config, "MISSING_CAN_CHARGE", 500.0)
    monkeypatch.setattr(config, "SEED_DEFAULTS", True)
    return config


@pytest.fixture
def client(db_config):
    """App with the default price sheet seeded."""
    import main

    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def unpriced_client(db_config, monkeypatch):
    """App with no price sheet at all."""
    monkeypatch.setattr(config, "SEED_DEFAULTS", False)
    import main

    with TestClient(main.app) as c:
        yield c


def add_customer(client, customer_id, customer_type="monthly", can_qty=0, name=None, phone="9000000000"):
    r = client.post("/customers", json={
        "customer_id": customer_id,
        "name": name or f"Customer {customer_id}",
        "phone_number": phone,
        "customer_type": customer_type,
        "can_qty": can_qty,
    })
    assert r.status_code == 201, r.text
    return r.json()


def set_prices(client, order_price=None, shop_price=None, monthly_price=None):
    r = client.post("/settings/prices", json={
        "order_price": order_price,
        "shop_price": shop_price,
        "monthly_price": monthly_price,
    })
    assert r.status_code == 201, r.text
    return r.json()


def post_update(client, customer_id, on_date, delivered=0, collected=0, notes=None):
    return client.post("/daily-updates", json={
        "customer_id": customer_id,
        "date": on_date,
        "delivered_qty": delivered,
        "collected_qty": collected,
        "notes": notes,
    })
