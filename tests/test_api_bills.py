"""Monthly bill aggregation, batch saves and bill documents."""

from __future__ import annotations

import csv
import io
import zipfile

from conftest import add_customer, post_update, set_prices


def _march_ledger(client, customer_id):
    for d, q in [("2024-03-03", 2), ("2024-03-04", 0), ("2024-03-10", 3), ("2024-03-20", 1)]:
        assert post_update(client, customer_id, d, delivered=q).status_code == 200


def _bill_for(listing, customer_id):
    return next(b for b in listing["bills"] if b["customer_id"] == customer_id)


def test_monthly_bill_totals(client):
    set_prices(client, order_price=60, shop_price=25, monthly_price=300)
    add_customer(client, "C", "monthly", can_qty=1)
    _march_ledger(client, "C")

    listing = client.get("/daily-updates/monthly-bills", params={"month": "2024-03"}).json()
    bill = _bill_for(listing, "C")
    assert bill["total_cans_delivered"] == 6
    assert bill["total_delivery_days"] == 3
    assert bill["bill_amount"] == 1800
    assert bill["price_per_can"] == 300
    assert bill["paid_status"] is False
    assert listing["failures"] == []


def test_listing_uses_latest_price_sheet(client):
    set_prices(client, order_price=60, shop_price=25, monthly_price=300)
    set_prices(client, order_price=60, shop_price=25, monthly_price=350)
    add_customer(client, "C", "monthly")
    _march_ledger(client, "C")
    listing = client.get("/daily-updates/monthly-bills", params={"month": "2024-03"}).json()
    assert _bill_for(listing, "C")["bill_amount"] == 6 * 350


def test_generate_reports_failures_without_aborting(client):
    set_prices(client, order_price=60, shop_price=25, monthly_price=None)
    for cid, ctype in [("A", "shop"), ("B", "order"), ("C", "monthly")]:
        add_customer(client, cid, ctype)
        _march_ledger(client, cid)

    r = client.post("/bills/generate", params={"month": "2024-03"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert sorted(b["customer_id"] for b in body["saved"]) == ["A", "B"]
    assert len(body["failures"]) == 1
    failure = body["failures"][0]
    assert failure["customer_id"] == "C"
    assert failure["kind"] == "PricingUnavailable"
    assert failure["retryable"] is True

    saved = client.get("/bills", params={"filter": '{"bill_month": "2024-03"}'}).json()
    assert {b["customer_id"]: b["bill_amount"] for b in saved} == {"A": 150, "B": 360}


def test_save_is_idempotent_and_accepts_ui_field_names(client):
    add_customer(client, "C", "monthly")
    payload = {"bills": [{
        "customer_id": "C", "bill_month": "2024-03", "bill_amount": 1800,
        "total_cans": 6, "delivery_days": 3, "paid_status": False, "sent_status": False,
    }]}
    first = client.post("/bills/save-monthly-bills", json=payload).json()
    second = client.post("/bills/save-monthly-bills", json=payload).json()
    assert first["failures"] == [] and second["failures"] == []
    a, b = first["saved"][0], second["saved"][0]
    assert a["id"] == b["id"]
    for key in ("bill_amount", "total_cans_delivered", "total_delivery_days", "paid_status", "sent_status"):
        assert a[key] == b[key]
    assert a["total_cans_delivered"] == 6
    assert len(client.get("/bills").json()) == 1


def test_save_batch_isolates_unknown_customers(client):
    add_customer(client, "A", "shop")
    add_customer(client, "B", "shop")
    bills = [
        {"customer_id": cid, "bill_month": "2024-03", "bill_amount": 100, "total_cans_delivered": 4, "total_delivery_days": 2}
        for cid in ("A", "GHOST", "B")
    ]
    body = client.post("/bills/save-monthly-bills", json={"bills": bills}).json()
    assert sorted(b["customer_id"] for b in body["saved"]) == ["A", "B"]
    assert body["failures"] == [{
        "customer_id": "GHOST", "kind": "NotFoundError",
        "detail": "Customer 'GHOST' not found", "retryable": False,
    }]


def test_status_flip_keeps_totals_and_survives_regeneration(client):
    set_prices(client, order_price=60, shop_price=25, monthly_price=300)
    add_customer(client, "C", "monthly")
    _march_ledger(client, "C")
    client.post("/bills/generate", params={"month": "2024-03"})

    r = client.put("/bills/C/2024-03/status", json={"paid_status": True})
    assert r.status_code == 200
    assert r.json()["paid_status"] is True
    assert r.json()["bill_amount"] == 1800
    assert r.json()["sent_status"] is False

    regenerated = client.post("/bills/generate", params={"month": "2024-03"}).json()["saved"][0]
    assert regenerated["paid_status"] is True
    listing = client.get("/daily-updates/monthly-bills", params={"month": "2024-03"}).json()
    assert _bill_for(listing, "C")["paid_status"] is True


def test_status_update_for_missing_bill(client):
    r = client.put("/bills/C/2024-03/status", json={"paid_status": True})
    assert r.status_code == 404


def test_no_price_sheet_is_retryable(unpriced_client):
    add_customer(unpriced_client, "C", "monthly")
    r = unpriced_client.get("/daily-updates/monthly-bills", params={"month": "2024-03"})
    assert r.status_code == 503
    assert r.json()["retryable"] is True
    assert unpriced_client.get("/settings/prices").json() == []


def test_bill_pdf_download(client):
    add_customer(client, "C", "monthly", name="Asha Traders")
    _march_ledger(client, "C")
    r = client.get("/bills/pdf", params={"customer_id": "C", "month": "2024-03"})
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert "Asha-Traders-bill.pdf" in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")


def test_zip_of_all_bills_skips_failures(client):
    set_prices(client, order_price=60, shop_price=25, monthly_price=None)
    add_customer(client, "A", "shop", name="Alpha Shop")
    add_customer(client, "C", "monthly", name="Charlie")
    r = client.get("/bills/download", params={"month": "2024-03"})
    assert r.status_code == 200
    assert "March-2024-bills.zip" in r.headers["content-disposition"]
    assert r.headers["x-bills-generated"] == "1"
    assert r.headers["x-bills-failed"] == "1"
    with zipfile.ZipFile(io.BytesIO(r.content)) as zf:
        assert sorted(zf.namelist()) == ["Alpha-Shop-bill.pdf", "failures.txt"]
        assert b"C: PricingUnavailable" in zf.read("failures.txt")


def test_csv_export(client):
    set_prices(client, order_price=60, shop_price=25, monthly_price=300)
    add_customer(client, "C", "monthly", name="Asha")
    _march_ledger(client, "C")
    client.post("/bills/generate", params={"month": "2024-03"})
    r = client.get("/bills/export.csv", params={"month": "2024-03"})
    assert r.status_code == 200
    rows = list(csv.reader(io.StringIO(r.text)))
    assert rows[0][0] == "Customer ID"
    assert rows[1][:2] == ["C", "Asha"]
    assert rows[1][7] == "1800.00"
    assert rows[1][8] == "no"


def test_same_month_spelled_two_ways_saves_once(client):
    add_customer(client, "C", "monthly")
    bills = [
        {"customer_id": "C", "bill_month": "2024-3", "bill_amount": 100},
        {"customer_id": "C", "bill_month": "2024-03", "bill_amount": 200},
        {"customer_id": "C", "bill_month": "2024-13", "bill_amount": 300},
    ]
    body = client.post("/bills/save-monthly-bills", json={"bills": bills}).json()
    assert [(b["bill_month"], b["bill_amount"]) for b in body["saved"]] == [("2024-03", 200)]
    assert [(f["customer_id"], f["kind"]) for f in body["failures"]] == [("C", "ValidationError")]
    stored = client.get("/bills/C/2024-03").json()
    assert stored["bill_amount"] == 200
