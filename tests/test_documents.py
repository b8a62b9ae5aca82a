"""Ledger card layout, HTML rendering and PDF output."""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace

from schemas import MonthlyBillSnapshot
from services.documents import ledger_rows, render_ledger_html, render_receipt_html, safe_filename
from services.order_charges import compute_order_charge
from services.pdf_builder import build_bill_pdf_bytes, build_receipt_pdf_bytes


def _bill(**kw):
    base = dict(
        customer_id="C1", name="Asha Traders", phone_number="9425000000", customer_type="monthly",
        bill_month="2024-03", price_per_can=300.0, total_cans_delivered=6,
        total_delivery_days=3, bill_amount=1800.0,
    )
    base.update(kw)
    return MonthlyBillSnapshot(**base)


def _order():
    return SimpleNamespace(
        id=7, customer_name="Ravi <Kumar>", customer_phone="9000000001", customer_address="Main Road",
        order_date=date(2024, 3, 1), delivery_date=date(2024, 3, 2), delivery_time="10:00",
        order_status="delivered", can_qty=10, collected_qty=7, delivery_amount=50.0,
    )


def test_ledger_rows_split_month_in_two_columns():
    rows = ledger_rows("2024-03", [(1, 2), (17, 3), (31, 1)])
    assert len(rows) == 16
    assert rows[0] == (1, 2, 17, 3)
    assert rows[14] == (15, None, 31, 1)
    assert rows[15] == (16, None, None, None)


def test_ledger_rows_even_month():
    rows = ledger_rows("2023-02", [])
    assert len(rows) == 14
    assert rows[-1] == (14, None, 28, None)


def test_safe_filename():
    assert safe_filename("Asha  Traders & Co.", "bill.pdf") == "Asha-Traders-Co-bill.pdf"
    assert safe_filename("***", "bill.pdf") == "customer-bill.pdf"


def test_ledger_html_shows_totals():
    html = render_ledger_html(_bill(), [(3, 2), (10, 3), (20, 1)], issued_on=date(2024, 4, 1))
    assert "Asha Traders" in html
    assert "March 2024" in html
    assert "Total cans: 6" in html
    assert "1,800.00" in html


def test_receipt_html_escapes_and_lists_missing_cans():
    charge = compute_order_charge(can_qty=10, collected_qty=7, delivery_amount=50, price_per_can=60, missing_can_rate=500)
    html = render_receipt_html(_order(), charge)
    assert "Ravi &lt;Kumar&gt;" in html
    assert "Missing can charges (3 x" in html
    assert "2,150.00" in html


def test_pdfs_are_rendered():
    charge = compute_order_charge(can_qty=10, collected_qty=7, delivery_amount=50, price_per_can=60, missing_can_rate=500)
    assert build_receipt_pdf_bytes(_order(), charge).startswith(b"%PDF")
    assert build_bill_pdf_bytes(_bill(), [(3, 2)], issued_on=date(2024, 4, 1)).startswith(b"%PDF")
