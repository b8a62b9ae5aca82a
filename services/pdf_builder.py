# services/pdf_builder.py
from __future__ import annotations
import io
import zipfile
from datetime import date
from typing import List, Optional, Sequence, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas as pdf_canvas

from models import Order, PriceSheet
from schemas import BatchFailure, MonthlyBillSnapshot
from services import config
from services.documents import ledger_rows, month_title, safe_filename
from services.ledger import get_ledger_view, normalize_month
from services.monthly_bills import compute_monthly_bills, run_per_customer
from services.order_charges import OrderCharge


def _money(x: float) -> str:
    return f"{config.CURRENCY_SYMBOL}{x:,.2f}"


def _letterhead(c: pdf_canvas.Canvas, y: float) -> float:
    c.setFont("Helvetica-Bold", 14)
    c.drawString(50, y, config.BUSINESS_NAME)
    y -= 15
    c.setFont("Helvetica", 9)
    c.drawString(50, y, config.BUSINESS_ADDRESS)
    y -= 12
    c.drawString(50, y, f"Ph.: {config.BUSINESS_PHONE}")
    y -= 8
    c.line(50, y, 545, y)
    return y - 18


def build_bill_pdf_bytes(bill: MonthlyBillSnapshot, days: Sequence[Tuple[int, int]], issued_on: Optional[date] = None) -> bytes:
    """Monthly ledger card: same calendar layout and totals as the HTML view."""
    issued_on = issued_on or date.today()
    buf = io.BytesIO()
    c = pdf_canvas.Canvas(buf, pagesize=A4)
    _w, h = A4
    y = _letterhead(c, h - 50)

    c.setFont("Helvetica", 10)
    c.drawString(50, y, f"Customer: {bill.name}")
    c.drawRightString(545, y, f"Date: {issued_on.day} {month_title(bill.bill_month)}")
    y -= 14
    c.drawString(50, y, f"Mob.: {bill.phone_number or ''}")
    y -= 24

    cols = [50, 115, 180, 300, 365, 430]
    c.setFont("Helvetica-Bold", 9)
    for x, label in zip(cols, ["Date", "Cans", "Returned", "Date", "Cans", "Returned"]):
        c.drawString(x, y, label)
    y -= 14
    c.setFont("Helvetica", 9)
    for ld, lq, rd, rq in ledger_rows(bill.bill_month, days):
        for x, v in zip(cols, [ld, lq, None, rd, rq, None]):
            if v is not None:
                c.drawString(x, y, str(v))
        y -= 13

    y -= 12
    c.setFont("Helvetica-Bold", 11)
    c.drawRightString(545, y, f"Total cans: {bill.total_cans_delivered}")
    y -= 15
    c.drawRightString(545, y, f"Total amount: {_money(bill.bill_amount)}")
    c.showPage()
    c.save()
    return buf.getvalue()


def build_receipt_pdf_bytes(order: Order, charge: OrderCharge) -> bytes:
    buf = io.BytesIO()
    c = pdf_canvas.Canvas(buf, pagesize=A4)
    _w, h = A4
    y = _letterhead(c, h - 50)

    c.setFont("Helvetica-Bold", 12)
    c.drawString(50, y, f"Order Receipt #{order.id}")
    y -= 20
    c.setFont("Helvetica", 10)
    for line in (
        f"Customer: {order.customer_name}   Ph.: {order.customer_phone}",
        f"Address: {order.customer_address}",
        f"Order date: {order.order_date:%d/%m/%Y}   Delivery: {order.delivery_date:%d/%m/%Y} {order.delivery_time}",
        f"Status: {order.order_status}",
    ):
        c.drawString(50, y, line)
        y -= 14
    y -= 10

    lines = [
        (f"Cans ({order.can_qty} x {_money(charge.price_per_can)})", charge.subtotal),
        ("Delivery", charge.delivery_amount),
    ]
    if charge.missing_can_charge > 0:
        rate = charge.missing_can_charge / charge.missing_cans
        lines.append((f"Missing can charges ({charge.missing_cans} x {_money(rate)})", charge.missing_can_charge))
    for label, amount in lines:
        c.drawString(50, y, label)
        c.drawRightString(545, y, _money(amount))
        y -= 14
    c.line(50, y + 4, 545, y + 4)
    y -= 10
    c.setFont("Helvetica-Bold", 11)
    c.drawString(50, y, "Total")
    c.drawRightString(545, y, _money(charge.total_amount))
    c.showPage()
    c.save()
    return buf.getvalue()


async def build_bills_zip(bill_month: str, prices: Optional[PriceSheet]) -> Tuple[bytes, str, int, List[BatchFailure]]:
    """
    One PDF per customer for the month, zipped. Customers that fail are left
    out of the archive and listed in failures.txt.
    Returns (zip bytes, zip filename, pdf count, failures).
    """
    month = normalize_month(bill_month)
    snapshots, failures = await compute_monthly_bills(month, prices)

    async def _render(snap: MonthlyBillSnapshot) -> Tuple[str, bytes]:
        days = await get_ledger_view(snap.customer_id, month)
        return safe_filename(snap.name, "bill.pdf"), build_bill_pdf_bytes(snap, days)

    rendered, render_failures = await run_per_customer(snapshots, _render, key=lambda s: s.customer_id, tag="bills-pdf")
    failures = failures + render_failures

    buf = io.BytesIO()
    used = set()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, pdf in rendered:
            base, n = name, 2
            while name in used:
                name = base.replace("-bill.pdf", f"-{n}-bill.pdf")
                n += 1
            used.add(name)
            zf.writestr(name, pdf)
        if failures:
            zf.writestr("failures.txt", "\n".join(f"{f.customer_id}: {f.kind}: {f.detail}" for f in failures) + "\n")

    title = month_title(month).replace(" ", "-")
    return buf.getvalue(), f"{title}-bills.zip", len(rendered), failures
