# services/documents.py — printable HTML for ledger cards and order receipts
from __future__ import annotations
import calendar
import math
import re
from datetime import date
from html import escape
from typing import List, Optional, Sequence, Tuple

from models import Order
from schemas import MonthlyBillSnapshot
from services import config
from services.ledger import month_bounds
from services.order_charges import OrderCharge

LedgerRow = Tuple[int, Optional[int], Optional[int], Optional[int]]


def month_title(month: str) -> str:
    start, _ = month_bounds(month)
    return f"{calendar.month_name[start.month]} {start.year}"


def ledger_rows(month: str, days: Sequence[Tuple[int, int]]) -> List[LedgerRow]:
    """
    Two-column calendar: the first half of the month on the left, the rest on
    the right. Each row is (left_day, left_qty, right_day, right_qty); a qty
    is None for days without a delivery.
    """
    _, end = month_bounds(month)
    n = end.day
    half = math.ceil(n / 2)
    delivered = {day: qty for day, qty in days}
    rows: List[LedgerRow] = []
    for i in range(half):
        left = i + 1
        right = left + half
        rows.append((
            left,
            delivered.get(left) or None,
            right if right <= n else None,
            (delivered.get(right) or None) if right <= n else None,
        ))
    return rows


def safe_filename(name: str, suffix: str) -> str:
    stem = re.sub(r"[^a-zA-Z0-9\s]", "", name or "").strip()
    stem = re.sub(r"\s+", "-", stem) or "customer"
    return f"{stem}-{suffix}"


def _money(x: float) -> str:
    return f"{config.CURRENCY_SYMBOL}{x:,.2f}"


def _cell(v) -> str:
    return "" if v is None else escape(str(v))


_STYLE = """
body { font-family: Arial, sans-serif; margin: 16px; }
.card { max-width: 640px; margin: 0 auto; border: 1px solid #000; padding: 12px; }
.head { border-bottom: 1px solid #000; padding-bottom: 6px; margin-bottom: 6px; }
.head .name { font-weight: bold; font-size: 18px; color: #1e3a8a; }
table { width: 100%; border-collapse: collapse; font-size: 12px; }
th, td { border: 1px solid #000; padding: 4px; text-align: center; }
.totals { text-align: right; font-weight: bold; margin-top: 8px; }
.missing { color: #dc2626; }
"""


def _letterhead() -> str:
    return (
        '<div class="head">'
        f'<div class="name">{escape(config.BUSINESS_NAME)}</div>'
        f"<div>{escape(config.BUSINESS_ADDRESS)}</div>"
        f"<div>Ph.: {escape(config.BUSINESS_PHONE)}</div>"
        "</div>"
    )


def render_ledger_html(bill: MonthlyBillSnapshot, days: Sequence[Tuple[int, int]], issued_on: Optional[date] = None) -> str:
    issued_on = issued_on or date.today()
    title = month_title(bill.bill_month)
    body_rows = "".join(
        "<tr>"
        f"<td>{_cell(ld)}</td><td>{_cell(lq)}</td><td></td>"
        f"<td>{_cell(rd)}</td><td>{_cell(rq)}</td><td></td>"
        "</tr>"
        for ld, lq, rd, rq in ledger_rows(bill.bill_month, days)
    )
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Customer Ledger - {escape(bill.name)} ({title})</title>
<style>{_STYLE}</style>
</head>
<body>
<div class="card">
{_letterhead()}
<div>Mob.: {_cell(bill.phone_number)} &nbsp; Date: {issued_on.day} {title}</div>
<div>Customer: {escape(bill.name)}</div>
<table>
<thead><tr><th>Date</th><th>Cans</th><th>Returned</th><th>Date</th><th>Cans</th><th>Returned</th></tr></thead>
<tbody>{body_rows}</tbody>
</table>
<div class="totals">
<div>Total cans: {bill.total_cans_delivered}</div>
<div>Total amount: {_money(bill.bill_amount)}</div>
</div>
</div>
</body>
</html>
"""


def render_receipt_html(order: Order, charge: OrderCharge) -> str:
    missing = ""
    if charge.missing_can_charge > 0:
        missing = (
            f'<tr class="missing"><td>Missing can charges ({charge.missing_cans} x {_money(charge.missing_can_charge / charge.missing_cans)})</td>'
            f"<td>{_money(charge.missing_can_charge)}</td></tr>"
        )
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Order Receipt #{_cell(order.id)}</title>
<style>{_STYLE}</style>
</head>
<body>
<div class="card">
{_letterhead()}
<div>Receipt #{_cell(order.id)}</div>
<div>Customer: {escape(order.customer_name)} &nbsp; Ph.: {escape(order.customer_phone)}</div>
<div>Address: {escape(order.customer_address)}</div>
<div>Order date: {order.order_date.strftime("%d/%m/%Y")} &nbsp; Delivery: {order.delivery_date.strftime("%d/%m/%Y")} {escape(order.delivery_time)}</div>
<div>Status: {escape(order.order_status)}</div>
<table>
<tr><td>Cans ({order.can_qty} x {_money(charge.price_per_can)})</td><td>{_money(charge.subtotal)}</td></tr>
<tr><td>Delivery</td><td>{_money(charge.delivery_amount)}</td></tr>
{missing}
<tr><th>Total</th><th>{_money(charge.total_amount)}</th></tr>
</table>
<div>Collected back: {order.collected_qty or 0} of {order.can_qty}</div>
</div>
</body>
</html>
"""
