# routers/daily_updates.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from models import PriceSheet
from schemas import (
    DailyUpdateCreate, DailyUpdateRead, DailyUpdateSaved, LedgerDay,
    ToCollectRead, HoldingDrift, MonthlyBillListing,
)
from deps import get_current_prices, get_month
from services import ledger
from services.documents import render_ledger_html
from services.monthly_bills import compute_monthly_bill, compute_monthly_bills

router = APIRouter(prefix="/daily-updates", tags=["daily-updates"])

@router.get("", response_model=list[DailyUpdateRead])
async def list_daily_updates(date: date = Query(...), customer_id: Optional[str] = Query(None)):
    """Entries for one date; with customer_id, that customer's entry or an empty list."""
    if customer_id:
        entry = await ledger.get_entry(customer_id, date)
        return [DailyUpdateRead.model_validate(entry)] if entry else []
    return [DailyUpdateRead.model_validate(e) for e in await ledger.get_entries_for_date(date)]

@router.post("", response_model=DailyUpdateSaved)
async def save_daily_update(payload: DailyUpdateCreate):
    entry = await ledger.upsert_daily_entry(
        payload.customer_id,
        payload.date,
        delivered_qty=payload.delivered_qty,
        collected_qty=payload.collected_qty,
        notes=payload.notes,
    )
    base = DailyUpdateRead.model_validate(entry).model_dump()
    return DailyUpdateSaved(**base, warnings=ledger.holding_warnings(entry))

@router.get("/ledger", response_model=list[DailyUpdateRead])
async def get_month_ledger(customer_id: str = Query(...), month: str = Depends(get_month)):
    customer = await ledger.get_customer(customer_id)
    return [DailyUpdateRead.model_validate(e) for e in await ledger.get_month_entries(customer.customer_id, month)]

@router.get("/ledger-view", response_model=list[LedgerDay])
async def get_ledger_view(customer_id: str = Query(...), month: str = Depends(get_month)):
    customer = await ledger.get_customer(customer_id)
    return [LedgerDay(day=d, delivered_qty=q) for d, q in await ledger.get_ledger_view(customer.customer_id, month)]

@router.get("/ledger-html", response_class=HTMLResponse)
async def get_ledger_html(
    customer_id: str = Query(...),
    month: str = Depends(get_month),
    prices: PriceSheet = Depends(get_current_prices),
):
    bill = await compute_monthly_bill(customer_id, month, prices)
    days = await ledger.get_ledger_view(bill.customer_id, month)
    return HTMLResponse(render_ledger_html(bill, days))

@router.get("/monthly-bills", response_model=MonthlyBillListing)
async def list_monthly_bills(month: str = Depends(get_month), prices: PriceSheet = Depends(get_current_prices)):
    bills, failures = await compute_monthly_bills(month, prices)
    return MonthlyBillListing(bill_month=month, bills=bills, failures=failures)

@router.get("/to-collect", response_model=list[ToCollectRead])
async def list_cans_to_collect(date: date = Query(...)):
    return [ToCollectRead(**row) for row in await ledger.cans_to_collect(date)]

@router.get("/drift", response_model=list[HoldingDrift])
async def get_holding_drift(customer_id: str = Query(...), month: str = Depends(get_month)):
    """Days whose stored holding no longer matches the running balance (earlier day edited later)."""
    return [HoldingDrift(**row) for row in await ledger.month_holding_drift(customer_id, month)]
