# routers/bills.py
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from models import Customer, MonthlyBill, PriceSheet
from schemas import MonthlyBillRead, MonthlyBillSaveRequest, MonthlyBillSaveResult, BillStatusUpdate
from api_utils import RAListParams, parse_sort, apply_filter_map, paginate_and_respond, respond_item, to_bool
from deps import get_current_prices, get_month
from services import ledger
from services.csv_builder import build_bills_csv_bytes
from services.documents import safe_filename
from services.errors import NotFoundError
from services.monthly_bills import compute_monthly_bill, generate_monthly_bills, save_monthly_bills, update_bill_status
from services.pdf_builder import build_bill_pdf_bytes, build_bills_zip

router = APIRouter(prefix="/bills", tags=["bills"])

ALLOWED_SORTS = {"id", "customer_id", "bill_month", "bill_amount", "total_cans_delivered", "paid_status", "created_at"}

def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}

@router.get("", response_model=list[MonthlyBillRead])
async def list_bills(params: RAListParams = Depends()):
    qs = MonthlyBill.all()
    fmap = {
        "bill_month": lambda q, v: q.filter(bill_month=ledger.normalize_month(str(v))),
        "customer_id": lambda q, v: q.filter(customer_id=str(v)),
        "paid_status": lambda q, v: q.filter(paid_status=to_bool(v)),
        "sent_status": lambda q, v: q.filter(sent_status=to_bool(v)),
    }
    qs = apply_filter_map(qs, params.filters, fmap)
    order = parse_sort(params.sort, ALLOWED_SORTS)
    return await paginate_and_respond(qs, params.skip, params.limit, order, lambda m: MonthlyBillRead.model_validate(m))

@router.post("/save-monthly-bills", response_model=MonthlyBillSaveResult)
async def save_bills(payload: MonthlyBillSaveRequest):
    """Upsert the given bills as-is; each bill succeeds or fails on its own."""
    saved, failures = await save_monthly_bills(payload.bills)
    return MonthlyBillSaveResult(saved=[MonthlyBillRead.model_validate(b) for b in saved], failures=failures)

@router.post("/generate", response_model=MonthlyBillSaveResult)
async def generate_bills(month: str = Depends(get_month), prices: PriceSheet = Depends(get_current_prices)):
    saved, failures = await generate_monthly_bills(month, prices)
    return MonthlyBillSaveResult(saved=[MonthlyBillRead.model_validate(b) for b in saved], failures=failures)

@router.get("/pdf")
async def download_bill_pdf(
    customer_id: str = Query(...),
    month: str = Depends(get_month),
    prices: PriceSheet = Depends(get_current_prices),
):
    bill = await compute_monthly_bill(customer_id, month, prices)
    days = await ledger.get_ledger_view(bill.customer_id, month)
    return Response(
        content=build_bill_pdf_bytes(bill, days),
        media_type="application/pdf",
        headers=_attachment(safe_filename(bill.name, "bill.pdf")),
    )

@router.get("/download")
async def download_all_bills(month: str = Depends(get_month), prices: PriceSheet = Depends(get_current_prices)):
    data, filename, count, failures = await build_bills_zip(month, prices)
    if count == 0:
        raise NotFoundError(f"No bills could be generated for {month}", field="month")
    headers = _attachment(filename)
    headers["X-Bills-Generated"] = str(count)
    headers["X-Bills-Failed"] = str(len(failures))
    return Response(content=data, media_type="application/zip", headers=headers)

@router.get("/export.csv")
async def export_bills_csv(month: str = Depends(get_month)):
    bills = await MonthlyBill.filter(bill_month=month).order_by("customer_id")
    customers = {c.customer_id: c for c in await Customer.filter(customer_id__in=[b.customer_id for b in bills])}
    return Response(
        content=build_bills_csv_bytes(bills, customers),
        media_type="text/csv",
        headers=_attachment(f"bills-{month}.csv"),
    )

@router.get("/{customer_id}/{month}", response_model=MonthlyBillRead)
async def get_bill(customer_id: str, month: str):
    obj = await MonthlyBill.get_or_none(customer_id=customer_id, bill_month=ledger.normalize_month(month))
    if not obj:
        raise HTTPException(404, "Bill not found")
    return respond_item(obj, lambda m: MonthlyBillRead.model_validate(m))

@router.put("/{customer_id}/{month}/status", response_model=MonthlyBillRead)
async def set_bill_status(customer_id: str, month: str, payload: BillStatusUpdate):
    bill = await update_bill_status(customer_id, month, paid_status=payload.paid_status, sent_status=payload.sent_status)
    return respond_item(bill, lambda m: MonthlyBillRead.model_validate(m))
