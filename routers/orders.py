# routers/orders.py
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, Response
from tortoise.expressions import Q

from models import Order, PriceSheet
from schemas import OrderCreate, OrderUpdate, OrderRead, OrderChargeRequest, OrderChargeRead
from api_utils import RAListParams, parse_sort, apply_filter_map, paginate_and_respond, respond_item
from deps import get_current_prices
from services.documents import render_receipt_html, safe_filename
from services.order_charges import compute_order_charge, order_charge_for
from services.pdf_builder import build_receipt_pdf_bytes

router = APIRouter(prefix="/orders", tags=["orders"])

ALLOWED_SORTS = ["id", "order_date", "delivery_date", "customer_name", "can_qty", "order_status", "created_at"]

async def _get_order(order_id: int) -> Order:
    obj = await Order.get_or_none(id=order_id)
    if not obj:
        raise HTTPException(404, "Order not found")
    return obj

@router.get("", response_model=list[OrderRead])
async def list_orders(params: RAListParams = Depends()):
    qs = Order.all()
    fmap = {
        "q": lambda q, v: q.filter(Q(customer_name__icontains=str(v)) | Q(customer_phone__icontains=str(v))),
        "order_status": lambda q, v: q.filter(order_status=str(v)),
        "order_date_gte": lambda q, v: q.filter(order_date__gte=v),
        "order_date_lte": lambda q, v: q.filter(order_date__lte=v),
        "delivery_date": lambda q, v: q.filter(delivery_date=v),
    }
    qs = apply_filter_map(qs, params.filters, fmap)
    order = parse_sort(params.sort, ALLOWED_SORTS)
    return await paginate_and_respond(qs, params.skip, params.limit, order, lambda m: OrderRead.model_validate(m))

@router.get("/{order_id}", response_model=OrderRead)
async def get_order(order_id: int):
    return respond_item(await _get_order(order_id), lambda m: OrderRead.model_validate(m))

@router.post("", response_model=OrderRead, status_code=201)
async def create_order(payload: OrderCreate):
    data = payload.model_dump()
    data["notes"] = data.get("notes") or None
    obj = await Order.create(**data)
    return respond_item(obj, lambda m: OrderRead.model_validate(m), status_code=201)

@router.put("/{order_id}", response_model=OrderRead)
async def update_order(order_id: int, payload: OrderUpdate):
    obj = await _get_order(order_id)
    data = payload.model_dump(exclude_unset=True)
    if "notes" in data:
        data["notes"] = data["notes"] or None
    if "collected_qty" in data and data["collected_qty"] is None:
        data["collected_qty"] = 0
    for k, v in data.items():
        setattr(obj, k, v)
    await obj.save()
    return respond_item(obj, lambda m: OrderRead.model_validate(m))

@router.delete("/{order_id}")
async def delete_order(order_id: int):
    obj = await _get_order(order_id)
    await obj.delete()
    return {"message": f"Order with ID {order_id} deleted successfully"}

# ---------- receipts ----------
@router.post("/charge-preview", response_model=OrderChargeRead)
async def preview_charge(payload: OrderChargeRequest, prices: PriceSheet = Depends(get_current_prices)):
    """Live totals for an unsaved order form."""
    charge = compute_order_charge(
        can_qty=payload.can_qty,
        collected_qty=payload.collected_qty,
        delivery_amount=payload.delivery_amount,
        price_per_can=prices.order_price,
    )
    return OrderChargeRead(**charge.to_dict())

@router.get("/{order_id}/charge", response_model=OrderChargeRead)
async def get_order_charge(order_id: int, prices: PriceSheet = Depends(get_current_prices)):
    order = await _get_order(order_id)
    return OrderChargeRead(order_id=order.id, **order_charge_for(order, prices).to_dict())

@router.get("/{order_id}/receipt", response_class=HTMLResponse)
async def view_receipt(order_id: int, prices: PriceSheet = Depends(get_current_prices)):
    order = await _get_order(order_id)
    return HTMLResponse(render_receipt_html(order, order_charge_for(order, prices)))

@router.get("/{order_id}/receipt.pdf")
async def download_receipt(order_id: int, prices: PriceSheet = Depends(get_current_prices)):
    order = await _get_order(order_id)
    return Response(
        content=build_receipt_pdf_bytes(order, order_charge_for(order, prices)),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{safe_filename(order.customer_name, "order-receipt.pdf")}"'},
    )
