# services/monthly_bills.py — per-customer monthly aggregation and bill upserts
from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple

from tortoise.exceptions import DBConnectionError, IntegrityError, OperationalError

from models import Customer, MonthlyBill, PriceSheet
from schemas import BatchFailure, MonthlyBillInput, MonthlyBillSnapshot
from services.errors import BillingEngineError, NotFoundError, PricingUnavailable, ValidationError
from services.ledger import get_customer, get_month_entries, normalize_month

logger = logging.getLogger("uvicorn")

PRICE_FIELDS = {"shop": "shop_price", "monthly": "monthly_price"}


# -----------------------------
# Pricing
# -----------------------------
async def current_price_sheet() -> Optional[PriceSheet]:
    return await PriceSheet.all().order_by("-created_at", "-id").first()


async def require_current_prices() -> PriceSheet:
    prices = await current_price_sheet()
    if prices is None:
        raise PricingUnavailable("No price sheet has been configured", field="prices")
    return prices


def price_for(customer_type: str, prices: Optional[PriceSheet]) -> float:
    """Price per can for a customer type; anything but shop/monthly pays order_price."""
    field = PRICE_FIELDS.get(customer_type, "order_price")
    if prices is None:
        raise PricingUnavailable("No price sheet has been configured", field="prices")
    value = getattr(prices, field, None)
    if value is None:
        raise PricingUnavailable(f"Current price sheet has no {field} for '{customer_type}' customers", field=field)
    return float(value)


# -----------------------------
# Aggregation (pure)
# -----------------------------
def aggregate_deliveries(delivered: Iterable[int], price_per_can: float) -> Tuple[int, int, float]:
    """(total_cans_delivered, total_delivery_days, bill_amount) for one month."""
    qtys = [int(q or 0) for q in delivered]
    total_cans = sum(qtys)
    delivery_days = sum(1 for q in qtys if q > 0)
    return total_cans, delivery_days, total_cans * price_per_can


async def compute_monthly_bill(customer_id: str, bill_month: str, prices: Optional[PriceSheet]) -> MonthlyBillSnapshot:
    """
    Aggregate a customer's ledger for one month into a bill snapshot.
    Nothing is written; saved paid/sent flags are carried into the snapshot.
    """
    month = normalize_month(bill_month)
    customer = await get_customer(customer_id)
    price = price_for(customer.customer_type, prices)
    entries = await get_month_entries(customer.customer_id, month)
    total_cans, delivery_days, amount = aggregate_deliveries((e.delivered_qty for e in entries), price)

    saved = await MonthlyBill.get_or_none(customer_id=customer.customer_id, bill_month=month)
    return MonthlyBillSnapshot(
        customer_id=customer.customer_id,
        name=customer.name,
        phone_number=customer.phone_number,
        customer_type=customer.customer_type,
        bill_month=month,
        price_per_can=price,
        total_cans_delivered=total_cans,
        total_delivery_days=delivery_days,
        bill_amount=amount,
        paid_status=saved.paid_status if saved else False,
        sent_status=saved.sent_status if saved else False,
    )


# -----------------------------
# Batches
# -----------------------------
def _failure(customer_id: str, exc: Exception) -> BatchFailure:
    if isinstance(exc, BillingEngineError):
        return BatchFailure(customer_id=customer_id, kind=exc.kind, detail=exc.message, retryable=exc.retryable)
    if isinstance(exc, (DBConnectionError, OperationalError)):
        return BatchFailure(customer_id=customer_id, kind="UpstreamUnavailable", detail=str(exc), retryable=True)
    return BatchFailure(customer_id=customer_id, kind=type(exc).__name__, detail=str(exc))


async def run_per_customer(
    items: Sequence[Any],
    work: Callable[[Any], Awaitable[Any]],
    key: Callable[[Any], str] = str,
    tag: str = "bills",
) -> Tuple[List[Any], List[BatchFailure]]:
    """
    Run ``work`` for every item concurrently. One customer's failure is
    reported and never stops the others. Cancelling the caller cancels the
    outstanding per-customer work.
    """
    results = await asyncio.gather(*(work(it) for it in items), return_exceptions=True)
    done: List[Any] = []
    failures: List[BatchFailure] = []
    for it, res in zip(items, results):
        if isinstance(res, BaseException):
            if not isinstance(res, Exception):
                raise res
            failures.append(_failure(key(it), res))
            logger.warning(f"[{tag}] {key(it)} failed: {res}")
        else:
            done.append(res)
    return done, failures


async def _customer_ids(customer_ids: Optional[Sequence[str]] = None) -> List[str]:
    if customer_ids:
        return list(dict.fromkeys(customer_ids))
    return [c["customer_id"] for c in await Customer.all().order_by("name", "customer_id").values("customer_id")]


async def compute_monthly_bills(
    bill_month: str,
    prices: Optional[PriceSheet],
    customer_ids: Optional[Sequence[str]] = None,
) -> Tuple[List[MonthlyBillSnapshot], List[BatchFailure]]:
    month = normalize_month(bill_month)
    ids = await _customer_ids(customer_ids)
    return await run_per_customer(ids, lambda cid: compute_monthly_bill(cid, month, prices))


def _validate_input(item: MonthlyBillInput) -> MonthlyBillInput:
    if item.bill_amount < 0:
        raise ValidationError("bill_amount must be >= 0", field="bill_amount")
    if item.total_cans_delivered < 0:
        raise ValidationError("total_cans_delivered must be >= 0", field="total_cans_delivered")
    if item.total_delivery_days < 0:
        raise ValidationError("total_delivery_days must be >= 0", field="total_delivery_days")
    return item


async def save_monthly_bill(item: MonthlyBillInput) -> MonthlyBill:
    """
    Upsert one bill keyed by (customer_id, bill_month) with exactly the
    totals and flags given. Saving identical input twice yields the same row.
    """
    _validate_input(item)
    month = normalize_month(item.bill_month)
    customer = await get_customer(item.customer_id)
    values = dict(
        bill_amount=float(item.bill_amount),
        total_cans_delivered=item.total_cans_delivered,
        total_delivery_days=item.total_delivery_days,
        paid_status=item.paid_status,
        sent_status=item.sent_status,
    )

    bill = await MonthlyBill.get_or_none(customer_id=customer.customer_id, bill_month=month)
    if bill is None:
        try:
            return await MonthlyBill.create(customer_id=customer.customer_id, bill_month=month, **values)
        except IntegrityError:
            bill = await MonthlyBill.get(customer_id=customer.customer_id, bill_month=month)
    bill.update_from_dict(values)
    await bill.save()
    return bill


def _batch_key(item: MonthlyBillInput) -> Tuple[str, str]:
    try:
        return item.customer_id, normalize_month(item.bill_month)
    except ValidationError:
        # kept as its own entry so the bad month is reported for this customer
        return item.customer_id, item.bill_month


async def save_monthly_bills(items: Sequence[MonthlyBillInput]) -> Tuple[List[MonthlyBill], List[BatchFailure]]:
    # duplicate keys in one batch would race on the same row; last one wins
    by_key = {}
    for item in items:
        by_key[_batch_key(item)] = item

    return await run_per_customer(list(by_key.values()), save_monthly_bill, key=lambda it: it.customer_id)


async def generate_monthly_bills(
    bill_month: str,
    prices: Optional[PriceSheet],
    customer_ids: Optional[Sequence[str]] = None,
) -> Tuple[List[MonthlyBill], List[BatchFailure]]:
    """Compute and persist bills for a month; saved paid/sent flags are kept."""
    month = normalize_month(bill_month)

    async def _one(cid: str) -> MonthlyBill:
        snap = await compute_monthly_bill(cid, month, prices)
        return await save_monthly_bill(MonthlyBillInput(
            customer_id=snap.customer_id,
            bill_month=snap.bill_month,
            bill_amount=snap.bill_amount,
            total_cans_delivered=snap.total_cans_delivered,
            total_delivery_days=snap.total_delivery_days,
            paid_status=snap.paid_status,
            sent_status=snap.sent_status,
        ))

    ids = await _customer_ids(customer_ids)
    saved, failures = await run_per_customer(ids, _one)
    logger.info(f"[bills] {month}: generated={len(saved)} failed={len(failures)}")
    return saved, failures


async def update_bill_status(
    customer_id: str,
    bill_month: str,
    paid_status: Optional[bool] = None,
    sent_status: Optional[bool] = None,
) -> MonthlyBill:
    """Flip paid/sent flags on a saved bill without touching its totals."""
    month = normalize_month(bill_month)
    bill = await MonthlyBill.get_or_none(customer_id=customer_id, bill_month=month)
    if bill is None:
        raise NotFoundError(f"No saved bill for '{customer_id}' in {month}", field="bill_month")
    if paid_status is not None:
        bill.paid_status = paid_status
    if sent_status is not None:
        bill.sent_status = sent_status
    await bill.save()
    return bill
