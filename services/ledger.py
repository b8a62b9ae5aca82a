# services/ledger.py — daily delivered/collected/holding ledger
from __future__ import annotations
import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tortoise.exceptions import IntegrityError

from models import Customer, DailyUpdate
from services import config
from services.errors import NotFoundError, ValidationError

logger = logging.getLogger("uvicorn")


# -----------------------------
# Periods
# -----------------------------
def month_bounds(month: str) -> Tuple[date, date]:
    """First and last calendar day of a "YYYY-MM" month."""
    try:
        year_s, mon_s = str(month).strip().split("-")
        year, mon = int(year_s), int(mon_s)
        last_day = calendar.monthrange(year, mon)[1]
        return date(year, mon, 1), date(year, mon, last_day)
    except ValueError:
        raise ValidationError(f"Invalid month '{month}', expected YYYY-MM", field="month")


def normalize_month(month: str) -> str:
    start, _ = month_bounds(month)
    return f"{start.year:04d}-{start.month:02d}"


# -----------------------------
# Holding arithmetic (pure)
# -----------------------------
def coerce_qty(name: str, value: Any) -> int:
    """Optional whole-number quantity with a declared default of 0."""
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be a whole number, got {value!r}", field=name)
    if value < 0:
        raise ValidationError(f"{name} must be >= 0, got {value}", field=name)
    return value


def holding_seed(customer: Customer) -> int:
    """Opening holding for a customer with no entry on the previous day."""
    if customer.customer_type in config.RECURRING_CUSTOMER_TYPES:
        return customer.can_qty or 0
    return 0


def next_holding(prior_holding: int, delivered_qty: int, collected_qty: int) -> int:
    # not clamped: a negative result flags over-collection
    return prior_holding + delivered_qty - collected_qty


def holding_warnings(entry: DailyUpdate) -> List[str]:
    if entry.holding_status < 0:
        return [
            f"holding_status is {entry.holding_status}: more cans collected than were outstanding "
            f"(check earlier deliveries for {entry.customer_id})"
        ]
    return []


def derive_holdings(entries: Sequence[DailyUpdate], seed: int, opening: Optional[int] = None) -> List[int]:
    """
    Re-derive each entry's holding as a running balance from its inputs.

    Entries must be sorted by date. A day continues the previous day's derived
    balance; after a gap the balance restarts from ``seed``. ``opening`` is the
    stored balance of the day before the first entry, when there is one.
    """
    out: List[int] = []
    prev_date: Optional[date] = None
    for e in entries:
        if prev_date is not None and e.date - prev_date == timedelta(days=1):
            prior = out[-1]
        elif prev_date is None and opening is not None:
            prior = opening
        else:
            prior = seed
        out.append(next_holding(prior, e.delivered_qty, e.collected_qty))
        prev_date = e.date
    return out


def holding_drift(entries: Sequence[DailyUpdate], seed: int, opening: Optional[int] = None) -> List[Dict[str, Any]]:
    """Rows whose stored holding disagrees with the re-derived running balance."""
    rows = []
    for e, expected in zip(entries, derive_holdings(entries, seed, opening)):
        if e.holding_status != expected:
            rows.append({
                "date": e.date,
                "stored_holding": e.holding_status,
                "expected_holding": expected,
                "delta": e.holding_status - expected,
            })
    return rows


# -----------------------------
# Persistence
# -----------------------------
async def get_customer(customer_id: str) -> Customer:
    if not customer_id:
        raise ValidationError("customer_id is required", field="customer_id")
    obj = await Customer.get_or_none(customer_id=customer_id)
    if not obj:
        raise NotFoundError(f"Customer '{customer_id}' not found", field="customer_id")
    return obj


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD", field="date")


async def upsert_daily_entry(
    customer_id: str,
    on_date: date,
    delivered_qty: Optional[int] = None,
    collected_qty: Optional[int] = None,
    notes: Optional[str] = None,
) -> DailyUpdate:
    """
    Record one day's delivered/collected counts and derive its holding from
    the previous day's entry (or the customer's seed when there is none).

    Writing the same (customer_id, date) again overwrites the row. Later days
    are not recomputed.
    """
    on_date = _as_date(on_date)
    delivered = coerce_qty("delivered_qty", delivered_qty)
    collected = coerce_qty("collected_qty", collected_qty)
    customer = await get_customer(customer_id)

    prior = await DailyUpdate.get_or_none(customer_id=customer.customer_id, date=on_date - timedelta(days=1))
    prior_holding = prior.holding_status if prior else holding_seed(customer)

    values = dict(
        delivered_qty=delivered,
        collected_qty=collected,
        holding_status=next_holding(prior_holding, delivered, collected),
        notes=notes or None,
    )

    entry = await DailyUpdate.get_or_none(customer_id=customer.customer_id, date=on_date)
    if entry is None:
        try:
            entry = await DailyUpdate.create(customer_id=customer.customer_id, date=on_date, **values)
        except IntegrityError:
            # another writer created the row first; overwrite it
            entry = await DailyUpdate.get(customer_id=customer.customer_id, date=on_date)
            entry.update_from_dict(values)
            await entry.save()
    else:
        entry.update_from_dict(values)
        await entry.save()

    if entry.holding_status < 0:
        logger.warning(f"[ledger] negative holding {entry.holding_status} for {customer.customer_id} on {on_date}")
    return entry


async def get_entry(customer_id: str, on_date: date) -> Optional[DailyUpdate]:
    return await DailyUpdate.get_or_none(customer_id=customer_id, date=_as_date(on_date))


async def get_entries_for_date(on_date: date) -> List[DailyUpdate]:
    return await DailyUpdate.filter(date=_as_date(on_date)).order_by("customer_id")


async def get_entries_for_customer_in_range(customer_id: str, start: date, end: date) -> List[DailyUpdate]:
    """Entries in [start, end], ascending by date."""
    return await DailyUpdate.filter(
        customer_id=customer_id,
        date__gte=_as_date(start),
        date__lte=_as_date(end),
    ).order_by("date")


async def get_month_entries(customer_id: str, month: str) -> List[DailyUpdate]:
    start, end = month_bounds(month)
    return await get_entries_for_customer_in_range(customer_id, start, end)


async def get_ledger_view(customer_id: str, month: str) -> List[Tuple[int, int]]:
    """(day of month, delivered_qty) for each recorded day, ascending."""
    return [(e.date.day, e.delivered_qty) for e in await get_month_entries(customer_id, month)]


async def cans_to_collect(on_date: date) -> List[Dict[str, Any]]:
    """Customers still holding cans at the end of the previous day."""
    prev = _as_date(on_date) - timedelta(days=1)
    rows = await DailyUpdate.filter(date=prev, holding_status__gt=0).order_by("customer_id")
    if not rows:
        return []
    names = {
        c["customer_id"]: c["name"]
        for c in await Customer.filter(customer_id__in=[r.customer_id for r in rows]).values("customer_id", "name")
    }
    return [
        {"customer_id": r.customer_id, "name": names.get(r.customer_id, r.customer_id), "holding_status": r.holding_status}
        for r in rows
    ]


async def month_holding_drift(customer_id: str, month: str) -> List[Dict[str, Any]]:
    customer = await get_customer(customer_id)
    entries = await get_month_entries(customer.customer_id, month)
    if not entries:
        return []
    before = await DailyUpdate.get_or_none(customer_id=customer.customer_id, date=entries[0].date - timedelta(days=1))
    opening = before.holding_status if before else None
    return holding_drift(entries, holding_seed(customer), opening)
