# services/order_charges.py
from __future__ import annotations
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from models import Order, PriceSheet
from services import config
from services.errors import PricingUnavailable, ValidationError


@dataclass(frozen=True)
class OrderCharge:
    """Figures printed on an order receipt."""

    price_per_can: float
    subtotal: float
    delivery_amount: float
    missing_cans: int
    missing_can_charge: float
    total_amount: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def optional_amount(value: Any) -> float:
    """Numeric field with a declared default of 0 for absent, blank or non-numeric input."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        x = float(value)
    except (TypeError, ValueError):
        return 0.0
    return x if math.isfinite(x) else 0.0


def optional_count(name: str, value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be a whole number, got {value!r}", field=name)
    if value < 0:
        raise ValidationError(f"{name} must be >= 0, got {value}", field=name)
    return value


def compute_order_charge(
    can_qty: int,
    collected_qty: Optional[int] = None,
    delivery_amount: Any = None,
    price_per_can: Optional[float] = None,
    missing_can_rate: Optional[float] = None,
) -> OrderCharge:
    """
    subtotal = cans x price; every can not collected back is charged
    ``missing_can_rate`` (MISSING_CAN_CHARGE unless given).
    """
    if can_qty is None:
        raise ValidationError("can_qty is required", field="can_qty")
    cans = optional_count("can_qty", can_qty)
    collected = optional_count("collected_qty", collected_qty)
    if price_per_can is None:
        raise PricingUnavailable("No order_price available for this order", field="order_price")
    rate = config.MISSING_CAN_CHARGE if missing_can_rate is None else missing_can_rate

    subtotal = cans * float(price_per_can)
    delivery = optional_amount(delivery_amount)
    missing = max(0, cans - collected)
    missing_charge = missing * float(rate)
    return OrderCharge(
        price_per_can=float(price_per_can),
        subtotal=subtotal,
        delivery_amount=delivery,
        missing_cans=missing,
        missing_can_charge=missing_charge,
        total_amount=subtotal + delivery + missing_charge,
    )


def order_charge_for(order: Order, prices: Optional[PriceSheet]) -> OrderCharge:
    # shared by the receipt preview and the PDF download
    if prices is None:
        raise PricingUnavailable("No price sheet has been configured", field="prices")
    return compute_order_charge(
        can_qty=order.can_qty,
        collected_qty=order.collected_qty,
        delivery_amount=order.delivery_amount,
        price_per_can=prices.order_price,
    )
