"""Order charge calculator: subtotal, missing-can penalty and totals."""

from __future__ import annotations

import pytest

from services import config
from services.errors import PricingUnavailable, ValidationError
from services.order_charges import compute_order_charge, optional_amount


def test_receipt_figures_for_partly_collected_order():
    charge = compute_order_charge(can_qty=10, collected_qty=7, delivery_amount=50, price_per_can=60, missing_can_rate=500)
    assert charge.subtotal == 600
    assert charge.missing_cans == 3
    assert charge.missing_can_charge == 1500
    assert charge.total_amount == 2150


def test_uncollected_order_is_fully_missing():
    charge = compute_order_charge(can_qty=4, collected_qty=None, price_per_can=60, missing_can_rate=500)
    assert charge.missing_cans == 4
    assert charge.missing_can_charge == 2000
    assert charge.delivery_amount == 0
    assert charge.total_amount == 240 + 2000


def test_missing_cans_never_increase_as_more_are_collected():
    seen = [
        compute_order_charge(can_qty=8, collected_qty=c, price_per_can=10, missing_can_rate=500).missing_cans
        for c in range(0, 12)
    ]
    assert seen[0] == 8
    assert all(a >= b for a, b in zip(seen, seen[1:]))
    assert seen[-1] == 0


@pytest.mark.parametrize("raw, expected", [(None, 0.0), ("", 0.0), ("abc", 0.0), ("50", 50.0), (25, 25.0), (float("nan"), 0.0)])
def test_delivery_amount_defaults_to_zero(raw, expected):
    assert optional_amount(raw) == expected


def test_penalty_rate_comes_from_config(monkeypatch):
    monkeypatch.setattr(config, "MISSING_CAN_CHARGE", 100.0)
    charge = compute_order_charge(can_qty=3, collected_qty=1, price_per_can=60)
    assert charge.missing_can_charge == 200
    assert charge.total_amount == 180 + 200


def test_same_inputs_give_identical_totals():
    a = compute_order_charge(can_qty=7, collected_qty=2, delivery_amount="30", price_per_can=55.5, missing_can_rate=500)
    b = compute_order_charge(can_qty=7, collected_qty=2, delivery_amount="30", price_per_can=55.5, missing_can_rate=500)
    assert a == b
    assert a.to_dict()["total_amount"] == b.to_dict()["total_amount"]


def test_missing_price_is_a_pricing_failure():
    with pytest.raises(PricingUnavailable):
        compute_order_charge(can_qty=1, price_per_can=None)


@pytest.mark.parametrize("kwargs", [{"can_qty": -1}, {"can_qty": 2.5}, {"can_qty": 3, "collected_qty": -2}])
def test_bad_quantities_are_rejected(kwargs):
    with pytest.raises(ValidationError):
        compute_order_charge(price_per_can=60, **kwargs)
