# services/seeder.py
from __future__ import annotations
import json
from pathlib import Path

from tortoise.transactions import in_transaction

from models import Customer, PriceSheet
from services import config

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

def _load_json(filename: str):
    p = DATA_DIR / filename
    return json.loads(p.read_text(encoding="utf-8")) if p.exists() else []

async def seed_if_empty(logger=print):
    prices_count    = await PriceSheet.all().count()
    customers_count = await Customer.all().count()

    logger(f"[seed] counts => price_sheets={prices_count}, customers={customers_count}")

    if not config.SEED_DEFAULTS:
        logger("[seed] disabled, skipping.")
        return
    if prices_count and customers_count:
        logger("[seed] already populated, skipping.")
        return

    created = {"price_sheets": 0, "customers": 0}
    skipped = {"customers": 0}

    async with in_transaction():
        if not prices_count:
            await PriceSheet.create(
                order_price=config.DEFAULT_ORDER_PRICE,
                shop_price=config.DEFAULT_SHOP_PRICE,
                monthly_price=config.DEFAULT_MONTHLY_PRICE,
            )
            created["price_sheets"] += 1

        # optional data/customers_seed.json: [{"customer_id": ..., "name": ..., ...}]
        if not customers_count:
            for c in _load_json("customers_seed.json"):
                cid = str(c.get("customer_id") or "").strip()
                name = (c.get("name") or "").strip()
                if not cid or not name:
                    skipped["customers"] += 1
                    continue
                if await Customer.exists(customer_id=cid):
                    skipped["customers"] += 1
                    continue
                await Customer.create(
                    customer_id=cid,
                    name=name,
                    phone_number=c.get("phone_number"),
                    address=c.get("address"),
                    customer_type=c.get("customer_type") or "order",
                    can_qty=int(c.get("can_qty") or 0),
                )
                created["customers"] += 1

    logger(f"[seed] created={created} skipped={skipped}")
