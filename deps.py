from fastapi import Query

from models import PriceSheet
from services.ledger import normalize_month
from services.monthly_bills import require_current_prices


async def get_current_prices() -> PriceSheet:
    """Resolve the current price sheet once per request; 503 when none exists."""
    return await require_current_prices()


async def get_month(month: str = Query(..., description="YYYY-MM")) -> str:
    return normalize_month(month)
