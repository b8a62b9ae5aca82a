# routers/prices.py
from fastapi import APIRouter, Depends

from models import PriceSheet
from schemas import PriceSheetCreate, PriceSheetRead
from api_utils import respond_item
from deps import get_current_prices

router = APIRouter(prefix="/settings/prices", tags=["prices"])

@router.get("", response_model=list[PriceSheetRead])
async def list_price_sheets():
    """Newest first; the first item is the current sheet."""
    rows = await PriceSheet.all().order_by("-created_at", "-id")
    return [PriceSheetRead.model_validate(r) for r in rows]

@router.get("/current", response_model=PriceSheetRead)
async def get_current_price_sheet(prices: PriceSheet = Depends(get_current_prices)):
    return PriceSheetRead.model_validate(prices)

@router.post("", response_model=PriceSheetRead, status_code=201)
async def create_price_sheet(payload: PriceSheetCreate):
    # never edited in place: a new row becomes the current sheet
    obj = await PriceSheet.create(**payload.model_dump())
    return respond_item(obj, lambda m: PriceSheetRead.model_validate(m), status_code=201)
