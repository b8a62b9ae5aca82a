import uuid
from datetime import datetime, date
from typing import Optional, Literal, List
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator

from services.order_charges import optional_amount


CustomerType = Literal["shop", "monthly", "order"]
OrderStatus = Literal["pending", "processing", "delivered", "cancelled"]


# =========================
# Customers
# =========================
class CustomerCreate(BaseModel):
    customer_id: str
    name: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
    customer_type: CustomerType = "order"
    can_qty: int = Field(0, ge=0)


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    can_qty: Optional[int] = Field(None, ge=0)


class CustomerRead(CustomerCreate):
    id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# =========================
# Pricing
# =========================
class PriceSheetCreate(BaseModel):
    order_price: Optional[float] = Field(None, ge=0)
    shop_price: Optional[float] = Field(None, ge=0)
    monthly_price: Optional[float] = Field(None, ge=0)


class PriceSheetRead(PriceSheetCreate):
    id: int
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# =========================
# Daily ledger
# =========================
class DailyUpdateCreate(BaseModel):
    customer_id: str
    date: date
    delivered_qty: int = Field(0, ge=0)
    collected_qty: int = Field(0, ge=0)
    notes: Optional[str] = None


class DailyUpdateRead(BaseModel):
    id: int
    customer_id: str
    date: date
    delivered_qty: int
    collected_qty: int
    holding_status: int
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class DailyUpdateSaved(DailyUpdateRead):
    # e.g. negative holding after over-collection
    warnings: List[str] = []


class LedgerDay(BaseModel):
    day: int
    delivered_qty: int


class ToCollectRead(BaseModel):
    customer_id: str
    name: str
    holding_status: int


class HoldingDrift(BaseModel):
    date: date
    stored_holding: int
    expected_holding: int
    delta: int


# =========================
# Monthly bills
# =========================
class MonthlyBillSnapshot(BaseModel):
    customer_id: str
    name: str
    phone_number: Optional[str] = None
    customer_type: str
    bill_month: str
    price_per_can: float
    total_cans_delivered: int
    total_delivery_days: int
    bill_amount: float
    paid_status: bool = False
    sent_status: bool = False


class MonthlyBillInput(BaseModel):
    customer_id: str
    bill_month: str
    bill_amount: float = Field(0, ge=0)
    # the UI posts total_cans / delivery_days
    total_cans_delivered: int = Field(0, ge=0, validation_alias=AliasChoices("total_cans_delivered", "total_cans"))
    total_delivery_days: int = Field(0, ge=0, validation_alias=AliasChoices("total_delivery_days", "delivery_days"))
    paid_status: bool = False
    sent_status: bool = False


class MonthlyBillSaveRequest(BaseModel):
    bills: List[MonthlyBillInput]


class MonthlyBillRead(BaseModel):
    id: uuid.UUID
    customer_id: str
    bill_month: str
    bill_amount: float
    total_cans_delivered: int
    total_delivery_days: int
    paid_status: bool
    sent_status: bool
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class BillStatusUpdate(BaseModel):
    paid_status: Optional[bool] = None
    sent_status: Optional[bool] = None


class BatchFailure(BaseModel):
    customer_id: str
    kind: str
    detail: str
    retryable: bool = False


class MonthlyBillListing(BaseModel):
    bill_month: str
    bills: List[MonthlyBillSnapshot]
    failures: List[BatchFailure] = []


class MonthlyBillSaveResult(BaseModel):
    saved: List[MonthlyBillRead]
    failures: List[BatchFailure] = []


# =========================
# Orders
# =========================
class OrderCreate(BaseModel):
    order_date: date
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    customer_address: str = Field(..., min_length=1)
    delivery_amount: float = Field(0, ge=0)
    can_qty: int = Field(..., ge=0)
    collected_qty: int = Field(0, ge=0)
    collected_date: Optional[date] = None
    delivery_date: date
    delivery_time: str = Field(..., min_length=1)
    order_status: OrderStatus = "pending"
    notes: Optional[str] = None


class OrderUpdate(BaseModel):
    order_date: Optional[date] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    delivery_amount: Optional[float] = Field(None, ge=0)
    can_qty: Optional[int] = Field(None, ge=0)
    collected_qty: Optional[int] = Field(None, ge=0)
    collected_date: Optional[date] = None
    delivery_date: Optional[date] = None
    delivery_time: Optional[str] = None
    order_status: Optional[OrderStatus] = None
    notes: Optional[str] = None


class OrderRead(OrderCreate):
    id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class OrderChargeRequest(BaseModel):
    can_qty: int = Field(..., ge=0)
    collected_qty: Optional[int] = Field(None, ge=0)
    delivery_amount: float = 0

    # the order form sends "" (or junk) for an empty delivery box
    @field_validator("delivery_amount", mode="before")
    @classmethod
    def _blank_delivery_is_zero(cls, v):
        return optional_amount(v)



class OrderChargeRead(BaseModel):
    order_id: Optional[int] = None
    price_per_can: float
    subtotal: float
    delivery_amount: float
    missing_cans: int
    missing_can_charge: float
    total_amount: float
