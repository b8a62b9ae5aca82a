# routers/customers.py
from fastapi import APIRouter, Depends, HTTPException
from tortoise.expressions import Q

from models import Customer
from schemas import CustomerCreate, CustomerUpdate, CustomerRead
from api_utils import RAListParams, parse_sort, apply_filter_map, paginate_and_respond, respond_item

router = APIRouter(prefix="/customers", tags=["customers"])

@router.get("", response_model=list[CustomerRead])
async def list_customers(params: RAListParams = Depends()):
    qs = Customer.all()
    fmap = {
        "q": lambda q, v: q.filter(Q(name__icontains=str(v)) | Q(phone_number__icontains=str(v))),
        "customer_id": lambda q, v: q.filter(customer_id=str(v)),
        "name": lambda q, v: q.filter(name__icontains=str(v)),
        "phone_number": lambda q, v: q.filter(phone_number__icontains=str(v)),
        "customer_type": lambda q, v: q.filter(customer_type=str(v)),
    }
    qs = apply_filter_map(qs, params.filters, fmap)
    order = parse_sort(params.sort, ["id", "customer_id", "name", "customer_type", "can_qty", "created_at"])
    return await paginate_and_respond(qs, params.skip, params.limit, order, lambda m: CustomerRead.model_validate(m))

@router.get("/{customer_id}", response_model=CustomerRead)
async def get_customer(customer_id: str):
    obj = await Customer.get_or_none(customer_id=customer_id)
    if not obj:
        raise HTTPException(404, "Customer not found")
    return respond_item(obj, lambda m: CustomerRead.model_validate(m))

@router.post("", response_model=CustomerRead, status_code=201)
async def create_customer(payload: CustomerCreate):
    if await Customer.exists(customer_id=payload.customer_id):
        raise HTTPException(409, f"Customer '{payload.customer_id}' already exists")
    obj = await Customer.create(**payload.model_dump())
    return respond_item(obj, lambda m: CustomerRead.model_validate(m), status_code=201)

@router.put("/{customer_id}", response_model=CustomerRead)
async def update_customer(customer_id: str, payload: CustomerUpdate):
    obj = await Customer.get_or_none(customer_id=customer_id)
    if not obj:
        raise HTTPException(404, "Customer not found")
    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(obj, k, v)
    await obj.save()
    return respond_item(obj, lambda m: CustomerRead.model_validate(m))
