# main.py (lifespan-based)
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from tortoise import Tortoise
from tortoise.exceptions import DBConnectionError

from routers import customers, prices, daily_updates, bills, orders
from services import config
from services.errors import BillingEngineError, UpstreamUnavailable
from services.seeder import seed_if_empty

logger = logging.getLogger("uvicorn")

# ----- lifespan -----
@asynccontextmanager
async def lifespan(app: FastAPI):
    # 1) DB init
    await Tortoise.init(
        db_url=config.DATABASE_URL,
        modules={"models": ["models"]},
    )
    await Tortoise.generate_schemas()

    # 2) Seeds
    await seed_if_empty(logger=logger.info)
    try:
        yield
    finally:
        await Tortoise.close_connections()

# ----- app & routers -----
app = FastAPI(lifespan=lifespan, title="Water Delivery Billing API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Range", "Content-Disposition", "X-Bills-Generated", "X-Bills-Failed"],
)

# ----- error mapping -----
@app.exception_handler(BillingEngineError)
async def billing_error_handler(request: Request, exc: BillingEngineError):
    if exc.retryable:
        logger.warning(f"[api] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(DBConnectionError)
async def db_unavailable_handler(request: Request, exc: DBConnectionError):
    err = UpstreamUnavailable(f"Database unavailable: {exc}")
    logger.warning(f"[api] {request.method} {request.url.path}: {err.message}")
    return JSONResponse(status_code=err.status_code, content=err.to_dict())

app.include_router(customers.router)
app.include_router(prices.router)
app.include_router(daily_updates.router)
app.include_router(bills.router)
app.include_router(orders.router)

for route in app.routes:
    if isinstance(route, APIRoute):
        logger.info("%s -> %s", list(route.methods), route.path)
