# services/config.py
from __future__ import annotations
import os

# ------------------------------------------------------------------------------
# Helper: get env var with fallback
# ------------------------------------------------------------------------------
def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return v if v is not None and v != "" else default

def _env_list(name: str, default: str = "") -> list[str]:
    return [x.strip() for x in _env(name, default).split(",") if x.strip()]

def _env_bool(name: str, default: str = "true") -> bool:
    return _env(name, default).strip().lower() in {"1", "true", "t", "yes", "y"}

# ------------------------------------------------------------------------------
# Database (Tortoise URL)
# ------------------------------------------------------------------------------
DATABASE_URL: str = _env("DATABASE_URL", "sqlite://./db.sqlite3")

# ------------------------------------------------------------------------------
# Billing policy
# ------------------------------------------------------------------------------
# Penalty per can delivered on an order and never collected back.
MISSING_CAN_CHARGE: float = float(_env("MISSING_CAN_CHARGE", "500"))

# Customer types whose first ledger day starts from their can_qty baseline.
RECURRING_CUSTOMER_TYPES: list[str] = _env_list("RECURRING_CUSTOMER_TYPES", "shop,monthly")

# Seed a first price sheet (and data/customers_seed.json, if present) on an empty DB
SEED_DEFAULTS: bool = _env_bool("SEED_DEFAULTS", "true")
DEFAULT_ORDER_PRICE: float = float(_env("DEFAULT_ORDER_PRICE", "60"))
DEFAULT_SHOP_PRICE: float = float(_env("DEFAULT_SHOP_PRICE", "25"))
DEFAULT_MONTHLY_PRICE: float = float(_env("DEFAULT_MONTHLY_PRICE", "30"))

# ------------------------------------------------------------------------------
# HTTP
# ------------------------------------------------------------------------------
CORS_ORIGINS: list[str] = _env_list("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")

# ---------------- Documents ----------------
BUSINESS_NAME: str = _env("BUSINESS_NAME", "Kanchan Mineral Water")
BUSINESS_ADDRESS: str = _env("BUSINESS_ADDRESS", "5, Labour Colony, Nai Abadi, Mandsaur")
BUSINESS_PHONE: str = _env("BUSINESS_PHONE", "07422-408555")
CURRENCY_SYMBOL: str = _env("CURRENCY_SYMBOL", "Rs.")

# ---------------- CSV map (YAML) ----------------
# Absolute or relative path to the bill export column map
BILL_CSV_MAP_FILE: str = _env("BILL_CSV_MAP_FILE", "config/bill_csv_map.yaml")
