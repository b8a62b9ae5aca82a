# services/csv_builder.py
from __future__ import annotations
from typing import Any, Dict, List
import csv, io, os, datetime, decimal

from models import Customer, MonthlyBill
import services.config as config
import yaml  # pip install pyyaml

def _get_attr_path(root: Any, path: str):
    cur = root
    for part in path.split("."):
        if cur is None:
            return None
        if isinstance(cur, dict):
            cur = cur.get(part)
        else:
            cur = getattr(cur, part, None)
    return cur

def _fmt_value(val: Any, col_cfg: dict) -> Any:
    if val is None:
        return col_cfg.get("default", "")
    # booleans can carry yes/no labels (checked before numbers: bool is an int)
    if isinstance(val, bool):
        labels = col_cfg.get("bool_labels") or ["true", "false"]
        return labels[0] if val else labels[1]

    if "date_format" in col_cfg and isinstance(val, (datetime.datetime, datetime.date)):
        return val.strftime(col_cfg["date_format"])

    # numeric rounding
    if isinstance(val, (int, float, decimal.Decimal)):
        x = decimal.Decimal(str(val))
        if "round" in col_cfg:
            q = decimal.Decimal(10) ** (-int(col_cfg["round"]))
            x = x.quantize(q, rounding=decimal.ROUND_HALF_UP)
        # keep as plain string to avoid locale issues
        return format(x, "f")

    return str(val)

def _load_map() -> dict:
    path = config.BILL_CSV_MAP_FILE
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    # fallback minimal map
    return {
        "delimiter": ",",
        "quotechar": '"',
        "header": ["Customer ID", "Name", "Phone", "Type", "Month", "Total Cans", "Delivery Days", "Amount", "Paid", "Sent"],
        "columns": [
            {"source": "bill.customer_id"},
            {"source": "customer.name"},
            {"source": "customer.phone_number"},
            {"source": "customer.customer_type"},
            {"source": "bill.bill_month"},
            {"source": "bill.total_cans_delivered"},
            {"source": "bill.total_delivery_days"},
            {"source": "bill.bill_amount", "round": 2},
            {"source": "bill.paid_status", "bool_labels": ["yes", "no"]},
            {"source": "bill.sent_status", "bool_labels": ["yes", "no"]},
        ],
    }

def build_bills_csv_bytes(bills: List[MonthlyBill], customers: Dict[str, Customer]) -> bytes:
    """One row per saved bill; columns come from the YAML map."""
    cfg = _load_map()
    delimiter = cfg.get("delimiter", ",")
    quotechar = cfg.get("quotechar", '"')
    header = cfg.get("header", [])
    cols = cfg.get("columns", [])

    out = io.StringIO(newline="")
    writer = csv.writer(out, delimiter=delimiter, quotechar=quotechar)

    if header:
        writer.writerow(header)

    for bill in bills:
        roots = {"bill": bill, "customer": customers.get(bill.customer_id)}
        row = []
        for c in cols:
            src = c.get("source", "")
            val = _get_attr_path(roots, src) if src else None
            row.append(_fmt_value(val, c))
        writer.writerow(row)

    return out.getvalue().encode("utf-8")
