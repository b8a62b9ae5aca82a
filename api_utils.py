# api_utils.py
import json
from typing import Any, Callable, Iterable
from fastapi import Query
from fastapi.responses import JSONResponse
from tortoise.queryset import QuerySet

# ---------- React-Admin param parsing ----------
def parse_range(range_param: str) -> tuple[int, int, int]:
    try:
        start, end = json.loads(range_param)
        skip = max(int(start), 0)
        limit = max(int(end) - skip + 1, 1)
    except Exception:
        skip, limit = 0, 10
    return skip, limit, skip

def parse_sort(sort_param: str, allowed_fields: Iterable[str]) -> str:
    allowed = set(allowed_fields) | {"id"}
    try:
        field, order = json.loads(sort_param)
    except Exception:
        field, order = ("id", "ASC")
    field = field if field in allowed else "id"
    prefix = "-" if str(order).upper() == "DESC" else ""
    return f"{prefix}{field}"

def parse_filter(filter_param: str | None) -> dict:
    try:
        return json.loads(filter_param or "{}")
    except Exception:
        return {}

def to_bool(v) -> bool:
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    return str(v).strip().lower() in {"1", "true", "t", "yes", "y"}

# ---------- Query helpers ----------
def apply_filter_map(qs: QuerySet, filters: dict, fmap: dict[str, Callable[[QuerySet, Any], QuerySet]]) -> QuerySet:
    for key, fn in fmap.items():
        if key in filters and filters[key] is not None:
            qs = fn(qs, filters[key])
    return qs

async def paginate_and_respond(
    qs: QuerySet,
    skip: int,
    limit: int,
    order: str,
    to_pydantic: Callable[[Any], Any],
) -> JSONResponse:
    total = await qs.count()
    items = await qs.order_by(order).offset(skip).limit(limit)
    end_real = skip + max(len(items) - 1, 0)
    content_range = f"items {skip}-{end_real}/{total}"

    # Pydantic v2 JSON mode keeps dates/UUIDs serialisable
    content = [to_pydantic(it).model_dump(mode="json") for it in items]

    return JSONResponse(
        status_code=206 if total > len(items) else 200,
        content=content,
        headers={"Content-Range": content_range},
    )

def respond_item(model_obj: Any, to_pydantic: Callable[[Any], Any], status_code: int = 200) -> JSONResponse:
    """Single item response that uses the same Pydantic-safe encoding."""
    return JSONResponse(status_code=status_code, content=to_pydantic(model_obj).model_dump(mode="json"))

# ---------- RA params container ----------
class RAListParams:
    def __init__(
        self,
        range: str = Query("[0,9]"),
        sort: str = Query('["id","ASC"]'),
        filter: str = Query("{}"),
    ):
        self.skip, self.limit, self.start = parse_range(range)
        self.filters = parse_filter(filter)
        self.sort = sort
