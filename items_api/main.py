"""FastAPI application exposing the items store, search and stats."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .cache import create_cache
from .config import settings
from .errors import DataUnavailable, ItemsError
from .models import ItemCreate, PageResponse, StatsResponse
from .query import find, find_by_id, parse_page_params
from .stats import StatsCache
from .store import DataStore

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# Keep uvicorn's loggers on the same level and format as ours.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())


@lru_cache(maxsize=1)
def get_store() -> DataStore:
    logger.info("Using data file %s", settings.data_path)
    return DataStore(settings.data_path)


@lru_cache(maxsize=1)
def get_stats_cache() -> StatsCache:
    return StatsCache(
        backend=create_cache(),
        ttl_seconds=settings.stats_ttl_seconds,
        key=settings.stats_cache_key,
    )


app = FastAPI(title="Items Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_origin],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.exception_handler(ItemsError)
async def items_error_handler(request: Request, exc: ItemsError) -> JSONResponse:
    if isinstance(exc, DataUnavailable):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body') or 'body'}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.info("%s %s -> 400: %s", request.method, request.url.path, details)
    return JSONResponse(status_code=400, content={"error": details or "Invalid request"})


@app.on_event("startup")
async def startup_event() -> None:
    store = get_store()
    try:
        records = await store.load_records()
    except DataUnavailable as exc:
        # Requests will keep reporting 500 until the file is fixed.
        logger.warning("Data file not loaded on startup: %s", exc.message)
        return
    logger.info("Serving %s items", len(records))


@app.get("/health")
async def health(store: DataStore = Depends(get_store)) -> dict:
    records = await store.load_records()
    return {"status": "ok", "records": len(records)}


@app.get("/api/items", response_model=PageResponse)
async def list_items(
    q: Optional[str] = Query(None, description="Case-insensitive name substring"),
    offset: Optional[str] = Query(None, description="Number of matches to skip"),
    limit: Optional[str] = Query(None, description="Maximum page size; unbounded when omitted"),
    store: DataStore = Depends(get_store),
) -> dict:
    page_offset, page_limit = parse_page_params(offset, limit)
    records = await store.load_records()
    return find(records, query=q, offset=page_offset, limit=page_limit).as_dict()


@app.get("/api/items/{item_id}")
async def get_item(item_id: str, store: DataStore = Depends(get_store)) -> dict[str, Any]:
    records = await store.load_records()
    return find_by_id(records, item_id)


@app.post("/api/items", status_code=201)
async def create_item(
    item: ItemCreate,
    store: DataStore = Depends(get_store),
    stats: StatsCache = Depends(get_stats_cache),
) -> dict[str, Any]:
    record = await store.add_record(item.model_dump())
    stats.invalidate()
    return record


@app.get("/api/stats", response_model=StatsResponse)
async def get_stats(
    store: DataStore = Depends(get_store),
    stats: StatsCache = Depends(get_stats_cache),
) -> dict:
    cached = stats.fresh()
    if cached is not None:
        return cached
    records = await store.load_records()
    return stats.get(records)
