"""Async consumer of the items API that renders a virtualized list.

This is the client half of the service: it pages through ``/api/items``,
works out which rows fall inside a fixed-height viewport, and drops the
results of any request superseded by a newer query or by :meth:`close`.

Cancellation is cooperative. Every fetch takes a :class:`CancellationToken`
that is checked before the request goes out and again before the result is
applied; the server keeps doing whatever work it already started.
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class RequestCancelled(Exception):
    """Raised when a token is cancelled before its result could be used."""


class ApiError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestCancelled()


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return response.reason_phrase


class ItemsApiClient:
    """Thin wrapper around :class:`httpx.AsyncClient` for the items routes."""

    def __init__(self, base_url: str = "http://localhost:8000", http: httpx.AsyncClient | None = None) -> None:
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=10.0)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get(self, path: str, token: Optional[CancellationToken], params: Dict[str, Any] | None = None) -> Any:
        if token is not None:
            token.raise_if_cancelled()
        response = await self._http.get(path, params=params)
        if token is not None:
            token.raise_if_cancelled()
        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))
        return response.json()

    async def fetch_page(
        self,
        query: str = "",
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
        token: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"offset": offset, "limit": limit}
        if query:
            params["q"] = query
        return await self._get("/api/items", token, params)

    async def fetch_item(self, item_id: Any, token: Optional[CancellationToken] = None) -> Dict[str, Any]:
        return await self._get(f"/api/items/{item_id}", token)

    async def fetch_stats(self, token: Optional[CancellationToken] = None) -> Dict[str, Any]:
        return await self._get("/api/stats", token)


def visible_window(
    scroll_top: float,
    viewport_height: float,
    row_height: float,
    item_count: int,
    overscan: int = 0,
) -> Tuple[int, int]:
    """Half-open ``[start, stop)`` range of row indexes inside the viewport."""
    if row_height <= 0:
        raise ValueError("row_height must be positive")
    if item_count <= 0 or viewport_height <= 0:
        return 0, 0
    first = int(max(scroll_top, 0) // row_height)
    last = math.ceil((max(scroll_top, 0) + viewport_height) / row_height)
    start = max(first - overscan, 0)
    stop = min(last + overscan, item_count)
    return min(start, stop), stop


@dataclass
class ItemListController:
    """State holder for a searchable, virtualized item list."""

    api: ItemsApiClient
    row_height: float = 35.0
    viewport_height: float = 500.0
    page_size: int = DEFAULT_PAGE_SIZE
    overscan: int = 5
    debounce_seconds: float = 0.3

    items: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0
    error: Optional[str] = None
    loading: bool = False
    query: str = ""

    _token: Optional[CancellationToken] = field(default=None, init=False, repr=False)
    _search_seq: int = field(default=0, init=False, repr=False)

    async def load(self, query: str = "") -> None:
        if self._token is not None:
            self._token.cancel()
        token = CancellationToken()
        self._token = token
        self.query = query
        self.loading = True
        self.error = None
        try:
            page = await self.api.fetch_page(query, 0, self.page_size, token=token)
        except RequestCancelled:
            logger.debug("Discarded cancelled fetch for q=%r", query)
            return
        except (ApiError, httpx.HTTPError) as exc:
            if token.cancelled:
                return
            logger.warning("Fetching items for q=%r failed: %s", query, exc)
            self.error = str(exc)
            self.loading = False
            return
        if token.cancelled:
            return
        self.items = page.get("items", [])
        self.total = page.get("total", len(self.items))
        self.loading = False

    async def search(self, query: str) -> None:
        """Debounced :meth:`load`: only the last of rapid calls issues a fetch."""
        self._search_seq += 1
        seq = self._search_seq
        await asyncio.sleep(self.debounce_seconds)
        if seq != self._search_seq:
            return
        await self.load(query)

    def close(self) -> None:
        self._search_seq += 1
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self.loading = False

    def visible_items(self, scroll_top: float = 0.0) -> List[Dict[str, Any]]:
        start, stop = visible_window(scroll_top, self.viewport_height, self.row_height, len(self.items), self.overscan)
        return self.items[start:stop]
