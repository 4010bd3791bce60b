"""Search and pagination over the in-memory record list."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from .errors import InvalidParameter, NotFound

logger = logging.getLogger(__name__)

Record = dict[str, Any]


@dataclass(frozen=True)
class Page:
    items: list[Record] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: Optional[int] = None

    def as_dict(self) -> dict:
        return {"items": self.items, "total": self.total, "offset": self.offset, "limit": self.limit}


def _parse_non_negative(name: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise InvalidParameter(f"{name} must be a non-negative integer")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        # int() accepts "+5" and "1_000", isdigit() accepts "²"; only ASCII digits pass.
        if not (text.isascii() and text.isdecimal()):
            raise InvalidParameter(f"{name} must be a non-negative integer, got {raw!r:.40}")
        try:
            value = int(text)
        except ValueError as exc:
            raise InvalidParameter(f"{name} is too large") from exc
    if value < 0:
        raise InvalidParameter(f"{name} must be a non-negative integer, got {raw!r}")
    return value


def parse_page_params(offset: Any = None, limit: Any = None) -> tuple[int, Optional[int]]:
    """Normalize raw ``offset``/``limit`` values.

    Missing values fall back to ``0`` and unbounded (``None``). Anything else
    that is not a non-negative integer raises :class:`InvalidParameter`.
    """
    parsed_offset = 0 if offset is None or offset == "" else _parse_non_negative("offset", offset)
    parsed_limit = None if limit is None or limit == "" else _parse_non_negative("limit", limit)
    return parsed_offset, parsed_limit


def matches(record: Record, needle: str) -> bool:
    name = record.get("name")
    if not isinstance(name, str):
        return False
    return needle in name.casefold()


def find(
    records: Sequence[Record],
    query: Optional[str] = None,
    offset: int = 0,
    limit: Optional[int] = None,
) -> Page:
    """Filter ``records`` by case-insensitive name substring and slice a page.

    ``total`` counts every match; ``items`` keeps the original file order.
    """
    offset, limit = parse_page_params(offset, limit)
    needle = query.strip().casefold() if query else ""
    if needle:
        filtered = [record for record in records if matches(record, needle)]
    else:
        filtered = list(records)
    total = len(filtered)
    stop = total if limit is None else offset + limit
    items = filtered[offset:stop]
    logger.debug("find q=%r offset=%s limit=%s total=%s returned=%s", query, offset, limit, total, len(items))
    return Page(items=items, total=total, offset=offset, limit=limit)


def find_by_id(records: Sequence[Record], item_id: Any) -> Record:
    wanted = str(item_id)
    for record in records:
        if str(record.get("id")) == wanted:
            return record
    raise NotFound(f"Item {wanted} not found")
