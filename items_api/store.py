"""JSON file backed record store with an in-process cache."""
from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from .errors import DataUnavailable

logger = logging.getLogger(__name__)

Record = dict[str, Any]


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


def _read_file(path: Path) -> tuple[list[Record], float]:
    try:
        mtime = path.stat().st_mtime
        raw = path.read_bytes()
    except OSError as exc:
        raise DataUnavailable(f"Cannot read data file {path}: {exc.strerror or exc}") from exc
    try:
        data = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
    except UnicodeDecodeError as exc:
        raise DataUnavailable(f"Data file {path} is not valid UTF-8") from exc
    except json.JSONDecodeError as exc:
        raise DataUnavailable(f"Data file {path} is not valid JSON: {exc.msg} at line {exc.lineno}") from exc
    except ValueError as exc:
        raise DataUnavailable(f"Data file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise DataUnavailable(f"Data file {path} must contain a JSON array of objects")
    return data, mtime


def _write_file(path: Path, records: list[Record]) -> float:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(records, fh, ensure_ascii=False, indent=2, allow_nan=False)
        os.replace(tmp_name, path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise DataUnavailable(f"Cannot write data file {path}: {exc.strerror or exc}") from exc
    except ValueError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise DataUnavailable(f"Refusing to write non-finite number to {path}") from exc
    return path.stat().st_mtime


def _current_mtime(path: Path) -> Optional[float]:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def _is_int_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def next_id(records: list[Record]) -> int:
    ids = [item_id for item_id in (record.get("id") for record in records) if _is_int_id(item_id)]
    return max(ids, default=0) + 1


class DataStore:
    """Loads the record file once and serves it from memory.

    The cached list is dropped on :meth:`invalidate` or when the file's mtime
    no longer matches the one seen at load time. Reads are not locked;
    overlapping cold loads may both hit the disk.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._records: Optional[list[Record]] = None
        self._mtime: Optional[float] = None
        self._write_lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._records is not None

    async def load_records(self) -> list[Record]:
        if self._records is not None:
            mtime = await asyncio.to_thread(_current_mtime, self.path)
            if mtime == self._mtime:
                return self._records
            logger.info("Data file %s changed on disk; reloading", self.path)
            self.invalidate()
        records, mtime = await asyncio.to_thread(_read_file, self.path)
        self._records = records
        self._mtime = mtime
        logger.info("Loaded %s records from %s", len(records), self.path)
        return records

    def invalidate(self) -> None:
        self._records = None
        self._mtime = None

    async def add_record(self, payload: dict[str, Any]) -> Record:
        """Append a record with a fresh id and persist the whole file."""
        async with self._write_lock:
            records = await self.load_records()
            record = {"id": next_id(records), **{k: v for k, v in payload.items() if k != "id"}}
            updated = [*records, record]
            mtime = await asyncio.to_thread(_write_file, self.path, updated)
            self._records = updated
            self._mtime = mtime
        logger.info("Stored item id=%s name=%r", record["id"], record.get("name"))
        return record
