from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Any, Iterable

import orjson
import ulid

_field_id_lock = threading.Lock()
_last_field_id = 0


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def parse_dt(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return now_utc()
    return now_utc()


def dumps_json(value: Any) -> str:
    return orjson.dumps(value).decode("utf-8")


def loads_json(value: str | None) -> Any:
    if not value:
        return None
    return orjson.loads(value)


def new_ulid() -> str:
    value = ulid.new()
    return getattr(value, "str", str(value))


def new_field_id(existing: Iterable[str] = ()) -> str:
    """Millisecond timestamp id, strictly increasing within the process."""
    global _last_field_id
    taken = set(existing)
    with _field_id_lock:
        candidate = max(time.time_ns() // 1_000_000, _last_field_id + 1)
        while str(candidate) in taken:
            candidate += 1
        _last_field_id = candidate
    return str(candidate)
