from __future__ import annotations

import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional


def now_ms() -> int:
    return int(time.time() * 1000)


def now_iso(dt: Optional[datetime] = None) -> str:
    # Same shape as JS Date.toISOString(): UTC, millisecond precision, "Z" suffix.
    dt = dt or datetime.now(timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def unique_id(existing: Iterable[Any], ms: Optional[int] = None) -> str:
    """
    Millisecond-timestamp id, bumped forward until it is unused in `existing`.
    """
    taken = {str(i) for i in existing}
    candidate = now_ms() if ms is None else ms
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def default_currency() -> str:
    return os.getenv("DEFAULT_CURRENCY") or "NZD"


def default_timezone() -> str:
    return os.getenv("DEFAULT_TIMEZONE") or "Pacific/Auckland"


def default_profile() -> Dict[str, Any]:
    return {
        "name": "",
        "picture": "",
        "currency": default_currency(),
        "timezone": default_timezone(),
    }


def profile_to_dict(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    # A never-written profile reads as the defaults.
    if not data:
        return default_profile()
    return dict(data)
