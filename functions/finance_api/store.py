from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

try:  # pragma: no cover
    from .firestore_client import get_collection_name
    from .serialization import now_iso, unique_id
except Exception:  # pragma: no cover
    from firestore_client import get_collection_name
    from serialization import now_iso, unique_id

# Category keys; one Firestore document each.
CASHFLOW = "cashflow"
CREDIT_CARDS = "credit-cards"
EXPENSES = "expenses"
BILLS = "bills"
GOALS = "goals"
PROFILE = "user:profile"
PIN = "user:pin"

_LIST_FIELD = "items"
_VALUE_FIELD = "value"


class RecordNotFound(LookupError):
    def __init__(self, key: str, record_id: str):
        super().__init__(f"{key}/{record_id} not found")
        self.key = key
        self.record_id = record_id


class StorageUnavailableError(RuntimeError):
    pass


_locks_guard = threading.Lock()
_locks: Dict[str, threading.Lock] = {}


@contextmanager
def key_lock(key: str) -> Iterator[None]:
    """
    Serialize read-modify-write on one category key within this process.

    Writers in other instances are not covered; the last full-document
    write still wins across instances.
    """
    with _locks_guard:
        lock = _locks.setdefault(key, threading.Lock())
    with lock:
        yield


class RecordStore:
    """
    Whole-document persistence for category keys.

    List categories live under `{"items": [...]}`; singletons (profile, pin)
    under `{"value": ...}`, because a Firestore document cannot be a bare array
    or scalar.
    """

    def __init__(self, db, collection: Optional[str] = None):
        self._ref = db.collection(collection or get_collection_name())

    def _read(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            snap = self._ref.document(key).get()
        except Exception as e:
            raise StorageUnavailableError(f"Failed to read {key}: {e}") from e
        if not snap.exists:
            return None
        return copy.deepcopy(snap.to_dict() or {})

    def _write(self, key: str, data: Dict[str, Any]) -> None:
        try:
            self._ref.document(key).set(data)
        except Exception as e:
            raise StorageUnavailableError(f"Failed to write {key}: {e}") from e

    # List categories

    def list(self, key: str) -> List[Dict[str, Any]]:
        data = self._read(key) or {}
        items = data.get(_LIST_FIELD)
        return items if isinstance(items, list) else []

    def _put_list(self, key: str, items: List[Dict[str, Any]]) -> None:
        self._write(key, {_LIST_FIELD: items})

    def append(self, key: str, doc: Dict[str, Any], *, stamp_created_at: bool = True) -> Dict[str, Any]:
        entry = copy.deepcopy(doc)
        with key_lock(key):
            items = self.list(key)
            entry["id"] = unique_id(i.get("id") for i in items)
            if stamp_created_at:
                entry["createdAt"] = now_iso()
            items.append(entry)
            self._put_list(key, items)
        return entry

    def remove(self, key: str, record_id: str) -> bool:
        with key_lock(key):
            items = self.list(key)
            # Written back even when nothing matched.
            self._put_list(key, [i for i in items if i.get("id") != record_id])
        return True

    def patch(self, key: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        with key_lock(key):
            items = self.list(key)
            for index, item in enumerate(items):
                if item.get("id") == record_id:
                    merged = {**item, **copy.deepcopy(changes)}
                    items[index] = merged
                    self._put_list(key, items)
                    return merged
        raise RecordNotFound(key, record_id)

    # Singletons

    def get_singleton(self, key: str, default: Any = None) -> Any:
        data = self._read(key)
        if data is None or data.get(_VALUE_FIELD) is None:
            return default
        return data[_VALUE_FIELD]

    def put_singleton(self, key: str, value: Any) -> None:
        self._write(key, {_VALUE_FIELD: copy.deepcopy(value)})
