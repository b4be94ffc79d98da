from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class FakeDocumentSnapshot:
    id: str
    _data: Optional[Dict[str, Any]]
    reference: "FakeDocumentRef"

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        if self._data is None:
            return None
        # Deep copy: the real client hands out fresh objects on every read.
        return copy.deepcopy(self._data)


class FakeDocumentRef:
    def __init__(self, collection: "FakeCollectionRef", doc_id: str):
        self._collection = collection
        self._id = doc_id

    @property
    def id(self) -> str:
        return self._id

    @property
    def path(self) -> str:
        return f"{self._collection._name}/{self._id}"

    def get(self) -> FakeDocumentSnapshot:
        self._collection._db.reads += 1
        data = self._collection._docs.get(self._id)
        return FakeDocumentSnapshot(id=self._id, _data=data, reference=self)

    def set(self, data: Dict[str, Any]) -> None:
        self._collection._db.writes += 1
        self._collection._docs[self._id] = copy.deepcopy(data)

    def delete(self) -> None:
        self._collection._docs.pop(self._id, None)


class FakeCollectionRef:
    def __init__(self, db: "FakeFirestore", name: str):
        self._db = db
        self._name = name
        self._docs: Dict[str, Dict[str, Any]] = db._collections.setdefault(name, {})

    def document(self, doc_id: str) -> FakeDocumentRef:
        return FakeDocumentRef(self, doc_id)


class FakeFirestore:
    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.reads = 0
        self.writes = 0

    def collection(self, name: str) -> FakeCollectionRef:
        return FakeCollectionRef(self, name)

    def raw(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return self._collections.get(collection, {}).get(doc_id)


class BrokenFirestore:
    """Every document access fails, like an unreachable backend."""

    def __init__(self, message: str = "backend unavailable"):
        self._message = message

    def collection(self, name: str) -> "BrokenFirestore":
        return self

    def document(self, doc_id: str) -> "BrokenFirestore":
        return self

    def get(self):
        raise ConnectionError(self._message)

    def set(self, data):
        raise ConnectionError(self._message)
