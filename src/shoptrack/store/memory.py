from __future__ import annotations

import copy
import threading
from typing import Optional

from .base import COLLECTIONS, RecordStore, check_collection


class MemoryStore(RecordStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, dict[str, dict]] = {c: {} for c in COLLECTIONS}
        self._counters: dict[str, int] = {}

    def get(self, collection: str, record_id: str) -> Optional[dict]:
        check_collection(collection)
        with self._lock:
            rec = self._data[collection].get(record_id)
            return copy.deepcopy(rec) if rec is not None else None

    def all(self, collection: str) -> list[dict]:
        check_collection(collection)
        with self._lock:
            return [copy.deepcopy(r) for r in self._data[collection].values()]

    def upsert(self, collection: str, record_id: str, record: dict) -> None:
        check_collection(collection)
        with self._lock:
            # dict assignment keeps the position of an existing key
            self._data[collection][record_id] = copy.deepcopy(record)

    def next_sequence(self, key: str, floor: int = 0) -> int:
        with self._lock:
            value = max(self._counters.get(key, 0), floor) + 1
            self._counters[key] = value
            return value
