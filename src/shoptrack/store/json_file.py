from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from ..errors import StorageError
from .base import CUSTOMERS, ORDERS, RecordStore, check_collection

logger = logging.getLogger(__name__)


class JsonFileStore(RecordStore):
    """
    Whole store kept in one JSON document:

        {"customers": [...], "orders": [...], "counters": {"order-number:251019": 3}}

    This is the on-disk analogue of the browser's localStorage blobs. Each
    write is a read-modify-write of the document under a lock, finished with
    an atomic ``os.replace`` so readers never see a half-written file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict:
        if not self.path.exists():
            return {CUSTOMERS: [], ORDERS: [], "counters": {}}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read store file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Store file {self.path} must hold a JSON object")
        data.setdefault("counters", {})
        return data

    def _save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise StorageError(f"Cannot write store file {self.path}: {e}") from e

    def get(self, collection: str, record_id: str) -> Optional[dict]:
        check_collection(collection)
        with self._lock:
            for rec in self._load().get(collection, []):
                if rec.get("id") == record_id:
                    return rec
        return None

    def all(self, collection: str) -> list[dict]:
        check_collection(collection)
        with self._lock:
            return list(self._load().get(collection, []))

    def upsert(self, collection: str, record_id: str, record: dict) -> None:
        check_collection(collection)
        with self._lock:
            data = self._load()
            records = data.setdefault(collection, [])
            for i, rec in enumerate(records):
                if rec.get("id") == record_id:
                    records[i] = record
                    break
            else:
                records.append(record)
            self._save(data)
        logger.debug("Saved %s/%s to %s", collection, record_id, self.path)

    def next_sequence(self, key: str, floor: int = 0) -> int:
        with self._lock:
            data = self._load()
            counters = data["counters"]
            value = max(int(counters.get(key, 0)), floor) + 1
            counters[key] = value
            self._save(data)
            return value
