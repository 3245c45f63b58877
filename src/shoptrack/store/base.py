from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

CUSTOMERS = "customers"
ORDERS = "orders"
# reserved by the browser layout, never written by the repositories
RESERVED = ("vehicles", "services", "settings")

COLLECTIONS = (CUSTOMERS, ORDERS) + RESERVED


class RecordStore(ABC):
    """
    Key-value record store.

    Every write touches exactly one record (or one counter) and is atomic
    on its own; there are no whole-collection rewrites.
    """

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    def all(self, collection: str) -> list[dict]:
        """Every record of ``collection`` in insertion order."""

    @abstractmethod
    def upsert(self, collection: str, record_id: str, record: dict) -> None:
        """Insert or replace one record, keeping its original position."""

    @abstractmethod
    def next_sequence(self, key: str, floor: int = 0) -> int:
        """Reserve the next value of counter ``key``: ``max(current, floor) + 1``."""


def check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise KeyError(f"Unknown collection: {collection}")
