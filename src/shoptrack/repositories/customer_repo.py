from __future__ import annotations

from typing import Optional

from ..domain import Customer
from ..errors import DuplicatePhoneError
from ..serialization import customer_from_dict, customer_to_dict
from ..store.base import CUSTOMERS, RecordStore


class CustomerRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def create(self, customer: Customer) -> Customer:
        if self.get_by_phone(customer.phone) is not None:
            raise DuplicatePhoneError(customer.phone)
        self.store.upsert(CUSTOMERS, customer.id, customer_to_dict(customer))
        return customer

    def save(self, customer: Customer) -> Customer:
        self.store.upsert(CUSTOMERS, customer.id, customer_to_dict(customer))
        return customer

    def get(self, customer_id: str) -> Optional[Customer]:
        rec = self.store.get(CUSTOMERS, customer_id)
        return customer_from_dict(rec) if rec else None

    def get_by_phone(self, phone: str) -> Optional[Customer]:
        for c in self.list():
            if c.phone == phone:
                return c
        return None

    def list(self) -> list[Customer]:
        return [customer_from_dict(r) for r in self.store.all(CUSTOMERS)]

    def search(self, query: str) -> list[Customer]:
        term = query.strip().lower()
        return [c for c in self.list() if matches_customer(c, term)]


def matches_customer(c: Customer, term: str) -> bool:
    """Case-insensitive substring match on name, phone, email and id."""
    return any(term in (field or "").lower() for field in (c.name, c.phone, c.email, c.id))
