from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..analytics import local_day
from ..domain import Order, OrderStatus
from ..ids import day_key, format_order_number
from ..serialization import order_from_dict, order_to_dict
from ..store.base import ORDERS, RecordStore


class OrderRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def save(self, order: Order) -> Order:
        self.store.upsert(ORDERS, order.id, order_to_dict(order))
        return order

    def get(self, order_id: str) -> Optional[Order]:
        rec = self.store.get(ORDERS, order_id)
        return order_from_dict(rec) if rec else None

    def list(self) -> list[Order]:
        return [order_from_dict(r) for r in self.store.all(ORDERS)]

    def list_by_customer(self, customer_id: str) -> list[Order]:
        return [o for o in self.list() if o.customer_id == customer_id]

    def list_by_status(self, status: OrderStatus) -> list[Order]:
        return [o for o in self.list() if o.status == status]

    def search(self, query: str) -> list[Order]:
        term = query.strip().lower()
        return [o for o in self.list() if matches_order(o, term)]

    def count_created_on(self, moment: datetime) -> int:
        """Orders created on the calendar day of ``moment``, in its timezone."""
        day = moment.date()
        return sum(1 for o in self.list() if local_day(o.created_at, moment) == day)

    def reserve_order_number(self, moment: datetime) -> str:
        """
        Reserve the next ``YYMMDD-NNN`` number for the calendar day of ``moment``.

        The per-day counter is incremented atomically by the store, so two
        callers can never receive the same number. The counter never falls
        below the number of orders already stored for that day, which keeps
        numbering correct for records imported from elsewhere.
        """
        day = day_key(moment)
        seq = self.store.next_sequence(f"order-number:{day}", floor=self.count_created_on(moment))
        return format_order_number(day, seq)


def matches_order(o: Order, term: str) -> bool:
    """Case-insensitive substring match on order number, customer name, id and description."""
    return any(
        term in (field or "").lower()
        for field in (o.order_number, o.customer_name, o.id, o.description)
    )
