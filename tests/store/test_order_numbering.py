"""Order-number reservation across timezones."""
from datetime import datetime, timedelta, timezone

from shoptrack.repositories.order_repo import OrderRepository
from shoptrack.store.base import ORDERS
from shoptrack.store.memory import MemoryStore

EAT = timezone(timedelta(hours=3))


def _imported_order(order_id, created_at):
    return {
        "id": order_id,
        "orderNumber": "imported",
        "customerId": "CUST-1",
        "customerName": "Jane Doe",
        "serviceType": "general-inquiry",
        "serviceDetails": {"inquiry_details": "Rim sizes?"},
        "createdAt": created_at,
    }


class TestOrderNumbering:

    def test_utc_records_counted_on_local_day(self):
        store = MemoryStore()
        # 22:30 UTC on the 18th is 01:30 on the 19th in East Africa
        store.upsert(ORDERS, "ORD-A", _imported_order("ORD-A", "2026-10-18T22:30:00Z"))
        store.upsert(ORDERS, "ORD-B", _imported_order("ORD-B", "2026-10-18T12:00:00Z"))
        repo = OrderRepository(store)

        moment = datetime(2026, 10, 19, 9, 0, tzinfo=EAT)
        assert repo.count_created_on(moment) == 1
        assert repo.reserve_order_number(moment) == "261019-002"

    def test_fresh_day_starts_at_one(self):
        repo = OrderRepository(MemoryStore())
        assert repo.reserve_order_number(datetime(2026, 10, 19, 9, 0, tzinfo=EAT)) == "261019-001"
