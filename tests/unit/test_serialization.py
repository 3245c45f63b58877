"""Tests for shoptrack.serialization -- loading browser-shaped camelCase records."""
from datetime import datetime, timezone

import pytest

from shoptrack.domain import CarServiceDetails, CustomerType, OrderStatus, Priority, TireSalesDetails
from shoptrack.errors import StorageError
from shoptrack.serialization import (
    customer_from_dict,
    customer_to_dict,
    order_from_dict,
    order_to_dict,
)

BROWSER_CUSTOMER = {
    "id": "CUST-LX2K9A-4F7QZP",
    "name": "Safari Auto Ltd",
    "phone": "+255713000111",
    "email": "",
    "address": "Sokoine Dr, Arusha",
    "customerType": "business",
    "organizationName": "Safari Auto Ltd",
    "notes": "",
    "vehicles": [
        {"plateNumber": "T 456 DEF", "make": "Toyota", "model": "Hiace", "vehicleType": "van", "addedAt": "2026-10-01T08:00:00+00:00"}
    ],
    "createdAt": "2026-10-01T08:00:00+00:00",
    "updatedAt": "2026-10-02T10:30:00+00:00",
    "totalOrders": 2,
    "lastVisit": "",
}

BROWSER_ORDER = {
    "id": "ORD-LX2KA0-9QW1ER",
    "orderNumber": "261019-004",
    "customerId": "CUST-LX2K9A-4F7QZP",
    "customerName": "Safari Auto Ltd",
    "orderType": "service",
    "serviceType": "car-service",
    "status": "in-progress",
    "priority": "high",
    "description": "",
    "arrivalTime": "2026-10-19T09:15:00+00:00",
    "createdAt": "2026-10-19T09:15:00+00:00",
    "updatedAt": "2026-10-19T09:40:00+00:00",
    "serviceDetails": {
        "service_types": ["brake-check"],
        "vehicle_info": {"plate_number": "T 456 DEF", "make": "Toyota", "model": "Hiace"},
        "problem_description": "Grinding noise",
    },
    "statusHistory": [
        {"status": "pending", "timestamp": "2026-10-19T09:15:00+00:00", "notes": "Order created"},
        {"status": "in-progress", "previousStatus": "pending", "timestamp": "2026-10-19T09:40:00+00:00"},
    ],
}


class TestCustomerRecords:

    def test_loads_browser_record(self):
        c = customer_from_dict(BROWSER_CUSTOMER)
        assert c.customer_type == CustomerType.BUSINESS
        assert c.email is None
        assert c.notes is None
        assert c.last_visit is None
        assert c.total_orders == 2
        assert c.created_at == datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)
        (v,) = c.vehicles
        assert v.plate_number == "T 456 DEF"
        assert v.vehicle_type == "van"

    def test_dump_uses_camel_case(self, customer):
        d = customer_to_dict(customer)
        assert {"customerType", "createdAt", "totalOrders", "lastVisit"} <= d.keys()
        assert d["customerType"] == "personal"
        assert customer_from_dict(d) == customer

    def test_missing_required_field(self):
        broken = dict(BROWSER_CUSTOMER)
        del broken["phone"]
        with pytest.raises(StorageError, match="Malformed customer"):
            customer_from_dict(broken)

    def test_bad_customer_type(self):
        with pytest.raises(StorageError):
            customer_from_dict({**BROWSER_CUSTOMER, "customerType": "alien"})


class TestOrderRecords:

    def test_loads_browser_record(self):
        o = order_from_dict(BROWSER_ORDER)
        assert o.status == OrderStatus.IN_PROGRESS
        assert o.priority == Priority.HIGH
        assert o.description is None
        assert o.departure_time is None
        assert isinstance(o.service_details, CarServiceDetails)
        assert o.service_details.service_types == ("brake-check",)
        assert [h.status for h in o.status_history] == [OrderStatus.PENDING, OrderStatus.IN_PROGRESS]
        assert o.status_history[1].previous_status == OrderStatus.PENDING

    def test_missing_history_gets_creation_entry(self):
        o = order_from_dict({**BROWSER_ORDER, "status": "pending", "statusHistory": []})
        (entry,) = o.status_history
        assert entry.status == OrderStatus.PENDING
        assert entry.notes == "Order created"
        assert entry.timestamp == o.created_at

    def test_tire_items_list(self):
        o = order_from_dict(
            {
                **BROWSER_ORDER,
                "serviceType": "tire-sales",
                "serviceDetails": {"items": ["195/65R15"], "brand": "Dunlop", "quantity": 2},
            }
        )
        assert o.service_details == TireSalesDetails(item_name="195/65R15", brand="Dunlop", quantity=2)

    def test_dump_keeps_order_type_and_items(self, order):
        d = order_to_dict(order)
        assert d["orderType"] == "sales"
        assert d["serviceDetails"]["items"] == ["205/55R16"]
        assert d["statusHistory"][0]["status"] == "pending"
        assert order_from_dict(d) == order

    def test_bad_timestamp(self):
        with pytest.raises(StorageError, match="Malformed order"):
            order_from_dict({**BROWSER_ORDER, "createdAt": "yesterday"})

    def test_bad_quantity(self):
        with pytest.raises(StorageError):
            order_from_dict(
                {**BROWSER_ORDER, "serviceType": "tire-sales", "serviceDetails": {"item_name": "x", "brand": "y", "quantity": "lots"}}
            )


class TestNaiveTimestamps:

    def test_naive_values_become_aware(self):
        o = order_from_dict({**BROWSER_ORDER, "arrivalTime": "2026-10-19T08:30", "createdAt": "2026-10-19T08:30"})
        assert o.arrival_time.tzinfo is not None
        assert o.created_at.tzinfo is not None

    def test_zulu_suffix(self):
        c = customer_from_dict({**BROWSER_CUSTOMER, "createdAt": "2026-10-01T08:00:00.000Z"})
        assert c.created_at == datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)
