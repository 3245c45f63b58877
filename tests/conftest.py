"""Root conftest.py -- shared fixtures for all test modules."""
from datetime import datetime, timedelta, timezone

import pytest

from shoptrack.config import BusinessConfig
from shoptrack.services.tracking_service import (
    CreateCustomerInput,
    CreateOrderInput,
    build_service,
)
from shoptrack.store.memory import MemoryStore

START = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock; tests move time forward explicitly."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def business() -> BusinessConfig:
    return BusinessConfig()


@pytest.fixture
def service(store, business, clock):
    return build_service(store, business, clock)


@pytest.fixture
def make_customer(service):
    counter = iter(range(1, 1000))

    def _make(name="Jane Doe", phone=None, **kwargs):
        phone = phone or f"+255700000{next(counter):03d}"
        result = service.create_customer(CreateCustomerInput(name=name, phone=phone, **kwargs))
        assert result.success, result.error
        return result.customer

    return _make


@pytest.fixture
def customer(make_customer):
    return make_customer()


TIRE_DETAILS = {"item_name": "205/55R16", "brand": "Michelin", "quantity": 4, "tire_type": "all-season"}
CAR_DETAILS = {
    "service_types": ["oil-change", "brake-check"],
    "vehicle_info": {"plate_number": "T123ABC", "make": "Toyota", "model": "Corolla"},
    "problem_description": "Squeaking brakes",
}


@pytest.fixture
def make_order(service, customer):
    def _make(customer_id=None, service_type="tire-sales", service_details=None, **kwargs):
        if service_details is None:
            service_details = TIRE_DETAILS if service_type == "tire-sales" else CAR_DETAILS
        result = service.create_order(
            CreateOrderInput(
                customer_id=customer_id or customer.id,
                service_type=service_type,
                service_details=service_details,
                **kwargs,
            )
        )
        assert result.success, result.error
        return result.order

    return _make


@pytest.fixture
def order(make_order):
    return make_order()
