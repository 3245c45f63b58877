from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .analytics import local_day
from .domain import (
    Customer,
    CustomerType,
    Order,
    OrderStatus,
    Priority,
    ServiceType,
    parse_enum,
)
from .errors import ValidationError
from .ids import format_waiting
from .repositories.customer_repo import matches_customer
from .repositories.order_repo import matches_order

CUSTOMER_QUICK_FILTERS = ("all", "new_week", "returning", "no_orders", "active")
ORDER_QUICK_FILTERS = ("all", "today", "pending", "in_progress", "completed", "high_priority")

# order-list status groups; "completed" covers orders that are done with service
_STATUS_GROUPS = {
    "pending": {OrderStatus.PENDING},
    "in_progress": {OrderStatus.IN_PROGRESS},
    "completed": {OrderStatus.COMPLETED, OrderStatus.READY_FOR_DEPARTURE},
}


@dataclass(frozen=True)
class CustomerFilter:
    quick: str = "all"
    query: str = ""
    customer_type: Optional[str] = None


@dataclass(frozen=True)
class OrderFilter:
    quick: str = "all"
    query: str = ""
    status: Optional[str] = None
    service_type: Optional[str] = None


def _check_quick(value: str, allowed: tuple[str, ...]) -> str:
    value = (value or "all").strip().lower()
    if value not in allowed:
        raise ValidationError(f"Unknown filter {value!r} (expected one of {', '.join(allowed)})")
    return value


def filter_customers(
    customers: Iterable[Customer],
    flt: CustomerFilter,
    *,
    orders: Iterable[Order] = (),
    now: datetime,
) -> list[Customer]:
    quick = _check_quick(flt.quick, CUSTOMER_QUICK_FILTERS)
    out = list(customers)

    if quick == "new_week":
        since = now - timedelta(days=7)
        out = [c for c in out if c.created_at >= since]
    elif quick == "returning":
        out = [c for c in out if c.total_orders > 1]
    elif quick == "no_orders":
        out = [c for c in out if c.total_orders == 0]
    elif quick == "active":
        with_open = {o.customer_id for o in orders if o.is_active}
        out = [c for c in out if c.id in with_open]

    term = (flt.query or "").strip().lower()
    if term:
        out = [c for c in out if matches_customer(c, term)]

    if flt.customer_type:
        ctype = parse_enum(CustomerType, flt.customer_type, "customer type")
        out = [c for c in out if c.customer_type == ctype]
    return out


def filter_orders(orders: Iterable[Order], flt: OrderFilter, *, now: datetime) -> list[Order]:
    quick = _check_quick(flt.quick, ORDER_QUICK_FILTERS)
    out = list(orders)

    if quick == "today":
        out = [o for o in out if local_day(o.arrival_time, now) == now.date()]
    elif quick == "high_priority":
        out = [o for o in out if o.priority in (Priority.HIGH, Priority.URGENT)]
    elif quick in _STATUS_GROUPS:
        out = [o for o in out if o.status in _STATUS_GROUPS[quick]]

    term = (flt.query or "").strip().lower()
    if term:
        out = [o for o in out if matches_order(o, term)]

    if flt.status:
        status = parse_enum(OrderStatus, flt.status, "status")
        out = [o for o in out if o.status == status]

    if flt.service_type:
        stype = parse_enum(ServiceType, flt.service_type, "service type")
        out = [o for o in out if o.service_type == stype]
    return out


def sort_by_arrival(orders: Iterable[Order], newest_first: bool = True) -> list[Order]:
    return sorted(orders, key=lambda o: o.arrival_time, reverse=newest_first)


def waiting_minutes(order: Order, now: datetime) -> Optional[int]:
    if not order.is_active:
        return None
    return max(int((now - order.arrival_time).total_seconds() // 60), 0)


def waiting_time(order: Order, now: datetime) -> Optional[str]:
    """Elapsed time since arrival for open orders, e.g. ``"1h 5m"`` or ``"40m"``."""
    if not order.is_active:
        return None
    return format_waiting(now - order.arrival_time)


def waiting_level(minutes: int, warning: int = 30, danger: int = 120) -> str:
    if minutes < warning:
        return "normal"
    if minutes < danger:
        return "warning"
    return "danger"
