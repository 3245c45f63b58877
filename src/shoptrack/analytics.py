"""
Dashboard rollups.

Everything here is a pure function over the full customer/order lists and
is recomputed from scratch on every call.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from .domain import Customer, CustomerType, Order, OrderStatus, ServiceType
from .ids import format_duration


@dataclass(frozen=True)
class DailyStat:
    date: date
    orders: int
    completed: int


@dataclass(frozen=True)
class Notification:
    type: str
    title: str
    message: str
    order_id: str
    timestamp: datetime


@dataclass(frozen=True)
class Analytics:
    total_customers: int
    total_orders: int
    active_orders: int
    completed_today: int
    pending_orders: int
    in_progress_orders: int
    ready_for_departure: int
    average_service_time: str
    status_counts: dict[str, int]
    customer_types: dict[str, int]
    service_type_stats: dict[str, int]
    daily_stats: list[DailyStat]


def local_day(moment: datetime, now: datetime) -> date:
    """Calendar day of ``moment`` in the timezone of ``now``."""
    if moment.tzinfo is not None and now.tzinfo is not None:
        moment = moment.astimezone(now.tzinfo)
    return moment.date()


def _completed_on(o: Order, day: date, now: datetime) -> bool:
    return o.status == OrderStatus.COMPLETED and o.departure_time is not None and local_day(o.departure_time, now) == day


def status_counts(orders: Iterable[Order]) -> dict[str, int]:
    c = Counter(o.status for o in orders)
    return {s.value: c.get(s, 0) for s in OrderStatus}


def customer_type_stats(customers: Iterable[Customer]) -> dict[str, int]:
    c = Counter(x.customer_type for x in customers)
    return {t.value: c.get(t, 0) for t in CustomerType}


def service_type_stats(orders: Iterable[Order]) -> dict[str, int]:
    c = Counter(o.service_type for o in orders)
    return {t.value: c.get(t, 0) for t in ServiceType}


def daily_stats(orders: list[Order], now: datetime, days: int = 7) -> list[DailyStat]:
    """Arrivals vs completions for the trailing ``days`` calendar days, oldest first."""
    today = now.date()
    out = []
    for i in range(days - 1, -1, -1):
        day = today - timedelta(days=i)
        out.append(
            DailyStat(
                date=day,
                orders=sum(1 for o in orders if local_day(o.arrival_time, now) == day),
                completed=sum(1 for o in orders if _completed_on(o, day, now)),
            )
        )
    return out


def average_service_time(orders: Iterable[Order]) -> str:
    minutes = [
        (o.departure_time - o.arrival_time).total_seconds() / 60
        for o in orders
        if o.status == OrderStatus.COMPLETED and o.actual_duration and o.departure_time is not None
    ]
    if not minutes:
        return "0h 0m"
    return format_duration(timedelta(minutes=sum(minutes) / len(minutes)))


def compute_analytics(customers: list[Customer], orders: list[Order], now: datetime) -> Analytics:
    counts = status_counts(orders)
    today = now.date()
    return Analytics(
        total_customers=len(customers),
        total_orders=len(orders),
        active_orders=sum(1 for o in orders if o.is_active),
        completed_today=sum(1 for o in orders if _completed_on(o, today, now)),
        pending_orders=counts[OrderStatus.PENDING.value],
        in_progress_orders=counts[OrderStatus.IN_PROGRESS.value],
        ready_for_departure=counts[OrderStatus.READY_FOR_DEPARTURE.value],
        average_service_time=average_service_time(orders),
        status_counts=counts,
        customer_types=customer_type_stats(customers),
        service_type_stats=service_type_stats(orders),
        daily_stats=daily_stats(orders, now),
    )


def notifications(orders: list[Order], now: datetime, long_wait_hours: float = 3.0) -> list[Notification]:
    out = []
    limit = timedelta(hours=long_wait_hours)
    for o in orders:
        if o.is_active and now - o.arrival_time > limit:
            out.append(
                Notification(
                    type="warning",
                    title="Long Waiting Customer",
                    message=f"{o.customer_name} has been waiting for more than {long_wait_hours:g} hours",
                    order_id=o.id,
                    timestamp=now,
                )
            )
    for o in orders:
        if o.status == OrderStatus.READY_FOR_DEPARTURE:
            out.append(
                Notification(
                    type="info",
                    title="Ready for Departure",
                    message=f"{o.customer_name} is ready to leave",
                    order_id=o.id,
                    timestamp=now,
                )
            )
    return out


def recent_arrivals(orders: list[Order], now: datetime, limit: Optional[int] = 5) -> list[Order]:
    today = now.date()
    todays = [o for o in orders if local_day(o.arrival_time, now) == today]
    todays.sort(key=lambda o: o.arrival_time, reverse=True)
    return todays[:limit]


def pending_departures(orders: list[Order], limit: Optional[int] = 5) -> list[Order]:
    waiting = [o for o in orders if o.status in (OrderStatus.SERVICE_COMPLETE, OrderStatus.READY_FOR_DEPARTURE)]
    waiting.sort(key=lambda o: o.arrival_time)
    return waiting[:limit]
