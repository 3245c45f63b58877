from __future__ import annotations

import csv
import io
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .domain import Customer, Order

CUSTOMER_HEADERS = (
    "Customer ID",
    "Name",
    "Phone",
    "Email",
    "Customer Type",
    "Registration Date",
    "Total Orders",
    "Last Visit",
)

ORDER_HEADERS = (
    "Order Number",
    "Customer",
    "Service Type",
    "Status",
    "Priority",
    "Arrival Time",
    "Departure Time",
    "Duration",
    "Description",
)


class ExportError(Exception):
    pass


def _date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _datetime(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def _render(headers: Iterable[str], rows: Iterable[Iterable]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buf.getvalue()


def customers_csv(customers: Iterable[Customer]) -> str:
    rows = (
        (
            c.id,
            c.name,
            c.phone,
            c.email or "",
            c.customer_type.label,
            _date(c.created_at),
            c.total_orders,
            _date(c.last_visit) if c.last_visit else "Never",
        )
        for c in customers
    )
    return _render(CUSTOMER_HEADERS, rows)


def orders_csv(orders: Iterable[Order], customers: Iterable[Customer] = ()) -> str:
    names = {c.id: c.name for c in customers}
    rows = (
        (
            o.order_number,
            names.get(o.customer_id, o.customer_name or "Unknown"),
            o.service_type.label,
            o.status.label,
            o.priority.value.capitalize(),
            _datetime(o.arrival_time),
            _datetime(o.departure_time),
            o.actual_duration or "",
            o.description or "",
        )
        for o in orders
    )
    return _render(ORDER_HEADERS, rows)


def write_csv(path: str | Path, content: str) -> Path:
    p = Path(path)
    try:
        p.write_text(content, encoding="utf-8", newline="")
    except OSError as e:
        raise ExportError(f"Cannot write {p}: {e}") from e
    return p
