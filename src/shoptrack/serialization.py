"""
JSON codec for stored records.

Records keep the camelCase layout of the browser store so exported
``customers``/``orders`` blobs load unchanged.
"""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Optional

from .domain import (
    CarServiceDetails,
    Customer,
    CustomerType,
    Order,
    OrderStatus,
    Priority,
    ServiceDetails,
    ServiceType,
    StatusHistoryEntry,
    TireSalesDetails,
    Vehicle,
    details_from_dict,
)
from .errors import StorageError, ValidationError


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_ts(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value))
    # naive values are read as local wall-clock time
    return value if value.tzinfo is not None else value.astimezone()


def _opt(value: Any) -> Optional[str]:
    return value if value not in (None, "") else None


def vehicle_to_dict(v: Vehicle) -> dict:
    return {
        "plateNumber": v.plate_number,
        "make": v.make,
        "model": v.model,
        "vehicleType": v.vehicle_type,
        "addedAt": _ts(v.added_at),
    }


def vehicle_from_dict(d: dict) -> Vehicle:
    return Vehicle(
        plate_number=_opt(d.get("plateNumber")),
        make=str(d.get("make") or ""),
        model=str(d.get("model") or ""),
        vehicle_type=str(d.get("vehicleType") or ""),
        added_at=_parse_ts(d.get("addedAt")),
    )


def customer_to_dict(c: Customer) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "phone": c.phone,
        "email": c.email,
        "address": c.address,
        "customerType": c.customer_type.value,
        "organizationName": c.organization_name,
        "notes": c.notes,
        "vehicles": [vehicle_to_dict(v) for v in c.vehicles],
        "createdAt": _ts(c.created_at),
        "updatedAt": _ts(c.updated_at),
        "totalOrders": c.total_orders,
        "lastVisit": _ts(c.last_visit),
    }


def customer_from_dict(d: dict) -> Customer:
    try:
        return Customer(
            id=str(d["id"]),
            name=str(d["name"]),
            phone=str(d["phone"]),
            email=_opt(d.get("email")),
            address=_opt(d.get("address")),
            customer_type=CustomerType(d.get("customerType") or CustomerType.PERSONAL.value),
            organization_name=_opt(d.get("organizationName")),
            notes=_opt(d.get("notes")),
            vehicles=tuple(vehicle_from_dict(v) for v in d.get("vehicles") or ()),
            created_at=_parse_ts(d["createdAt"]),
            updated_at=_parse_ts(d.get("updatedAt") or d["createdAt"]),
            total_orders=int(d.get("totalOrders") or 0),
            last_visit=_parse_ts(d.get("lastVisit")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StorageError(f"Malformed customer record {d.get('id')!r}: {e}") from e


def details_to_dict(details: ServiceDetails) -> dict:
    data = asdict(details)
    data["service_type"] = details.service_type.value
    if isinstance(details, TireSalesDetails):
        data["items"] = [details.item_name]
    elif isinstance(details, CarServiceDetails):
        data["service_types"] = list(details.service_types)
    return data


def history_to_dict(h: StatusHistoryEntry) -> dict:
    return {
        "status": h.status.value,
        "previousStatus": h.previous_status.value if h.previous_status else None,
        "timestamp": _ts(h.timestamp),
        "notes": h.notes,
    }


def history_from_dict(d: dict) -> StatusHistoryEntry:
    prev = d.get("previousStatus")
    return StatusHistoryEntry(
        status=OrderStatus(d["status"]),
        previous_status=OrderStatus(prev) if prev else None,
        timestamp=_parse_ts(d["timestamp"]),
        notes=_opt(d.get("notes")),
    )


def order_to_dict(o: Order) -> dict:
    return {
        "id": o.id,
        "orderNumber": o.order_number,
        "customerId": o.customer_id,
        "customerName": o.customer_name,
        "orderType": o.order_type.value,
        "serviceType": o.service_type.value,
        "status": o.status.value,
        "priority": o.priority.value,
        "description": o.description,
        "estimatedCompletion": o.estimated_completion,
        "arrivalTime": _ts(o.arrival_time),
        "departureTime": _ts(o.departure_time),
        "createdAt": _ts(o.created_at),
        "updatedAt": _ts(o.updated_at),
        "serviceDetails": details_to_dict(o.service_details),
        "statusHistory": [history_to_dict(h) for h in o.status_history],
        "actualDuration": o.actual_duration,
    }


def order_from_dict(d: dict) -> Order:
    try:
        service_type = ServiceType(d.get("serviceType") or ServiceType.GENERAL_INQUIRY.value)
        status = OrderStatus(d.get("status") or OrderStatus.PENDING.value)
        created_at = _parse_ts(d["createdAt"])
        history = tuple(history_from_dict(h) for h in d.get("statusHistory") or ())
        if not history:
            history = (StatusHistoryEntry(status=status, timestamp=created_at, notes="Order created"),)
        return Order(
            id=str(d["id"]),
            order_number=str(d["orderNumber"]),
            customer_id=str(d["customerId"]),
            customer_name=str(d.get("customerName") or ""),
            service_type=service_type,
            service_details=details_from_dict(service_type, d.get("serviceDetails")),
            status=status,
            priority=Priority(d.get("priority") or Priority.NORMAL.value),
            description=_opt(d.get("description")),
            estimated_completion=_opt(d.get("estimatedCompletion")),
            arrival_time=_parse_ts(d.get("arrivalTime")) or created_at,
            departure_time=_parse_ts(d.get("departureTime")),
            created_at=created_at,
            updated_at=_parse_ts(d.get("updatedAt")) or created_at,
            status_history=history,
            actual_duration=_opt(d.get("actualDuration")),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise StorageError(f"Malformed order record {d.get('id')!r}: {e}") from e

