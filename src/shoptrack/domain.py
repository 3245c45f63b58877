from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from .errors import ValidationError


class CustomerType(str, Enum):
    PERSONAL = "personal"
    BUSINESS = "business"
    GOVERNMENT = "government"
    NGO = "ngo"
    BODA_BODA = "boda-boda"

    @property
    def label(self) -> str:
        return {
            CustomerType.PERSONAL: "Personal",
            CustomerType.BUSINESS: "Business",
            CustomerType.GOVERNMENT: "Government",
            CustomerType.NGO: "NGO",
            CustomerType.BODA_BODA: "Boda Boda",
        }[self]

    @property
    def is_organization(self) -> bool:
        return self in (CustomerType.BUSINESS, CustomerType.GOVERNMENT, CustomerType.NGO)


class OrderType(str, Enum):
    SALES = "sales"
    SERVICE = "service"


class ServiceType(str, Enum):
    TIRE_SALES = "tire-sales"
    CAR_SERVICE = "car-service"
    GENERAL_INQUIRY = "general-inquiry"

    @property
    def label(self) -> str:
        return {
            ServiceType.TIRE_SALES: "Tire Sales",
            ServiceType.CAR_SERVICE: "Car Service",
            ServiceType.GENERAL_INQUIRY: "General Inquiry",
        }[self]

    @property
    def order_type(self) -> OrderType:
        """Tire sales are sales orders, everything else is service work."""
        return OrderType.SALES if self == ServiceType.TIRE_SALES else OrderType.SERVICE

    @property
    def fields(self) -> tuple[str, ...]:
        return {
            ServiceType.TIRE_SALES: ("item_name", "brand", "quantity", "tire_type"),
            ServiceType.CAR_SERVICE: (
                "service_types",
                "vehicle_info",
                "problem_description",
                "estimated_duration",
            ),
            ServiceType.GENERAL_INQUIRY: ("inquiry_type", "inquiry_details"),
        }[self]


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    SERVICE_COMPLETE = "service-complete"
    READY_FOR_DEPARTURE = "ready-for-departure"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return {
            OrderStatus.PENDING: "Pending",
            OrderStatus.IN_PROGRESS: "In Progress",
            OrderStatus.SERVICE_COMPLETE: "Service Complete",
            OrderStatus.READY_FOR_DEPARTURE: "Ready for Departure",
            OrderStatus.COMPLETED: "Completed",
            OrderStatus.CANCELLED: "Cancelled",
        }[self]

    @property
    def color(self) -> str:
        return {
            OrderStatus.PENDING: "#ffc107",
            OrderStatus.IN_PROGRESS: "#17a2b8",
            OrderStatus.SERVICE_COMPLETE: "#fd7e14",
            OrderStatus.READY_FOR_DEPARTURE: "#20c997",
            OrderStatus.COMPLETED: "#28a745",
            OrderStatus.CANCELLED: "#dc3545",
        }[self]

    @property
    def icon(self) -> str:
        """Feather icon name shown next to the status badge."""
        return {
            OrderStatus.PENDING: "clock",
            OrderStatus.IN_PROGRESS: "play-circle",
            OrderStatus.SERVICE_COMPLETE: "check-circle",
            OrderStatus.READY_FOR_DEPARTURE: "arrow-right-circle",
            OrderStatus.COMPLETED: "check-circle",
            OrderStatus.CANCELLED: "x-circle",
        }[self]

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})
ACTIVE_STATUSES = frozenset(s for s in OrderStatus if s not in TERMINAL_STATUSES)

# cancelled sits outside the flow
STATUS_FLOW: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.IN_PROGRESS,
    OrderStatus.SERVICE_COMPLETE,
    OrderStatus.READY_FOR_DEPARTURE,
    OrderStatus.COMPLETED,
)


def next_status(status: OrderStatus) -> Optional[OrderStatus]:
    if status not in STATUS_FLOW:
        return None
    i = STATUS_FLOW.index(status)
    return STATUS_FLOW[i + 1] if i + 1 < len(STATUS_FLOW) else None


def parse_enum(enum_cls, value, what: str):
    """Coerce a raw value into ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"Invalid {what}: {value!r} (expected one of {allowed})") from None


# --- service details: one variant per catalog entry ---------------------------


@dataclass(frozen=True)
class TireSalesDetails:
    item_name: str
    brand: str
    quantity: int = 1
    tire_type: Optional[str] = None
    service_type: ServiceType = field(default=ServiceType.TIRE_SALES, init=False)

    def validate(self) -> None:
        if not self.item_name.strip():
            raise ValidationError("Tire item name is required.")
        if not self.brand.strip():
            raise ValidationError("Tire brand is required.")
        if self.quantity < 1:
            raise ValidationError("Tire quantity must be at least 1.")


@dataclass(frozen=True)
class VehicleInfo:
    plate_number: str = ""
    make: str = ""
    model: str = ""


@dataclass(frozen=True)
class CarServiceDetails:
    service_types: tuple[str, ...]
    problem_description: str
    vehicle_info: VehicleInfo = field(default_factory=VehicleInfo)
    estimated_duration: Optional[str] = None
    service_type: ServiceType = field(default=ServiceType.CAR_SERVICE, init=False)

    def validate(self) -> None:
        if not [s for s in self.service_types if s.strip()]:
            raise ValidationError("Please select at least one service type for car service.")
        if not self.problem_description.strip():
            raise ValidationError("Problem description is required.")


@dataclass(frozen=True)
class GeneralInquiryDetails:
    inquiry_details: str
    inquiry_type: Optional[str] = None
    service_type: ServiceType = field(default=ServiceType.GENERAL_INQUIRY, init=False)

    def validate(self) -> None:
        if not self.inquiry_details.strip():
            raise ValidationError("Inquiry details are required.")


ServiceDetails = Union[TireSalesDetails, CarServiceDetails, GeneralInquiryDetails]


def details_from_dict(service_type: ServiceType, data: dict | None) -> ServiceDetails:
    """Build the details variant for ``service_type`` from a loose dict."""
    data = data or {}
    if not isinstance(data, dict):
        raise ValidationError(f"Service details must be an object, not {type(data).__name__}.")
    if service_type == ServiceType.TIRE_SALES:
        item_name = data.get("item_name")
        items = data.get("items")
        if item_name is None and items:
            if not isinstance(items, (list, tuple)):
                raise ValidationError("Tire items must be a list.")
            item_name = items[0]
        try:
            quantity = int(data.get("quantity") or 1)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid tire quantity: {data.get('quantity')!r}") from None
        return TireSalesDetails(
            item_name=str(item_name or ""),
            brand=str(data.get("brand") or ""),
            quantity=quantity,
            tire_type=data.get("tire_type") or None,
        )
    if service_type == ServiceType.CAR_SERVICE:
        raw_types = data.get("service_types") or ()
        if isinstance(raw_types, str):
            raw_types = [raw_types]
        if not isinstance(raw_types, (list, tuple)):
            raise ValidationError("Car service types must be a list.")
        vi = data.get("vehicle_info") or {}
        if not isinstance(vi, dict):
            raise ValidationError("Vehicle info must be an object with plate_number, make and model.")
        return CarServiceDetails(
            service_types=tuple(str(s) for s in raw_types),
            problem_description=str(data.get("problem_description") or ""),
            vehicle_info=VehicleInfo(
                plate_number=str(vi.get("plate_number") or ""),
                make=str(vi.get("make") or ""),
                model=str(vi.get("model") or ""),
            ),
            estimated_duration=data.get("estimated_duration") or None,
        )
    return GeneralInquiryDetails(
        inquiry_details=str(data.get("inquiry_details") or data.get("questions") or ""),
        inquiry_type=data.get("inquiry_type") or None,
    )


# --- entities -----------------------------------------------------------------


@dataclass(frozen=True)
class Vehicle:
    make: str
    model: str
    vehicle_type: str
    added_at: datetime
    plate_number: Optional[str] = None


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    phone: str
    customer_type: CustomerType
    created_at: datetime
    updated_at: datetime
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    organization_name: Optional[str] = None
    vehicles: tuple[Vehicle, ...] = ()
    total_orders: int = 0
    last_visit: Optional[datetime] = None


@dataclass(frozen=True)
class StatusHistoryEntry:
    status: OrderStatus
    timestamp: datetime
    previous_status: Optional[OrderStatus] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Order:
    id: str
    order_number: str
    customer_id: str
    customer_name: str
    service_type: ServiceType
    service_details: ServiceDetails
    status: OrderStatus
    priority: Priority
    arrival_time: datetime
    created_at: datetime
    updated_at: datetime
    status_history: tuple[StatusHistoryEntry, ...]
    description: Optional[str] = None
    estimated_completion: Optional[str] = None
    departure_time: Optional[datetime] = None
    actual_duration: Optional[str] = None

    @property
    def order_type(self) -> OrderType:
        return self.service_type.order_type

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
