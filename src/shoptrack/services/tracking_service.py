from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from .. import analytics
from ..config import BusinessConfig
from ..domain import (
    STATUS_FLOW,
    CarServiceDetails,
    Customer,
    CustomerType,
    GeneralInquiryDetails,
    Order,
    OrderStatus,
    Priority,
    ServiceDetails,
    ServiceType,
    StatusHistoryEntry,
    TireSalesDetails,
    Vehicle,
    details_from_dict,
    next_status,
    parse_enum,
)
from ..errors import (
    CommandResult,
    DuplicatePhoneError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    TrackingError,
    ValidationError,
)
from ..ids import format_duration, generate_id
from ..queries import CustomerFilter, OrderFilter, filter_customers, filter_orders, sort_by_arrival
from ..repositories.customer_repo import CustomerRepository
from ..repositories.order_repo import OrderRepository

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    return datetime.now().astimezone()


def normalize_phone(phone: str) -> str:
    """Strip separators and apply the +255 country prefix to local numbers."""
    value = re.sub(r"[\s\-()]", "", phone or "")
    if value.startswith("+"):
        return value
    if value.startswith("255"):
        return "+" + value
    if value.startswith("0"):
        return "+255" + value[1:]
    return value


@dataclass
class VehicleInput:
    make: str
    model: str
    vehicle_type: str
    plate_number: Optional[str] = None


@dataclass
class CreateCustomerInput:
    name: str
    phone: str
    customer_type: str = CustomerType.PERSONAL.value
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    organization_name: Optional[str] = None
    vehicles: list[VehicleInput] = field(default_factory=list)


@dataclass
class CreateOrderInput:
    customer_id: str
    service_type: str
    service_details: dict | ServiceDetails | None = None
    priority: str = Priority.NORMAL.value
    description: Optional[str] = None
    estimated_completion: Optional[str] = None
    arrival_time: Optional[datetime] = None
    customer_name: Optional[str] = None


# patchable customer fields, camelCase aliases accepted from the JSON front end
_CUSTOMER_PATCH_FIELDS = {
    "name": "name",
    "phone": "phone",
    "email": "email",
    "address": "address",
    "notes": "notes",
    "customer_type": "customer_type",
    "customerType": "customer_type",
    "organization_name": "organization_name",
    "organizationName": "organization_name",
}

SAMPLE_CUSTOMERS = (
    CreateCustomerInput(
        name="John Doe",
        phone="+256701234567",
        email="john.doe@email.com",
        customer_type="personal",
        address="Kampala, Uganda",
    ),
    CreateCustomerInput(
        name="Safari Auto Services",
        phone="+256702345678",
        email="info@safariauto.com",
        customer_type="business",
        address="Industrial Area, Kampala",
    ),
    CreateCustomerInput(
        name="Ministry of Transport",
        phone="+256703456789",
        email="transport@gov.ug",
        customer_type="government",
        address="Government Buildings, Kampala",
    ),
)


def _text(value, what: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{what} must be text, not {type(value).__name__}.")
    return value.strip()


def _clean(value, what: str = "Value") -> Optional[str]:
    return _text(value, what) or None


class TrackingService:
    """
    Command/query facade used by every front end.

    Commands return a CommandResult and never raise TrackingError past this
    class; queries return None or an empty list for missing records.
    """

    def __init__(
        self,
        *,
        customer_repo: CustomerRepository,
        order_repo: OrderRepository,
        business: BusinessConfig | None = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.customer_repo = customer_repo
        self.order_repo = order_repo
        self.business = business or BusinessConfig()
        self.clock = clock

    # --- validation helpers -------------------------------------------------

    def _validate_phone(self, phone: str) -> str:
        phone = normalize_phone(_text(phone, "Phone number"))
        if not phone:
            raise ValidationError("Phone number is required.")
        pattern = self.business.phone_pattern
        if pattern and not re.fullmatch(pattern, phone):
            raise ValidationError(f"Please enter a valid phone number (got {phone!r}).")
        return phone

    @staticmethod
    def _validate_email(email: Optional[str]) -> Optional[str]:
        email = _clean(email, "Email")
        if email is not None and not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", email):
            raise ValidationError(f"Invalid email address: {email!r}")
        return email

    def _build_vehicle(self, v: VehicleInput, now: datetime) -> Vehicle:
        make = _text(v.make, "Vehicle make")
        model = _text(v.model, "Vehicle model")
        if not make or not model:
            raise ValidationError("Vehicle make and model are required.")
        return Vehicle(
            plate_number=_clean(v.plate_number, "Plate number"),
            make=make,
            model=model,
            vehicle_type=_text(v.vehicle_type, "Vehicle type"),
            added_at=now,
        )

    def _check_transition(self, current: OrderStatus, new: OrderStatus) -> None:
        if not self.business.strict_transitions:
            return
        if current.is_terminal:
            raise InvalidTransitionError(f"Order is already {current.label.lower()}; no further status changes allowed.")
        if new == current:
            raise InvalidTransitionError(f"Order is already {current.label.lower()}.")
        if new == OrderStatus.CANCELLED:
            return
        if STATUS_FLOW.index(new) < STATUS_FLOW.index(current):
            raise InvalidTransitionError(f"Cannot move an order back from {current.label} to {new.label}.")

    # --- customer commands --------------------------------------------------

    def create_customer(self, data: CreateCustomerInput) -> CommandResult:
        try:
            name = _text(data.name, "Customer name")
            if not name:
                raise ValidationError("Customer name is required.")
            now = self.clock()
            customer = Customer(
                id=generate_id("CUST"),
                name=name,
                phone=self._validate_phone(data.phone),
                email=self._validate_email(data.email),
                address=_clean(data.address, "Address"),
                customer_type=parse_enum(CustomerType, data.customer_type, "customer type"),
                notes=_clean(data.notes, "Notes"),
                organization_name=_clean(data.organization_name, "Organization name"),
                vehicles=tuple(self._build_vehicle(v, now) for v in data.vehicles),
                created_at=now,
                updated_at=now,
            )
            self.customer_repo.create(customer)
        except StorageError as e:
            logger.exception("Storage failure while creating customer")
            return CommandResult.fail(e)
        except TrackingError as e:
            logger.warning("Customer not created: %s", e)
            return CommandResult.fail(e)

        logger.info("Customer created: %s (%s)", customer.id, customer.name)
        return CommandResult.ok("Customer created successfully", customer=customer)

    def update_customer(self, customer_id: str, patch: dict) -> CommandResult:
        try:
            customer = self.customer_repo.get(customer_id)
            if customer is None:
                raise NotFoundError("Customer", customer_id)

            if not isinstance(patch, dict):
                raise ValidationError("Customer changes must be an object of field names to values.")
            unknown = sorted(k for k in patch if k not in _CUSTOMER_PATCH_FIELDS)
            if unknown:
                raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

            changes = {_CUSTOMER_PATCH_FIELDS[k]: v for k, v in patch.items()}
            if "name" in changes:
                changes["name"] = _text(changes["name"], "Customer name")
                if not changes["name"]:
                    raise ValidationError("Customer name is required.")
            if "phone" in changes:
                changes["phone"] = self._validate_phone(changes["phone"])
                other = self.customer_repo.get_by_phone(changes["phone"])
                if other is not None and other.id != customer.id:
                    raise DuplicatePhoneError(changes["phone"])
            if "email" in changes:
                changes["email"] = self._validate_email(changes["email"])
            if "customer_type" in changes:
                changes["customer_type"] = parse_enum(CustomerType, changes["customer_type"], "customer type")
            for key in ("address", "notes", "organization_name"):
                if key in changes:
                    changes[key] = _clean(changes[key], key.replace("_", " ").capitalize())

            updated = dataclasses.replace(customer, updated_at=self.clock(), **changes)
            self.customer_repo.save(updated)
        except StorageError as e:
            logger.exception("Storage failure while updating customer %s", customer_id)
            return CommandResult.fail(e)
        except TrackingError as e:
            logger.warning("Customer %s not updated: %s", customer_id, e)
            return CommandResult.fail(e)

        logger.info("Customer updated: %s", customer_id)
        return CommandResult.ok("Customer updated successfully", customer=updated)

    def add_vehicle(self, customer_id: str, vehicle: VehicleInput) -> CommandResult:
        try:
            customer = self.customer_repo.get(customer_id)
            if customer is None:
                raise NotFoundError("Customer", customer_id)
            now = self.clock()
            updated = dataclasses.replace(
                customer,
                vehicles=customer.vehicles + (self._build_vehicle(vehicle, now),),
                updated_at=now,
            )
            self.customer_repo.save(updated)
        except StorageError as e:
            logger.exception("Storage failure while adding vehicle to %s", customer_id)
            return CommandResult.fail(e)
        except TrackingError as e:
            logger.warning("Vehicle not added to %s: %s", customer_id, e)
            return CommandResult.fail(e)

        logger.info("Vehicle added to customer %s", customer_id)
        return CommandResult.ok("Vehicle added successfully", customer=updated)

    def _touch_customer(self, customer_id: str, *, recount: bool) -> None:
        customer = self.customer_repo.get(customer_id)
        if customer is None:
            return
        now = self.clock()
        changes = {"last_visit": now, "updated_at": now}
        if recount:
            changes["total_orders"] = len(self.order_repo.list_by_customer(customer_id))
        self.customer_repo.save(dataclasses.replace(customer, **changes))

    # --- order commands -----------------------------------------------------

    def generate_order_number(self) -> str:
        return self.order_repo.reserve_order_number(self.clock())

    def create_order(self, data: CreateOrderInput) -> CommandResult:
        try:
            service_type = parse_enum(ServiceType, data.service_type, "service type")
            priority = parse_enum(Priority, data.priority or Priority.NORMAL.value, "priority")

            details = data.service_details
            if not isinstance(details, (TireSalesDetails, CarServiceDetails, GeneralInquiryDetails)):
                details = details_from_dict(service_type, details)
            if details.service_type != service_type:
                raise ValidationError(
                    f"Service details are for {details.service_type.value}, not {service_type.value}."
                )
            details.validate()

            customer = self.customer_repo.get(_text(data.customer_id, "Customer id"))
            if customer is None:
                raise NotFoundError("Customer", data.customer_id)

            now = self.clock()
            arrival_time = data.arrival_time or now
            if not isinstance(arrival_time, datetime):
                raise ValidationError(f"Arrival time must be a datetime, not {type(arrival_time).__name__}.")
            if arrival_time.tzinfo is None:
                arrival_time = arrival_time.replace(tzinfo=now.tzinfo)
            order = Order(
                id=generate_id("ORD"),
                order_number=self.order_repo.reserve_order_number(now),
                customer_id=customer.id,
                customer_name=_clean(data.customer_name, "Customer name") or customer.name,
                service_type=service_type,
                service_details=details,
                status=OrderStatus.PENDING,
                priority=priority,
                description=_clean(data.description, "Description"),
                estimated_completion=_clean(data.estimated_completion, "Estimated completion"),
                arrival_time=arrival_time,
                created_at=now,
                updated_at=now,
                status_history=(
                    StatusHistoryEntry(status=OrderStatus.PENDING, timestamp=now, notes="Order created"),
                ),
            )
            self.order_repo.save(order)
            self._touch_customer(customer.id, recount=True)
        except StorageError as e:
            logger.exception("Storage failure while creating order")
            return CommandResult.fail(e)
        except TrackingError as e:
            logger.warning("Order not created: %s", e)
            return CommandResult.fail(e)

        logger.info("Order created: %s (%s) for %s", order.order_number, order.id, order.customer_id)
        return CommandResult.ok("Order created successfully", order=order)

    def update_order_status(self, order_id: str, new_status: str | OrderStatus, notes: Optional[str] = None) -> CommandResult:
        try:
            status = parse_enum(OrderStatus, new_status, "status")
            order = self.order_repo.get(order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            self._check_transition(order.status, status)

            now = self.clock()
            changes = {
                "status": status,
                "updated_at": now,
                "status_history": order.status_history
                + (
                    StatusHistoryEntry(
                        status=status,
                        previous_status=order.status,
                        timestamp=now,
                        notes=_clean(notes, "Notes"),
                    ),
                ),
            }
            if status == OrderStatus.COMPLETED and order.departure_time is None:
                departure = max(now, order.arrival_time)
                changes["departure_time"] = departure
                changes["actual_duration"] = format_duration(departure - order.arrival_time)

            updated = dataclasses.replace(order, **changes)
            self.order_repo.save(updated)
            if status == OrderStatus.COMPLETED:
                self._touch_customer(order.customer_id, recount=False)
        except StorageError as e:
            logger.exception("Storage failure while updating order %s", order_id)
            return CommandResult.fail(e)
        except TrackingError as e:
            logger.warning("Order %s status not changed: %s", order_id, e)
            return CommandResult.fail(e)

        logger.info("Order %s: %s -> %s", updated.order_number, order.status.value, status.value)
        return CommandResult.ok("Order status updated successfully", order=updated)

    def advance_order(self, order_id: str, notes: Optional[str] = None) -> CommandResult:
        """Move an order to the next step of the lifecycle."""
        try:
            order = self.order_repo.get(order_id)
        except StorageError as e:
            logger.exception("Storage failure while loading order %s", order_id)
            return CommandResult.fail(e)
        if order is None:
            return CommandResult.fail(NotFoundError("Order", order_id))
        nxt = next_status(order.status)
        if nxt is None:
            return CommandResult.fail(InvalidTransitionError(f"Order is {order.status.label.lower()}; there is no next step."))
        return self.update_order_status(order_id, nxt, notes)

    # --- queries ------------------------------------------------------------

    def get_all_customers(self) -> list[Customer]:
        return self.customer_repo.list()

    def get_customer_by_id(self, customer_id: str) -> Optional[Customer]:
        return self.customer_repo.get(customer_id)

    def get_customer_by_phone(self, phone: str) -> Optional[Customer]:
        if not isinstance(phone, str):
            return None
        return self.customer_repo.get_by_phone(normalize_phone(phone))

    def search_customers(self, query: str) -> list[Customer]:
        return self.customer_repo.search(query)

    def get_all_orders(self) -> list[Order]:
        return self.order_repo.list()

    def get_order_by_id(self, order_id: str) -> Optional[Order]:
        return self.order_repo.get(order_id)

    def get_orders_by_customer(self, customer_id: str) -> list[Order]:
        return self.order_repo.list_by_customer(customer_id)

    def get_orders_by_status(self, status: str | OrderStatus) -> list[Order]:
        try:
            status = parse_enum(OrderStatus, status, "status")
        except ValidationError:
            return []
        return self.order_repo.list_by_status(status)

    def search_orders(self, query: str) -> list[Order]:
        return self.order_repo.search(query)

    def list_customers(self, flt: CustomerFilter | None = None) -> list[Customer]:
        flt = flt or CustomerFilter()
        orders = self.get_all_orders() if flt.quick == "active" else ()
        return filter_customers(self.get_all_customers(), flt, orders=orders, now=self.clock())

    def list_orders(self, flt: OrderFilter | None = None, *, newest_first: bool = False) -> list[Order]:
        orders = filter_orders(self.get_all_orders(), flt or OrderFilter(), now=self.clock())
        return sort_by_arrival(orders) if newest_first else orders

    def get_recent_arrivals(self, limit: int = 5) -> list[Order]:
        return analytics.recent_arrivals(self.get_all_orders(), self.clock(), limit)

    def get_pending_departures(self, limit: int = 5) -> list[Order]:
        return analytics.pending_departures(self.get_all_orders(), limit)

    def get_analytics(self) -> analytics.Analytics:
        return analytics.compute_analytics(self.get_all_customers(), self.get_all_orders(), self.clock())

    def get_notifications(self) -> list[analytics.Notification]:
        return analytics.notifications(
            self.get_all_orders(),
            self.clock(),
            long_wait_hours=self.business.long_wait_hours,
        )

    # --- setup --------------------------------------------------------------

    def seed_sample_data(self) -> int:
        """Insert the sample customers when the store is empty; returns how many were added."""
        if self.customer_repo.list() or self.order_repo.list():
            return 0
        created = 0
        for sample in SAMPLE_CUSTOMERS:
            # sample numbers are Ugandan, so skip the local phone pattern
            if self.customer_repo.get_by_phone(sample.phone) is not None:
                continue
            now = self.clock()
            self.customer_repo.create(
                Customer(
                    id=generate_id("CUST"),
                    name=sample.name,
                    phone=sample.phone,
                    email=sample.email,
                    address=sample.address,
                    customer_type=CustomerType(sample.customer_type),
                    created_at=now,
                    updated_at=now,
                )
            )
            created += 1
        logger.info("Sample data initialized: %d customers", created)
        return created


def build_service(store, business: BusinessConfig | None = None, clock: Callable[[], datetime] = local_now) -> TrackingService:
    return TrackingService(
        customer_repo=CustomerRepository(store),
        order_repo=OrderRepository(store),
        business=business,
        clock=clock,
    )
