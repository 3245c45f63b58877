from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .domain import Customer, Order


class TrackingError(Exception):
    """Base class for every failure a tracking command can report."""


class ValidationError(TrackingError):
    pass


class InvalidTransitionError(ValidationError):
    pass


class DuplicatePhoneError(TrackingError):
    def __init__(self, phone: str) -> None:
        super().__init__("Customer with this phone number already exists")
        self.phone = phone


class NotFoundError(TrackingError):
    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} not found")
        self.kind = kind
        self.record_id = record_id


class StorageError(TrackingError):
    pass


@dataclass(frozen=True)
class CommandResult:
    """Uniform outcome of a command: success with the entity, or a message."""

    success: bool
    customer: Optional["Customer"] = None
    order: Optional["Order"] = None
    error: Optional[str] = None
    message: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, message: str, *, customer: "Customer | None" = None, order: "Order | None" = None) -> "CommandResult":
        return cls(success=True, customer=customer, order=order, message=message)

    @classmethod
    def fail(cls, error: TrackingError) -> "CommandResult":
        return cls(success=False, error=str(error), error_type=type(error).__name__)
