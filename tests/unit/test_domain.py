"""Tests for shoptrack.domain -- catalogs, lifecycle and service-detail variants."""
import pytest

from shoptrack.domain import (
    ACTIVE_STATUSES,
    STATUS_FLOW,
    TERMINAL_STATUSES,
    CarServiceDetails,
    CustomerType,
    GeneralInquiryDetails,
    OrderStatus,
    OrderType,
    Priority,
    ServiceType,
    TireSalesDetails,
    details_from_dict,
    next_status,
    parse_enum,
)
from shoptrack.errors import ValidationError


class TestCatalogs:

    def test_customer_types(self):
        assert {t.value for t in CustomerType} == {"personal", "business", "government", "ngo", "boda-boda"}

    def test_statuses(self):
        expected = {"pending", "in-progress", "service-complete", "ready-for-departure", "completed", "cancelled"}
        assert {s.value for s in OrderStatus} == expected

    def test_priorities(self):
        assert [p.value for p in Priority] == ["low", "normal", "high", "urgent"]

    def test_order_type_derived_from_service_type(self):
        assert ServiceType.TIRE_SALES.order_type == OrderType.SALES
        assert ServiceType.CAR_SERVICE.order_type == OrderType.SERVICE
        assert ServiceType.GENERAL_INQUIRY.order_type == OrderType.SERVICE

    def test_organization_types(self):
        assert CustomerType.NGO.is_organization
        assert not CustomerType.BODA_BODA.is_organization


class TestLifecycle:

    def test_terminal_and_active_partition(self):
        assert TERMINAL_STATUSES == {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
        assert ACTIVE_STATUSES | TERMINAL_STATUSES == set(OrderStatus)
        assert not ACTIVE_STATUSES & TERMINAL_STATUSES

    def test_next_status_follows_flow(self):
        for current, nxt in zip(STATUS_FLOW, STATUS_FLOW[1:]):
            assert next_status(current) == nxt

    def test_no_next_after_completed_or_cancelled(self):
        assert next_status(OrderStatus.COMPLETED) is None
        assert next_status(OrderStatus.CANCELLED) is None


class TestParseEnum:

    def test_accepts_value(self):
        assert parse_enum(OrderStatus, "In-Progress", "status") == OrderStatus.IN_PROGRESS

    def test_passes_members_through(self):
        assert parse_enum(Priority, Priority.HIGH, "priority") is Priority.HIGH

    def test_rejects_unknown(self):
        with pytest.raises(ValidationError, match="Invalid status"):
            parse_enum(OrderStatus, "departed", "status")


class TestServiceDetails:

    def test_tire_details_from_dict(self):
        d = details_from_dict(ServiceType.TIRE_SALES, {"items": ["205/55R16"], "brand": "Bridgestone", "quantity": "2"})
        assert d == TireSalesDetails(item_name="205/55R16", brand="Bridgestone", quantity=2)
        assert d.service_type == ServiceType.TIRE_SALES

    def test_tire_quantity_defaults_to_one(self):
        assert details_from_dict(ServiceType.TIRE_SALES, {"item_name": "x", "brand": "y"}).quantity == 1

    def test_tire_bad_quantity(self):
        with pytest.raises(ValidationError):
            details_from_dict(ServiceType.TIRE_SALES, {"item_name": "x", "brand": "y", "quantity": "many"})

    def test_tire_requires_brand(self):
        with pytest.raises(ValidationError, match="brand"):
            TireSalesDetails(item_name="205/55R16", brand=" ").validate()

    def test_car_service_requires_a_service(self):
        with pytest.raises(ValidationError, match="at least one service"):
            CarServiceDetails(service_types=(), problem_description="noise").validate()

    def test_car_service_requires_problem(self):
        with pytest.raises(ValidationError, match="Problem description"):
            CarServiceDetails(service_types=("alignment",), problem_description="").validate()

    def test_car_service_from_dict(self):
        d = details_from_dict(
            ServiceType.CAR_SERVICE,
            {"service_types": "alignment", "vehicle_info": {"make": "Nissan"}, "problem_description": "pulls left"},
        )
        assert d.service_types == ("alignment",)
        assert d.vehicle_info.make == "Nissan"
        d.validate()

    def test_inquiry_accepts_questions_key(self):
        d = details_from_dict(ServiceType.GENERAL_INQUIRY, {"questions": "Do you stock 17 inch rims?"})
        assert isinstance(d, GeneralInquiryDetails)
        assert d.inquiry_details == "Do you stock 17 inch rims?"

    def test_inquiry_requires_details(self):
        with pytest.raises(ValidationError):
            GeneralInquiryDetails(inquiry_details="").validate()

    def test_details_must_be_a_mapping(self):
        with pytest.raises(ValidationError, match="must be an object"):
            details_from_dict(ServiceType.TIRE_SALES, ["205/55R16"])

    def test_tire_items_must_be_a_list(self):
        with pytest.raises(ValidationError, match="items must be a list"):
            details_from_dict(ServiceType.TIRE_SALES, {"items": "205/55R16", "brand": "x"})

    def test_vehicle_info_must_be_a_mapping(self):
        with pytest.raises(ValidationError, match="Vehicle info"):
            details_from_dict(ServiceType.CAR_SERVICE, {"service_types": ["alignment"], "vehicle_info": "T123"})

    def test_service_types_must_be_a_list(self):
        with pytest.raises(ValidationError, match="must be a list"):
            details_from_dict(ServiceType.CAR_SERVICE, {"service_types": 3, "problem_description": "noise"})


class TestStatusBadges:

    def test_icons(self):
        assert OrderStatus.PENDING.icon == "clock"
        assert OrderStatus.IN_PROGRESS.icon == "play-circle"
        assert OrderStatus.READY_FOR_DEPARTURE.icon == "arrow-right-circle"
        assert OrderStatus.CANCELLED.icon == "x-circle"

    def test_every_status_has_badge_metadata(self):
        for status in OrderStatus:
            assert status.label
            assert status.color.startswith("#")
            assert status.icon
