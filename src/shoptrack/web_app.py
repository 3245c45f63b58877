from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime

from flask import Flask, Response, jsonify, request

from .config import ConfigError, load_config
from .domain import CustomerType, OrderStatus, Priority, ServiceType
from .errors import CommandResult, StorageError, ValidationError
from .exporters import customers_csv, orders_csv
from .queries import CustomerFilter, OrderFilter, waiting_level, waiting_minutes, waiting_time
from .serialization import customer_to_dict, order_to_dict
from .services.tracking_service import CreateCustomerInput, CreateOrderInput, TrackingService, VehicleInput

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    "ValidationError": 400,
    "InvalidTransitionError": 400,
    "NotFoundError": 404,
    "DuplicatePhoneError": 409,
    "StorageError": 500,
    "DbError": 500,
}


def _plain(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _failure(result: CommandResult):
    return jsonify({"success": False, "error": result.error, "errorType": result.error_type}), _STATUS_CODES.get(
        result.error_type, 400
    )


def _json_object(value, what: str = "Request body") -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{what} must be a JSON object.")
    return value


def _body() -> dict:
    return _json_object(request.get_json(silent=True))


def _vehicle_input(body) -> VehicleInput:
    body = _json_object(body, "Vehicle")
    return VehicleInput(
        plate_number=body.get("plateNumber"),
        make=body.get("make", ""),
        model=body.get("model", ""),
        vehicle_type=body.get("vehicleType", ""),
    )


def _vehicles(value) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError("Vehicles must be a list.")
    return value


def _customer_filter() -> CustomerFilter:
    return CustomerFilter(
        quick=request.args.get("filter", "all"),
        query=request.args.get("q", ""),
        customer_type=request.args.get("type") or None,
    )


def _order_filter() -> OrderFilter:
    return OrderFilter(
        quick=request.args.get("filter", "all"),
        query=request.args.get("q", ""),
        status=request.args.get("status") or None,
        service_type=request.args.get("serviceType") or None,
    )


def create_app(service: TrackingService) -> Flask:
    app = Flask(__name__)

    def order_view(o) -> dict:
        data = order_to_dict(o)
        data["statusLabel"] = o.status.label
        data["statusColor"] = o.status.color
        data["statusIcon"] = o.status.icon
        minutes = waiting_minutes(o, service.clock())
        data["waitingTime"] = waiting_time(o, service.clock())
        data["waitingLevel"] = (
            waiting_level(
                minutes,
                warning=service.business.waiting_warning_minutes,
                danger=service.business.waiting_danger_minutes,
            )
            if minutes is not None
            else None
        )
        return data

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return jsonify({"success": False, "error": str(e), "errorType": type(e).__name__}), 400

    @app.errorhandler(StorageError)
    def handle_storage(e):
        logger.exception("Storage failure")
        return jsonify({"success": False, "error": str(e), "errorType": "StorageError"}), 500

    @app.get("/api/customers")
    def customers_list():
        rows = service.list_customers(_customer_filter())
        return jsonify([customer_to_dict(c) for c in rows])

    @app.post("/api/customers")
    def customers_new():
        body = _body()
        data = CreateCustomerInput(
            name=body.get("name", ""),
            phone=body.get("phone", ""),
            customer_type=body.get("customerType", "personal"),
            email=body.get("email"),
            address=body.get("address"),
            notes=body.get("notes"),
            organization_name=body.get("organizationName"),
            vehicles=[_vehicle_input(v) for v in _vehicles(body.get("vehicles"))],
        )
        result = service.create_customer(data)
        if not result.success:
            return _failure(result)
        return jsonify({"success": True, "customer": customer_to_dict(result.customer), "message": result.message}), 201

    @app.get("/api/customers/<customer_id>")
    def customers_detail(customer_id):
        customer = service.get_customer_by_id(customer_id)
        if customer is None:
            return jsonify({"success": False, "error": "Customer not found"}), 404
        data = customer_to_dict(customer)
        data["orders"] = [order_view(o) for o in service.get_orders_by_customer(customer_id)]
        return jsonify(data)

    @app.patch("/api/customers/<customer_id>")
    def customers_update(customer_id):
        result = service.update_customer(customer_id, _body())
        if not result.success:
            return _failure(result)
        return jsonify({"success": True, "customer": customer_to_dict(result.customer), "message": result.message})

    @app.post("/api/customers/<customer_id>/vehicles")
    def customers_add_vehicle(customer_id):
        result = service.add_vehicle(customer_id, _vehicle_input(_body()))
        if not result.success:
            return _failure(result)
        return jsonify({"success": True, "customer": customer_to_dict(result.customer), "message": result.message}), 201

    @app.get("/api/orders")
    def orders_list():
        newest_first = request.args.get("sort") == "arrival"
        rows = service.list_orders(_order_filter(), newest_first=newest_first)
        return jsonify([order_view(o) for o in rows])

    @app.post("/api/orders")
    def orders_new():
        body = _body()
        arrival = body.get("arrivalTime")
        try:
            arrival_time = datetime.fromisoformat(arrival) if arrival else None
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid arrivalTime: {arrival!r}") from None
        data = CreateOrderInput(
            customer_id=body.get("customerId", ""),
            service_type=body.get("serviceType", ""),
            service_details=body.get("serviceDetails") or {},
            priority=body.get("priority") or "normal",
            description=body.get("description"),
            estimated_completion=body.get("estimatedCompletion"),
            arrival_time=arrival_time,
            customer_name=body.get("customerName"),
        )
        result = service.create_order(data)
        if not result.success:
            return _failure(result)
        return jsonify({"success": True, "order": order_view(result.order), "message": result.message}), 201

    @app.get("/api/orders/<order_id>")
    def orders_detail(order_id):
        order = service.get_order_by_id(order_id)
        if order is None:
            return jsonify({"success": False, "error": "Order not found"}), 404
        return jsonify(order_view(order))

    @app.post("/api/orders/<order_id>/status")
    def orders_status(order_id):
        body = _body()
        status = body.get("status")
        if status:
            result = service.update_order_status(order_id, status, body.get("notes"))
        else:
            result = service.advance_order(order_id, body.get("notes"))
        if not result.success:
            return _failure(result)
        return jsonify({"success": True, "order": order_view(result.order), "message": result.message})

    @app.get("/api/catalog")
    def catalog():
        return jsonify(
            {
                "statuses": [{"value": s.value, "label": s.label, "color": s.color, "icon": s.icon} for s in OrderStatus],
                "serviceTypes": [
                    {"value": t.value, "label": t.label, "orderType": t.order_type.value, "fields": list(t.fields)}
                    for t in ServiceType
                ],
                "customerTypes": [{"value": t.value, "label": t.label} for t in CustomerType],
                "priorities": [p.value for p in Priority],
            }
        )

    @app.get("/api/analytics")
    def analytics():
        return jsonify(_plain(dataclasses.asdict(service.get_analytics())))

    @app.get("/api/notifications")
    def notifications():
        return jsonify([_plain(dataclasses.asdict(n)) for n in service.get_notifications()])

    @app.get("/api/dashboard")
    def dashboard():
        return jsonify(
            {
                "analytics": _plain(dataclasses.asdict(service.get_analytics())),
                "recentArrivals": [order_view(o) for o in service.get_recent_arrivals()],
                "pendingDepartures": [order_view(o) for o in service.get_pending_departures()],
                "notifications": [_plain(dataclasses.asdict(n)) for n in service.get_notifications()],
            }
        )

    @app.get("/export/customers.csv")
    def export_customers():
        content = customers_csv(service.list_customers(_customer_filter()))
        return Response(
            content,
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=customers_export.csv"},
        )

    @app.get("/export/orders.csv")
    def export_orders():
        content = orders_csv(service.list_orders(_order_filter()), service.get_all_customers())
        return Response(
            content,
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=orders_export.csv"},
        )

    return app


if __name__ == "__main__":
    from .main import bootstrap, setup_logging

    try:
        cfg = load_config("config.toml")
        setup_logging(cfg.log_level)
        create_app(bootstrap(cfg)).run(debug=True, host="127.0.0.1", port=5000)
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        raise SystemExit(2)
