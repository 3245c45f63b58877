from __future__ import annotations

from .domain import CustomerType, OrderStatus, ServiceType
from .errors import CommandResult, ValidationError
from .exporters import ExportError, customers_csv, orders_csv, write_csv
from .queries import CustomerFilter, OrderFilter, waiting_level, waiting_minutes, waiting_time
from .services.tracking_service import CreateCustomerInput, CreateOrderInput, TrackingService, VehicleInput


def _prompt(msg: str) -> str:
    return input(msg).strip()


def _report(result: CommandResult) -> None:
    if result.success:
        print(result.message)
    else:
        print(f"[{result.error_type}] {result.error}")


def _print_customer(c) -> None:
    last = c.last_visit.strftime("%Y-%m-%d %H:%M") if c.last_visit else "never"
    print(f"{c.id} {c.name} phone={c.phone} type={c.customer_type.value} orders={c.total_orders} last_visit={last}")


def _print_order(o, service: TrackingService) -> None:
    line = f"{o.order_number} [{o.status.label}] {o.customer_name} {o.service_type.label} priority={o.priority.value} id={o.id}"
    minutes = waiting_minutes(o, service.clock())
    if minutes is not None:
        level = waiting_level(
            minutes,
            warning=service.business.waiting_warning_minutes,
            danger=service.business.waiting_danger_minutes,
        )
        line += f" waiting={waiting_time(o, service.clock())} ({level})"
    elif o.actual_duration:
        line += f" duration={o.actual_duration}"
    print(line)


def _ask_service_details(service_type: ServiceType) -> dict:
    if service_type == ServiceType.TIRE_SALES:
        return {
            "item_name": _prompt("  item name: "),
            "brand": _prompt("  brand: "),
            "quantity": _prompt("  quantity (default 1): ") or 1,
            "tire_type": _prompt("  tire type (optional): ") or None,
        }
    if service_type == ServiceType.CAR_SERVICE:
        kinds = _prompt("  services (comma separated): ")
        return {
            "service_types": [k.strip() for k in kinds.split(",") if k.strip()],
            "vehicle_info": {
                "plate_number": _prompt("  plate number: "),
                "make": _prompt("  make: "),
                "model": _prompt("  model: "),
            },
            "problem_description": _prompt("  problem description: "),
            "estimated_duration": _prompt("  estimated duration (optional): ") or None,
        }
    return {
        "inquiry_type": _prompt("  inquiry type (optional): ") or None,
        "inquiry_details": _prompt("  inquiry details: "),
    }


def run_cli(service: TrackingService) -> None:
    while True:
        print("\n=== ShopTrack CLI ===")
        print("1) List / search customers")
        print("2) Register customer")
        print("3) Add vehicle to customer")
        print("4) Create order")
        print("5) Order tracking board")
        print("6) Update order status")
        print("7) Dashboard (analytics + notifications)")
        print("8) Export CSV")
        print("0) Exit")

        choice = _prompt("> ")
        try:
            if choice == "0":
                return

            elif choice == "1":
                quick = _prompt("filter (all/new_week/returning/no_orders/active) [all]: ") or "all"
                query = _prompt("search (optional): ")
                ctype = _prompt("customer type (optional): ") or None
                rows = service.list_customers(CustomerFilter(quick=quick, query=query, customer_type=ctype))
                for c in rows:
                    _print_customer(c)
                print(f"{len(rows)} customer(s)")

            elif choice == "2":
                print("Customer types: " + ", ".join(t.value for t in CustomerType))
                data = CreateCustomerInput(
                    name=_prompt("name: "),
                    phone=_prompt("phone: "),
                    customer_type=_prompt("customer type [personal]: ") or "personal",
                    email=_prompt("email (optional): ") or None,
                    address=_prompt("address (optional): ") or None,
                    organization_name=_prompt("organization (optional): ") or None,
                    notes=_prompt("notes (optional): ") or None,
                )
                result = service.create_customer(data)
                _report(result)
                if result.success:
                    print(f"Customer ID: {result.customer.id}")

            elif choice == "3":
                customer_id = _prompt("customer id: ")
                vehicle = VehicleInput(
                    plate_number=_prompt("plate number (optional): ") or None,
                    make=_prompt("make: "),
                    model=_prompt("model: "),
                    vehicle_type=_prompt("vehicle type: "),
                )
                _report(service.add_vehicle(customer_id, vehicle))

            elif choice == "4":
                lookup = _prompt("customer id or phone: ")
                customer = service.get_customer_by_id(lookup) or service.get_customer_by_phone(lookup)
                if customer is None:
                    print("Customer not found.")
                    continue
                print("Service types: " + ", ".join(t.value for t in ServiceType))
                raw_type = _prompt("service type: ")
                try:
                    service_type = ServiceType(raw_type)
                except ValueError:
                    raise ValidationError(f"Unknown service type: {raw_type!r}") from None
                data = CreateOrderInput(
                    customer_id=customer.id,
                    service_type=service_type.value,
                    service_details=_ask_service_details(service_type),
                    priority=_prompt("priority (low/normal/high/urgent) [normal]: ") or "normal",
                    description=_prompt("description (optional): ") or None,
                    estimated_completion=_prompt("estimated completion (optional): ") or None,
                )
                result = service.create_order(data)
                _report(result)
                if result.success:
                    print(f"Order number: {result.order.order_number}")

            elif choice == "5":
                quick = _prompt("filter (all/today/pending/in_progress/completed/high_priority) [all]: ") or "all"
                query = _prompt("search (optional): ")
                rows = service.list_orders(OrderFilter(quick=quick, query=query), newest_first=True)
                for o in rows:
                    _print_order(o, service)
                print(f"{len(rows)} order(s)")

            elif choice == "6":
                order_id = _prompt("order id: ")
                print("Statuses: " + ", ".join(s.value for s in OrderStatus) + " (empty = next step)")
                status = _prompt("new status: ")
                notes = _prompt("notes (optional): ") or None
                if status:
                    result = service.update_order_status(order_id, status, notes)
                else:
                    result = service.advance_order(order_id, notes)
                _report(result)
                if result.success:
                    o = result.order
                    print(f"{o.order_number} is now {o.status.label}" + (f", duration {o.actual_duration}" if o.actual_duration else ""))

            elif choice == "7":
                a = service.get_analytics()
                print(
                    f"customers={a.total_customers} orders={a.total_orders} active={a.active_orders} "
                    f"completed_today={a.completed_today} avg_service={a.average_service_time}"
                )
                print("by status: " + ", ".join(f"{k}={v}" for k, v in a.status_counts.items()))
                print("by service type: " + ", ".join(f"{k}={v}" for k, v in a.service_type_stats.items()))
                print("by customer type: " + ", ".join(f"{k}={v}" for k, v in a.customer_types.items()))
                for d in a.daily_stats:
                    print(f"  {d.date.isoformat()} arrivals={d.orders} completed={d.completed}")
                for n in service.get_notifications():
                    print(f"[{n.type.upper()}] {n.title}: {n.message}")

            elif choice == "8":
                what = _prompt("export customers or orders? (c/o): ").lower()
                path = _prompt("output path: ")
                if what == "c":
                    content = customers_csv(service.get_all_customers())
                else:
                    content = orders_csv(service.get_all_orders(), service.get_all_customers())
                print(f"Exported to {write_csv(path, content)}")

            else:
                print("Unknown choice.")

        except ValidationError as e:
            print(f"[INPUT ERROR] {e}")
        except ExportError as e:
            print(f"[EXPORT ERROR] {e}")
        except Exception as e:
            print(f"[ERROR] {type(e).__name__}: {e}")
