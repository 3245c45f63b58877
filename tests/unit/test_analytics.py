"""Tests for shoptrack.analytics -- dashboard rollups and notifications."""
from datetime import timedelta

from shoptrack.analytics import average_service_time, pending_departures, recent_arrivals


class TestAnalytics:

    def test_empty_store(self, service):
        a = service.get_analytics()
        assert a.total_customers == 0
        assert a.total_orders == 0
        assert a.average_service_time == "0h 0m"
        assert len(a.daily_stats) == 7
        assert all(d.orders == 0 and d.completed == 0 for d in a.daily_stats)

    def test_counts(self, service, make_customer, make_order):
        biz = make_customer(name="Safari Auto", customer_type="business")
        make_order()
        make_order(customer_id=biz.id, service_type="car-service")
        o3 = make_order(customer_id=biz.id)
        o4 = make_order()
        service.update_order_status(o3.id, "ready-for-departure")
        service.update_order_status(o4.id, "completed")

        a = service.get_analytics()
        assert a.total_customers == 2
        assert a.total_orders == 4
        assert a.active_orders == 3
        assert a.pending_orders == 2
        assert a.ready_for_departure == 1
        assert a.completed_today == 1
        assert a.status_counts["completed"] == 1
        assert a.status_counts["cancelled"] == 0
        assert a.customer_types == {"personal": 1, "business": 1, "government": 0, "ngo": 0, "boda-boda": 0}
        assert a.service_type_stats == {"tire-sales": 3, "car-service": 1, "general-inquiry": 0}

    def test_daily_stats_window(self, service, make_order, clock):
        make_order(arrival_time=clock.now - timedelta(days=2))
        make_order(arrival_time=clock.now - timedelta(days=9))
        done = make_order()
        service.update_order_status(done.id, "completed")

        stats = service.get_analytics().daily_stats
        assert stats[0].date == clock.now.date() - timedelta(days=6)
        assert stats[-1].date == clock.now.date()
        assert [d.orders for d in stats] == [0, 0, 0, 0, 1, 0, 1]
        assert stats[-1].completed == 1
        assert sum(d.completed for d in stats) == 1

    def test_average_service_time(self, service, make_order, clock):
        a = make_order()
        b = make_order()
        clock.advance(minutes=30)
        service.update_order_status(a.id, "completed")
        clock.advance(minutes=60)
        service.update_order_status(b.id, "completed")
        # (30 + 90) / 2 minutes
        assert service.get_analytics().average_service_time == "1h 0m"

    def test_average_ignores_open_orders(self, service, order):
        assert average_service_time(service.get_all_orders()) == "0h 0m"


class TestNotifications:

    def test_long_wait_warning(self, service, make_order, clock):
        waiting = make_order(arrival_time=clock.now - timedelta(hours=3, minutes=1))
        make_order(arrival_time=clock.now - timedelta(hours=1))
        notes = service.get_notifications()
        assert [(n.type, n.order_id) for n in notes] == [("warning", waiting.id)]
        assert "more than 3 hours" in notes[0].message

    def test_ready_for_departure_info(self, service, order):
        service.update_order_status(order.id, "ready-for-departure")
        (n,) = service.get_notifications()
        assert n.type == "info"
        assert n.title == "Ready for Departure"
        assert n.message == "Jane Doe is ready to leave"

    def test_closed_orders_never_warn(self, service, make_order, clock):
        old = make_order(arrival_time=clock.now - timedelta(hours=8))
        service.update_order_status(old.id, "cancelled")
        assert service.get_notifications() == []


class TestDashboardFeeds:

    def test_recent_arrivals_today_newest_first(self, service, make_order, clock):
        first = make_order(arrival_time=clock.now - timedelta(hours=2))
        second = make_order(arrival_time=clock.now - timedelta(hours=1))
        make_order(arrival_time=clock.now - timedelta(days=1))
        rows = recent_arrivals(service.get_all_orders(), clock.now)
        assert [o.id for o in rows] == [second.id, first.id]

    def test_pending_departures_oldest_first(self, service, make_order, clock):
        newer = make_order()
        older = make_order(arrival_time=clock.now - timedelta(hours=4))
        make_order()
        service.update_order_status(newer.id, "service-complete")
        service.update_order_status(older.id, "ready-for-departure")
        assert [o.id for o in pending_departures(service.get_all_orders())] == [older.id, newer.id]

    def test_limits(self, service, make_order):
        for _ in range(7):
            make_order()
        assert len(service.get_recent_arrivals()) == 5
        assert len(service.get_recent_arrivals(limit=2)) == 2
