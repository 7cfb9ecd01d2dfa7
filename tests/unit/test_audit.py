"""Tests for the AuditLog collaborator."""

from __future__ import annotations

from pancake_lab.core.enums import OrderState
from pancake_lab.domain.order import Order
from pancake_lab.domain.pancake import Ingredient, Pancake
from pancake_lab.service.audit import AuditLog, notify


def _order() -> Order:
    return Order(3, 7, order_id="order-1")


class TestAuditLog:
    def test_messages(self):
        log = AuditLog()
        order = _order()
        pancake = Pancake(pancake_id="pancake-1")
        ingredient = Ingredient(name="Milk Chocolate", id="ing-1")

        log.ingredient_added(order, pancake, ingredient)
        log.ingredient_removed(order, pancake, "ing-1")
        log.pancake_removed(order, "pancake-1")
        log.state_changed(order, OrderState.OPEN, OrderState.CANCELLED)

        assert [e.message for e in log.entries()] == [
            "Added ingredient 'Milk Chocolate' to pancake pancake-1 in order order-1",
            "Removed ingredient ing-1 from pancake pancake-1 in order order-1",
            "Removed pancake pancake-1 from order order-1. Current pancakes count: 0",
            "Order order-1 state changed from OPEN to CANCELLED (Building 3, Room 7)",
        ]

    def test_entries_carry_order_location(self):
        log = AuditLog()
        log.order_created(_order())
        entry = log.entries()[0]
        assert (entry.order_id, entry.building, entry.room) == ("order-1", 3, 7)
        assert entry.timestamp.tzinfo is not None

    def test_full_log_one_line_per_entry(self):
        log = AuditLog()
        log.order_created(_order())
        log.pancake_added(_order())
        lines = log.full_log().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("[")
        assert lines[0].endswith("Created order order-1 (Building 3, Room 7)")

    def test_bounded(self):
        log = AuditLog(max_entries=3)
        for _ in range(5):
            log.order_created(_order())
        assert len(log) == 3

    def test_entries_is_a_snapshot(self):
        log = AuditLog()
        snapshot = log.entries()
        log.order_created(_order())
        assert snapshot == []


class TestNotify:
    def test_none_sink_is_ignored(self):
        notify(None, "order_created", _order())

    def test_sink_failure_is_contained(self, caplog):
        class _Failing:
            def order_created(self, order):
                raise RuntimeError("boom")

        notify(_Failing(), "order_created", _order())
        assert "Audit sink failed on order_created" in caplog.text
