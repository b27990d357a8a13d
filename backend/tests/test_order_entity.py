"""
Order aggregate tests (pure in-memory, no database).

Covers the status state machine, the Draft-only item rule and the total
invariant.
"""

from decimal import Decimal, ROUND_HALF_UP

import pytest

from orders.errors import InvalidStateError, ValidationError
from orders.models import Order, OrderItem, OrderStatus


def _item(name="Widget", quantity=1, unit_price="1.00"):
    return OrderItem(name, quantity, unit_price)


def _expected_total(order):
    lines = [
        (Decimal(i.quantity) * i.unit_price).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        for i in order.items
    ]
    return sum(lines, Decimal("0.00")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# =============================================================================
# CONSTRUCTION
# =============================================================================


class TestNewOrder:

    def test_starts_as_empty_draft(self):
        order = Order("user-1")
        assert order.status is OrderStatus.DRAFT
        assert order.total == Decimal("0.00")
        assert order.items == ()
        assert order.user_id == "user-1"
        assert order.id

    def test_requires_user_id(self):
        with pytest.raises(ValidationError):
            Order("")

    def test_user_id_is_read_only(self):
        order = Order("user-1")
        with pytest.raises(AttributeError):
            order.user_id = "user-2"

    def test_status_and_total_are_read_only(self):
        order = Order("user-1")
        with pytest.raises(AttributeError):
            order.status = OrderStatus.COMPLETED
        with pytest.raises(AttributeError):
            order.total = Decimal("100")


# =============================================================================
# ITEMS AND TOTAL
# =============================================================================


class TestItemsAndTotal:

    def test_add_item_sets_owner_and_total(self):
        order = Order("user-1")
        item = order.add_item(_item("Widget", 2, "9.99"))

        assert item.order_id == order.id
        assert order.total == Decimal("19.98")
        assert order.updated_at is not None

    def test_half_cent_rounds_away_from_zero(self):
        order = Order("user-1")
        order.add_item(_item("Widget", 2, "9.99"))
        gadget = order.add_item(_item("Gadget", 1, "5.005"))

        assert gadget.unit_price == Decimal("5.01")
        assert order.total == Decimal("24.99")

    def test_items_keep_insertion_order(self):
        order = Order("user-1")
        names = ["a", "b", "c"]
        for name in names:
            order.add_item(_item(name))
        assert [i.name for i in order.items] == names

    def test_remove_item_recalculates(self):
        order = Order("user-1")
        keep = order.add_item(_item("Keep", 1, "3.00"))
        drop = order.add_item(_item("Drop", 2, "4.50"))

        removed = order.remove_item(drop.id)

        assert removed is drop
        assert order.items == (keep,)
        assert order.total == Decimal("3.00")

    def test_remove_unknown_item_is_noop(self):
        order = Order("user-1")
        order.add_item(_item("Widget", 3, "2.00"))

        assert order.remove_item("no-such-item") is None
        assert len(order.items) == 1
        assert order.total == Decimal("6.00")

    def test_total_matches_sum_after_every_mutation(self):
        order = Order("user-1")
        added = []
        for qty, price in [(1, "0.015"), (3, "1.335"), (7, "0.10"), (2, "19.995"), (5, "0")]:
            added.append(order.add_item(_item("x", qty, price)))
            assert order.total == _expected_total(order)

        for item in added[::2]:
            order.remove_item(item.id)
            assert order.total == _expected_total(order)

    def test_add_none_is_rejected(self):
        with pytest.raises(ValidationError):
            Order("user-1").add_item(None)


# =============================================================================
# STATE MACHINE
# =============================================================================


class TestTransitions:

    def test_happy_path(self):
        order = Order("user-1")
        order.submit()
        assert order.status is OrderStatus.SUBMITTED
        order.complete()
        assert order.status is OrderStatus.COMPLETED

    @pytest.mark.parametrize("path", [[], ["submit"]])
    def test_cancel_from_draft_or_submitted(self, path):
        order = Order("user-1")
        for step in path:
            getattr(order, step)()
        order.cancel()
        assert order.status is OrderStatus.CANCELLED

    def test_cancel_twice_is_idempotent(self):
        order = Order("user-1")
        order.cancel()
        order.cancel()
        assert order.status is OrderStatus.CANCELLED

    def test_completed_cannot_be_cancelled(self):
        order = Order("user-1")
        order.submit()
        order.complete()
        with pytest.raises(InvalidStateError):
            order.cancel()
        assert order.status is OrderStatus.COMPLETED

    @pytest.mark.parametrize(
        "path,action",
        [
            (["submit"], "submit"),
            ([], "complete"),
            (["cancel"], "submit"),
            (["cancel"], "complete"),
            (["submit", "complete"], "submit"),
            (["submit", "complete"], "complete"),
        ],
    )
    def test_illegal_transitions_leave_state_unchanged(self, path, action):
        order = Order("user-1")
        for step in path:
            getattr(order, step)()
        before = order.status

        with pytest.raises(InvalidStateError):
            getattr(order, action)()

        assert order.status is before

    @pytest.mark.parametrize("path", [["submit"], ["cancel"], ["submit", "complete"]])
    def test_items_locked_outside_draft(self, path):
        order = Order("user-1")
        existing = order.add_item(_item("Widget", 2, "9.99"))
        for step in path:
            getattr(order, step)()

        with pytest.raises(InvalidStateError):
            order.add_item(_item("Late"))
        with pytest.raises(InvalidStateError):
            order.remove_item(existing.id)

        assert order.items == (existing,)
        assert order.total == Decimal("19.98")

