import re
from datetime import UTC, datetime, timedelta
from itertools import product

import pytest
from protean.exceptions import ValidationError

from canteen.errors import InvalidTransition
from canteen.menu.product import MenuItem
from canteen.order.events import OrderCancelled, OrderCompleted, OrderPlaced, OrderStatusChanged
from canteen.order.order import (
    Order,
    OrderItem,
    OrderStatus,
    allowed_transitions,
    generate_order_number,
)

ALLOWED_EDGES = {
    (OrderStatus.PENDING, OrderStatus.CONFIRMED),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.CONFIRMED, OrderStatus.COOKING),
    (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    (OrderStatus.COOKING, OrderStatus.READY),
    (OrderStatus.READY, OrderStatus.COMPLETED),
}


def _menu_item(name="Lamb Skewer", price=5.0, image=None):
    return MenuItem.add(merchant_id="m-1", name=name, price=price, image=image)


def _order(lines=None, **kwargs):
    if lines is None:
        lines = [(_menu_item(), 3, None)]
    defaults = {"merchant_id": "m-1", "dine_type": "takeaway", "queue_number": 1}
    defaults.update(kwargs)
    return Order.place(lines=lines, **defaults)


def _order_in(status: OrderStatus):
    order = _order()
    order.status = status.value
    return order


class TestPlacement:
    def test_place_builds_pending_order(self):
        order = _order()
        assert order.status == OrderStatus.PENDING.value
        assert order.queue_number == 1
        assert len(order.items) == 1
        assert order.items[0].subtotal == 15.0
        assert order.total_amount == 15.0

    def test_line_items_snapshot_name_and_price(self):
        item = _menu_item(name="Pork Belly", price=7.5, image="https://cdn.example.com/pork.jpg")
        order = _order(lines=[(item, 2, "no chili")])
        item.update_details(name="Premium Pork Belly", price=9.0)

        line = order.items[0]
        assert line.name == "Pork Belly"
        assert line.unit_price == 7.5
        assert line.note == "no chili"
        assert line.image == "https://cdn.example.com/pork.jpg"

    def test_total_is_rounded_sum_of_subtotals(self):
        lines = [
            (_menu_item(name="A", price=0.1), 3, None),
            (_menu_item(name="B", price=0.2), 1, None),
            (_menu_item(name="C", price=19.99), 2, None),
        ]
        order = _order(lines=lines)
        assert [i.subtotal for i in order.items] == [0.3, 0.2, 39.98]
        assert order.total_amount == 40.48

    def test_place_raises_order_placed(self):
        order = _order()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.queue_number == 1
        assert event.total_amount == 15.0

    def test_estimated_ready_at_uses_prep_minutes(self):
        placed_at = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
        order = _order(prep_minutes=20, placed_at=placed_at)
        assert order.estimated_ready_at == placed_at + timedelta(minutes=20)

    def test_payment_defaults_to_cash_pending(self):
        order = _order()
        assert order.payment.method == "cash"
        assert order.payment.status == "pending"

    def test_guest_order_has_no_customer_info(self):
        order = _order()
        assert order.customer_id is None
        assert order.customer_info is None

    def test_customer_info_is_copied(self):
        order = _order(customer_id="c-1", customer_info={"nickname": "Xiao Li", "phone": "13800138000"})
        assert order.customer_info.nickname == "Xiao Li"
        assert order.customer_info.phone == "13800138000"

    def test_unknown_dine_type_is_rejected(self):
        with pytest.raises(ValueError):
            _order(dine_type="delivery")

    def test_order_number_format(self):
        at = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
        number = generate_order_number(at, prefix="BBQ")
        assert re.fullmatch(rf"BBQ{int(at.timestamp() * 1000)}\d{{3}}", number)


class TestTotalInvariant:
    def test_total_mismatch_is_rejected(self):
        with pytest.raises(ValidationError):
            Order(
                order_number="BBQ1",
                merchant_id="m-1",
                dine_type="dine-in",
                queue_number=1,
                items=[OrderItem(product_id="p-1", name="A", unit_price=2.0, quantity=2, subtotal=4.0)],
                total_amount=5.0,
            )

    def test_subtotal_mismatch_is_rejected(self):
        with pytest.raises(ValidationError):
            Order(
                order_number="BBQ2",
                merchant_id="m-1",
                dine_type="dine-in",
                queue_number=1,
                items=[OrderItem(product_id="p-1", name="A", unit_price=2.0, quantity=2, subtotal=3.0)],
                total_amount=3.0,
            )


class TestStateMachine:
    @pytest.mark.parametrize("current,target", list(product(OrderStatus, OrderStatus)))
    def test_only_table_edges_succeed(self, current, target):
        order = _order_in(current)
        if (current, target) in ALLOWED_EDGES:
            order.update_status(target)
            assert order.status == target.value
        else:
            with pytest.raises(InvalidTransition) as exc:
                order.update_status(target)
            assert exc.value.details == {"current": current.value, "target": target.value}
            assert order.status == current.value

    def test_cooking_can_no_longer_be_cancelled(self):
        assert allowed_transitions(OrderStatus.COOKING) == {OrderStatus.READY}

    def test_terminal_states(self):
        assert _order_in(OrderStatus.COMPLETED).is_terminal
        assert _order_in(OrderStatus.CANCELLED).is_terminal
        assert not _order_in(OrderStatus.READY).is_terminal

    def test_forward_steps_raise_status_changed(self):
        order = _order()
        previous = order.confirm()
        assert previous == OrderStatus.PENDING
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert (event.previous_status, event.new_status) == ("pending", "confirmed")

    def test_complete_sets_completed_at(self):
        order = _order()
        order.confirm()
        order.start_cooking()
        order.mark_ready()
        order.complete()
        assert order.status == "completed"
        assert order.completed_at is not None
        assert isinstance(order._events[-1], OrderCompleted)

    def test_cancel_records_reason_and_actor(self):
        order = _order()
        order.cancel(reason="changed my mind", cancelled_by="customer")
        assert order.status == "cancelled"
        assert order.cancel_reason == "changed my mind"
        assert order.cancelled_by == "customer"
        assert order.cancelled_at is not None
        assert isinstance(order._events[-1], OrderCancelled)

    def test_cancel_without_reason_stores_empty_string(self):
        order = _order()
        order.cancel()
        assert order.cancel_reason == ""

    def test_status_label(self):
        order = _order()
        assert order.status_label == "Awaiting confirmation"
        order.confirm()
        assert order.status_label == "Confirmed"


class TestReadHelpers:
    def test_quantities_by_product_merges_repeated_lines(self):
        item = _menu_item()
        other = _menu_item(name="Corn")
        order = _order(lines=[(item, 2, None), (other, 1, None), (item, 3, "extra")])
        assert order.quantities_by_product() == {str(item.id): 5, str(other.id): 1}

    def test_waiting_minutes_until_now(self):
        placed_at = datetime.now(UTC) - timedelta(minutes=12, seconds=5)
        order = _order(placed_at=placed_at)
        assert order.waiting_minutes() == 12

    def test_waiting_minutes_until_completion(self):
        placed_at = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
        order = _order(placed_at=placed_at)
        order.completed_at = placed_at + timedelta(minutes=25)
        assert order.waiting_minutes() == 25
