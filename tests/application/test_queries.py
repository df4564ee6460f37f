from datetime import UTC, datetime, timedelta

import pytest

from canteen.errors import Forbidden, InvalidInput, MerchantNotFound, OrderNotFound
from canteen.order import queries
from canteen.order.transactions import cancel_order, place_order, update_order_status
from support import (
    add_menu_item,
    customer_caller,
    get_order,
    line,
    merchant_caller,
    register_customer,
    register_merchant,
)


@pytest.fixture()
def merchant_id():
    return register_merchant(prep_minutes=20)


@pytest.fixture()
def merchant(merchant_id):
    return merchant_caller(merchant_id)


@pytest.fixture()
def skewer_id(merchant_id):
    return add_menu_item(merchant_id, name="Lamb Skewer", price=5.0)


@pytest.fixture()
def alice():
    return customer_caller(register_customer(nickname="Alice"))


@pytest.fixture()
def bob():
    return customer_caller(register_customer(nickname="Bob"))


class TestGetOrder:
    def test_owner_merchant_and_customer_can_read(self, merchant_id, merchant, skewer_id, alice):
        order = place_order(merchant_id, "takeaway", [line(skewer_id)], caller=alice)
        assert queries.get_order(order.id, merchant).id == order.id
        assert queries.get_order(order.id, alice).id == order.id

    def test_other_customer_cannot_read(self, merchant_id, skewer_id, alice, bob):
        order = place_order(merchant_id, "takeaway", [line(skewer_id)], caller=alice)
        with pytest.raises(Forbidden):
            queries.get_order(order.id, bob)

    def test_missing_order(self, merchant):
        with pytest.raises(OrderNotFound):
            queries.get_order("no-such-order", merchant)


class TestListOrders:
    def test_customer_sees_only_own_orders(self, merchant_id, skewer_id, alice, bob):
        place_order(merchant_id, "takeaway", [line(skewer_id)], caller=alice)
        place_order(merchant_id, "takeaway", [line(skewer_id)], caller=alice)
        place_order(merchant_id, "takeaway", [line(skewer_id)], caller=bob)

        page = queries.list_orders(alice)
        assert page.total == 2
        assert {o.customer_id for o in page.orders} == {alice.actor_id}

    def test_merchant_sees_only_its_orders(self, merchant_id, merchant, skewer_id):
        other_id = register_merchant(name="Corner Noodles")
        noodles_id = add_menu_item(other_id, name="Noodles", price=12)
        place_order(merchant_id, "takeaway", [line(skewer_id)])
        place_order(other_id, "takeaway", [line(noodles_id)])

        page = queries.list_orders(merchant)
        assert page.total == 1
        assert page.orders[0].merchant_id == merchant_id

    def test_filter_by_status_and_dine_type(self, merchant_id, merchant, skewer_id):
        first = place_order(merchant_id, "takeaway", [line(skewer_id)])
        place_order(merchant_id, "dine-in", [line(skewer_id)])
        update_order_status(first.id, "confirmed", merchant)

        assert queries.list_orders(merchant, status="confirmed").total == 1
        assert queries.list_orders(merchant, dine_type="dine-in").total == 1
        assert queries.list_orders(merchant, status="pending", dine_type="takeaway").total == 0

    def test_pagination_and_sort(self, merchant_id, merchant, skewer_id):
        for _ in range(5):
            place_order(merchant_id, "takeaway", [line(skewer_id)])

        page = queries.list_orders(merchant, page=2, limit=2, sort="queue_number")
        assert page.total == 5
        assert page.pages == 3
        assert [o.queue_number for o in page.orders] == [3, 4]

    def test_date_range(self, merchant_id, merchant, skewer_id):
        place_order(merchant_id, "takeaway", [line(skewer_id)])
        now = datetime.now(UTC)
        assert queries.list_orders(merchant, start=now - timedelta(hours=1)).total == 1
        assert queries.list_orders(merchant, end=now - timedelta(hours=1)).total == 0

    def test_date_range_includes_both_ends(self, merchant_id, merchant, skewer_id):
        order = place_order(merchant_id, "takeaway", [line(skewer_id)])
        placed_at = order.created_at

        page = queries.list_orders(merchant, start=placed_at, end=placed_at)
        assert [o.id for o in page.orders] == [order.id]

    @pytest.mark.parametrize(
        "kwargs",
        [{"page": 0}, {"limit": 0}, {"limit": 101}, {"sort": "password"}, {"status": "burnt"}, {"dine_type": "drone"}],
    )
    def test_bad_arguments(self, merchant, kwargs):
        with pytest.raises(InvalidInput):
            queries.list_orders(merchant, **kwargs)


class TestQueueBoard:
    def test_lists_waiting_orders_in_queue_order(self, merchant_id, merchant, skewer_id, alice):
        first = place_order(merchant_id, "takeaway", [line(skewer_id)])
        second = place_order(merchant_id, "takeaway", [line(skewer_id)])
        third = place_order(merchant_id, "takeaway", [line(skewer_id)], caller=alice)
        fourth = place_order(merchant_id, "takeaway", [line(skewer_id)])

        update_order_status(second.id, "confirmed", merchant)
        update_order_status(second.id, "cooking", merchant)
        cancel_order(third.id, alice)
        for status in ("confirmed", "cooking", "ready"):
            update_order_status(fourth.id, status, merchant)

        board = queries.queue_board(merchant_id)
        assert [o.queue_number for o in board.orders] == [first.queue_number, second.queue_number]
        assert board.waiting_count == 2

    def test_average_wait_defaults_to_prep_minutes(self, merchant_id):
        assert queries.queue_board(merchant_id).average_wait_minutes == 20

    def test_average_wait_uses_recent_completions(self, merchant_id, merchant, skewer_id):
        from protean.utils.globals import current_domain

        from canteen.order.order import Order

        order = place_order(merchant_id, "takeaway", [line(skewer_id)])
        for status in ("confirmed", "cooking", "ready", "completed"):
            update_order_status(order.id, status, merchant)

        stored = get_order(order.id)
        stored.created_at = stored.completed_at - timedelta(minutes=9)
        current_domain.repository_for(Order).add(stored)

        assert queries.queue_board(merchant_id).average_wait_minutes == 9

    def test_unknown_merchant(self):
        with pytest.raises(MerchantNotFound):
            queries.queue_board("no-such-merchant")


class TestOrderStats:
    def test_today_and_month_figures(self, merchant_id, merchant, skewer_id, alice):
        completed = place_order(merchant_id, "takeaway", [line(skewer_id, 3)])
        for status in ("confirmed", "cooking", "ready", "completed"):
            update_order_status(completed.id, status, merchant)
        place_order(merchant_id, "takeaway", [line(skewer_id, 1)])
        cancelled = place_order(merchant_id, "takeaway", [line(skewer_id, 2)], caller=alice)
        cancel_order(cancelled.id, alice)

        stats = queries.order_stats(merchant_id)
        assert stats.today.order_count == 3
        assert stats.today.revenue == 20.0
        assert stats.today.completed_count == 1
        assert stats.today.cancelled_count == 1
        assert stats.month.order_count == 3
        assert stats.pending_count == 1

    def test_empty_merchant(self, merchant_id):
        stats = queries.order_stats(merchant_id)
        assert stats.today.order_count == 0
        assert stats.month.revenue == 0.0
        assert stats.pending_count == 0

    def test_pending_count_covers_orders_still_in_progress(self, merchant_id, merchant, skewer_id):
        forward = ("confirmed", "cooking", "ready", "completed")
        # one order left at each stage: pending, confirmed, cooking, ready, completed
        for depth in range(len(forward) + 1):
            order = place_order(merchant_id, "takeaway", [line(skewer_id)])
            for status in forward[:depth]:
                update_order_status(order.id, status, merchant)

        assert queries.order_stats(merchant_id).pending_count == 3


class TestOrderLookupByNumber:
    def test_find_by_order_number(self, merchant_id, skewer_id):
        from protean.utils.globals import current_domain

        from canteen.order.order import Order

        order = place_order(merchant_id, "takeaway", [line(skewer_id)])
        repo = current_domain.repository_for(Order)

        assert repo.find_by_number(order.order_number).id == order.id
        assert repo.find_by_number("BBQ0000") is None

    def test_get_order_by_number_for_its_owners(self, merchant_id, merchant, skewer_id, alice, bob):
        order = place_order(merchant_id, "takeaway", [line(skewer_id)], caller=alice)

        assert queries.get_order_by_number(order.order_number, alice).id == order.id
        assert queries.get_order_by_number(order.order_number, merchant).id == order.id
        with pytest.raises(Forbidden):
            queries.get_order_by_number(order.order_number, bob)

    def test_unknown_order_number(self, merchant):
        with pytest.raises(OrderNotFound):
            queries.get_order_by_number("BBQ0000", merchant)
