"""Read side of the order engine: lookups, the queue board and merchant statistics.

Nothing here mutates state. Visibility follows ownership: a merchant sees the
orders placed with it, a customer sees the orders they placed.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from canteen.errors import Forbidden, InvalidInput, MerchantNotFound, OrderNotFound
from canteen.identity.port import Caller
from canteen.merchant.merchant import DEFAULT_PREP_MINUTES, Merchant
from canteen.order.cancellation import load_order
from canteen.order.order import ACTIVE_STATUSES, DineType, Order, OrderStatus, to_money
from canteen.shared.clock import as_utc, start_of_business_day, start_of_business_month, utcnow

MAX_PAGE_SIZE = 100

_SORT_FIELDS = {"created_at", "queue_number", "total_amount", "status"}


@dataclass
class OrderPage:
    orders: list[Order]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


@dataclass
class QueueBoard:
    merchant_id: str
    orders: list[Order]
    average_wait_minutes: int

    @property
    def waiting_count(self) -> int:
        return len(self.orders)


@dataclass
class PeriodStats:
    order_count: int = 0
    revenue: float = 0.0
    completed_count: int = 0
    cancelled_count: int = 0


@dataclass
class OrderStats:
    merchant_id: str
    today: PeriodStats = field(default_factory=PeriodStats)
    month: PeriodStats = field(default_factory=PeriodStats)
    pending_count: int = 0


def _orders():
    return current_domain.repository_for(Order)


def _require_merchant(merchant_id) -> Merchant:
    try:
        return current_domain.repository_for(Merchant).get(merchant_id)
    except ObjectNotFoundError:
        raise MerchantNotFound(merchant_id) from None


def get_order(order_id, caller: Caller) -> Order:
    order = load_order(order_id)
    return _visible_to(order, caller)


def get_order_by_number(order_number: str, caller: Caller) -> Order:
    """Look an order up by the code printed on the customer's ticket."""
    order = _orders().find_by_number(order_number)
    if order is None:
        raise OrderNotFound(order_number)
    return _visible_to(order, caller)


def _visible_to(order: Order, caller: Caller) -> Order:
    if not (caller.is_merchant_of(order.merchant_id) or caller.is_customer_of(order.customer_id)):
        raise Forbidden("This order belongs to someone else", order_id=str(order.id))
    return order


def list_orders(
    caller: Caller,
    status=None,
    dine_type=None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    limit: int = 20,
    sort: str = "-created_at",
) -> OrderPage:
    """Page through the caller's orders, newest first by default.

    ``start`` and ``end`` bound the placement time; both are inclusive.
    """
    if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
        raise InvalidInput(f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}")
    if sort.lstrip("-") not in _SORT_FIELDS:
        raise InvalidInput(f"Cannot sort by '{sort}'", sort=sort)

    statuses = None
    if status is not None:
        try:
            statuses = [OrderStatus(getattr(status, "value", status))]
        except ValueError:
            raise InvalidInput(f"Unknown order status '{status}'", status=status) from None
    if dine_type is not None:
        try:
            dine_type = DineType(getattr(dine_type, "value", dine_type))
        except ValueError:
            raise InvalidInput(f"Unknown dine type '{dine_type}'", dine_type=dine_type) from None

    scope = {"merchant_id": caller.actor_id} if caller.is_merchant else {"customer_id": caller.actor_id}
    results = _orders().search(
        statuses=statuses,
        dine_type=dine_type,
        placed_from=start,
        placed_to=end,
        order_by=sort,
        offset=(page - 1) * limit,
        limit=limit,
        **scope,
    )
    return OrderPage(orders=list(results.items), total=results.total, page=page, limit=limit)


def queue_board(merchant_id, now: datetime | None = None) -> QueueBoard:
    """Orders still at the counter in queue order, plus the recent average wait.

    The average covers orders completed in the last 24 hours; without any it
    falls back to the merchant's preparation time.
    """
    merchant = _require_merchant(merchant_id)
    now = now or utcnow()

    waiting = _orders().active_queue(merchant.id, ACTIVE_STATUSES)
    completed = _orders().completed_since(merchant.id, now - timedelta(hours=24))

    if completed:
        average = round(sum(order.waiting_minutes() for order in completed) / len(completed))
    else:
        average = merchant.prep_minutes or DEFAULT_PREP_MINUTES

    return QueueBoard(merchant_id=str(merchant.id), orders=waiting, average_wait_minutes=average)


def _summarize(orders) -> PeriodStats:
    revenue = Decimal("0")
    stats = PeriodStats(order_count=len(orders))
    for order in orders:
        if order.status == OrderStatus.CANCELLED.value:
            stats.cancelled_count += 1
            continue
        revenue += to_money(order.total_amount)
        if order.status == OrderStatus.COMPLETED.value:
            stats.completed_count += 1
    stats.revenue = float(to_money(revenue))
    return stats


def order_stats(merchant_id, now: datetime | None = None) -> OrderStats:
    """Today and this-month figures; revenue excludes cancelled orders.

    ``pending_count`` covers every order still in progress at the counter
    (pending, confirmed or cooking).
    """
    merchant = _require_merchant(merchant_id)
    now = now or utcnow()

    month_orders = _orders().placed_since(merchant.id, start_of_business_month(now))
    day_start = start_of_business_day(now)
    today_orders = [order for order in month_orders if _placed_at_or_after(order, day_start)]

    pending = _orders().search(merchant_id=merchant.id, statuses=ACTIVE_STATUSES, limit=1)

    return OrderStats(
        merchant_id=str(merchant.id),
        today=_summarize(today_orders),
        month=_summarize(month_orders),
        pending_count=pending.total,
    )


def _placed_at_or_after(order, moment) -> bool:
    return as_utc(order.created_at) >= moment
