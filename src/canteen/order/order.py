"""Order aggregate: line items, totals, queue number and the status state machine.

State Machine:
    PENDING → CONFIRMED → COOKING → READY → COMPLETED
    CANCELLED (from PENDING, CONFIRMED only)

COMPLETED and CANCELLED are terminal. Once cooking starts the stock taken by
an order is final, so cancellation is no longer offered.

Line items are a snapshot of name and price at checkout. Later menu edits
never reach an existing order. ``total_amount`` always equals the sum of the
line subtotals rounded to cents.
"""

import json
import secrets
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from canteen.config import get_settings
from canteen.domain import canteen
from canteen.errors import InvalidTransition
from canteen.order.events import OrderCancelled, OrderCompleted, OrderPlaced, OrderStatusChanged
from canteen.shared.clock import as_utc, utcnow

_CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COOKING = "cooking"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DineType(Enum):
    DINE_IN = "dine-in"
    TAKEAWAY = "takeaway"


class PaymentMethod(Enum):
    CASH = "cash"
    WECHAT = "wechat"
    ALIPAY = "alipay"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


STATUS_LABELS = {
    OrderStatus.PENDING: "Awaiting confirmation",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.COOKING: "Cooking",
    OrderStatus.READY: "Ready for pickup",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
}

# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.COOKING, OrderStatus.CANCELLED},
    OrderStatus.COOKING: {OrderStatus.READY},
    OrderStatus.READY: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Orders still waiting at the counter
ACTIVE_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.COOKING)


def allowed_transitions(status: OrderStatus) -> set[OrderStatus]:
    return set(_VALID_TRANSITIONS[status])


def generate_order_number(at: datetime | None = None, prefix: str | None = None) -> str:
    """Prefix + epoch milliseconds + three random digits, e.g. ``BBQ1718000000000042``."""
    at = at or utcnow()
    prefix = get_settings().order_number_prefix if prefix is None else prefix
    return f"{prefix}{int(at.timestamp() * 1000)}{secrets.randbelow(1000):03d}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@canteen.value_object(part_of="Order")
class CustomerInfo:
    """Contact details copied from the customer's profile at checkout."""

    nickname = String(max_length=50)
    phone = String(max_length=11)
    avatar = String(max_length=500)


@canteen.value_object(part_of="Order")
class PaymentInfo:
    """How the customer intends to pay. Recorded only, never reconciled."""

    method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@canteen.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    unit_price = Float(required=True, min_value=0.01)
    quantity = Integer(required=True, min_value=1)
    subtotal = Float(required=True, min_value=0.0)
    note = String(max_length=100)
    image = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@canteen.aggregate
class Order:
    order_number = String(required=True, max_length=40, unique=True)
    merchant_id = Identifier(required=True)
    customer_id = Identifier()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    dine_type = String(choices=DineType, required=True)
    queue_number = Integer(required=True, min_value=1)
    items = HasMany(OrderItem)
    total_amount = Float(default=0.0, min_value=0.0)
    customer_info = ValueObject(CustomerInfo)
    payment = ValueObject(PaymentInfo)
    note = String(max_length=200)
    estimated_ready_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()
    cancel_reason = String(max_length=200)
    cancelled_by = String(max_length=20)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def subtotals_must_match_price_times_quantity(self):
        for item in self.items or []:
            expected = to_money(Decimal(str(item.unit_price)) * item.quantity)
            if to_money(item.subtotal) != expected:
                raise ValidationError(
                    {"items": [f"Subtotal of '{item.name}' is {item.subtotal}, expected {expected}"]}
                )

    @invariant.post
    def total_must_equal_sum_of_subtotals(self):
        if not self.items:
            return
        expected = to_money(sum((Decimal(str(item.subtotal)) for item in self.items), Decimal("0")))
        if to_money(self.total_amount or 0) != expected:
            raise ValidationError({"total_amount": [f"Total is {self.total_amount}, expected {expected}"]})

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        merchant_id,
        dine_type,
        lines,
        queue_number,
        customer_id=None,
        customer_info=None,
        note=None,
        payment_method=None,
        prep_minutes=15,
        placed_at=None,
    ):
        """Build a pending order from ``lines``.

        ``lines`` is a sequence of ``(menu_item, quantity, note)`` tuples; the
        item's current name, price and image are copied onto the order.
        """
        placed_at = placed_at or utcnow()

        items = []
        total = Decimal("0")
        for menu_item, quantity, item_note in lines:
            subtotal = to_money(to_money(menu_item.price) * quantity)
            total += subtotal
            items.append(
                OrderItem(
                    product_id=menu_item.id,
                    name=menu_item.name,
                    unit_price=float(to_money(menu_item.price)),
                    quantity=quantity,
                    subtotal=float(subtotal),
                    note=item_note,
                    image=menu_item.image,
                )
            )

        order = cls(
            order_number=generate_order_number(placed_at),
            merchant_id=merchant_id,
            customer_id=customer_id,
            status=OrderStatus.PENDING.value,
            dine_type=DineType(dine_type).value,
            queue_number=queue_number,
            items=items,
            total_amount=float(to_money(total)),
            customer_info=CustomerInfo(**customer_info) if customer_info else None,
            payment=PaymentInfo(method=PaymentMethod(payment_method or PaymentMethod.CASH.value).value),
            note=note,
            estimated_ready_at=placed_at + timedelta(minutes=prep_minutes),
            created_at=placed_at,
            updated_at=placed_at,
        )

        order.raise_(
            OrderPlaced(
                order_id=order.id,
                order_number=order.order_number,
                merchant_id=merchant_id,
                customer_id=customer_id,
                queue_number=queue_number,
                dine_type=order.dine_type,
                total_amount=order.total_amount,
                items=json.dumps([{"product_id": str(i.product_id), "quantity": i.quantity} for i in order.items]),
                placed_at=placed_at,
            )
        )
        return order

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.current_status]

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[self.current_status]

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in _VALID_TRANSITIONS[self.current_status]

    def _assert_can_transition(self, target: OrderStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidTransition(self.status, target.value)

    def update_status(self, target: OrderStatus, reason=None, cancelled_by=None) -> OrderStatus:
        """Move to ``target`` and return the previous status.

        Side effects on other aggregates (revenue, stock) belong to the
        caller, which must persist them in the same unit of work.
        """
        target = OrderStatus(target)
        self._assert_can_transition(target)

        previous = self.current_status
        now = utcnow()
        self.status = target.value
        self.updated_at = now

        if target == OrderStatus.COMPLETED:
            self.completed_at = now
            self.raise_(
                OrderCompleted(
                    order_id=self.id,
                    merchant_id=self.merchant_id,
                    total_amount=self.total_amount,
                    completed_at=now,
                )
            )
        elif target == OrderStatus.CANCELLED:
            self.cancel_reason = reason or ""
            self.cancelled_by = cancelled_by or "system"
            self.cancelled_at = now
            self.raise_(
                OrderCancelled(
                    order_id=self.id,
                    merchant_id=self.merchant_id,
                    previous_status=previous.value,
                    reason=self.cancel_reason,
                    cancelled_by=self.cancelled_by,
                    cancelled_at=now,
                )
            )
        else:
            self.raise_(
                OrderStatusChanged(
                    order_id=self.id,
                    merchant_id=self.merchant_id,
                    previous_status=previous.value,
                    new_status=target.value,
                    changed_at=now,
                )
            )
        return previous

    def confirm(self):
        return self.update_status(OrderStatus.CONFIRMED)

    def start_cooking(self):
        return self.update_status(OrderStatus.COOKING)

    def mark_ready(self):
        return self.update_status(OrderStatus.READY)

    def complete(self):
        return self.update_status(OrderStatus.COMPLETED)

    def cancel(self, reason=None, cancelled_by=None):
        return self.update_status(OrderStatus.CANCELLED, reason=reason, cancelled_by=cancelled_by)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    def quantities_by_product(self) -> dict[str, int]:
        quantities: dict[str, int] = {}
        for item in self.items:
            key = str(item.product_id)
            quantities[key] = quantities.get(key, 0) + item.quantity
        return quantities

    def waiting_minutes(self, now: datetime | None = None) -> int:
        """Whole minutes between placement and completion (or ``now``)."""
        start = as_utc(self.created_at)
        if start is None:
            return 0
        end = as_utc(self.completed_at) or as_utc(now) or datetime.now(UTC)
        return max(0, int((end - start).total_seconds() // 60))
