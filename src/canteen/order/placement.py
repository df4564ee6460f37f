"""Order placement: command and handler.

The handler is the checkout coordinator. Preconditions are checked in a fixed
order, each with its own failure:

1. at least one line and a known dine type (``InvalidInput``)
2. the merchant exists (``MerchantNotFound``)
3. the merchant is open and inside business hours (``MerchantClosed``)
4. every product is available and belongs to the merchant (``ProductNotFound``)
5. every line has enough stock (``InsufficientStock``)

Everything after that (stock decrement, queue number, order, merchant
statistics) is written in the handler's unit of work. Nothing is added to a
repository until all checks pass, and any exception rolls the unit of work
back, so a failed checkout leaves stock untouched.
"""

import json
from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from canteen.account.customer import Customer
from canteen.domain import canteen
from canteen.errors import (
    InsufficientStock,
    InvalidInput,
    MerchantClosed,
    MerchantNotFound,
    ProductNotFound,
    Unauthenticated,
)
from canteen.identity.port import Role
from canteen.menu.product import MenuItem
from canteen.merchant.merchant import Merchant
from canteen.merchant.queue import next_queue_number
from canteen.order.order import DineType, Order, PaymentMethod
from canteen.shared.clock import to_local, utcnow

logger = structlog.get_logger(__name__)

MAX_LINE_QUANTITY = 99


@canteen.command(part_of="Order")
class PlaceOrder:
    merchant_id = Identifier(required=True)
    dine_type = String(required=True, max_length=20)
    items = Text(required=True)  # JSON: [{product_id, quantity, note}]
    note = String(max_length=200)
    payment_method = String(max_length=20)
    caller_id = Identifier()
    caller_role = String(max_length=20)


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    quantity: int
    note: str | None = None


def parse_lines(raw) -> list[OrderLine]:
    data = json.loads(raw) if isinstance(raw, str) else raw
    if not isinstance(data, list) or not data:
        raise InvalidInput("An order needs at least one item")

    lines = []
    for position, entry in enumerate(data):
        if not isinstance(entry, dict) or not entry.get("product_id"):
            raise InvalidInput("Every item needs a product_id", position=position)
        quantity = entry.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= MAX_LINE_QUANTITY:
            raise InvalidInput(
                f"Quantity must be a whole number between 1 and {MAX_LINE_QUANTITY}",
                position=position,
                product_id=str(entry["product_id"]),
            )
        note = entry.get("note") or None
        if note is not None and len(note) > 100:
            raise InvalidInput("Item note is limited to 100 characters", position=position)
        lines.append(OrderLine(product_id=str(entry["product_id"]), quantity=quantity, note=note))
    return lines


def _parse_enum(enum_cls, value, field_name):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInput(f"{field_name} must be one of: {allowed}", **{field_name: value}) from None


@canteen.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        # 1. Input shape
        lines = parse_lines(command.items)
        dine_type = _parse_enum(DineType, command.dine_type, "dine_type")
        payment_method = _parse_enum(PaymentMethod, command.payment_method or PaymentMethod.CASH.value, "payment_method")
        if command.note and len(command.note) > 200:
            raise InvalidInput("Order note is limited to 200 characters")

        # 2. Merchant
        merchant_repo = current_domain.repository_for(Merchant)
        try:
            merchant = merchant_repo.get(command.merchant_id)
        except ObjectNotFoundError:
            raise MerchantNotFound(command.merchant_id) from None

        # 3. Open for business
        now = utcnow()
        if not merchant.is_open():
            raise MerchantClosed("Merchant is not accepting orders", merchant_id=str(merchant.id))
        if not merchant.is_within_business_hours(to_local(now)):
            hours = merchant.business_hours
            raise MerchantClosed(
                "Merchant is outside business hours",
                merchant_id=str(merchant.id),
                opens_at=hours.opens_at,
                closes_at=hours.closes_at,
            )

        # 4. Resolve products; repeated ids share one instance
        menu_repo = current_domain.repository_for(MenuItem)
        products: dict[str, MenuItem] = {}
        for line in lines:
            if line.product_id in products:
                continue
            products[line.product_id] = _load_available_product(menu_repo, line.product_id, merchant)

        # 5. Stock, cumulative across lines of the same product
        for line in lines:
            product = products[line.product_id]
            if not product.check_stock(line.quantity) or not product.reduce_stock(line.quantity):
                logger.info(
                    "stock_rejected",
                    product_id=line.product_id,
                    requested=line.quantity,
                    available=product.stock,
                )
                raise InsufficientStock(product.id, product.name, line.quantity, product.stock)

        customer_id, customer_info = _snapshot_caller(command.caller_id, command.caller_role)

        queue_number = next_queue_number(merchant, now)
        order = Order.place(
            merchant_id=merchant.id,
            dine_type=dine_type,
            lines=[(products[line.product_id], line.quantity, line.note) for line in lines],
            queue_number=queue_number,
            customer_id=customer_id,
            customer_info=customer_info,
            note=command.note,
            payment_method=payment_method,
            prep_minutes=merchant.prep_minutes,
            placed_at=now,
        )
        merchant.record_order_placed()

        for product in products.values():
            menu_repo.add(product)
        current_domain.repository_for(Order).add(order)
        merchant_repo.add(merchant)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            merchant_id=str(merchant.id),
            queue_number=queue_number,
            total_amount=order.total_amount,
        )
        return str(order.id)


def _load_available_product(menu_repo, product_id, merchant) -> MenuItem:
    try:
        product = menu_repo.get(product_id)
    except ObjectNotFoundError:
        raise ProductNotFound(product_id) from None
    if not product.is_available or str(product.merchant_id) != str(merchant.id):
        raise ProductNotFound(product_id)
    return product


def _snapshot_caller(caller_id, caller_role):
    """Contact details come from the caller's own profile, never from the request.

    Merchants placing counter orders and anonymous callers create guest
    orders without a customer.
    """
    if caller_id is None or caller_role != Role.CUSTOMER.value:
        return None, None
    try:
        customer = current_domain.repository_for(Customer).get(caller_id)
    except ObjectNotFoundError:
        raise Unauthenticated("Unknown customer account") from None
    return str(customer.id), customer.contact_snapshot()
