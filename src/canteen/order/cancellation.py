"""Order cancellation: command and handler.

Cancelling returns every line's quantity to stock in the same unit of work
as the status write. Only the owning merchant or the customer who placed
the order may cancel, and only while it is pending or confirmed.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from canteen.domain import canteen
from canteen.errors import Forbidden, OrderNotFound, Unauthenticated
from canteen.identity.port import Caller, Role
from canteen.menu.product import MenuItem
from canteen.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@canteen.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=200)
    caller_id = Identifier(required=True)
    caller_role = String(required=True, max_length=20)


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise OrderNotFound(order_id) from None


def caller_from(command) -> Caller:
    try:
        role = Role(command.caller_role)
    except ValueError:
        raise Unauthenticated(f"Unknown caller role '{command.caller_role}'") from None
    return Caller(actor_id=str(command.caller_id), role=role)


def cancel_and_restock(order: Order, reason, cancelled_by: str) -> None:
    """Cancel ``order`` and put its quantities back on the menu.

    The transition is checked first, so a rejected cancellation touches no
    stock. Order and menu items are added to their repositories together.
    """
    previous = order.cancel(reason=reason, cancelled_by=cancelled_by)

    menu_repo = current_domain.repository_for(MenuItem)
    restocked = []
    for product_id, quantity in order.quantities_by_product().items():
        try:
            product = menu_repo.get(product_id)
        except ObjectNotFoundError:
            logger.warning("restock_skipped_missing_product", order_id=str(order.id), product_id=product_id)
            continue
        product.add_stock(quantity)
        restocked.append(product)

    for product in restocked:
        menu_repo.add(product)
    current_domain.repository_for(Order).add(order)

    logger.info(
        "order_cancelled",
        order_id=str(order.id),
        previous_status=previous.value,
        cancelled_by=cancelled_by,
        restocked_products=len(restocked),
    )


@canteen.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id)
        caller = caller_from(command)

        if not (caller.is_merchant_of(order.merchant_id) or caller.is_customer_of(order.customer_id)):
            raise Forbidden("Only the merchant or the customer of this order can cancel it", order_id=str(order.id))

        cancel_and_restock(order, command.reason, caller.role.value)
        return OrderStatus.CANCELLED.value
