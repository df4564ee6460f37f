"""Merchant-driven status updates: command and handler.

Forward steps touch only the order, except completion, which also adds the
order total to the merchant's revenue. A merchant asking for ``cancelled``
takes the same path as a cancellation and restores stock.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from canteen.domain import canteen
from canteen.errors import Forbidden, InvalidInput
from canteen.merchant.merchant import Merchant
from canteen.order.cancellation import caller_from, cancel_and_restock, load_order
from canteen.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@canteen.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    reason = String(max_length=200)
    caller_id = Identifier(required=True)
    caller_role = String(required=True, max_length=20)


@canteen.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        try:
            target = OrderStatus(command.status)
        except ValueError:
            raise InvalidInput(f"Unknown order status '{command.status}'", status=command.status) from None

        order = load_order(command.order_id)
        caller = caller_from(command)
        if not caller.is_merchant_of(order.merchant_id):
            raise Forbidden("Only the merchant of this order can change its status", order_id=str(order.id))

        if target == OrderStatus.CANCELLED:
            cancel_and_restock(order, command.reason, caller.role.value)
            return target.value

        previous = order.update_status(target)

        if target == OrderStatus.COMPLETED:
            merchant_repo = current_domain.repository_for(Merchant)
            merchant = merchant_repo.get(order.merchant_id)
            merchant.record_order_completed(order.id, order.total_amount)
            merchant_repo.add(merchant)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            previous_status=previous.value,
            new_status=target.value,
        )
        return target.value
