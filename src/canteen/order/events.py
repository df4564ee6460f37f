"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from canteen.domain import canteen


@canteen.event(part_of="Order")
class OrderPlaced:
    """A checkout went through: stock was taken and a queue number issued."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    merchant_id = Identifier(required=True)
    customer_id = Identifier()
    queue_number = Integer(required=True)
    dine_type = String(required=True)
    total_amount = Float(required=True)
    items = Text(required=True)  # JSON: [{product_id, quantity}]
    placed_at = DateTime(required=True)


@canteen.event(part_of="Order")
class OrderStatusChanged:
    """An order moved one step along confirmed, cooking, ready, completed."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@canteen.event(part_of="Order")
class OrderCompleted:
    """The customer picked up the order; its total counts as revenue."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    total_amount = Float(required=True)
    completed_at = DateTime(required=True)


@canteen.event(part_of="Order")
class OrderCancelled:
    """An order was cancelled before preparation and its stock returned."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)
