"""Domain events for the Merchant aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from canteen.domain import canteen


@canteen.event(part_of="Merchant")
class MerchantRegistered:
    """A new merchant opened a stall."""

    __version__ = "v1"

    merchant_id = Identifier(required=True)
    name = String(required=True)
    opens_at = String()
    closes_at = String()
    registered_at = DateTime(required=True)


@canteen.event(part_of="Merchant")
class MerchantSettingsUpdated:
    """A merchant changed order intake, business hours or preparation time."""

    __version__ = "v1"

    merchant_id = Identifier(required=True)
    accept_orders = Boolean()
    opens_at = String()
    closes_at = String()
    prep_minutes = Integer()


@canteen.event(part_of="Merchant")
class MerchantRevenueRecorded:
    """A completed order was added to the merchant's running statistics."""

    __version__ = "v1"

    merchant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    total_revenue = Float(required=True)
    completed_orders = Integer(required=True)
