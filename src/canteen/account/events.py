"""Domain events for the Customer aggregate."""

from protean.fields import DateTime, Identifier, String

from canteen.domain import canteen


@canteen.event(part_of="Customer")
class CustomerRegistered:
    """A walk-up customer created an account."""

    __version__ = "v1"

    customer_id = Identifier(required=True)
    nickname = String(required=True)
    phone = String()
    registered_at = DateTime(required=True)


@canteen.event(part_of="Customer")
class CustomerProfileUpdated:
    """A customer changed the contact details shown on their orders."""

    __version__ = "v1"

    customer_id = Identifier(required=True)
    nickname = String(required=True)
    phone = String()
    avatar = String()
