"""Domain events for the MenuItem aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from canteen.domain import canteen


@canteen.event(part_of="MenuItem")
class MenuItemAdded:
    """A merchant put a new item on the menu."""

    __version__ = "v1"

    menu_item_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    stock = Integer(required=True)
    added_at = DateTime(required=True)


@canteen.event(part_of="MenuItem")
class MenuItemUpdated:
    """Name, price, availability or presentation of a menu item changed."""

    __version__ = "v1"

    menu_item_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    name = String()
    price = Float()
    is_available = Boolean()


@canteen.event(part_of="MenuItem")
class MenuItemRestocked:
    """A merchant set a new stock level (or switched to unlimited)."""

    __version__ = "v1"

    menu_item_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)


@canteen.event(part_of="MenuItem")
class MenuItemSoldOut:
    """The last bounded unit of an item was sold."""

    __version__ = "v1"

    menu_item_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    sold_count = Integer(required=True)
