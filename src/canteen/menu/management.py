"""Menu management: commands and handler.

Only the owning merchant may add or change its items; the handler receives
the acting merchant id on every command and checks it against the item.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from canteen.domain import canteen
from canteen.errors import Forbidden, InvalidInput, MerchantNotFound, ProductNotFound
from canteen.menu.product import UNLIMITED_STOCK, MenuItem
from canteen.merchant.merchant import Merchant


@canteen.command(part_of="MenuItem")
class AddMenuItem:
    merchant_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    price = Float(required=True)
    stock = Integer(default=UNLIMITED_STOCK)
    is_available = Boolean(default=True)
    description = Text()
    category = String(max_length=50)
    image = String(max_length=500)


@canteen.command(part_of="MenuItem")
class UpdateMenuItem:
    menu_item_id = Identifier(required=True)
    acting_merchant_id = Identifier(required=True)
    name = String(max_length=100)
    price = Float()
    is_available = Boolean()
    description = Text()
    category = String(max_length=50)


@canteen.command(part_of="MenuItem")
class RestockMenuItem:
    menu_item_id = Identifier(required=True)
    acting_merchant_id = Identifier(required=True)
    stock = Integer()
    unlimited = Boolean(default=False)


@canteen.command_handler(part_of=MenuItem)
class MenuManagementHandler:
    @handle(AddMenuItem)
    def add_menu_item(self, command):
        try:
            current_domain.repository_for(Merchant).get(command.merchant_id)
        except ObjectNotFoundError:
            raise MerchantNotFound(command.merchant_id) from None

        item = MenuItem.add(
            merchant_id=command.merchant_id,
            name=command.name,
            price=command.price,
            stock=command.stock,
            is_available=command.is_available,
            description=command.description,
            category=command.category,
            image=command.image,
        )
        current_domain.repository_for(MenuItem).add(item)
        return str(item.id)

    @handle(UpdateMenuItem)
    def update_menu_item(self, command):
        repo = current_domain.repository_for(MenuItem)
        item = _owned_item(repo, command.menu_item_id, command.acting_merchant_id)
        item.update_details(
            name=command.name,
            price=command.price,
            is_available=command.is_available,
            description=command.description,
            category=command.category,
        )
        repo.add(item)

    @handle(RestockMenuItem)
    def restock_menu_item(self, command):
        repo = current_domain.repository_for(MenuItem)
        item = _owned_item(repo, command.menu_item_id, command.acting_merchant_id)
        if not command.unlimited and command.stock is None:
            raise InvalidInput("Provide a stock level or mark the item unlimited", menu_item_id=str(command.menu_item_id))
        item.restock(None if command.unlimited else command.stock)
        repo.add(item)


def _owned_item(repo, menu_item_id, merchant_id) -> MenuItem:
    try:
        item = repo.get(menu_item_id)
    except ObjectNotFoundError:
        raise ProductNotFound(menu_item_id) from None
    if str(item.merchant_id) != str(merchant_id):
        raise Forbidden("Menu item belongs to another merchant", menu_item_id=str(menu_item_id))
    return item
