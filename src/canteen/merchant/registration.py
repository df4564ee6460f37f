"""Merchant registration and settings: commands and handler.

Settings updates accept an explicit whitelist of fields; statistics and the
queue cursor are not reachable from here.
"""

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from canteen.domain import canteen
from canteen.merchant.merchant import DEFAULT_PREP_MINUTES, Merchant


@canteen.command(part_of="Merchant")
class RegisterMerchant:
    name = String(required=True, max_length=100)
    phone = String(max_length=20)
    address = String(max_length=255)
    description = Text()
    opens_at = String(max_length=5, default="00:00")
    closes_at = String(max_length=5, default="23:59")
    prep_minutes = Integer(default=DEFAULT_PREP_MINUTES, min_value=5, max_value=120)


@canteen.command(part_of="Merchant")
class UpdateMerchantSettings:
    merchant_id = Identifier(required=True)
    accept_orders = Boolean()
    opens_at = String(max_length=5)
    closes_at = String(max_length=5)
    prep_minutes = Integer(min_value=5, max_value=120)


@canteen.command_handler(part_of=Merchant)
class MerchantHandler:
    @handle(RegisterMerchant)
    def register_merchant(self, command):
        merchant = Merchant.register(
            name=command.name,
            opens_at=command.opens_at,
            closes_at=command.closes_at,
            prep_minutes=command.prep_minutes,
            phone=command.phone,
            address=command.address,
            description=command.description,
        )
        current_domain.repository_for(Merchant).add(merchant)
        return str(merchant.id)

    @handle(UpdateMerchantSettings)
    def update_settings(self, command):
        repo = current_domain.repository_for(Merchant)
        merchant = repo.get(command.merchant_id)
        merchant.update_settings(
            accept_orders=command.accept_orders,
            opens_at=command.opens_at,
            closes_at=command.closes_at,
            prep_minutes=command.prep_minutes,
        )
        repo.add(merchant)
