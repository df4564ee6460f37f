"""Customer registration and profile updates: commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from canteen.account.customer import Customer
from canteen.domain import canteen


@canteen.command(part_of="Customer")
class RegisterCustomer:
    nickname = String(required=True, max_length=50)
    phone = String(max_length=11)
    avatar = String(max_length=500)


@canteen.command(part_of="Customer")
class UpdateCustomerProfile:
    customer_id = Identifier(required=True)
    nickname = String(max_length=50)
    phone = String(max_length=11)
    avatar = String(max_length=500)


@canteen.command_handler(part_of=Customer)
class CustomerAccountHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        customer = Customer.register(
            nickname=command.nickname,
            phone=command.phone,
            avatar=command.avatar,
        )
        current_domain.repository_for(Customer).add(customer)
        return str(customer.id)

    @handle(UpdateCustomerProfile)
    def update_profile(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)

        changes = {}
        if command.nickname is not None:
            changes["nickname"] = command.nickname
        if command.phone is not None:
            changes["phone"] = command.phone
        if command.avatar is not None:
            changes["avatar"] = command.avatar

        customer.update_profile(**changes)
        repo.add(customer)
