"""Builders shared by the application, integration and BDD tests."""

from protean.utils.globals import current_domain

from canteen.account.registration import RegisterCustomer
from canteen.identity import Caller, Role
from canteen.menu.management import AddMenuItem
from canteen.menu.product import MenuItem
from canteen.merchant.merchant import Merchant
from canteen.merchant.registration import RegisterMerchant
from canteen.order.order import Order


def register_merchant(name="Night Grill", opens_at="00:00", closes_at="23:59", prep_minutes=15) -> str:
    return current_domain.process(
        RegisterMerchant(name=name, opens_at=opens_at, closes_at=closes_at, prep_minutes=prep_minutes),
        asynchronous=False,
    )


def add_menu_item(merchant_id, name="Lamb Skewer", price=5.0, stock=-1, is_available=True) -> str:
    return current_domain.process(
        AddMenuItem(merchant_id=merchant_id, name=name, price=price, stock=stock, is_available=is_available),
        asynchronous=False,
    )


def register_customer(nickname="Xiao Li", phone="13800138000", avatar=None) -> str:
    return current_domain.process(
        RegisterCustomer(nickname=nickname, phone=phone, avatar=avatar),
        asynchronous=False,
    )


def merchant_caller(merchant_id) -> Caller:
    return Caller(actor_id=str(merchant_id), role=Role.MERCHANT)


def customer_caller(customer_id) -> Caller:
    return Caller(actor_id=str(customer_id), role=Role.CUSTOMER)


def line(product_id, quantity=1, note=None) -> dict:
    return {"product_id": product_id, "quantity": quantity, "note": note}


def get_merchant(merchant_id) -> Merchant:
    return current_domain.repository_for(Merchant).get(merchant_id)


def get_menu_item(menu_item_id) -> MenuItem:
    return current_domain.repository_for(MenuItem).get(menu_item_id)


def get_order(order_id) -> Order:
    return current_domain.repository_for(Order).get(order_id)
