"""Shared BDD fixtures and step definitions for the canteen."""

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then, when

from canteen.errors import CanteenError
from canteen.menu.management import RestockMenuItem, UpdateMenuItem
from canteen.merchant.registration import UpdateMerchantSettings
from canteen.order.transactions import place_order
from support import add_menu_item, get_menu_item, get_merchant, get_order, line, register_merchant


@pytest.fixture()
def shop():
    """Names to ids for everything a scenario creates."""
    return {"merchant_id": None, "items": {}}


@pytest.fixture()
def checkout():
    return {"order_id": None, "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an open merchant "{name}"'))
def _(shop, name):
    shop["merchant_id"] = register_merchant(name=name)


@given(parsers.cfparse('a menu item "{name}" priced {price:f} with {stock:d} in stock'))
def _(shop, name, price, stock):
    shop["items"][name] = add_menu_item(shop["merchant_id"], name=name, price=price, stock=stock)


@given(parsers.cfparse('"{name}" is restocked to {stock:d}'))
def _(shop, name, stock):
    current_domain.process(
        RestockMenuItem(menu_item_id=shop["items"][name], acting_merchant_id=shop["merchant_id"], stock=stock),
        asynchronous=False,
    )


@given(parsers.cfparse('"{name}" is taken off the menu'))
def _(shop, name):
    current_domain.process(
        UpdateMenuItem(menu_item_id=shop["items"][name], acting_merchant_id=shop["merchant_id"], is_available=False),
        asynchronous=False,
    )


@given("the merchant stops accepting orders")
def _(shop):
    current_domain.process(
        UpdateMerchantSettings(merchant_id=shop["merchant_id"], accept_orders=False),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a guest orders {quantity:d} "{name}"'))
@when(parsers.cfparse('a guest orders {quantity:d} "{name}"'))
def _(shop, checkout, quantity, name):
    try:
        order = place_order(shop["merchant_id"], "takeaway", [line(shop["items"][name], quantity)])
    except CanteenError as exc:
        checkout["error"] = exc
    else:
        checkout["order_id"] = order.id
        checkout["error"] = None


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(shop, name, stock):
    assert get_menu_item(shop["items"][name]).stock == stock


@then(parsers.cfparse('the order status is "{status}"'))
def _(checkout, status):
    assert get_order(checkout["order_id"]).status == status


@then(parsers.cfparse("the merchant revenue is {revenue:f} from {count:d} completed order"))
def _(shop, revenue, count):
    stats = get_merchant(shop["merchant_id"]).stats
    assert stats.total_revenue == pytest.approx(revenue)
    assert stats.completed_orders == count
