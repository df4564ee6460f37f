"""FastAPI routes for the canteen: merchants, menu items, customers and orders."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from canteen.account.customer import Customer
from canteen.account.registration import RegisterCustomer, UpdateCustomerProfile
from canteen.api.deps import current_caller, current_customer, current_merchant, optional_caller
from canteen.api.schemas import (
    AddMenuItemRequest,
    CancelOrderRequest,
    CredentialsResponse,
    CustomerResponse,
    MenuItemResponse,
    MerchantResponse,
    MerchantSettingsRequest,
    OrderPageResponse,
    OrderResponse,
    OrderStatsResponse,
    PlaceOrderRequest,
    QueueBoardResponse,
    RegisterCustomerRequest,
    RegisterMerchantRequest,
    RestockRequest,
    UpdateCustomerRequest,
    UpdateMenuItemRequest,
    UpdateOrderStatusRequest,
)
from canteen.errors import Forbidden, MerchantNotFound, ProductNotFound
from canteen.identity import Caller, Role, get_resolver
from canteen.menu.management import AddMenuItem, RestockMenuItem, UpdateMenuItem
from canteen.menu.product import MenuItem
from canteen.merchant.merchant import Merchant
from canteen.merchant.registration import RegisterMerchant, UpdateMerchantSettings
from canteen.order import queries, transactions


def _get_merchant(merchant_id: str) -> Merchant:
    try:
        return current_domain.repository_for(Merchant).get(merchant_id)
    except ObjectNotFoundError:
        raise MerchantNotFound(merchant_id) from None


def _get_menu_item(menu_item_id: str) -> MenuItem:
    try:
        return current_domain.repository_for(MenuItem).get(menu_item_id)
    except ObjectNotFoundError:
        raise ProductNotFound(menu_item_id) from None


# ---------------------------------------------------------------------------
# Merchant Router
# ---------------------------------------------------------------------------
merchant_router = APIRouter(prefix="/merchants", tags=["merchants"])


@merchant_router.post("", status_code=201, response_model=CredentialsResponse)
async def register_merchant(body: RegisterMerchantRequest) -> CredentialsResponse:
    command = RegisterMerchant(
        name=body.name,
        phone=body.phone,
        address=body.address,
        description=body.description,
        opens_at=body.opens_at,
        closes_at=body.closes_at,
        prep_minutes=body.prep_minutes,
    )
    merchant_id = current_domain.process(command, asynchronous=False)
    token = get_resolver().issue(Caller(actor_id=merchant_id, role=Role.MERCHANT))
    return CredentialsResponse(id=merchant_id, access_token=token)


@merchant_router.get("/{merchant_id}", response_model=MerchantResponse)
async def get_merchant(merchant_id: str) -> MerchantResponse:
    return MerchantResponse.from_merchant(_get_merchant(merchant_id))


@merchant_router.put("/{merchant_id}/settings", response_model=MerchantResponse)
async def update_merchant_settings(
    merchant_id: str,
    body: MerchantSettingsRequest,
    caller: Caller = Depends(current_merchant),
) -> MerchantResponse:
    if not caller.is_merchant_of(merchant_id):
        raise Forbidden("You can only change your own settings", merchant_id=merchant_id)
    _get_merchant(merchant_id)
    command = UpdateMerchantSettings(
        merchant_id=merchant_id,
        accept_orders=body.accept_orders,
        opens_at=body.opens_at,
        closes_at=body.closes_at,
        prep_minutes=body.prep_minutes,
    )
    current_domain.process(command, asynchronous=False)
    return MerchantResponse.from_merchant(_get_merchant(merchant_id))


@merchant_router.get("/{merchant_id}/menu", response_model=list[MenuItemResponse])
async def get_menu(merchant_id: str) -> list[MenuItemResponse]:
    _get_merchant(merchant_id)
    items = current_domain.repository_for(MenuItem).for_merchant(merchant_id, available_only=True)
    return [MenuItemResponse.from_item(item) for item in items]


@merchant_router.get("/{merchant_id}/queue", response_model=QueueBoardResponse)
async def get_queue(merchant_id: str) -> QueueBoardResponse:
    return QueueBoardResponse.from_board(queries.queue_board(merchant_id))


@merchant_router.get("/{merchant_id}/stats", response_model=OrderStatsResponse)
async def get_stats(merchant_id: str, caller: Caller = Depends(current_merchant)) -> OrderStatsResponse:
    if not caller.is_merchant_of(merchant_id):
        raise Forbidden("You can only view your own statistics", merchant_id=merchant_id)
    stats = queries.order_stats(merchant_id)
    return OrderStatsResponse.from_stats(stats, _get_merchant(merchant_id))


# ---------------------------------------------------------------------------
# Menu Router
# ---------------------------------------------------------------------------
menu_router = APIRouter(prefix="/menu-items", tags=["menu"])


@menu_router.post("", status_code=201, response_model=MenuItemResponse)
async def add_menu_item(body: AddMenuItemRequest, caller: Caller = Depends(current_merchant)) -> MenuItemResponse:
    command = AddMenuItem(
        merchant_id=caller.actor_id,
        name=body.name,
        price=body.price,
        stock=body.stock,
        is_available=body.is_available,
        description=body.description,
        category=body.category,
        image=body.image,
    )
    menu_item_id = current_domain.process(command, asynchronous=False)
    return MenuItemResponse.from_item(_get_menu_item(menu_item_id))


@menu_router.get("/{menu_item_id}", response_model=MenuItemResponse)
async def get_menu_item(menu_item_id: str) -> MenuItemResponse:
    return MenuItemResponse.from_item(_get_menu_item(menu_item_id))


@menu_router.put("/{menu_item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    menu_item_id: str,
    body: UpdateMenuItemRequest,
    caller: Caller = Depends(current_merchant),
) -> MenuItemResponse:
    _get_menu_item(menu_item_id)
    command = UpdateMenuItem(
        menu_item_id=menu_item_id,
        acting_merchant_id=caller.actor_id,
        name=body.name,
        price=body.price,
        is_available=body.is_available,
        description=body.description,
        category=body.category,
    )
    current_domain.process(command, asynchronous=False)
    return MenuItemResponse.from_item(_get_menu_item(menu_item_id))


@menu_router.put("/{menu_item_id}/stock", response_model=MenuItemResponse)
async def restock_menu_item(
    menu_item_id: str,
    body: RestockRequest,
    caller: Caller = Depends(current_merchant),
) -> MenuItemResponse:
    _get_menu_item(menu_item_id)
    command = RestockMenuItem(
        menu_item_id=menu_item_id,
        acting_merchant_id=caller.actor_id,
        stock=body.stock,
        unlimited=body.unlimited,
    )
    current_domain.process(command, asynchronous=False)
    return MenuItemResponse.from_item(_get_menu_item(menu_item_id))


# ---------------------------------------------------------------------------
# Customer Router
# ---------------------------------------------------------------------------
customer_router = APIRouter(prefix="/customers", tags=["customers"])


@customer_router.post("", status_code=201, response_model=CredentialsResponse)
async def register_customer(body: RegisterCustomerRequest) -> CredentialsResponse:
    command = RegisterCustomer(nickname=body.nickname, phone=body.phone, avatar=body.avatar)
    customer_id = current_domain.process(command, asynchronous=False)
    token = get_resolver().issue(Caller(actor_id=customer_id, role=Role.CUSTOMER))
    return CredentialsResponse(id=customer_id, access_token=token)


@customer_router.get("/me", response_model=CustomerResponse)
async def get_profile(caller: Caller = Depends(current_customer)) -> CustomerResponse:
    customer = current_domain.repository_for(Customer).get(caller.actor_id)
    return CustomerResponse.from_customer(customer)


@customer_router.put("/me", response_model=CustomerResponse)
async def update_profile(body: UpdateCustomerRequest, caller: Caller = Depends(current_customer)) -> CustomerResponse:
    command = UpdateCustomerProfile(
        customer_id=caller.actor_id,
        nickname=body.nickname,
        phone=body.phone,
        avatar=body.avatar,
    )
    current_domain.process(command, asynchronous=False)
    customer = current_domain.repository_for(Customer).get(caller.actor_id)
    return CustomerResponse.from_customer(customer)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])

# Writes retry conflicts with a blocking backoff, so they are plain functions
# and run in the threadpool.


@order_router.post("", status_code=201, response_model=OrderResponse)
def place_order(body: PlaceOrderRequest, caller: Caller | None = Depends(optional_caller)) -> OrderResponse:
    order = transactions.place_order(
        merchant_id=body.merchant_id,
        dine_type=body.dine_type,
        items=[line.model_dump() for line in body.items],
        caller=caller,
        note=body.note,
        payment_method=body.payment_method,
    )
    return OrderResponse.from_order(order)


@order_router.get("", response_model=OrderPageResponse)
async def list_orders(
    status: str | None = None,
    dine_type: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    sort: str = "-created_at",
    caller: Caller = Depends(current_caller),
) -> OrderPageResponse:
    result = queries.list_orders(
        caller,
        status=status,
        dine_type=dine_type,
        start=start,
        end=end,
        page=page,
        limit=limit,
        sort=sort,
    )
    return OrderPageResponse.from_page(result)


@order_router.get("/number/{order_number}", response_model=OrderResponse)
async def get_order_by_number(order_number: str, caller: Caller = Depends(current_caller)) -> OrderResponse:
    return OrderResponse.from_order(queries.get_order_by_number(order_number, caller))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, caller: Caller = Depends(current_caller)) -> OrderResponse:
    return OrderResponse.from_order(queries.get_order(order_id, caller))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    caller: Caller = Depends(current_merchant),
) -> OrderResponse:
    order = transactions.update_order_status(order_id, body.status, caller, reason=body.reason)
    return OrderResponse.from_order(order)


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    caller: Caller = Depends(current_caller),
) -> OrderResponse:
    order = transactions.cancel_order(order_id, caller, reason=body.reason if body else None)
    return OrderResponse.from_order(order)

