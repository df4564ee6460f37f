"""Pydantic request/response schemas for the canteen API.

These are external contracts, kept separate from the Protean commands they
are translated into. Checkout requests carry no contact fields: the order's
customer details always come from the caller's own profile.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from canteen.account.customer import Customer
from canteen.menu.product import MenuItem
from canteen.merchant.merchant import Merchant
from canteen.order.order import Order
from canteen.order.queries import OrderPage, OrderStats, PeriodStats, QueueBoard


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class CredentialsResponse(BaseModel):
    """Identifier of a new account plus a bearer token for it."""

    id: str
    access_token: str
    token_type: str = "bearer"


# ---------------------------------------------------------------------------
# Merchants
# ---------------------------------------------------------------------------
class RegisterMerchantRequest(BaseModel):
    name: str
    phone: str | None = None
    address: str | None = None
    description: str | None = None
    opens_at: str = "00:00"
    closes_at: str = "23:59"
    prep_minutes: int = 15

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Old Zhang's Skewers",
                    "opens_at": "17:00",
                    "closes_at": "02:00",
                    "prep_minutes": 20,
                }
            ]
        }
    }


class MerchantSettingsRequest(BaseModel):
    accept_orders: bool | None = None
    opens_at: str | None = None
    closes_at: str | None = None
    prep_minutes: int | None = None


class MerchantStatsSchema(BaseModel):
    total_orders: int
    total_revenue: float
    completed_orders: int


class MerchantResponse(BaseModel):
    id: str
    name: str
    phone: str | None = None
    address: str | None = None
    description: str | None = None
    is_open: bool
    accept_orders: bool
    opens_at: str | None = None
    closes_at: str | None = None
    prep_minutes: int

    @classmethod
    def from_merchant(cls, merchant: Merchant) -> "MerchantResponse":
        hours = merchant.business_hours
        return cls(
            id=str(merchant.id),
            name=merchant.name,
            phone=merchant.phone,
            address=merchant.address,
            description=merchant.description,
            is_open=merchant.is_open(),
            accept_orders=bool(merchant.accept_orders),
            opens_at=hours.opens_at if hours else None,
            closes_at=hours.closes_at if hours else None,
            prep_minutes=merchant.prep_minutes,
        )


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------
class AddMenuItemRequest(BaseModel):
    name: str
    price: float
    stock: int = -1
    is_available: bool = True
    description: str | None = None
    category: str | None = None
    image: str | None = None


class UpdateMenuItemRequest(BaseModel):
    name: str | None = None
    price: float | None = None
    is_available: bool | None = None
    description: str | None = None
    category: str | None = None


class RestockRequest(BaseModel):
    stock: int | None = Field(default=None, ge=0)
    unlimited: bool = False


class MenuItemResponse(BaseModel):
    id: str
    merchant_id: str
    name: str
    price: float
    is_available: bool
    unlimited_stock: bool
    stock: int | None
    sold_count: int
    description: str | None = None
    category: str | None = None
    image: str | None = None

    @classmethod
    def from_item(cls, item: MenuItem) -> "MenuItemResponse":
        return cls(
            id=str(item.id),
            merchant_id=str(item.merchant_id),
            name=item.name,
            price=item.price,
            is_available=bool(item.is_available),
            unlimited_stock=item.is_unlimited,
            stock=None if item.is_unlimited else item.stock,
            sold_count=item.sold_count or 0,
            description=item.description,
            category=item.category,
            image=item.image,
        )


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------
class RegisterCustomerRequest(BaseModel):
    nickname: str
    phone: str | None = None
    avatar: str | None = None


class UpdateCustomerRequest(BaseModel):
    nickname: str | None = None
    phone: str | None = None
    avatar: str | None = None


class CustomerResponse(BaseModel):
    id: str
    nickname: str
    phone: str | None = None
    avatar: str | None = None

    @classmethod
    def from_customer(cls, customer: Customer) -> "CustomerResponse":
        return cls(id=str(customer.id), **customer.contact_snapshot())


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineRequest(BaseModel):
    product_id: str
    quantity: int
    note: str | None = None


class PlaceOrderRequest(BaseModel):
    merchant_id: str
    dine_type: str
    items: list[OrderLineRequest]
    note: str | None = None
    payment_method: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "merchant_id": "m-001",
                    "dine_type": "takeaway",
                    "items": [{"product_id": "p-001", "quantity": 2, "note": "extra spicy"}],
                    "payment_method": "wechat",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str
    reason: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class OrderItemSchema(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int
    subtotal: float
    note: str | None = None
    image: str | None = None


class CustomerInfoSchema(BaseModel):
    nickname: str | None = None
    phone: str | None = None
    avatar: str | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    merchant_id: str
    customer_id: str | None = None
    status: str
    status_label: str
    dine_type: str
    queue_number: int
    items: list[OrderItemSchema]
    total_amount: float
    customer_info: CustomerInfoSchema | None = None
    payment_method: str | None = None
    payment_status: str | None = None
    note: str | None = None
    estimated_ready_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None
    cancelled_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        info = order.customer_info
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            merchant_id=str(order.merchant_id),
            customer_id=str(order.customer_id) if order.customer_id else None,
            status=order.status,
            status_label=order.status_label,
            dine_type=order.dine_type,
            queue_number=order.queue_number,
            items=[
                OrderItemSchema(
                    product_id=str(item.product_id),
                    name=item.name,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    subtotal=item.subtotal,
                    note=item.note,
                    image=item.image,
                )
                for item in order.items
            ],
            total_amount=order.total_amount,
            customer_info=CustomerInfoSchema(nickname=info.nickname, phone=info.phone, avatar=info.avatar)
            if info
            else None,
            payment_method=order.payment.method if order.payment else None,
            payment_status=order.payment.status if order.payment else None,
            note=order.note,
            estimated_ready_at=order.estimated_ready_at,
            completed_at=order.completed_at,
            cancelled_at=order.cancelled_at,
            cancel_reason=order.cancel_reason,
            cancelled_by=order.cancelled_by,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderPageResponse(BaseModel):
    orders: list[OrderResponse]
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def from_page(cls, page: OrderPage) -> "OrderPageResponse":
        return cls(
            orders=[OrderResponse.from_order(order) for order in page.orders],
            total=page.total,
            page=page.page,
            limit=page.limit,
            pages=page.pages,
        )


class QueueEntrySchema(BaseModel):
    order_id: str
    queue_number: int
    status: str
    status_label: str
    dine_type: str
    waiting_minutes: int


class QueueBoardResponse(BaseModel):
    merchant_id: str
    waiting_count: int
    average_wait_minutes: int
    orders: list[QueueEntrySchema]

    @classmethod
    def from_board(cls, board: QueueBoard) -> "QueueBoardResponse":
        return cls(
            merchant_id=board.merchant_id,
            waiting_count=board.waiting_count,
            average_wait_minutes=board.average_wait_minutes,
            orders=[
                QueueEntrySchema(
                    order_id=str(order.id),
                    queue_number=order.queue_number,
                    status=order.status,
                    status_label=order.status_label,
                    dine_type=order.dine_type,
                    waiting_minutes=order.waiting_minutes(),
                )
                for order in board.orders
            ],
        )


class PeriodStatsSchema(BaseModel):
    order_count: int
    revenue: float
    completed_count: int
    cancelled_count: int

    @classmethod
    def from_period(cls, period: PeriodStats) -> "PeriodStatsSchema":
        return cls(
            order_count=period.order_count,
            revenue=period.revenue,
            completed_count=period.completed_count,
            cancelled_count=period.cancelled_count,
        )


class OrderStatsResponse(BaseModel):
    merchant_id: str
    today: PeriodStatsSchema
    month: PeriodStatsSchema
    pending_count: int
    lifetime: MerchantStatsSchema

    @classmethod
    def from_stats(cls, stats: OrderStats, merchant: Merchant) -> "OrderStatsResponse":
        lifetime = merchant.stats
        return cls(
            merchant_id=stats.merchant_id,
            today=PeriodStatsSchema.from_period(stats.today),
            month=PeriodStatsSchema.from_period(stats.month),
            pending_count=stats.pending_count,
            lifetime=MerchantStatsSchema(
                total_orders=lifetime.total_orders if lifetime else 0,
                total_revenue=lifetime.total_revenue if lifetime else 0.0,
                completed_orders=lifetime.completed_orders if lifetime else 0,
            ),
        )
