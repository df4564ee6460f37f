"""MenuItem aggregate: the menu item ledger.

Each item owns its price and stock. Stock is either bounded (``>= 0``) or
unlimited, stored as ``UNLIMITED_STOCK`` (-1). Code outside this module asks
``is_unlimited`` instead of comparing against the sentinel.

Stock moves only through ``check_stock`` / ``reduce_stock`` / ``add_stock``
during checkout and cancellation, and through ``restock`` by the merchant.
Insufficient stock is a boolean answer, not an exception: the checkout
coordinator decides how to fail.
"""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from canteen.domain import canteen

UNLIMITED_STOCK = -1

MIN_PRICE = 0.01
MAX_PRICE = 9999.99


def round_price(value) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@canteen.aggregate
class MenuItem:
    merchant_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    price = Float(required=True, min_value=MIN_PRICE, max_value=MAX_PRICE)
    is_available = Boolean(default=True)
    stock = Integer(default=UNLIMITED_STOCK, min_value=UNLIMITED_STOCK)
    sold_count = Integer(default=0, min_value=0)
    description = Text()
    category = String(max_length=50)
    image = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_is_unlimited_or_non_negative(self):
        if self.stock is not None and self.stock < UNLIMITED_STOCK:
            raise ValidationError({"stock": ["Stock must be -1 (unlimited) or a non-negative count"]})

    @invariant.post
    def name_must_not_be_blank(self):
        if self.name is not None and not self.name.strip():
            raise ValidationError({"name": ["Name cannot be blank"]})

    @classmethod
    def add(
        cls,
        merchant_id,
        name,
        price,
        stock=UNLIMITED_STOCK,
        is_available=True,
        description=None,
        category=None,
        image=None,
    ):
        from canteen.menu.events import MenuItemAdded

        now = datetime.now(UTC)
        item = cls(
            merchant_id=merchant_id,
            name=name.strip() if name else name,
            price=round_price(price),
            stock=UNLIMITED_STOCK if stock is None else stock,
            is_available=is_available,
            description=description,
            category=category,
            image=image,
            created_at=now,
            updated_at=now,
        )
        item.raise_(
            MenuItemAdded(
                menu_item_id=item.id,
                merchant_id=merchant_id,
                name=item.name,
                price=item.price,
                stock=item.stock,
                added_at=now,
            )
        )
        return item

    @property
    def is_unlimited(self) -> bool:
        return self.stock == UNLIMITED_STOCK

    # ------------------------------------------------------------------
    # Ledger operations
    # ------------------------------------------------------------------
    def check_stock(self, quantity: int) -> bool:
        """True when ``quantity`` units can be sold right now."""
        return self.is_unlimited or self.stock >= quantity

    def reduce_stock(self, quantity: int) -> bool:
        """Take ``quantity`` units out of stock.

        Returns False, leaving the item untouched, when there is not enough
        stock. Unlimited items are never reduced.
        """
        from canteen.menu.events import MenuItemSoldOut

        if self.is_unlimited:
            return True
        if self.stock < quantity:
            return False

        self.stock -= quantity
        self.sold_count = (self.sold_count or 0) + quantity
        self.updated_at = datetime.now(UTC)

        if self.stock == 0:
            self.raise_(
                MenuItemSoldOut(
                    menu_item_id=self.id,
                    merchant_id=self.merchant_id,
                    sold_count=self.sold_count,
                )
            )
        return True

    def add_stock(self, quantity: int) -> None:
        """Put ``quantity`` units back after a cancellation."""
        if self.is_unlimited:
            return
        self.stock += quantity
        self.sold_count = max(0, (self.sold_count or 0) - quantity)
        self.updated_at = datetime.now(UTC)

    # ------------------------------------------------------------------
    # Merchant management
    # ------------------------------------------------------------------
    def update_details(self, name=None, price=None, is_available=None, description=None, category=None):
        from canteen.menu.events import MenuItemUpdated

        with atomic_change(self):
            if name is not None:
                self.name = name.strip()
            if price is not None:
                self.price = round_price(price)
            if is_available is not None:
                self.is_available = is_available
            if description is not None:
                self.description = description
            if category is not None:
                self.category = category
            self.updated_at = datetime.now(UTC)

        self.raise_(
            MenuItemUpdated(
                menu_item_id=self.id,
                merchant_id=self.merchant_id,
                name=self.name,
                price=self.price,
                is_available=self.is_available,
            )
        )

    def restock(self, stock: int | None) -> None:
        """Set stock to ``stock`` units, or to unlimited when ``stock`` is None."""
        from canteen.menu.events import MenuItemRestocked

        previous = self.stock
        new_stock = UNLIMITED_STOCK if stock is None else stock
        if new_stock < UNLIMITED_STOCK:
            raise ValidationError({"stock": ["Stock must be -1 (unlimited) or a non-negative count"]})

        self.stock = new_stock
        self.updated_at = datetime.now(UTC)

        self.raise_(
            MenuItemRestocked(
                menu_item_id=self.id,
                merchant_id=self.merchant_id,
                previous_stock=previous,
                new_stock=new_stock,
            )
        )
