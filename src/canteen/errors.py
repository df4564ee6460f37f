"""Typed failures of the ordering engine.

Each failure carries a stable ``code`` and the HTTP status the API layer
answers with. ``details`` holds machine-readable context (product ids,
states) and never includes storage-layer information.
"""

from typing import Any


class CanteenError(Exception):
    code = "canteen_error"
    status_code = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidInput(CanteenError):
    code = "invalid_input"
    status_code = 400


class Unauthenticated(CanteenError):
    code = "unauthenticated"
    status_code = 401


class Forbidden(CanteenError):
    code = "forbidden"
    status_code = 403


class MerchantNotFound(CanteenError):
    code = "merchant_not_found"
    status_code = 404

    def __init__(self, merchant_id: str) -> None:
        super().__init__(f"Merchant {merchant_id} does not exist", merchant_id=str(merchant_id))


class ProductNotFound(CanteenError):
    code = "product_not_found"
    status_code = 404

    def __init__(self, product_id: str) -> None:
        super().__init__(
            f"Product {product_id} does not exist or is not available",
            product_id=str(product_id),
        )


class OrderNotFound(CanteenError):
    code = "order_not_found"
    status_code = 404

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} does not exist", order_id=str(order_id))


class MerchantClosed(CanteenError):
    code = "merchant_closed"
    status_code = 409


class InsufficientStock(CanteenError):
    code = "insufficient_stock"
    status_code = 409

    def __init__(self, product_id: str, name: str, requested: int, available: int) -> None:
        super().__init__(
            f'Insufficient stock for "{name}": {available} available, {requested} requested',
            product_id=str(product_id),
            requested=requested,
            available=available,
        )


class InvalidTransition(CanteenError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Cannot transition order from {current} to {target}",
            current=current,
            target=target,
        )


class TransactionConflict(CanteenError):
    code = "transaction_conflict"
    status_code = 409
