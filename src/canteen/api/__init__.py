from canteen.api.errors import register_error_handlers
from canteen.api.routes import customer_router, menu_router, merchant_router, order_router

__all__ = ["customer_router", "menu_router", "merchant_router", "order_router", "register_error_handlers"]
