"""Repository for the MenuItem aggregate."""

from canteen.domain import canteen
from canteen.menu.product import MenuItem


@canteen.repository(part_of=MenuItem)
class MenuItemRepository:
    def for_merchant(self, merchant_id, available_only: bool = False) -> list[MenuItem]:
        criteria = {"merchant_id": str(merchant_id)}
        if available_only:
            criteria["is_available"] = True
        return self._dao.query.filter(**criteria).order_by("name").limit(500).all().items
