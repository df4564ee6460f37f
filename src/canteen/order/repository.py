"""Repository for the Order aggregate with the lookups the read side needs."""

from datetime import datetime

from canteen.domain import canteen
from canteen.order.order import Order

# Upper bound for unpaginated scans (daily boards, statistics)
SCAN_LIMIT = 10_000


@canteen.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        results = self._dao.query.filter(order_number=order_number).all()
        return results.first

    def search(
        self,
        merchant_id=None,
        customer_id=None,
        statuses=None,
        dine_type=None,
        placed_from: datetime | None = None,
        placed_to: datetime | None = None,
        order_by="-created_at",
        offset=0,
        limit=20,
    ):
        """Filter orders; returns Protean's ResultSet (``items``, ``total``).

        Both ends of the placement window are inclusive.
        """
        criteria = {}
        if merchant_id is not None:
            criteria["merchant_id"] = str(merchant_id)
        if customer_id is not None:
            criteria["customer_id"] = str(customer_id)
        if statuses:
            criteria["status__in"] = [getattr(s, "value", s) for s in statuses]
        if dine_type is not None:
            criteria["dine_type"] = getattr(dine_type, "value", dine_type)
        if placed_from is not None:
            criteria["created_at__gte"] = placed_from
        if placed_to is not None:
            criteria["created_at__lte"] = placed_to

        query = self._dao.query.filter(**criteria).order_by(order_by).offset(offset).limit(limit)
        return query.all()

    def placed_since(self, merchant_id, since: datetime, statuses=None) -> list[Order]:
        return self.search(
            merchant_id=merchant_id,
            statuses=statuses,
            placed_from=since,
            order_by="created_at",
            limit=SCAN_LIMIT,
        ).items

    def active_queue(self, merchant_id, statuses) -> list[Order]:
        return self.search(
            merchant_id=merchant_id,
            statuses=statuses,
            order_by="queue_number",
            limit=SCAN_LIMIT,
        ).items

    def completed_since(self, merchant_id, since: datetime) -> list[Order]:
        results = (
            self._dao.query.filter(
                merchant_id=str(merchant_id),
                status="completed",
                completed_at__gte=since,
            )
            .limit(SCAN_LIMIT)
            .all()
        )
        return results.items
