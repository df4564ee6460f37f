"""Merchant aggregate with business hours, statistics and the daily queue cursor.

Statistics are never written by clients. They move only as a side effect of
order transitions: placement bumps ``total_orders``, completion adds revenue
and bumps ``completed_orders``.

The queue cursor holds the last queue number handed out on the current
business date. Every placement writes the merchant (cursor and stats), so
the aggregate's version check serializes concurrent placements for the same
merchant.
"""

import re
from datetime import UTC, date, datetime, time
from decimal import ROUND_HALF_UP, Decimal

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Float, Integer, String, Text, ValueObject

from canteen.domain import canteen

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DEFAULT_PREP_MINUTES = 15


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


@canteen.value_object(part_of="Merchant")
class BusinessHours:
    """Daily opening window in business-local time, both ends inclusive.

    When ``opens_at`` is later than ``closes_at`` the window wraps past
    midnight (e.g. 18:00-02:00 for a late-night stall).
    """

    opens_at = String(max_length=5, default="00:00")
    closes_at = String(max_length=5, default="23:59")

    @invariant.post
    def times_must_be_hhmm(self):
        for field_name in ("opens_at", "closes_at"):
            value = getattr(self, field_name)
            if value and not _HHMM.match(value):
                raise ValidationError({field_name: [f"Expected HH:MM, got '{value}'"]})

    def contains(self, moment: time) -> bool:
        opens = parse_hhmm(self.opens_at)
        closes = parse_hhmm(self.closes_at)
        moment = moment.replace(second=0, microsecond=0, tzinfo=None)
        if opens <= closes:
            return opens <= moment <= closes
        return moment >= opens or moment <= closes


@canteen.value_object(part_of="Merchant")
class MerchantStats:
    total_orders = Integer(default=0, min_value=0)
    total_revenue = Float(default=0.0, min_value=0.0)
    completed_orders = Integer(default=0, min_value=0)


@canteen.value_object(part_of="Merchant")
class QueueCursor:
    """Last queue number issued on ``business_date``."""

    business_date = Date(required=True)
    last_number = Integer(default=0, min_value=0)


@canteen.aggregate
class Merchant:
    name = String(required=True, max_length=100)
    phone = String(max_length=20)
    address = String(max_length=255)
    description = Text()
    is_active = Boolean(default=True)
    accept_orders = Boolean(default=True)
    business_hours = ValueObject(BusinessHours)
    prep_minutes = Integer(default=DEFAULT_PREP_MINUTES, min_value=5, max_value=120)
    stats = ValueObject(MerchantStats)
    queue = ValueObject(QueueCursor)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(
        cls,
        name,
        opens_at="00:00",
        closes_at="23:59",
        prep_minutes=DEFAULT_PREP_MINUTES,
        phone=None,
        address=None,
        description=None,
    ):
        from canteen.merchant.events import MerchantRegistered

        now = datetime.now(UTC)
        merchant = cls(
            name=name,
            phone=phone,
            address=address,
            description=description,
            business_hours=BusinessHours(opens_at=opens_at, closes_at=closes_at),
            prep_minutes=prep_minutes,
            stats=MerchantStats(),
            created_at=now,
            updated_at=now,
        )
        merchant.raise_(
            MerchantRegistered(
                merchant_id=merchant.id,
                name=name,
                opens_at=opens_at,
                closes_at=closes_at,
                registered_at=now,
            )
        )
        return merchant

    # ------------------------------------------------------------------
    # Order intake
    # ------------------------------------------------------------------
    def is_open(self) -> bool:
        return bool(self.is_active and self.accept_orders)

    def is_within_business_hours(self, local_moment: datetime) -> bool:
        if self.business_hours is None:
            return True
        return self.business_hours.contains(local_moment.time())

    def update_settings(self, accept_orders=None, opens_at=None, closes_at=None, prep_minutes=None):
        from canteen.merchant.events import MerchantSettingsUpdated

        with atomic_change(self):
            if accept_orders is not None:
                self.accept_orders = accept_orders
            if opens_at is not None or closes_at is not None:
                current = self.business_hours or BusinessHours()
                self.business_hours = BusinessHours(
                    opens_at=opens_at if opens_at is not None else current.opens_at,
                    closes_at=closes_at if closes_at is not None else current.closes_at,
                )
            if prep_minutes is not None:
                self.prep_minutes = prep_minutes
            self.updated_at = datetime.now(UTC)

        self.raise_(
            MerchantSettingsUpdated(
                merchant_id=self.id,
                accept_orders=self.accept_orders,
                opens_at=self.business_hours.opens_at if self.business_hours else None,
                closes_at=self.business_hours.closes_at if self.business_hours else None,
                prep_minutes=self.prep_minutes,
            )
        )

    # ------------------------------------------------------------------
    # Queue cursor
    # ------------------------------------------------------------------
    def issue_queue_number(self, on_date: date) -> int:
        """Advance the cursor and return the next number for ``on_date``.

        The counter restarts at 1 on a new business date. Numbers are never
        handed out twice on the same date, even when an order is cancelled.
        """
        last = 0
        if self.queue is not None and self.queue.business_date == on_date:
            last = self.queue.last_number
        number = last + 1
        self.queue = QueueCursor(business_date=on_date, last_number=number)
        return number

    # ------------------------------------------------------------------
    # Statistics accumulator
    # ------------------------------------------------------------------
    def _current_stats(self) -> MerchantStats:
        return self.stats or MerchantStats()

    def record_order_placed(self):
        stats = self._current_stats()
        self.stats = MerchantStats(
            total_orders=stats.total_orders + 1,
            total_revenue=stats.total_revenue,
            completed_orders=stats.completed_orders,
        )

    def record_order_completed(self, order_id, amount):
        from canteen.merchant.events import MerchantRevenueRecorded

        stats = self._current_stats()
        revenue = (Decimal(str(stats.total_revenue)) + Decimal(str(amount))).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        self.stats = MerchantStats(
            total_orders=stats.total_orders,
            total_revenue=float(revenue),
            completed_orders=stats.completed_orders + 1,
        )
        self.raise_(
            MerchantRevenueRecorded(
                merchant_id=self.id,
                order_id=order_id,
                amount=amount,
                total_revenue=self.stats.total_revenue,
                completed_orders=self.stats.completed_orders,
            )
        )
