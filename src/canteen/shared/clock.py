"""Business calendar helpers.

Timestamps are stored in UTC. The business day (queue numbering, "today"
statistics) and business-hours checks follow the configured
``CANTEEN_TIMEZONE``.
"""

from datetime import UTC, date, datetime, time, tzinfo
from zoneinfo import ZoneInfo

from canteen.config import get_settings


def business_timezone() -> tzinfo:
    name = get_settings().timezone
    if name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)


def utcnow() -> datetime:
    return datetime.now(UTC)


def to_local(at: datetime | None = None) -> datetime:
    """Convert a timestamp (default: now) to business-local time."""
    at = at or utcnow()
    if at.tzinfo is None:
        at = at.replace(tzinfo=UTC)
    return at.astimezone(business_timezone())


def business_date(at: datetime | None = None) -> date:
    return to_local(at).date()


def start_of_business_day(at: datetime | None = None) -> datetime:
    """Midnight of the business day containing ``at``, expressed in UTC."""
    local = to_local(at)
    midnight = datetime.combine(local.date(), time.min, tzinfo=local.tzinfo)
    return midnight.astimezone(UTC)


def start_of_business_month(at: datetime | None = None) -> datetime:
    local = to_local(at)
    first = datetime.combine(local.date().replace(day=1), time.min, tzinfo=local.tzinfo)
    return first.astimezone(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a stored timestamp; naive values are treated as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
