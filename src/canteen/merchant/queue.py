"""Queue sequencer.

Queue numbers come from the merchant's per-day cursor rather than from
counting today's orders, so two placements that race each other can never
draw the same number: both write the merchant and the slower one fails its
version check.
"""

from datetime import datetime

from canteen.merchant.merchant import Merchant
from canteen.shared.clock import business_date


def next_queue_number(merchant: Merchant, at: datetime | None = None) -> int:
    """Issue the next queue number for ``merchant`` on the business day of ``at``.

    The caller must persist ``merchant`` in the same unit of work as the
    order that carries the number.
    """
    return merchant.issue_queue_number(business_date(at))
