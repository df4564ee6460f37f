"""Transaction runner and the write-side entry points.

Each command runs in one Protean unit of work. When two writers race on the
same aggregate (a menu item, the merchant's queue cursor), the loser's
commit fails with ``ExpectedVersionError``. That is the only failure retried
here: the whole command is re-run from scratch with exponential backoff, and
after the last attempt the caller gets ``TransactionConflict``. Every other
error is final for the request.
"""

import json

import structlog
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from canteen.config import get_settings
from canteen.errors import TransactionConflict
from canteen.identity.port import Caller
from canteen.order.cancellation import CancelOrder, load_order
from canteen.order.order import Order
from canteen.order.placement import PlaceOrder
from canteen.order.status import UpdateOrderStatus

logger = structlog.get_logger(__name__)


def _log_retry(retry_state):
    logger.warning(
        "transaction_conflict_retry",
        attempt=retry_state.attempt_number,
        operation=getattr(retry_state.fn, "__name__", repr(retry_state.fn)),
    )


def run_with_conflict_retry(operation, *args, max_attempts=None, wait=None, **kwargs):
    """Run ``operation`` and re-run it on version conflicts.

    ``wait`` overrides the backoff strategy (tests pass ``wait_none()``).
    """
    settings = get_settings()
    retrying = Retrying(
        stop=stop_after_attempt(max_attempts or settings.tx_max_attempts),
        wait=wait
        or wait_exponential(multiplier=settings.tx_backoff_seconds, max=settings.tx_backoff_max_seconds),
        retry=retry_if_exception_type(ExpectedVersionError),
        before_sleep=_log_retry,
        reraise=True,
    )
    try:
        return retrying(operation, *args, **kwargs)
    except ExpectedVersionError as exc:
        logger.error("transaction_conflict_exhausted", operation=getattr(operation, "__name__", repr(operation)))
        raise TransactionConflict("The order could not be saved because of concurrent updates; please retry") from exc


def _process(command):
    return current_domain.process(command, asynchronous=False)


def place_order(merchant_id, dine_type, items, caller: Caller | None = None, note=None, payment_method=None) -> Order:
    """Check out ``items`` against ``merchant_id`` and return the pending order.

    ``items`` is a list of ``{"product_id", "quantity", "note"}`` dicts.
    """

    def attempt():
        return _process(
            PlaceOrder(
                merchant_id=merchant_id,
                dine_type=dine_type,
                items=json.dumps(items),
                note=note,
                payment_method=payment_method,
                caller_id=caller.actor_id if caller else None,
                caller_role=caller.role.value if caller else None,
            )
        )

    order_id = run_with_conflict_retry(attempt)
    return load_order(order_id)


def update_order_status(order_id, status, caller: Caller, reason=None) -> Order:
    def attempt():
        return _process(
            UpdateOrderStatus(
                order_id=order_id,
                status=getattr(status, "value", status),
                reason=reason,
                caller_id=caller.actor_id,
                caller_role=caller.role.value,
            )
        )

    run_with_conflict_retry(attempt)
    return load_order(order_id)


def cancel_order(order_id, caller: Caller, reason=None) -> Order:
    def attempt():
        return _process(
            CancelOrder(
                order_id=order_id,
                reason=reason,
                caller_id=caller.actor_id,
                caller_role=caller.role.value,
            )
        )

    run_with_conflict_retry(attempt)
    return load_order(order_id)
