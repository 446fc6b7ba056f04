"""Background tasks for the store service."""

from datetime import datetime, timedelta
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.dependencies import StoreComponents
from services.store_service.paystack_client import PaystackError

logger = get_logger(__name__)

STALE_ORDER_BATCH_SIZE = 200


async def reconcile_stale_pending_orders(
    components: StoreComponents, now: Optional[datetime] = None
) -> int:
    """
    Settle Paystack orders that never received a webhook.

    - Orders pending longer than STALE_ORDER_MINUTES are re-verified with
      Paystack and settled the same way a webhook would settle them.
    - When Paystack answers that it has no transaction for the reference and
      the order is older than STALE_ORDER_CANCEL_HOURS, the order is
      cancelled and its stock restored.
    - Gateway outages (transport errors, 5xx) never cancel anything; the
      order is retried on the next run.
    - Orders flagged with a payment issue are left for an admin.

    Returns the number of orders moved out of pending.
    """
    settings = components.settings
    now = now or utc_now()
    stale_cutoff = now - timedelta(minutes=settings.STALE_ORDER_MINUTES)
    cancel_cutoff = now - timedelta(hours=settings.STALE_ORDER_CANCEL_HOURS)
    confirmation = components.payment_confirmation

    async with components.uow.transaction() as tx:
        pending = await tx.list_stale_pending_orders(
            stale_cutoff, limit=STALE_ORDER_BATCH_SIZE
        )

    processed = 0
    for order in pending:
        try:
            verification = await components.gateway.verify_payment(order.payment_ref)
        except PaystackError as exc:
            if exc.is_reference_not_found and order.created_at <= cancel_cutoff:
                if await confirmation.cancel_pending_order(order.id):
                    logger.info(
                        "Cancelled abandoned order %s (ref=%s): %s",
                        order.id,
                        order.payment_ref,
                        exc.message,
                    )
                    processed += 1
            else:
                logger.warning(
                    "Pending order verify failed for %s (status=%s): %s",
                    order.payment_ref,
                    exc.status_code,
                    exc.message,
                )
            continue

        result = await confirmation.apply_verification(order.payment_ref, verification)
        if result.changed:
            processed += 1

    if processed:
        logger.info("Reconciled %d stale pending orders", processed)
    return processed
