"""Paystack webhook handling: verify, re-check with the gateway, settle the order.

Every transition is conditional on the order still being ``pending``, so a
replayed webhook (or a sweep racing a webhook) is a no-op: stock is restored
at most once and the confirmation email goes out at most once.
"""

import json
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from libs.common.currency import cedis_to_pesewas
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.exceptions import (
    InvalidWebhookSignatureError,
    PaymentGatewayError,
    WebhookPayloadError,
)
from services.store_service.models import Order, OrderStatus, PaymentIssue
from services.store_service.paystack_client import (
    PaymentVerification,
    PaystackClient,
    PaystackError,
)
from services.store_service.repository import StoreUnitOfWork
from services.store_service.services.notifications import OrderNotifier
from services.store_service.services.order_service import restore_stock

logger = get_logger(__name__)


@dataclass
class ConfirmationResult:
    success: bool
    message: str
    order_id: Optional[str] = None
    status: Optional[OrderStatus] = None
    # True when this call moved the order out of pending
    changed: bool = False

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.order_id:
            body["orderId"] = self.order_id
        if self.status:
            body["status"] = self.status.value
        return body


def _result(
    success: bool, message: str, order: Order, changed: bool = False
) -> ConfirmationResult:
    return ConfirmationResult(
        success=success,
        message=message,
        order_id=str(order.id),
        status=order.status,
        changed=changed,
    )


class PaymentConfirmationService:
    def __init__(
        self,
        uow: StoreUnitOfWork,
        gateway: PaystackClient,
        notifier: OrderNotifier,
    ):
        self.uow = uow
        self.gateway = gateway
        self.notifier = notifier

    async def handle_webhook(
        self, raw_body: bytes, signature: Optional[str]
    ) -> ConfirmationResult:
        """
        Process a Paystack webhook delivery.

        The signature is checked against the raw body bytes, and the payment
        status is always re-read from Paystack rather than trusted from the
        payload.
        """
        if not self.gateway.verify_webhook_signature(raw_body, signature):
            logger.warning("Rejected webhook with invalid signature")
            raise InvalidWebhookSignatureError()

        try:
            payload = json.loads(raw_body.decode("utf-8") or "{}")
        except ValueError:
            raise WebhookPayloadError("Invalid webhook payload")

        data = payload.get("data") if isinstance(payload, dict) else None
        reference = data.get("reference") if isinstance(data, dict) else None
        if not reference:
            raise WebhookPayloadError("Payment reference is required")

        logger.info(
            "Webhook %s received for reference %s", payload.get("event"), reference
        )

        try:
            verification = await self.gateway.verify_payment(reference)
        except PaystackError as e:
            logger.error("Could not verify payment %s: %s", reference, e.message)
            raise PaymentGatewayError(e.message) from e

        return await self.apply_verification(reference, verification)

    async def apply_verification(
        self, reference: str, verification: PaymentVerification
    ) -> ConfirmationResult:
        """Settle the order for ``reference`` according to Paystack's answer."""
        if verification.is_success:
            return await self._mark_paid(reference, verification)
        if verification.is_failure:
            return await self._cancel_unpaid(reference, verification.status)

        logger.info(
            "Payment %s is %s; leaving order unchanged", reference, verification.status
        )
        return ConfirmationResult(
            success=False, message=f"Payment is {verification.status}"
        )

    async def _mark_paid(
        self, reference: str, verification: PaymentVerification
    ) -> ConfirmationResult:
        async with self.uow.transaction() as tx:
            order = await tx.get_order_by_reference(reference)
            if not order:
                logger.warning("No order for payment reference %s", reference)
                return ConfirmationResult(success=False, message="Order not found")

            expected = cedis_to_pesewas(order.total_amount)
            if order.status == OrderStatus.PENDING and verification.amount != expected:
                logger.error(
                    "Amount mismatch for %s: paid %s pesewas, expected %s",
                    reference,
                    verification.amount,
                    expected,
                )
                if order.payment_issue is None:
                    await tx.flag_payment_issue(
                        order.id, PaymentIssue.AMOUNT_MISMATCH
                    )
                    order = await tx.get_order(order.id)
                return _result(False, "Payment amount mismatch", order)

            won = await tx.transition_status(
                order.id,
                {OrderStatus.PENDING},
                OrderStatus.PAID,
                paid_at=verification.paid_at or utc_now(),
            )
            order = await tx.get_order(order.id)
            if (
                not won
                and order.status == OrderStatus.CANCELLED
                and order.payment_issue != PaymentIssue.REFUND_REQUIRED
            ):
                await tx.flag_payment_issue(order.id, PaymentIssue.REFUND_REQUIRED)
                order = await tx.get_order(order.id)

        if not won:
            if order.status == OrderStatus.CANCELLED:
                logger.error(
                    "Payment %s captured for cancelled order %s; refund required",
                    reference,
                    order.id,
                )
            else:
                logger.info(
                    "Order %s already %s; ignoring duplicate success",
                    order.id,
                    order.status.value,
                )
            return _result(
                order.status != OrderStatus.CANCELLED, "Order already processed", order
            )

        logger.info("Order %s marked paid (ref=%s)", order.id, reference)
        await self.notifier.send_order_confirmation(order)
        return _result(True, "Payment verified", order, changed=True)

    async def _cancel_unpaid(self, reference: str, gateway_status: str) -> ConfirmationResult:
        async with self.uow.transaction() as tx:
            order = await tx.get_order_by_reference(reference)
            if not order:
                logger.warning("No order for payment reference %s", reference)
                return ConfirmationResult(success=False, message="Order not found")

            won = await tx.transition_status(
                order.id,
                {OrderStatus.PENDING},
                OrderStatus.CANCELLED,
                cancelled_at=utc_now(),
            )
            if won:
                await restore_stock(tx, order)
            order = await tx.get_order(order.id)

        if not won:
            logger.info(
                "Order %s already %s; ignoring duplicate failure",
                order.id,
                order.status.value,
            )
            return _result(False, "Order already processed", order)

        logger.info(
            "Order %s cancelled after payment %s (ref=%s)",
            order.id,
            gateway_status,
            reference,
        )
        return _result(False, "Payment failed", order, changed=True)

    async def cancel_pending_order(self, order_id: uuid.UUID) -> bool:
        """Cancel a still-pending order and restore its stock."""
        async with self.uow.transaction() as tx:
            order = await tx.get_order(order_id)
            if not order:
                return False
            won = await tx.transition_status(
                order.id,
                {OrderStatus.PENDING},
                OrderStatus.CANCELLED,
                cancelled_at=utc_now(),
            )
            if won:
                await restore_stock(tx, order)
        return won
