"""Best-effort customer emails for order lifecycle events."""

from typing import Optional

from libs.common.config import Settings
from libs.common.emails.store import (
    send_order_confirmation_email,
    send_shipping_notification_email,
)
from libs.common.logging import get_logger
from services.store_service.models import Order

logger = get_logger(__name__)


def _email_items(order: Order) -> list[dict]:
    return [
        {
            "title": item.product_title,
            "size": item.size,
            "color": item.color,
            "quantity": item.quantity,
            "price": item.price_at_purchase,
        }
        for item in order.items
    ]


def _customer_name(order: Order) -> str:
    address = order.shipping_address or {}
    return address.get("fullName") or order.customer_name or "Customer"


class OrderNotifier:
    """Sends order emails. Failures are logged and never raised."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def send_order_confirmation(self, order: Order) -> bool:
        if not order.customer_email:
            logger.info("Order %s has no email address; skipping confirmation", order.id)
            return False
        try:
            return await send_order_confirmation_email(
                self.settings,
                to_email=order.customer_email,
                customer_name=_customer_name(order),
                order_id=str(order.id),
                items=_email_items(order),
                delivery_fee=order.delivery_fee,
                total=order.total_amount,
                shipping_address=order.shipping_address or {},
                scheduled_date=(
                    order.scheduled_date.isoformat() if order.scheduled_date else None
                ),
                time_window=order.time_window.value if order.time_window else None,
            )
        except Exception:
            logger.exception("Failed to send confirmation email for order %s", order.id)
            return False

    async def send_shipping_notification(
        self,
        order: Order,
        tracking_number: Optional[str] = None,
        tracking_url: Optional[str] = None,
    ) -> bool:
        if not order.customer_email:
            logger.info("Order %s has no email address; skipping shipping email", order.id)
            return False
        try:
            return await send_shipping_notification_email(
                self.settings,
                to_email=order.customer_email,
                customer_name=_customer_name(order),
                order_id=str(order.id),
                items=_email_items(order),
                shipping_address=order.shipping_address or {},
                tracking_number=tracking_number,
                tracking_url=tracking_url,
            )
        except Exception:
            logger.exception("Failed to send shipping email for order %s", order.id)
            return False
