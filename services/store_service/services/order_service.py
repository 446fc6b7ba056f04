"""Order creation (stock reservation), lookups and admin status changes."""

import math
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from libs.common.config import Settings
from libs.common.currency import cedis_to_pesewas, to_money
from libs.common.datetime_utils import utc_now, utc_today
from libs.common.logging import get_logger
from services.store_service.delivery import get_delivery_fee_from_address
from services.store_service.exceptions import (
    InventoryErrorItem,
    InventoryShortfallError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
    OrderValidationError,
    PaymentGatewayError,
)
from services.store_service.models import (
    ALLOWED_STATUS_TRANSITIONS,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    TimeWindow,
)
from services.store_service.paystack_client import (
    PaymentInitialization,
    PaystackClient,
    PaystackError,
)
from services.store_service.repository import StoreTransaction, StoreUnitOfWork
from services.store_service.services.inventory import CartLine
from services.store_service.services.notifications import OrderNotifier

logger = get_logger(__name__)

MAX_DELIVERY_DAYS_AHEAD = 14
SUNDAY = 6  # date.weekday()
MAX_PAGE_SIZE = 100


def validate_delivery_date(value: date, today: Optional[date] = None) -> bool:
    """A delivery date must be today or later, within 14 days, and not a Sunday."""
    today = today or utc_today()
    if value < today:
        return False
    if value > today + timedelta(days=MAX_DELIVERY_DAYS_AHEAD):
        return False
    return value.weekday() != SUNDAY


@dataclass
class CreateOrderInput:
    items: list[CartLine]
    shipping_address: dict
    payment_method: PaymentMethod = PaymentMethod.COD
    # Authenticated checkout
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    # Guest checkout
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    scheduled_date: Optional[date] = None
    time_window: Optional[TimeWindow] = TimeWindow.ANY


@dataclass
class CreateOrderResult:
    order: Order
    payment: Optional[PaymentInitialization] = None


@dataclass
class OrderPage:
    orders: list[Order]
    page: int
    limit: int
    total: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        self.total_pages = math.ceil(self.total / self.limit) if self.limit else 0


def _parse_order_id(order_id) -> uuid.UUID:
    if isinstance(order_id, uuid.UUID):
        return order_id
    try:
        return uuid.UUID(str(order_id))
    except ValueError:
        raise OrderNotFoundError()


async def restore_stock(tx: StoreTransaction, order: Order) -> None:
    """Put every unit of ``order`` back on the shelf."""
    for item in order.items:
        await tx.increment_stock(item.variant_id, item.quantity)
    logger.info(
        "Restored stock for order %s (%d line(s))", order.id, len(order.items)
    )


class OrderService:
    def __init__(
        self,
        settings: Settings,
        uow: StoreUnitOfWork,
        gateway: PaystackClient,
        notifier: OrderNotifier,
    ):
        self.settings = settings
        self.uow = uow
        self.gateway = gateway
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def _check_input(self, data: CreateOrderInput) -> Optional[str]:
        if not data.items:
            raise OrderValidationError("Order must contain at least one item")
        if any(item.quantity < 1 for item in data.items):
            raise OrderValidationError("Item quantity must be at least 1")
        if not data.user_id and not (data.customer_name and data.customer_phone):
            raise OrderValidationError(
                "Customer name and phone are required for guest orders"
            )

        email = data.customer_email or data.user_email
        if data.payment_method == PaymentMethod.PAYSTACK and not email:
            raise OrderValidationError("Email is required for online payment")
        return email

    async def create_order(self, data: CreateOrderInput) -> CreateOrderResult:
        """
        Reserve stock and persist an order in one transaction.

        Flow:
        1. Resolve the delivery fee from the shipping region
        2. Lock every requested variant row
        3. Check each line, decrementing stock as it passes and collecting
           every shortfall
        4. Any shortfall aborts the whole transaction
        5. Insert the order with its items and commit
        6. For online payment, open a Paystack checkout after the commit
        """
        email = self._check_input(data)
        delivery_fee = to_money(get_delivery_fee_from_address(data.shipping_address))

        async with self.uow.transaction() as tx:
            variant_ids = list(dict.fromkeys(item.variant_id for item in data.items))
            variants = await tx.get_variants(variant_ids, for_update=True)
            by_id = {variant.id: variant for variant in variants}
            if len(by_id) < len(variant_ids):
                raise OrderValidationError("One or more product variants not found")

            # Duplicate lines for the same variant draw from one pool.
            remaining = {variant.id: variant.stock_quantity for variant in variants}
            subtotal = Decimal("0")
            order_items: list[OrderItem] = []
            shortfalls: list[InventoryErrorItem] = []

            for line in data.items:
                variant = by_id[line.variant_id]
                product = variant.product
                if not product.is_active:
                    raise OrderValidationError(
                        f"Product {product.title} is no longer available"
                    )

                available = remaining[variant.id]
                if available < line.quantity or not await tx.decrement_stock(
                    variant.id, line.quantity
                ):
                    shortfalls.append(
                        InventoryErrorItem(
                            variant_id=str(variant.id),
                            product_title=product.title,
                            size=variant.size,
                            color=variant.color,
                            requested=line.quantity,
                            available=available,
                        )
                    )
                    continue

                remaining[variant.id] = available - line.quantity
                price = to_money(variant.unit_price)
                subtotal += price * line.quantity
                order_items.append(
                    OrderItem(
                        id=uuid.uuid4(),
                        variant_id=variant.id,
                        quantity=line.quantity,
                        price_at_purchase=price,
                        product_title=product.title,
                        size=variant.size,
                        color=variant.color,
                        sku=variant.sku,
                    )
                )

            if shortfalls:
                logger.info(
                    "Order rejected: %d line(s) short on stock", len(shortfalls)
                )
                raise InventoryShortfallError(shortfalls)

            now = utc_now()
            order = Order(
                id=uuid.uuid4(),
                user_id=data.user_id,
                customer_name=data.customer_name,
                customer_phone=data.customer_phone,
                customer_email=email,
                total_amount=subtotal + delivery_fee,
                delivery_fee=delivery_fee,
                payment_ref=Order.generate_payment_ref(),
                payment_method=data.payment_method,
                status=(
                    OrderStatus.PENDING
                    if data.payment_method == PaymentMethod.PAYSTACK
                    else OrderStatus.AWAITING_CONFIRMATION
                ),
                shipping_address=data.shipping_address,
                scheduled_date=data.scheduled_date,
                time_window=data.time_window,
                created_at=now,
                updated_at=now,
                items=order_items,
            )
            await tx.add_order(order)

        logger.info(
            "Created order %s (%s, total=%s, ref=%s)",
            order.id,
            order.payment_method.value,
            order.total_amount,
            order.payment_ref,
        )

        if data.payment_method != PaymentMethod.PAYSTACK:
            return CreateOrderResult(order=order)

        try:
            payment = await self.gateway.initialize_payment(
                email=email,
                amount_minor_units=cedis_to_pesewas(order.total_amount),
                reference=order.payment_ref,
                metadata={
                    "orderId": str(order.id),
                    "userId": data.user_id or "guest",
                },
                callback_url=self.settings.PAYSTACK_CALLBACK_URL,
            )
        except PaystackError as e:
            # The order stays pending; the stale-order sweep settles it.
            logger.error(
                "Payment initialization failed for order %s: %s", order.id, e.message
            )
            raise PaymentGatewayError(e.message, order_id=str(order.id)) from e

        return CreateOrderResult(order=order, payment=payment)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def list_orders_for_user(self, user_id: str) -> list[Order]:
        async with self.uow.transaction() as tx:
            return await tx.list_orders_for_user(user_id)

    async def get_order_for_user(self, order_id, user_id: str) -> Order:
        order_uuid = _parse_order_id(order_id)
        async with self.uow.transaction() as tx:
            order = await tx.get_order(order_uuid)
        if not order or order.user_id != user_id:
            raise OrderNotFoundError()
        return order

    async def lookup_guest_order(self, order_id, phone: str) -> Order:
        not_found = OrderNotFoundError(
            "Order not found or phone number does not match"
        )
        try:
            order_uuid = _parse_order_id(order_id)
        except OrderNotFoundError:
            raise not_found
        async with self.uow.transaction() as tx:
            order = await tx.find_guest_order(order_uuid, phone)
        if not order:
            raise not_found
        return order

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def list_orders(
        self, page: int = 1, limit: int = 20, status: Optional[OrderStatus] = None
    ) -> OrderPage:
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        async with self.uow.transaction() as tx:
            orders, total = await tx.list_orders(
                offset=(page - 1) * limit, limit=limit, status=status
            )
        return OrderPage(orders=orders, page=page, limit=limit, total=total)

    async def get_order(self, order_id) -> Order:
        order_uuid = _parse_order_id(order_id)
        async with self.uow.transaction() as tx:
            order = await tx.get_order(order_uuid)
        if not order:
            raise OrderNotFoundError()
        return order

    async def update_order_status(
        self,
        order_id,
        status: OrderStatus,
        tracking_number: Optional[str] = None,
        tracking_url: Optional[str] = None,
    ) -> Order:
        """
        Move an order along its lifecycle (admin action).

        Cancelling restores stock; shipping sends the customer a tracking email.
        """
        order_uuid = _parse_order_id(order_id)

        async with self.uow.transaction() as tx:
            order = await tx.get_order(order_uuid)
            if not order:
                raise OrderNotFoundError()

            current = order.status
            if status not in ALLOWED_STATUS_TRANSITIONS[current]:
                raise InvalidStatusTransitionError(current.value, status.value)

            changes = {}
            if status == OrderStatus.SHIPPED:
                changes["tracking_number"] = tracking_number
                changes["tracking_url"] = tracking_url
            elif status == OrderStatus.PAID:
                changes["paid_at"] = utc_now()
            elif status == OrderStatus.CANCELLED:
                changes["cancelled_at"] = utc_now()

            if not await tx.transition_status(order.id, {current}, status, **changes):
                raise InvalidStatusTransitionError(current.value, status.value)

            if status == OrderStatus.CANCELLED:
                await restore_stock(tx, order)

            order = await tx.get_order(order_uuid)

        logger.info(
            "Order %s status changed %s -> %s", order.id, current.value, status.value
        )

        if status == OrderStatus.SHIPPED:
            await self.notifier.send_shipping_notification(
                order, tracking_number=tracking_number, tracking_url=tracking_url
            )

        return order
