"""Store commerce models: orders and their line items."""

import secrets
import string
import time
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    OrderStatus,
    PaymentIssue,
    PaymentMethod,
    TimeWindow,
    enum_values,
)
from sqlalchemy import CheckConstraint, Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

_REF_ALPHABET = string.digits + string.ascii_uppercase

# ============================================================================
# ORDER MODELS
# ============================================================================


class Order(Base):
    """Orders (authenticated or guest)."""

    __tablename__ = "store_orders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )

    # Customer: user_id for logged in, contact fields for guests
    user_id: Mapped[Optional[str]] = mapped_column(
        String(255), index=True, nullable=True
    )
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(
        String(50), index=True, nullable=True
    )
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Pricing (GHS), frozen at creation
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )

    # Payment
    payment_ref: Mapped[str] = mapped_column(
        String(100), unique=True, index=True, nullable=False
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            values_callable=enum_values,
            name="store_payment_method_enum",
        ),
        default=PaymentMethod.COD,
        server_default="cod",
    )

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="store_order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="pending",
        index=True,
    )

    # {"street", "city", "region", "directions", "coordinates": {"lat", "lng"}}
    shipping_address: Mapped[dict] = mapped_column(JSONB, nullable=False)

    # Delivery scheduling
    scheduled_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    time_window: Mapped[Optional[TimeWindow]] = mapped_column(
        SAEnum(
            TimeWindow,
            values_callable=enum_values,
            name="store_time_window_enum",
        ),
        nullable=True,
    )

    # Fulfillment tracking
    tracking_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tracking_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    # Set when the payment needs manual settlement; the sweep skips these
    payment_issue: Mapped[Optional[PaymentIssue]] = mapped_column(
        SAEnum(
            PaymentIssue,
            values_callable=enum_values,
            name="store_payment_issue_enum",
        ),
        nullable=True,
    )

    # Timestamps
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint(
            "user_id IS NOT NULL OR "
            "(customer_name IS NOT NULL AND customer_phone IS NOT NULL)",
            name="order_identified_customer",
        ),
    )

    # Relationships
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan"
    )

    @property
    def subtotal(self) -> Decimal:
        return sum(
            (item.price_at_purchase * item.quantity for item in self.items),
            Decimal("0"),
        )

    @staticmethod
    def generate_payment_ref() -> str:
        """Generate a unique payment reference like ORD-1767225600000-K3X9Q2M."""
        millis = int(time.time() * 1000)
        random_part = "".join(secrets.choice(_REF_ALPHABET) for _ in range(7))
        return f"ORD-{millis}-{random_part}"

    def __repr__(self):
        return f"<Order {self.payment_ref} status={self.status}>"


class OrderItem(Base):
    """Order line items (snapshot at order time, never mutated)."""

    __tablename__ = "store_order_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("store_orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    variant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("store_product_variants.id"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_at_purchase: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Snapshot at order time (products may change)
    product_title: Mapped[str] = mapped_column(String(200), nullable=False)
    size: Mapped[str] = mapped_column(String(10), nullable=False)
    color: Mapped[str] = mapped_column(String(50), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (CheckConstraint("quantity > 0", name="positive_quantity"),)

    # Relationships
    order = relationship("Order", back_populates="items")

    @property
    def line_total(self) -> Decimal:
        return self.price_at_purchase * self.quantity

    def __repr__(self):
        return f"<OrderItem {self.product_title} qty={self.quantity}>"
