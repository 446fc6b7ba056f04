"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    PENDING = "pending"  # online payment initialised, awaiting gateway
    AWAITING_CONFIRMATION = "awaiting_confirmation"  # cash on delivery
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class PaymentMethod(str, enum.Enum):
    COD = "cod"
    PAYSTACK = "paystack"


class TimeWindow(str, enum.Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANY = "any"


# Admin-driven lifecycle. Webhook transitions (pending -> paid/cancelled)
# go through the payment confirmation service, not this table.
ALLOWED_STATUS_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.AWAITING_CONFIRMATION: {
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PAID: {
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class PaymentIssue(str, enum.Enum):
    """Payment problems that need an admin to settle the order by hand."""

    AMOUNT_MISMATCH = "amount_mismatch"  # gateway charged a different total
    REFUND_REQUIRED = "refund_required"  # paid after the order was cancelled
