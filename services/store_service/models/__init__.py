"""Store Service models package."""

from services.store_service.models.catalog import (
    Product,
    ProductImage,
    ProductVariant,
)
from services.store_service.models.commerce import Order, OrderItem
from services.store_service.models.enums import (
    ALLOWED_STATUS_TRANSITIONS,
    OrderStatus,
    PaymentIssue,
    PaymentMethod,
    TimeWindow,
)

__all__ = [
    "ALLOWED_STATUS_TRANSITIONS",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentIssue",
    "PaymentMethod",
    "Product",
    "ProductImage",
    "ProductVariant",
    "TimeWindow",
]
