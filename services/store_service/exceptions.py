"""Typed errors raised by the store service and mapped to HTTP in the app."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class InventoryErrorItem(BaseModel):
    """One line of an inventory shortfall."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    variant_id: str
    product_title: str
    size: str
    color: str
    requested: int
    available: int


class StoreError(Exception):
    """Base class for store errors that carry an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        return {"success": False, "message": self.message}


class OrderValidationError(StoreError):
    """Malformed checkout input, unknown variant or unavailable product."""

    status_code = 400


class InventoryShortfallError(StoreError):
    """Raised when one or more cart lines exceed the available stock."""

    status_code = 400

    def __init__(
        self,
        items: list[InventoryErrorItem],
        message: str = "Some items have insufficient stock",
    ):
        self.items = items
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": "INVENTORY_ERROR",
            "message": self.message,
            "items": [item.model_dump(by_alias=True) for item in self.items],
        }


class OrderNotFoundError(StoreError):
    status_code = 404

    def __init__(self, message: str = "Order not found"):
        super().__init__(message)


class InvalidStatusTransitionError(StoreError):
    status_code = 409

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change order status from {current} to {target}")


class InvalidWebhookSignatureError(StoreError):
    status_code = 401

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class WebhookPayloadError(StoreError):
    status_code = 400


class PaymentGatewayError(StoreError):
    """Raised when the payment gateway rejects a request."""

    status_code = 400

    def __init__(self, message: str, order_id: Optional[str] = None):
        self.order_id = order_id
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        body = super().to_response()
        if self.order_id:
            body["orderId"] = self.order_id
        return body
