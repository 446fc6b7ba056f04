"""Pydantic schemas for store service (camelCase on the wire)."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel
from services.store_service.delivery import GHANA_REGIONS
from services.store_service.models import (
    OrderStatus,
    PaymentIssue,
    PaymentMethod,
    TimeWindow,
)

GHANA_PHONE_PATTERN = r"^(\+233|0)[0-9]{9}$"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================


class CartItemIn(CamelModel):
    variant_id: uuid.UUID
    quantity: int = Field(..., ge=1)


class Coordinates(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class ShippingAddressIn(CamelModel):
    full_name: Optional[str] = Field(None, max_length=200)
    street: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    region: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    directions: Optional[str] = Field(None, max_length=1000)
    coordinates: Optional[Coordinates] = None

    def to_stored(self) -> dict[str, Any]:
        """JSON shape persisted on the order."""
        return self.model_dump(by_alias=True, exclude_none=True)


class GuestShippingAddressIn(ShippingAddressIn):
    region: str

    @field_validator("region")
    @classmethod
    def region_must_be_known(cls, v: str) -> str:
        if v not in GHANA_REGIONS:
            raise ValueError("Please select a valid region")
        return v


class CreateOrderRequest(CamelModel):
    items: list[CartItemIn] = Field(..., min_length=1)
    shipping_address: ShippingAddressIn
    scheduled_date: Optional[date] = None
    time_window: TimeWindow = TimeWindow.ANY
    payment_method: PaymentMethod = PaymentMethod.COD

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def date_part_only(cls, v):
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class GuestOrderRequest(CamelModel):
    items: list[CartItemIn] = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=2, max_length=200)
    customer_phone: str = Field(..., pattern=GHANA_PHONE_PATTERN)
    customer_email: Optional[EmailStr] = None
    delivery_date: date
    time_window: TimeWindow = TimeWindow.ANY
    payment_method: PaymentMethod = PaymentMethod.COD
    shipping_address: GuestShippingAddressIn

    @field_validator("customer_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("customer_phone", mode="before")
    @classmethod
    def strip_phone(cls, v):
        return v.replace(" ", "") if isinstance(v, str) else v

    @field_validator("customer_email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("delivery_date", mode="before")
    @classmethod
    def date_part_only(cls, v):
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class ValidateInventoryRequest(CamelModel):
    items: list[CartItemIn] = Field(..., min_length=1)


class UpdateOrderStatusRequest(CamelModel):
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=100)
    tracking_url: Optional[str] = Field(None, max_length=512)


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================


class OrderItemResponse(CamelModel):
    id: uuid.UUID
    variant_id: uuid.UUID
    quantity: int
    price_at_purchase: Decimal
    product_title: str
    size: str
    color: str
    sku: str


class OrderResponse(CamelModel):
    id: uuid.UUID
    user_id: Optional[str] = None
    status: OrderStatus
    payment_method: PaymentMethod
    payment_ref: str
    total_amount: Decimal
    delivery_fee: Decimal
    shipping_address: dict
    scheduled_date: Optional[date] = None
    time_window: Optional[TimeWindow] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    payment_issue: Optional[PaymentIssue] = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = []


class PaymentResponse(CamelModel):
    authorization_url: str
    reference: str


class CreateOrderResponse(CamelModel):
    order: OrderResponse
    payment: Optional[PaymentResponse] = None


class GuestOrderCreatedResponse(CamelModel):
    order_id: uuid.UUID
    status: OrderStatus
    scheduled_date: Optional[date] = None
    time_window: Optional[TimeWindow] = None
    total_amount: Decimal
    delivery_fee: Decimal
    payment_method: PaymentMethod
    payment_url: Optional[str] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderListResponse(CamelModel):
    orders: list[OrderResponse]
    pagination: Pagination
