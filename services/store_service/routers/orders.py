"""Store orders router: checkout, payment webhook, and order history."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.store_service.dependencies import (
    get_inventory_validator,
    get_order_service,
    get_payment_confirmation,
)
from services.store_service.exceptions import OrderValidationError
from services.store_service.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    GuestOrderCreatedResponse,
    GuestOrderRequest,
    OrderResponse,
    PaymentResponse,
    ValidateInventoryRequest,
)
from services.store_service.services.inventory import CartLine, InventoryValidator
from services.store_service.services.order_service import (
    CreateOrderInput,
    OrderService,
    validate_delivery_date,
)
from services.store_service.services.payment_confirmation import (
    PaymentConfirmationService,
)

router = APIRouter(prefix="/orders", tags=["orders"])
logger = get_logger(__name__)

INVALID_DELIVERY_DATE = (
    "Invalid delivery date. Please select a valid date within the next "
    "14 days (excluding Sundays)."
)


def _cart_lines(items) -> list[CartLine]:
    return [CartLine(variant_id=item.variant_id, quantity=item.quantity) for item in items]


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    body: CreateOrderRequest,
    current_user: AuthUser = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
):
    """Create an order for the signed-in customer."""
    result = await orders.create_order(
        CreateOrderInput(
            items=_cart_lines(body.items),
            shipping_address=body.shipping_address.to_stored(),
            payment_method=body.payment_method,
            user_id=current_user.user_id,
            user_email=current_user.email,
            scheduled_date=body.scheduled_date,
            time_window=body.time_window,
        )
    )

    data = CreateOrderResponse(
        order=OrderResponse.model_validate(result.order),
        payment=(
            PaymentResponse(
                authorization_url=result.payment.authorization_url,
                reference=result.payment.reference,
            )
            if result.payment
            else None
        ),
    )
    return {
        "success": True,
        "message": "Order created successfully",
        "data": _dump(data),
    }


@router.post("/guest", status_code=status.HTTP_201_CREATED)
async def create_guest_order(
    body: GuestOrderRequest,
    orders: OrderService = Depends(get_order_service),
):
    """Create an order without an account (name and phone identify the buyer)."""
    if not validate_delivery_date(body.delivery_date):
        raise OrderValidationError(INVALID_DELIVERY_DATE)

    result = await orders.create_order(
        CreateOrderInput(
            items=_cart_lines(body.items),
            shipping_address=body.shipping_address.to_stored(),
            payment_method=body.payment_method,
            customer_name=body.customer_name,
            customer_phone=body.customer_phone,
            customer_email=body.customer_email,
            scheduled_date=body.delivery_date,
            time_window=body.time_window,
        )
    )

    order = result.order
    data = GuestOrderCreatedResponse(
        order_id=order.id,
        status=order.status,
        scheduled_date=order.scheduled_date,
        time_window=order.time_window,
        total_amount=order.total_amount,
        delivery_fee=order.delivery_fee,
        payment_method=order.payment_method,
        payment_url=result.payment.authorization_url if result.payment else None,
    )
    return {
        "success": True,
        "message": "Order created successfully",
        "data": _dump(data),
    }


@router.post("/validate")
async def validate_inventory(
    body: ValidateInventoryRequest,
    validator: InventoryValidator = Depends(get_inventory_validator),
):
    """Pre-flight stock check for a cart. Does not reserve anything."""
    errors = await validator.validate_inventory(_cart_lines(body.items))
    return {
        "success": True,
        "data": {
            "valid": not errors,
            "items": [error.model_dump(by_alias=True) for error in errors],
        },
    }


# ============================================================================
# PAYMENT WEBHOOK
# ============================================================================


@router.post("/verify")
async def verify_payment(
    request: Request,
    x_paystack_signature: Optional[str] = Header(None),
    confirmation: PaymentConfirmationService = Depends(get_payment_confirmation),
):
    """
    Paystack webhook endpoint (no auth; verified by x-paystack-signature).
    """
    raw = await request.body()
    result = await confirmation.handle_webhook(raw, x_paystack_signature)
    return {"success": True, "data": result.to_dict()}


# ============================================================================
# ORDER HISTORY
# ============================================================================


@router.get("/lookup")
async def lookup_guest_order(
    order_id: Optional[str] = Query(None, alias="orderId"),
    phone: Optional[str] = Query(None),
    orders: OrderService = Depends(get_order_service),
):
    """Find a guest order by id and the phone number used at checkout."""
    if not order_id or not phone:
        raise OrderValidationError("Order ID and phone number are required")

    order = await orders.lookup_guest_order(order_id, phone.replace(" ", ""))
    return {"success": True, "data": _dump(OrderResponse.model_validate(order))}


@router.get("")
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
):
    """Get current user's orders."""
    results = await orders.list_orders_for_user(current_user.user_id)
    return {
        "success": True,
        "data": [_dump(OrderResponse.model_validate(order)) for order in results],
    }


@router.get("/{order_id}")
async def get_my_order(
    order_id: str,
    current_user: AuthUser = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
):
    """Get one of the current user's orders."""
    order = await orders.get_order_for_user(order_id, current_user.user_id)
    return {"success": True, "data": _dump(OrderResponse.model_validate(order))}
