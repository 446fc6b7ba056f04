"""Unit tests for the stale pending-order sweep."""

import httpx
import pytest
from libs.common.currency import cedis_to_pesewas
from services.store_service.dependencies import StoreComponents
from services.store_service.models import OrderStatus, PaymentIssue, PaymentMethod
from services.store_service.paystack_client import PaystackClient
from services.store_service.tasks import reconcile_stale_pending_orders
from tests.factories import OrderFactory, minutes_ago


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fresh_orders_are_left_alone(components, uow, paystack, hoodie):
    order = OrderFactory.create(items=[(hoodie, 1)], created_at=minutes_ago(5))
    uow.add_orders(order)

    assert await reconcile_stale_pending_orders(components) == 0
    assert paystack.verified == []
    assert order.status == OrderStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.unit
async def test_stale_paid_order_is_marked_paid(
    components, uow, paystack, notifier, hoodie
):
    order = OrderFactory.create(items=[(hoodie, 2)], created_at=minutes_ago(90))
    uow.add_orders(order)
    paystack.set_verification(
        order.payment_ref, "success", cedis_to_pesewas(order.total_amount)
    )

    assert await reconcile_stale_pending_orders(components) == 1
    assert order.status == OrderStatus.PAID
    assert notifier.confirmations == [order]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_stale_abandoned_order_is_cancelled(components, uow, paystack, hoodie):
    hoodie.stock_quantity = 8
    order = OrderFactory.create(items=[(hoodie, 2)], created_at=minutes_ago(90))
    uow.add_orders(order)
    paystack.set_verification(order.payment_ref, "abandoned", 0)

    assert await reconcile_stale_pending_orders(components) == 1
    assert order.status == OrderStatus.CANCELLED
    assert uow.stock(hoodie) == 10


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_to_gateway_waits_until_cancel_window(
    components, uow, paystack, hoodie
):
    hoodie.stock_quantity = 9
    recent = OrderFactory.create(items=[(hoodie, 1)], created_at=minutes_ago(120))
    uow.add_orders(recent)

    assert await reconcile_stale_pending_orders(components) == 0
    assert recent.status == OrderStatus.PENDING

    recent.created_at = minutes_ago(25 * 60)
    assert await reconcile_stale_pending_orders(components) == 1
    assert recent.status == OrderStatus.CANCELLED
    assert uow.stock(hoodie) == 10


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cod_orders_are_not_swept(components, uow, paystack, hoodie):
    order = OrderFactory.create(
        items=[(hoodie, 1)],
        payment_method=PaymentMethod.COD,
        created_at=minutes_ago(48 * 60),
    )
    uow.add_orders(order)

    assert await reconcile_stale_pending_orders(components) == 0
    assert paystack.verified == []


def _offline(request):
    raise httpx.ConnectError("connection refused", request=request)


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "handler",
    [
        _offline,
        lambda request: httpx.Response(503, json={"status": False}),
        lambda request: httpx.Response(500, text="Internal Server Error"),
    ],
)
async def test_gateway_outage_never_cancels_old_orders(
    settings, uow, notifier, hoodie, handler
):
    hoodie.stock_quantity = 8
    order = OrderFactory.create(items=[(hoodie, 2)], created_at=minutes_ago(30 * 60))
    uow.add_orders(order)
    components = StoreComponents(
        settings=settings,
        uow=uow,
        gateway=PaystackClient(settings, transport=httpx.MockTransport(handler)),
        notifier=notifier,
    )

    assert await reconcile_stale_pending_orders(components) == 0
    assert order.status == OrderStatus.PENDING
    assert order.cancelled_at is None
    assert uow.stock(hoodie) == 8


@pytest.mark.asyncio
@pytest.mark.unit
async def test_not_found_from_real_client_cancels_after_window(
    settings, uow, notifier, hoodie
):
    hoodie.stock_quantity = 9
    order = OrderFactory.create(items=[(hoodie, 1)], created_at=minutes_ago(30 * 60))
    uow.add_orders(order)

    def handler(request):
        return httpx.Response(
            400, json={"status": False, "message": "Transaction reference not found"}
        )

    components = StoreComponents(
        settings=settings,
        uow=uow,
        gateway=PaystackClient(settings, transport=httpx.MockTransport(handler)),
        notifier=notifier,
    )

    assert await reconcile_stale_pending_orders(components) == 1
    assert order.status == OrderStatus.CANCELLED
    assert uow.stock(hoodie) == 10


@pytest.mark.asyncio
@pytest.mark.unit
async def test_amount_mismatch_is_flagged_once_and_then_skipped(
    components, uow, paystack, hoodie
):
    order = OrderFactory.create(items=[(hoodie, 1)], created_at=minutes_ago(90))
    uow.add_orders(order)
    paystack.set_verification(order.payment_ref, "success", 100)

    assert await reconcile_stale_pending_orders(components) == 0
    assert order.payment_issue == PaymentIssue.AMOUNT_MISMATCH
    assert paystack.verified == [order.payment_ref]

    order.created_at = minutes_ago(48 * 60)
    assert await reconcile_stale_pending_orders(components) == 0
    assert paystack.verified == [order.payment_ref]
    assert order.status == OrderStatus.PENDING
