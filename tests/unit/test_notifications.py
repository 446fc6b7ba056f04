"""Unit tests for order emails. SMTP is never contacted."""

import smtplib
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from libs.common.emails.core import send_email
from libs.common.emails.store import send_order_confirmation_email
from services.store_service.services.notifications import OrderNotifier
from tests.factories import OrderFactory, VariantFactory, make_settings


@pytest.fixture
def paid_order():
    variant = VariantFactory.create(size="XL", color="Olive")
    return OrderFactory.create(items=[(variant, 2)], delivery_fee=Decimal("35"))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_confirmation_passes_frozen_item_snapshots(paid_order):
    notifier = OrderNotifier(make_settings())
    with patch(
        "services.store_service.services.notifications.send_order_confirmation_email",
        new=AsyncMock(return_value=True),
    ) as send:
        assert await notifier.send_order_confirmation(paid_order)

    kwargs = send.await_args.kwargs
    assert kwargs["to_email"] == "ama@example.com"
    assert kwargs["customer_name"] == "Kwame Mensah"
    assert kwargs["total"] == Decimal("135.00")
    assert kwargs["items"][0]["size"] == "XL"
    assert kwargs["items"][0]["quantity"] == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_email_failure_is_swallowed(paid_order):
    notifier = OrderNotifier(make_settings())
    with patch(
        "services.store_service.services.notifications.send_shipping_notification_email",
        new=AsyncMock(side_effect=RuntimeError("template blew up")),
    ):
        assert await notifier.send_shipping_notification(paid_order, "GH1") is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_without_email_is_skipped(paid_order):
    paid_order.customer_email = None
    notifier = OrderNotifier(make_settings())
    with patch(
        "services.store_service.services.notifications.send_order_confirmation_email",
        new=AsyncMock(),
    ) as send:
        assert await notifier.send_order_confirmation(paid_order) is False
    send.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_email_without_credentials_returns_false():
    assert await send_email(make_settings(), "ama@example.com", "Hi", "Body") is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_smtp_error_returns_false():
    settings = make_settings(SMTP_USERNAME="user", SMTP_PASSWORD="pass")
    with patch(
        "libs.common.emails.core._deliver",
        side_effect=smtplib.SMTPException("connection refused"),
    ):
        assert await send_email(settings, "ama@example.com", "Hi", "Body") is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_confirmation_template_escapes_html():
    with patch(
        "libs.common.emails.store.send_email", new=AsyncMock(return_value=True)
    ) as send:
        await send_order_confirmation_email(
            make_settings(),
            to_email="ama@example.com",
            customer_name="<script>Ama</script>",
            order_id="o-1",
            items=[
                {
                    "title": "Logo Hoodie",
                    "size": "L",
                    "color": "Black",
                    "quantity": 2,
                    "price": Decimal("50"),
                }
            ],
            delivery_fee=Decimal("20"),
            total=Decimal("120"),
            shipping_address={"street": "12 Oxford St", "city": "Accra"},
        )

    _, _, subject, body, html = send.await_args.args
    assert subject == "Order Confirmed - o-1"
    assert "₵120.00" in body
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
