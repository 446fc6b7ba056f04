"""Unit tests for order model helpers."""

import asyncio
import re
from decimal import Decimal

import pytest
from services.store_service.models import Order, OrderStatus
from tests.factories import OrderFactory, VariantFactory

PAYMENT_REF_PATTERN = re.compile(r"^ORD-\d{13}-[0-9A-Z]{7}$")


@pytest.mark.unit
def test_payment_ref_format():
    assert PAYMENT_REF_PATTERN.match(Order.generate_payment_ref())


@pytest.mark.unit
def test_payment_refs_are_distinct():
    refs = {Order.generate_payment_ref() for _ in range(5000)}
    assert len(refs) == 5000


@pytest.mark.asyncio
@pytest.mark.unit
async def test_payment_refs_distinct_when_generated_concurrently():
    async def make_ref():
        await asyncio.sleep(0)
        return Order.generate_payment_ref()

    refs = await asyncio.gather(*(make_ref() for _ in range(500)))
    assert len(set(refs)) == 500


@pytest.mark.unit
def test_subtotal_and_line_totals():
    a = VariantFactory.create(price_override=Decimal("75.50"))
    b = VariantFactory.create()
    order = OrderFactory.create(items=[(a, 2), (b, 1)], delivery_fee=Decimal("35"))

    assert [item.line_total for item in order.items] == [
        Decimal("151.00"),
        Decimal("50.00"),
    ]
    assert order.subtotal == Decimal("201.00")
    assert order.total_amount == Decimal("236.00")


@pytest.mark.unit
def test_terminal_statuses():
    assert OrderStatus.DELIVERED.is_terminal
    assert OrderStatus.CANCELLED.is_terminal
    assert not OrderStatus.PENDING.is_terminal
