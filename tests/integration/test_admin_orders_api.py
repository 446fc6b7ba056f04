"""Integration tests for admin order management."""

import pytest
from services.store_service.models import OrderStatus, PaymentMethod
from tests.factories import OrderFactory


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_routes_reject_customers(client, auth_headers):
    response = await client.get("/api/v1/admin/orders", headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_orders_with_status_filter(client, admin_headers, uow, hoodie):
    uow.add_orders(
        OrderFactory.create(items=[(hoodie, 1)]),
        OrderFactory.create(items=[(hoodie, 1)], status=OrderStatus.PAID),
        OrderFactory.create(items=[(hoodie, 1)], status=OrderStatus.PAID),
    )

    response = await client.get(
        "/api/v1/admin/orders",
        headers=admin_headers,
        params={"status": "paid", "limit": 1},
    )

    data = response.json()["data"]
    assert len(data["orders"]) == 1
    assert data["pagination"] == {"page": 1, "limit": 1, "total": 2, "totalPages": 2}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ship_order(client, admin_headers, uow, notifier, hoodie):
    order = OrderFactory.create(items=[(hoodie, 1)], status=OrderStatus.PAID)
    uow.add_orders(order)

    response = await client.patch(
        f"/api/v1/admin/orders/{order.id}/status",
        headers=admin_headers,
        json={"status": "shipped", "trackingNumber": "GH-778"},
    )

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["status"] == "shipped"
    assert data["trackingNumber"] == "GH-778"
    assert notifier.shipments[0][1] == "GH-778"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_cod_order_restores_stock(client, admin_headers, uow, hoodie):
    hoodie.stock_quantity = 8
    order = OrderFactory.create(
        items=[(hoodie, 2)],
        status=OrderStatus.AWAITING_CONFIRMATION,
        payment_method=PaymentMethod.COD,
    )
    uow.add_orders(order)

    response = await client.patch(
        f"/api/v1/admin/orders/{order.id}/status",
        headers=admin_headers,
        json={"status": "cancelled"},
    )

    assert response.status_code == 200
    assert uow.stock(hoodie) == 10


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_transition_is_409(client, admin_headers, uow, hoodie):
    order = OrderFactory.create(items=[(hoodie, 1)], status=OrderStatus.DELIVERED)
    uow.add_orders(order)

    response = await client.patch(
        f"/api/v1/admin/orders/{order.id}/status",
        headers=admin_headers,
        json={"status": "pending"},
    )

    assert response.status_code == 409
    assert response.json()["success"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_unknown_order_is_404(client, admin_headers):
    response = await client.get(
        "/api/v1/admin/orders/00000000-0000-0000-0000-000000000000",
        headers=admin_headers,
    )
    assert response.status_code == 404
