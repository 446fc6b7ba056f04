"""Wiring for the store service: build components once, hand them to routes."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from libs.common.config import Settings
from libs.db.config import build_engine, build_session_factory
from services.store_service.paystack_client import PaystackClient
from services.store_service.repository import SqlAlchemyUnitOfWork, StoreUnitOfWork
from services.store_service.services.inventory import InventoryValidator
from services.store_service.services.notifications import OrderNotifier
from services.store_service.services.order_service import OrderService
from services.store_service.services.payment_confirmation import (
    PaymentConfirmationService,
)
from sqlalchemy.ext.asyncio import AsyncEngine


@dataclass
class StoreComponents:
    settings: Settings
    uow: StoreUnitOfWork
    gateway: PaystackClient
    notifier: OrderNotifier
    engine: Optional[AsyncEngine] = None

    @property
    def order_service(self) -> OrderService:
        return OrderService(self.settings, self.uow, self.gateway, self.notifier)

    @property
    def inventory_validator(self) -> InventoryValidator:
        return InventoryValidator(self.uow)

    @property
    def payment_confirmation(self) -> PaymentConfirmationService:
        return PaymentConfirmationService(self.uow, self.gateway, self.notifier)

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def build_components(settings: Settings) -> StoreComponents:
    """Create the database-backed components for ``settings``."""
    engine = build_engine(settings)
    return StoreComponents(
        settings=settings,
        uow=SqlAlchemyUnitOfWork(build_session_factory(engine)),
        gateway=PaystackClient(settings),
        notifier=OrderNotifier(settings),
        engine=engine,
    )


def get_components(request: Request) -> StoreComponents:
    return request.app.state.components


def get_order_service(request: Request) -> OrderService:
    return get_components(request).order_service


def get_inventory_validator(request: Request) -> InventoryValidator:
    return get_components(request).inventory_validator


def get_payment_confirmation(request: Request) -> PaymentConfirmationService:
    return get_components(request).payment_confirmation
