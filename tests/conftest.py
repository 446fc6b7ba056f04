from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from libs.db.base import Base
from libs.db.config import build_engine, build_session_factory
from services.store_service.dependencies import StoreComponents
from services.store_service.repository import SqlAlchemyUnitOfWork
from services.store_service.services.inventory import InventoryValidator
from services.store_service.services.order_service import OrderService
from services.store_service.services.payment_confirmation import (
    PaymentConfirmationService,
)
from tests.factories import ProductFactory, VariantFactory, make_settings
from tests.fakes import FakePaystack, InMemoryUnitOfWork, RecordingNotifier


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def uow() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()


@pytest.fixture
def paystack(settings) -> FakePaystack:
    return FakePaystack(secret_key=settings.PAYSTACK_SECRET_KEY)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def components(settings, uow, paystack, notifier) -> StoreComponents:
    return StoreComponents(
        settings=settings, uow=uow, gateway=paystack, notifier=notifier
    )


@pytest.fixture
def order_service(settings, uow, paystack, notifier) -> OrderService:
    return OrderService(settings, uow, paystack, notifier)


@pytest.fixture
def confirmation(uow, paystack, notifier) -> PaymentConfirmationService:
    return PaymentConfirmationService(uow, paystack, notifier)


@pytest.fixture
def validator(uow) -> InventoryValidator:
    return InventoryValidator(uow)


@pytest.fixture
def hoodie(uow):
    """v1 from the checkout scenarios: base price 50, stock 10."""
    product = ProductFactory.create(title="Logo Hoodie")
    variant = VariantFactory.create(product=product, size="L", color="Black")
    uow.add_variants(variant)
    return variant


@pytest_asyncio.fixture
async def client(settings, components) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient against the store app wired to in-memory fakes.
    """
    from services.store_service.app.main import create_app

    app = create_app(settings=settings, components=components)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


def _token(settings, sub: str, email: str, role: str) -> str:
    return jwt.encode(
        {"sub": sub, "email": email, "role": role},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


@pytest.fixture
def auth_headers(settings) -> dict:
    """Bearer token for a regular customer."""
    token = _token(settings, "user-123", "kofi@example.com", "customer")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(settings) -> dict:
    token = _token(settings, "admin-1", "admin@example.com", "admin")
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Database-backed fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(settings) -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a test engine on DATABASE_URL with fresh store tables.
    Tables are dropped again after the test. Skips when no database is
    reachable.
    """
    engine = build_engine(settings)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, SQLAlchemyError) as exc:
        await engine.dispose()
        pytest.skip(f"Database not available: {exc}")

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def db_session_factory(test_engine):
    return build_session_factory(test_engine)


@pytest.fixture
def db_uow(db_session_factory) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(db_session_factory)
