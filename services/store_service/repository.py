"""Persistence ports for the store and their SQLAlchemy implementation.

Services talk to a ``StoreUnitOfWork``: ``transaction()`` yields a
``StoreTransaction`` handle. Leaving the block normally commits; any
exception raised inside it rolls every write back.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import (
    Any,
    AsyncContextManager,
    AsyncIterator,
    Collection,
    Optional,
    Protocol,
    Sequence,
)

from libs.common.datetime_utils import utc_now
from services.store_service.models import (
    Order,
    OrderStatus,
    PaymentIssue,
    PaymentMethod,
    ProductVariant,
)
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload


class StoreTransaction(Protocol):
    async def get_variants(
        self, variant_ids: Sequence[uuid.UUID], *, for_update: bool = False
    ) -> list[ProductVariant]:
        """Variants (with their product loaded) for the given ids."""
        ...

    async def decrement_stock(self, variant_id: uuid.UUID, quantity: int) -> bool:
        """Take ``quantity`` units; False if stock is insufficient."""
        ...

    async def increment_stock(self, variant_id: uuid.UUID, quantity: int) -> None:
        ...

    async def add_order(self, order: Order) -> Order:
        ...

    async def get_order(self, order_id: uuid.UUID) -> Optional[Order]:
        ...

    async def get_order_by_reference(self, payment_ref: str) -> Optional[Order]:
        ...

    async def transition_status(
        self,
        order_id: uuid.UUID,
        from_statuses: Collection[OrderStatus],
        to_status: OrderStatus,
        **changes: Any,
    ) -> bool:
        """Move the order to ``to_status`` only if it is currently in
        ``from_statuses``. Returns whether this call made the change."""
        ...

    async def flag_payment_issue(
        self, order_id: uuid.UUID, issue: PaymentIssue
    ) -> None:
        ...

    async def find_guest_order(
        self, order_id: uuid.UUID, phone: str
    ) -> Optional[Order]:
        ...

    async def list_orders_for_user(self, user_id: str) -> list[Order]:
        ...

    async def list_orders(
        self,
        *,
        offset: int,
        limit: int,
        status: Optional[OrderStatus] = None,
    ) -> tuple[list[Order], int]:
        ...

    async def list_stale_pending_orders(
        self, created_before: datetime, limit: int = 100
    ) -> list[Order]:
        ...


class StoreUnitOfWork(Protocol):
    def transaction(self) -> AsyncContextManager[StoreTransaction]:
        ...


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


def _order_query():
    # Re-read rows already in the session; conditional UPDATEs that match
    # nothing leave identity-mapped orders stale.
    return (
        select(Order)
        .options(selectinload(Order.items))
        .execution_options(populate_existing=True)
    )


class SqlAlchemyStoreTransaction:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_variants(
        self, variant_ids: Sequence[uuid.UUID], *, for_update: bool = False
    ) -> list[ProductVariant]:
        if not variant_ids:
            return []
        # Lock rows in id order so concurrent checkouts cannot deadlock.
        query = (
            select(ProductVariant)
            .options(selectinload(ProductVariant.product))
            .where(ProductVariant.id.in_(variant_ids))
            .order_by(ProductVariant.id)
        )
        if for_update:
            query = query.with_for_update(of=ProductVariant)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def decrement_stock(self, variant_id: uuid.UUID, quantity: int) -> bool:
        result = await self.session.execute(
            update(ProductVariant)
            .where(
                ProductVariant.id == variant_id,
                ProductVariant.stock_quantity >= quantity,
            )
            .values(
                stock_quantity=ProductVariant.stock_quantity - quantity,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def increment_stock(self, variant_id: uuid.UUID, quantity: int) -> None:
        await self.session.execute(
            update(ProductVariant)
            .where(ProductVariant.id == variant_id)
            .values(
                stock_quantity=ProductVariant.stock_quantity + quantity,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session="fetch")
        )

    async def add_order(self, order: Order) -> Order:
        self.session.add(order)
        await self.session.flush()
        return order

    async def get_order(self, order_id: uuid.UUID) -> Optional[Order]:
        result = await self.session.execute(_order_query().where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def get_order_by_reference(self, payment_ref: str) -> Optional[Order]:
        result = await self.session.execute(
            _order_query().where(Order.payment_ref == payment_ref)
        )
        return result.scalar_one_or_none()

    async def transition_status(
        self,
        order_id: uuid.UUID,
        from_statuses: Collection[OrderStatus],
        to_status: OrderStatus,
        **changes: Any,
    ) -> bool:
        result = await self.session.execute(
            update(Order)
            .where(Order.id == order_id, Order.status.in_(list(from_statuses)))
            .values(status=to_status, updated_at=utc_now(), **changes)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def flag_payment_issue(
        self, order_id: uuid.UUID, issue: PaymentIssue
    ) -> None:
        await self.session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(payment_issue=issue, updated_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )

    async def find_guest_order(
        self, order_id: uuid.UUID, phone: str
    ) -> Optional[Order]:
        result = await self.session.execute(
            _order_query().where(Order.id == order_id, Order.customer_phone == phone)
        )
        return result.scalar_one_or_none()

    async def list_orders_for_user(self, user_id: str) -> list[Order]:
        result = await self.session.execute(
            _order_query()
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_orders(
        self,
        *,
        offset: int,
        limit: int,
        status: Optional[OrderStatus] = None,
    ) -> tuple[list[Order], int]:
        query = _order_query()
        count_query = select(func.count(Order.id))
        if status:
            query = query.where(Order.status == status)
            count_query = count_query.where(Order.status == status)

        total = (await self.session.execute(count_query)).scalar_one()
        result = await self.session.execute(
            query.order_by(Order.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_stale_pending_orders(
        self, created_before: datetime, limit: int = 100
    ) -> list[Order]:
        result = await self.session.execute(
            _order_query()
            .where(
                Order.status == OrderStatus.PENDING,
                Order.payment_method == PaymentMethod.PAYSTACK,
                Order.created_at < created_before,
                Order.payment_issue.is_(None),
            )
            .order_by(Order.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())


class SqlAlchemyUnitOfWork:
    """Unit of work backed by an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlAlchemyStoreTransaction]:
        async with self.session_factory() as session:
            async with session.begin():
                yield SqlAlchemyStoreTransaction(session)
