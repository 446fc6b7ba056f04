"""Read-only stock pre-check for a cart."""

import uuid
from dataclasses import dataclass

from libs.common.logging import get_logger
from services.store_service.exceptions import InventoryErrorItem
from services.store_service.repository import StoreUnitOfWork

logger = get_logger(__name__)

UNKNOWN_PRODUCT_TITLE = "Unknown Product"


@dataclass(frozen=True)
class CartLine:
    variant_id: uuid.UUID
    quantity: int


class InventoryValidator:
    """Reports every cart line that cannot be fulfilled right now.

    Never mutates stock. The order engine re-checks under row locks, so a
    clean result here is advisory only.
    """

    def __init__(self, uow: StoreUnitOfWork):
        self.uow = uow

    async def validate_inventory(
        self, items: list[CartLine]
    ) -> list[InventoryErrorItem]:
        variant_ids = list(dict.fromkeys(item.variant_id for item in items))

        async with self.uow.transaction() as tx:
            variants = await tx.get_variants(variant_ids)

        by_id = {variant.id: variant for variant in variants}
        errors: list[InventoryErrorItem] = []

        for item in items:
            variant = by_id.get(item.variant_id)
            if variant is None:
                errors.append(
                    InventoryErrorItem(
                        variant_id=str(item.variant_id),
                        product_title=UNKNOWN_PRODUCT_TITLE,
                        size="N/A",
                        color="N/A",
                        requested=item.quantity,
                        available=0,
                    )
                )
                continue

            if not variant.product.is_active:
                available = 0
            elif variant.stock_quantity < item.quantity:
                available = variant.stock_quantity
            else:
                continue

            errors.append(
                InventoryErrorItem(
                    variant_id=str(variant.id),
                    product_title=variant.product.title,
                    size=variant.size,
                    color=variant.color,
                    requested=item.quantity,
                    available=available,
                )
            )

        if errors:
            logger.info("Inventory pre-check found %d problem line(s)", len(errors))
        return errors
