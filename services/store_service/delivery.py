"""Flat delivery fees per Ghana administrative region (GHS)."""

from decimal import Decimal
from typing import Optional

DEFAULT_DELIVERY_FEE = Decimal("50")

DELIVERY_FEES: dict[str, Decimal] = {
    "greater-accra": Decimal("20"),
    "ashanti": Decimal("35"),
    "western": Decimal("45"),
    "eastern": Decimal("30"),
    "central": Decimal("35"),
    "volta": Decimal("40"),
    "northern": Decimal("60"),
    "upper-east": Decimal("70"),
    "upper-west": Decimal("70"),
    "bono": Decimal("50"),
    "bono-east": Decimal("55"),
    "ahafo": Decimal("50"),
    "savannah": Decimal("65"),
    "north-east": Decimal("65"),
    "oti": Decimal("45"),
    "western-north": Decimal("50"),
}

GHANA_REGIONS: tuple[str, ...] = tuple(DELIVERY_FEES)


def calculate_delivery_fee(region: Optional[str]) -> Decimal:
    """Fee for ``region``; unknown or empty regions get the default fee."""
    if not region:
        return DEFAULT_DELIVERY_FEE
    return DELIVERY_FEES.get(region, DEFAULT_DELIVERY_FEE)


def is_valid_region(region: Optional[str]) -> bool:
    return bool(region) and region in DELIVERY_FEES


def get_delivery_fee_from_address(address: Optional[dict]) -> Decimal:
    """Resolve the fee from a shipping address (``region``, falling back to ``state``)."""
    if not address:
        return DEFAULT_DELIVERY_FEE
    return calculate_delivery_fee(address.get("region") or address.get("state"))
