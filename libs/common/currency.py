"""Currency conversion utilities for the store.

Internal storage unit: cedis as ``Decimal`` (Numeric(12, 2) columns).
Gateway unit: pesewas (smallest GHS unit, 100 pesewas = ₵1), integer only.

Conversion chain
----------------
Cedis × 100 → Pesewas   (only at the Paystack boundary)
Pesewas ÷ 100 → Cedis
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

# ─── constants ───────────────────────────────────────────────────────────────

PESEWAS_PER_CEDI: int = 100
CENT = Decimal("0.01")


# ─── conversion helpers ───────────────────────────────────────────────────────


def to_money(value: Union[Decimal, int, str, float]) -> Decimal:
    """Coerce a value to a 2dp Decimal. Floats go through ``str`` first."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def cedis_to_pesewas(cedis: Union[Decimal, int, str]) -> int:
    """Convert cedis to pesewas (round half-up). ₵1 = 100 pesewas."""
    return int((to_money(cedis) * PESEWAS_PER_CEDI).to_integral_value(ROUND_HALF_UP))


def pesewas_to_cedis(pesewas: int) -> Decimal:
    """Convert pesewas to cedis. 100 pesewas = ₵1."""
    return (Decimal(pesewas) / PESEWAS_PER_CEDI).quantize(CENT)


def format_cedis(amount: Union[Decimal, int]) -> str:
    """Display helper: ``₵1,234.50``."""
    return f"₵{to_money(amount):,.2f}"
