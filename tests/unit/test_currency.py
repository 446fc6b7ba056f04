from decimal import Decimal

import pytest
from libs.common.currency import (
    cedis_to_pesewas,
    format_cedis,
    pesewas_to_cedis,
    to_money,
)


@pytest.mark.unit
def test_cedis_to_pesewas_is_integer():
    assert cedis_to_pesewas(Decimal("120")) == 12000
    assert cedis_to_pesewas(Decimal("0.1") + Decimal("0.2")) == 30
    assert isinstance(cedis_to_pesewas(Decimal("19.99")), int)


@pytest.mark.unit
def test_rounding_is_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert cedis_to_pesewas("10.005") == 1001


@pytest.mark.unit
def test_float_input_goes_through_str():
    assert to_money(0.1) == Decimal("0.10")


@pytest.mark.unit
def test_pesewas_round_trip_and_format():
    assert pesewas_to_cedis(12345) == Decimal("123.45")
    assert format_cedis(Decimal("1234.5")) == "₵1,234.50"
