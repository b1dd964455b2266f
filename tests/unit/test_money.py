"""Unit tests for the fixed-point money helpers."""

from decimal import Decimal

import pytest
from libs.common.money import (
    add,
    clamp_non_negative,
    multiply,
    quantize,
    subtract,
    to_decimal,
)


@pytest.mark.unit
def test_to_decimal_treats_none_as_zero():
    assert to_decimal(None) == Decimal("0")


@pytest.mark.unit
def test_to_decimal_keeps_float_digits():
    assert to_decimal(0.1) == Decimal("0.1")


@pytest.mark.unit
def test_add_and_subtract_are_exact():
    assert add("0.10", "0.20") == Decimal("0.30")
    assert subtract("100", "3", "2", None) == Decimal("95")


@pytest.mark.unit
def test_subtract_can_go_negative():
    assert subtract("5", "10") == Decimal("-5")


@pytest.mark.unit
def test_multiply_rounds_only_when_asked():
    assert multiply("10.25", 3) == Decimal("30.75")
    assert multiply("1.005", 1, places=2) == Decimal("1.01")


@pytest.mark.unit
def test_clamp_non_negative():
    assert clamp_non_negative("-0.01") == Decimal("0")
    assert clamp_non_negative("12.5") == Decimal("12.5")


@pytest.mark.unit
@pytest.mark.parametrize(
    "rounding, expected",
    [("round", Decimal("151.52")), ("floor", Decimal("151.51")), ("ceil", Decimal("151.52"))],
)
def test_quantize_rounding_methods(rounding, expected):
    assert quantize("151.515", 2, rounding) == expected


@pytest.mark.unit
def test_quantize_rejects_scale_above_eight():
    with pytest.raises(ValueError):
        quantize("1", 9)
