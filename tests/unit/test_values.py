"""
Unit tests for decimal coercion and money rounding.

Verifies:
- Host input coercion (int, str, float, Decimal) and its rejections
- ROUND_HALF_UP to two places
- Rounding idempotence
"""

from decimal import Decimal

import pytest

from retail_kernel.domain.values import (
    MONEY_PLACES,
    ZERO,
    require_non_negative,
    round_money,
    to_decimal,
)
from retail_kernel.exceptions import (
    InvalidNumberError,
    NegativeAmountError,
    NegativeQuantityError,
)


class TestToDecimal:
    """Tests for to_decimal."""

    def test_decimal_passes_through(self):
        value = Decimal("12.345")
        assert to_decimal(value) is value

    def test_int_and_string(self):
        assert to_decimal(7) == Decimal("7")
        assert to_decimal(" 10.50 ") == Decimal("10.50")

    def test_float_uses_its_decimal_text(self):
        """0.1 becomes Decimal('0.1'), not the binary expansion."""
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(10.5) == Decimal("10.5")

    @pytest.mark.parametrize(
        "bad",
        [None, True, False, "abc", "", "NaN", "Infinity", float("nan"), float("inf")],
    )
    def test_rejects_non_numbers(self, bad):
        with pytest.raises(InvalidNumberError) as exc_info:
            to_decimal(bad, "price")
        assert exc_info.value.field == "price"
        assert exc_info.value.code == "INVALID_NUMBER"


class TestRoundMoney:
    """Tests for round_money."""

    def test_places_constant(self):
        assert MONEY_PLACES == 2

    def test_round_half_up(self):
        assert round_money(Decimal("10.555")) == Decimal("10.56")

    def test_round_down_case(self):
        assert round_money(Decimal("10.554")) == Decimal("10.55")

    def test_exactly_half_rounds_away_from_zero(self):
        assert round_money(Decimal("0.005")) == Decimal("0.01")
        assert round_money(Decimal("-0.005")) == Decimal("-0.01")

    def test_always_two_places(self):
        assert str(round_money(5)) == "5.00"
        assert str(round_money("52.5")) == "52.50"

    def test_idempotent(self):
        once = round_money(Decimal("3.14159"))
        assert round_money(once) == once


class TestRequireNonNegative:
    """Tests for require_non_negative."""

    def test_zero_allowed(self):
        assert require_non_negative(0, "amount") == ZERO

    def test_default_error_is_negative_amount(self):
        with pytest.raises(NegativeAmountError) as exc_info:
            require_non_negative("-0.01", "amount")
        assert exc_info.value.value == Decimal("-0.01")

    def test_custom_error_class(self):
        with pytest.raises(NegativeQuantityError) as exc_info:
            require_non_negative(-3, "quantity", NegativeQuantityError)
        assert exc_info.value.field == "quantity"
        assert "Quantity must be non-negative" in str(exc_info.value)
