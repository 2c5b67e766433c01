"""
Values -- Decimal coercion and canonical money rounding.

Responsibility:
    Provides the numeric primitives every calculator uses: coercion of
    host input to ``Decimal``, the canonical two-place money rounding,
    and non-negativity guards that raise the caller-selected typed error.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every calculator module. No outward dependencies except
    retail_kernel.exceptions.

Invariants enforced:
    single_rounding -- ``round_money`` is the only rounding primitive; it
        quantizes to ``MONEY_PLACES`` with ROUND_HALF_UP, which for Decimal
        is round-half-away-from-zero.
    Floats are never used in arithmetic: they are converted through
    ``str`` at the boundary, so ``10.5`` becomes ``Decimal("10.5")``
    rather than its binary approximation.

Failure modes:
    - InvalidNumberError for bool, None, NaN, infinities and unparseable
      strings.
    - The negative-guard helpers raise whichever AmountError subclass the
      caller passes in.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from retail_kernel.exceptions import (
    AmountError,
    InvalidNumberError,
    NegativeAmountError,
)

MONEY_PLACES = 2
_MONEY_QUANTUM = Decimal("0.01")

ZERO = Decimal("0")

# Accepted numeric input at the kernel boundary.
Number = Union[Decimal, int, float, str]


def to_decimal(value: Number, name: str = "value") -> Decimal:
    """
    Coerce host input to a finite Decimal.

    Preconditions:
        - value is a Decimal, int, float or numeric string.

    Postconditions:
        - Returns a finite Decimal equal to the decimal text of value.

    Raises:
        InvalidNumberError: bool, None, NaN, infinity or unparseable input.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidNumberError(name, value)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise InvalidNumberError(name, value) from e
    if not result.is_finite():
        raise InvalidNumberError(name, value)
    return result


def round_money(value: Number) -> Decimal:
    """
    Round to two places, half away from zero.

    Postconditions:
        - Result has exactly two fractional digits.
        - round_money(round_money(x)) == round_money(x).
    """
    return to_decimal(value).quantize(_MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def require_non_negative(
    value: Number,
    name: str,
    error: type[AmountError] = NegativeAmountError,
) -> Decimal:
    """Coerce value and raise ``error(name, value)`` if it is below zero."""
    amount = to_decimal(value, name)
    if amount < ZERO:
        raise error(name, amount)
    return amount
