"""
Returns -- Return-quantity ceiling for sales and purchase returns.

A return may never exceed the originally invoiced quantity minus what has
already been returned against the same line. ``validate_return`` answers
without raising; ``max_return_quantity`` raises on negative inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from retail_kernel.domain.values import (
    ZERO,
    Number,
    require_non_negative,
    to_decimal,
)
from retail_kernel.exceptions import NegativeQuantityError


@dataclass(frozen=True)
class ReturnCheck:
    """Outcome of validate_return. ``allowed_quantity`` is set only on overflow."""

    is_valid: bool
    error: str | None = None
    allowed_quantity: Decimal | None = None

    def __bool__(self) -> bool:
        return self.is_valid


def validate_return(
    return_quantity: Number,
    original_quantity: Number,
    previous_returns: Number = 0,
) -> ReturnCheck:
    """
    Check 0 <= return_quantity <= original_quantity - previous_returns.

    Negative inputs are reported in the order return, original, previous,
    each with its own message.
    """
    requested = to_decimal(return_quantity, "return_quantity")
    original = to_decimal(original_quantity, "original_quantity")
    previous = to_decimal(previous_returns, "previous_returns")

    if requested < ZERO:
        return ReturnCheck(False, "Return quantity must be non-negative")
    if original < ZERO:
        return ReturnCheck(False, "Original quantity must be non-negative")
    if previous < ZERO:
        return ReturnCheck(False, "Previous returns must be non-negative")

    remaining_quantity = original - previous
    if requested > remaining_quantity:
        return ReturnCheck(
            False,
            f"Return quantity ({requested}) exceeds remaining quantity "
            f"({remaining_quantity})",
            allowed_quantity=remaining_quantity,
        )

    return ReturnCheck(True)


def max_return_quantity(original_quantity: Number, previous_returns: Number = 0) -> Decimal:
    """Largest quantity still returnable, floored at zero."""
    original = require_non_negative(original_quantity, "original_quantity", NegativeQuantityError)
    previous = require_non_negative(previous_returns, "previous_returns", NegativeQuantityError)
    return max(ZERO, original - previous)


def can_return(original_quantity: Number, previous_returns: Number = 0) -> bool:
    return max_return_quantity(original_quantity, previous_returns) > ZERO
