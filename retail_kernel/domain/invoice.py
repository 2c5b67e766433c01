"""
Invoice -- Cart line totals, subtotal and invoice composition.

Responsibility:
    Computes the money figures of a sales or purchase invoice: line totals,
    subtotal, discount/tax composition, total, and remaining balance.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    single_rounding -- every public function rounds its own output once.
        ``subtotal`` sums the already-rounded line totals and rounds the
        sum once more (a no-op on two-place values), so no line is rounded
        twice.
    total_amount == subtotal - discount_amount + tax_amount
    remaining_amount == total_amount - paid_amount

Failure modes:
    - NegativeOperandError on any negative quantity, price or amount.
    - DiscountExceedsSubtotalError when discount > subtotal.
    - InvalidPercentError when a discount percent is outside 0..100.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from retail_kernel.domain.values import (
    ZERO,
    Number,
    require_non_negative,
    round_money,
    to_decimal,
)
from retail_kernel.exceptions import (
    DiscountExceedsSubtotalError,
    InvalidPercentError,
    NegativeOperandError,
)

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CartLine:
    """
    One line of an invoice draft.

    ``discount_amount`` is carried for the host's per-line display and
    persistence; the line total is ``quantity * unit_price`` and invoice
    level discounts go through ``invoice_total``.
    """

    product_id: str
    quantity: Decimal
    unit_price: Decimal
    discount_amount: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity"))
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price, "unit_price"))
        object.__setattr__(
            self, "discount_amount", to_decimal(self.discount_amount, "discount_amount")
        )


@dataclass(frozen=True)
class InvoiceResult:
    """Derived invoice figures; all amounts rounded to two places."""

    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal

    @property
    def is_fully_paid(self) -> bool:
        return self.remaining_amount <= ZERO

    @property
    def is_overpaid(self) -> bool:
        return self.remaining_amount < ZERO


def line_total(line: CartLine) -> Decimal:
    """
    Total price of one cart line.

    Postconditions:
        - Returns round_money(quantity * unit_price).

    Raises:
        NegativeOperandError: quantity or unit_price is negative.
    """
    quantity = require_non_negative(line.quantity, "quantity", NegativeOperandError)
    unit_price = require_non_negative(line.unit_price, "unit_price", NegativeOperandError)
    return round_money(quantity * unit_price)


def subtotal(lines: Iterable[CartLine]) -> Decimal:
    """Sum of line totals; an empty cart yields 0.00."""
    total = sum((line_total(line) for line in lines), ZERO)
    return round_money(total)


def invoice_total(subtotal: Number, discount: Number, tax: Number) -> Decimal:
    """
    Invoice total: subtotal - discount + tax.

    Preconditions:
        - All inputs >= 0.
        - discount <= subtotal.

    Raises:
        NegativeOperandError: any input is negative.
        DiscountExceedsSubtotalError: discount is larger than subtotal.
    """
    sub = require_non_negative(subtotal, "subtotal", NegativeOperandError)
    disc = require_non_negative(discount, "discount", NegativeOperandError)
    tax_amount = require_non_negative(tax, "tax", NegativeOperandError)

    if disc > sub:
        raise DiscountExceedsSubtotalError(sub, disc)

    return round_money(sub - disc + tax_amount)


def remaining(total: Number, paid: Number) -> Decimal:
    """
    Amount still owed: total - paid.

    The result may be negative (overpayment); the host decides whether that
    signals a refund due.

    Raises:
        NegativeOperandError: total or paid is negative.
    """
    total_amount = require_non_negative(total, "total", NegativeOperandError)
    paid_amount = require_non_negative(paid, "paid", NegativeOperandError)
    return round_money(total_amount - paid_amount)


def percent_discount(subtotal: Number, percent: Number) -> Decimal:
    """
    Discount amount for a percentage applied to the whole subtotal.

    Raises:
        NegativeOperandError: subtotal is negative.
        InvalidPercentError: percent is outside 0..100.
    """
    sub = require_non_negative(subtotal, "subtotal", NegativeOperandError)
    pct = to_decimal(percent, "percent")
    if pct < ZERO or pct > _HUNDRED:
        raise InvalidPercentError(pct)
    return round_money(sub * pct / _HUNDRED)


def calculate_invoice(
    lines: Iterable[CartLine],
    discount: Number = 0,
    tax: Number = 0,
    paid: Number = 0,
) -> InvoiceResult:
    """
    Compose a complete invoice from cart lines.

    Postconditions:
        - total_amount == subtotal - discount_amount + tax_amount
        - remaining_amount == total_amount - paid_amount
        - All six figures are rounded to two places.

    Raises:
        Everything ``line_total``, ``invoice_total`` and ``remaining`` raise.
    """
    sub = subtotal(lines)
    raw_discount = require_non_negative(discount, "discount", NegativeOperandError)
    if raw_discount > sub:
        raise DiscountExceedsSubtotalError(sub, raw_discount)

    # Round the header amounts before composing so the stored figures
    # satisfy the total/remaining identities exactly.
    disc = round_money(raw_discount)
    tax_amount = round_money(require_non_negative(tax, "tax", NegativeOperandError))
    paid_amount = round_money(require_non_negative(paid, "paid", NegativeOperandError))

    total = invoice_total(sub, disc, tax_amount)
    return InvoiceResult(
        subtotal=sub,
        discount_amount=disc,
        tax_amount=tax_amount,
        total_amount=total,
        paid_amount=paid_amount,
        remaining_amount=remaining(total, paid_amount),
    )
