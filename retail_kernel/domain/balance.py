"""
Balance -- Customer/supplier running balance and credit policy.

Responsibility:
    Recomputes an account balance from its full transaction history and
    answers credit questions (over limit? available credit? may purchase?
    account status) from a balance and a limit.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    ledger_direction_by_kind -- amounts are non-negative; the sign of each
        transaction comes from its kind via the per-ledger sign tables
        below. Kinds absent from a table are ignored for that ledger.
    A balance has no identity of its own: it is always a fold over the
    history, never mutated in place.

Failure modes:
    - NegativeAmountError on a negative transaction or purchase amount.
    - InvalidLimitError on a negative credit limit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping

from retail_kernel.domain.values import (
    ZERO,
    Number,
    require_non_negative,
    round_money,
    to_decimal,
)
from retail_kernel.exceptions import InvalidLimitError, NegativeAmountError


class LedgerTransactionKind(str, Enum):
    """Closed set of ledger transaction kinds."""

    CREDIT_SALE = "CREDIT_SALE"
    PAYMENT = "PAYMENT"
    REFUND = "REFUND"
    CREDIT_PURCHASE = "CREDIT_PURCHASE"
    RETURN = "RETURN"
    OPENING_BALANCE = "OPENING_BALANCE"


class AccountStatus(str, Enum):
    """Three-state account classification, recomputed on every call."""

    CLEAR = "CLEAR"
    ACTIVE = "ACTIVE"
    OVER_LIMIT = "OVER_LIMIT"


@dataclass(frozen=True)
class LedgerTransaction:
    """
    One entry of an account history.

    ``kind`` accepts the enum or its string value. ``amount`` is stored as
    given (Decimal); its sign is checked when the history is folded.
    """

    kind: LedgerTransactionKind
    amount: Decimal
    reference: str | None = None
    occurred_on: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", LedgerTransactionKind(self.kind))
        object.__setattr__(self, "amount", to_decimal(self.amount, "amount"))


# Sign applied to each kind per ledger side. Debt owed BY the customer.
CUSTOMER_SIGNS: Mapping[LedgerTransactionKind, int] = {
    LedgerTransactionKind.CREDIT_SALE: 1,
    LedgerTransactionKind.OPENING_BALANCE: 1,
    LedgerTransactionKind.PAYMENT: -1,
    LedgerTransactionKind.REFUND: -1,
}

# Debt owed TO the supplier.
SUPPLIER_SIGNS: Mapping[LedgerTransactionKind, int] = {
    LedgerTransactionKind.CREDIT_PURCHASE: 1,
    LedgerTransactionKind.OPENING_BALANCE: 1,
    LedgerTransactionKind.PAYMENT: -1,
    LedgerTransactionKind.RETURN: -1,
}


def _fold(
    transactions: Iterable[LedgerTransaction],
    signs: Mapping[LedgerTransactionKind, int],
) -> Decimal:
    balance = ZERO
    for transaction in transactions:
        # INVARIANT: ledger_direction_by_kind -- stored amounts are unsigned
        amount = require_non_negative(transaction.amount, "amount", NegativeAmountError)
        balance += signs.get(transaction.kind, 0) * amount
    return round_money(balance)


def customer_balance(transactions: Iterable[LedgerTransaction]) -> Decimal:
    """
    Customer balance: credit sales + opening balance - payments - refunds.

    A negative result means the customer has overpaid.

    Raises:
        NegativeAmountError: any transaction amount is negative.
    """
    return _fold(transactions, CUSTOMER_SIGNS)


def supplier_balance(transactions: Iterable[LedgerTransaction]) -> Decimal:
    """
    Supplier balance: credit purchases + opening balance - payments - returns.

    Raises:
        NegativeAmountError: any transaction amount is negative.
    """
    return _fold(transactions, SUPPLIER_SIGNS)


def _check_limit(limit: Number) -> Decimal:
    value = to_decimal(limit, "limit")
    if value < ZERO:
        raise InvalidLimitError(value)
    return value


def exceeds_credit_limit(balance: Number, limit: Number) -> bool:
    """True iff balance > limit. Raises InvalidLimitError for limit < 0."""
    credit_limit = _check_limit(limit)
    return to_decimal(balance, "balance") > credit_limit


def available_credit(balance: Number, limit: Number) -> Decimal:
    """Credit still available, floored at zero."""
    credit_limit = _check_limit(limit)
    return round_money(max(ZERO, credit_limit - to_decimal(balance, "balance")))


def can_purchase(balance: Number, amount: Number, limit: Number) -> bool:
    """
    Whether a purchase of ``amount`` keeps the account within its limit.

    Raises:
        NegativeAmountError: amount is negative.
        InvalidLimitError: limit is negative.
    """
    purchase = require_non_negative(amount, "amount", NegativeAmountError)
    return not exceeds_credit_limit(to_decimal(balance, "balance") + purchase, limit)


def account_status(balance: Number, limit: Number) -> AccountStatus:
    """CLEAR if nothing is owed, OVER_LIMIT if over the limit, else ACTIVE."""
    if to_decimal(balance, "balance") <= ZERO:
        return AccountStatus.CLEAR
    if exceeds_credit_limit(balance, limit):
        return AccountStatus.OVER_LIMIT
    return AccountStatus.ACTIVE
