"""
Typed Exception Hierarchy for the Retail Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every rejection the kernel can produce is a distinct class with a
machine-readable ``code`` and the offending values stored as attributes.
Hosts branch on the type (or on ``code``) and never parse messages:

    try:
        after = apply_operation(state, operation)
    except InsufficientInventoryError as e:
        show_warning(available=e.available, required=e.required)
    except InventoryError as e:
        api_response(code=e.code, message=str(e))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from RetailKernelError:

    RetailKernelError (base)
    |
    +-- AmountError
    |   +-- InvalidNumberError
    |   +-- NegativeAmountError
    |   +-- NegativeQuantityError
    |   +-- NegativeCostError
    |   +-- NegativeOperandError
    |
    +-- InvoiceError
    |   +-- DiscountExceedsSubtotalError
    |   +-- InvalidPercentError
    |
    +-- CreditError
    |   +-- InvalidLimitError
    |   +-- CreditLimitExceededError
    |
    +-- InventoryError
    |   +-- StateMismatchError
    |   +-- InsufficientInventoryError
    |   +-- UnknownOperationError
    |
    +-- TransferError
    |   +-- InvalidQuantityError
    |   +-- ProductMismatchError
    |   +-- InsufficientSourceError
    |   +-- SameBranchTransferError
    |
    +-- ReturnError
    |   +-- ReturnQuantityExceededError
    |
    +-- DamageError
    |   +-- InvalidDamageTypeError
    |
    +-- CodeError
    |   +-- NegativeSequenceError
    |   +-- InvalidPrefixError
    |   +-- InvalidSequenceError
    |   +-- InvalidCodeDateError
    |
    +-- ConcurrencyError
        +-- StaleSnapshotError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                       | When Raised
-------------|----------------------------|-----------------------------------------
Amount       | INVALID_NUMBER             | Input is not a finite number
             | NEGATIVE_AMOUNT            | Ledger/purchase amount < 0
             | NEGATIVE_QUANTITY          | Stock/return/damage quantity < 0
             | NEGATIVE_COST              | Damage unit cost < 0
             | NEGATIVE_OPERAND           | Invoice arithmetic input < 0
-------------|----------------------------|-----------------------------------------
Invoice      | DISCOUNT_EXCEEDS_SUBTOTAL  | discount > subtotal
             | INVALID_PERCENT            | Discount percent outside 0..100
-------------|----------------------------|-----------------------------------------
Credit       | INVALID_LIMIT              | Credit limit < 0
             | CREDIT_LIMIT_EXCEEDED      | Planned sale pushes account over limit
-------------|----------------------------|-----------------------------------------
Inventory    | STATE_MISMATCH             | Operation product/branch != state
             | INSUFFICIENT_INVENTORY     | Decrease would go below zero
             | UNKNOWN_OPERATION          | Operation tag outside the closed set
-------------|----------------------------|-----------------------------------------
Transfer     | INVALID_QUANTITY           | Transfer quantity <= 0
             | PRODUCT_MISMATCH           | Source/destination products differ
             | INSUFFICIENT_SOURCE        | Source holds less than requested
             | SAME_BRANCH_TRANSFER       | Committed transfer names one branch twice
-------------|----------------------------|-----------------------------------------
Return       | RETURN_QUANTITY_EXCEEDED   | Planned return above remaining quantity
-------------|----------------------------|-----------------------------------------
Damage       | INVALID_DAMAGE_TYPE        | Damage tag outside the closed set
-------------|----------------------------|-----------------------------------------
Code         | NEGATIVE_SEQUENCE          | Sequence number < 0
             | INVALID_PREFIX             | Prefix empty, lowercase or non-ASCII
             | INVALID_SEQUENCE           | Sequence is not an integer
             | INVALID_CODE_DATE          | Date part missing or not YYYYMMDD
-------------|----------------------------|-----------------------------------------
Concurrency  | STALE_SNAPSHOT             | Compare-and-write kept losing the race

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Exceptions inherit from Exception, not ValueError, so domain rejections
   can be caught as a group without also catching programming errors.

2. ``code`` is a class attribute: it is static per type and available
   without an instance (documentation, API schemas, ValidationError codes).

3. All context is stored as attributes; the structured log formatter
   records ``error_type``, ``error_code`` and ``error_message`` for any
   error logged with ``exc_info``.

4. Every error is raised before any output value is produced; there is no
   partial result to roll back.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class RetailKernelError(Exception):
    """
    Base exception for all retail kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "RETAIL_KERNEL_ERROR"


# Amount-related exceptions


class AmountError(RetailKernelError):
    """Base exception for numeric input errors."""

    code: str = "AMOUNT_ERROR"


class InvalidNumberError(AmountError):
    """Input cannot be interpreted as a finite decimal number."""

    code: str = "INVALID_NUMBER"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be a finite number, got {value!r}")


class _NegativeValueError(AmountError):
    """Shared shape for the four negative-input errors."""

    label: str = "Value"

    def __init__(self, field: str, value: Decimal):
        self.field = field
        self.value = value
        super().__init__(f"{self.label} must be non-negative: {field}={value}")


class NegativeAmountError(_NegativeValueError):
    """A ledger or purchase amount is negative."""

    code: str = "NEGATIVE_AMOUNT"
    label = "Amount"


class NegativeQuantityError(_NegativeValueError):
    """A stock, return or damage quantity is negative."""

    code: str = "NEGATIVE_QUANTITY"
    label = "Quantity"


class NegativeCostError(_NegativeValueError):
    """A unit cost is negative."""

    code: str = "NEGATIVE_COST"
    label = "Unit cost"


class NegativeOperandError(_NegativeValueError):
    """An invoice arithmetic input is negative."""

    code: str = "NEGATIVE_OPERAND"
    label = "Operand"


# Invoice-related exceptions


class InvoiceError(RetailKernelError):
    """Base exception for invoice calculation errors."""

    code: str = "INVOICE_ERROR"


class DiscountExceedsSubtotalError(InvoiceError):
    """Discount amount is larger than the subtotal it applies to."""

    code: str = "DISCOUNT_EXCEEDS_SUBTOTAL"

    def __init__(self, subtotal: Decimal, discount: Decimal):
        self.subtotal = subtotal
        self.discount = discount
        super().__init__(
            f"Discount amount {discount} cannot exceed subtotal {subtotal}"
        )


class InvalidPercentError(InvoiceError):
    """Percentage outside the closed range 0..100."""

    code: str = "INVALID_PERCENT"

    def __init__(self, percent: Decimal):
        self.percent = percent
        super().__init__(f"Percent must be between 0 and 100, got {percent}")


# Credit-related exceptions


class CreditError(RetailKernelError):
    """Base exception for balance and credit policy errors."""

    code: str = "CREDIT_ERROR"


class InvalidLimitError(CreditError):
    """Credit limit is negative."""

    code: str = "INVALID_LIMIT"

    def __init__(self, limit: Decimal):
        self.limit = limit
        super().__init__(f"Credit limit must be non-negative, got {limit}")


class CreditLimitExceededError(CreditError):
    """
    A planned transaction would carry the account over its credit limit.

    Raised by the transaction planner, never by the pure policy functions
    (those answer with booleans).
    """

    code: str = "CREDIT_LIMIT_EXCEEDED"

    def __init__(
        self,
        account_id: str | None,
        balance: Decimal,
        amount: Decimal,
        limit: Decimal,
    ):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        self.limit = limit
        super().__init__(
            f"Credit limit exceeded for account {account_id}: "
            f"balance={balance}, amount={amount}, limit={limit}"
        )


# Inventory-related exceptions


class InventoryError(RetailKernelError):
    """Base exception for inventory state errors."""

    code: str = "INVENTORY_ERROR"


class StateMismatchError(InventoryError):
    """Operation targets a different product/branch than the state."""

    code: str = "STATE_MISMATCH"

    def __init__(
        self,
        state_key: tuple[str, str],
        operation_key: tuple[str, str],
    ):
        self.state_key = state_key
        self.operation_key = operation_key
        super().__init__(
            f"Operation does not match inventory state: "
            f"state={state_key}, operation={operation_key}"
        )


class InsufficientInventoryError(InventoryError):
    """A decreasing operation would drive stock below zero."""

    code: str = "INSUFFICIENT_INVENTORY"

    def __init__(
        self,
        product_id: str,
        branch_id: str,
        available: Decimal,
        required: Decimal,
    ):
        self.product_id = product_id
        self.branch_id = branch_id
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient inventory for {product_id} at {branch_id}. "
            f"Available: {available}, Required: {required}"
        )


class UnknownOperationError(InventoryError):
    """Operation tag is outside the closed set of operation types."""

    code: str = "UNKNOWN_OPERATION"

    def __init__(self, operation_type: Any):
        self.operation_type = operation_type
        super().__init__(f"Unknown operation type: {operation_type!r}")


# Transfer-related exceptions


class TransferError(RetailKernelError):
    """Base exception for cross-location transfer errors."""

    code: str = "TRANSFER_ERROR"


class InvalidQuantityError(TransferError):
    """Transfer quantity is zero or negative."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Decimal):
        self.quantity = quantity
        super().__init__(f"Transfer quantity must be positive, got {quantity}")


class ProductMismatchError(TransferError):
    """Source and destination describe different products."""

    code: str = "PRODUCT_MISMATCH"

    def __init__(self, source_product_id: str, destination_product_id: str):
        self.source_product_id = source_product_id
        self.destination_product_id = destination_product_id
        super().__init__(
            f"Product mismatch in transfer: "
            f"{source_product_id} -> {destination_product_id}"
        )


class InsufficientSourceError(TransferError):
    """Source location holds less than the requested transfer quantity."""

    code: str = "INSUFFICIENT_SOURCE"

    def __init__(self, branch_id: str, available: Decimal, requested: Decimal):
        self.branch_id = branch_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient quantity at source branch {branch_id}: "
            f"available={available}, requested={requested}"
        )


class SameBranchTransferError(TransferError):
    """
    Source and destination of a committed transfer are the same branch.

    Both legs would address one stock row, and writing them would create
    or destroy the transferred quantity.
    """

    code: str = "SAME_BRANCH_TRANSFER"

    def __init__(self, product_id: str, branch_id: str):
        self.product_id = product_id
        self.branch_id = branch_id
        super().__init__(
            f"Transfer of {product_id} must name two different branches, "
            f"got {branch_id} twice"
        )


# Return-related exceptions


class ReturnError(RetailKernelError):
    """Base exception for return errors."""

    code: str = "RETURN_ERROR"


class ReturnQuantityExceededError(ReturnError):
    """
    A planned return asks for more than may still be returned.

    The validator itself answers with a ReturnCheck; the planner turns an
    overflowing check into this error. Negative quantities are rejected
    earlier with NegativeQuantityError.
    """

    code: str = "RETURN_QUANTITY_EXCEEDED"

    def __init__(self, requested: Decimal, allowed_quantity: Decimal, reason: str):
        self.requested = requested
        self.allowed_quantity = allowed_quantity
        self.reason = reason
        super().__init__(reason)


# Damage-related exceptions


class DamageError(RetailKernelError):
    """Base exception for damage/write-off errors."""

    code: str = "DAMAGE_ERROR"


class InvalidDamageTypeError(DamageError):
    """Damage tag is outside the closed enumeration."""

    code: str = "INVALID_DAMAGE_TYPE"

    def __init__(self, damage_type: Any):
        self.damage_type = damage_type
        super().__init__(f"Invalid damage type: {damage_type!r}")


# Code-generation exceptions


class CodeError(RetailKernelError):
    """Base exception for business code generation errors."""

    code: str = "CODE_ERROR"


class NegativeSequenceError(CodeError):
    """Sequence number is negative."""

    code: str = "NEGATIVE_SEQUENCE"

    def __init__(self, sequence: int):
        self.sequence = sequence
        super().__init__(f"Sequence must be non-negative, got {sequence}")


class InvalidPrefixError(CodeError):
    """Code prefix would break the ASCII, hyphen-delimited code format."""

    code: str = "INVALID_PREFIX"

    def __init__(self, prefix: Any, reason: str):
        self.prefix = prefix
        self.reason = reason
        super().__init__(f"Invalid code prefix {prefix!r}: {reason}")


class InvalidSequenceError(CodeError):
    """Sequence is not an integer."""

    code: str = "INVALID_SEQUENCE"

    def __init__(self, sequence: Any):
        self.sequence = sequence
        super().__init__(f"Sequence must be an integer, got {sequence!r}")


class InvalidCodeDateError(CodeError):
    """Date part of a dated code is missing or not a date / YYYYMMDD string."""

    code: str = "INVALID_CODE_DATE"

    def __init__(self, date_part: Any):
        self.date_part = date_part
        super().__init__(
            f"date_part must be a date or YYYYMMDD string, got {date_part!r}"
        )


# Concurrency-related exceptions


class ConcurrencyError(RetailKernelError):
    """Base exception for snapshot/compare-and-write errors."""

    code: str = "CONCURRENCY_ERROR"


class StaleSnapshotError(ConcurrencyError):
    """
    Compare-and-write failed on every attempt.

    Raised by the stock committer once its attempts are exhausted; the
    snapshot the last computation was based on was no longer current.
    """

    code: str = "STALE_SNAPSHOT"

    def __init__(self, entity_key: tuple[str, ...], attempts: int):
        self.entity_key = entity_key
        self.attempts = attempts
        super().__init__(
            f"Snapshot for {entity_key} went stale on all {attempts} attempts: "
            "entity was modified by another transaction"
        )
