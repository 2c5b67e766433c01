"""
Inventory -- Single-location stock state machine.

Responsibility:
    Applies stock operations (sale, purchase, transfer legs, return,
    damage) to an immutable per-(product, branch) snapshot and answers
    stock questions (low stock, in stock, available after reservations).
    Also derives stock-count variances and the operation that reconciles
    a snapshot with a physical count.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    The caller supplies the snapshot and persists the returned state with
    compare-and-write (see retail_services.stock_committer).

Invariants enforced:
    non_negative_stock -- InventoryState rejects negative quantities at
        construction; decreasing operations that would go below zero are
        rejected wholesale, never clamped.
    closed_enumerations -- every InventoryOperationType has an entry in
        OPERATION_DIRECTION; a tag outside the enum raises
        UnknownOperationError.
    value_immutability -- apply_operation returns a new InventoryState.

Failure modes:
    - NegativeQuantityError: negative operation quantity or state field.
    - StateMismatchError: operation addresses another product/branch.
    - InsufficientInventoryError: decrease larger than quantity on hand.
    - UnknownOperationError: operation tag outside the closed set.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping

from retail_kernel.domain.dtos import ValidationError, ValidationResult
from retail_kernel.domain.values import (
    ZERO,
    Number,
    require_non_negative,
    to_decimal,
)
from retail_kernel.exceptions import (
    InsufficientInventoryError,
    NegativeQuantityError,
    StateMismatchError,
    UnknownOperationError,
)


class InventoryOperationType(str, Enum):
    """Closed set of stock operations."""

    SALE = "SALE"
    PURCHASE = "PURCHASE"
    TRANSFER_OUT = "TRANSFER_OUT"
    TRANSFER_IN = "TRANSFER_IN"
    RETURN = "RETURN"
    DAMAGE = "DAMAGE"

    @classmethod
    def parse(cls, value: Any) -> InventoryOperationType:
        """Coerce a tag to the enum; raise UnknownOperationError otherwise."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as e:
            raise UnknownOperationError(value) from e


# -1 decreases stock, +1 increases it.
OPERATION_DIRECTION: Mapping[InventoryOperationType, int] = {
    InventoryOperationType.SALE: -1,
    InventoryOperationType.TRANSFER_OUT: -1,
    InventoryOperationType.DAMAGE: -1,
    InventoryOperationType.PURCHASE: 1,
    InventoryOperationType.TRANSFER_IN: 1,
    InventoryOperationType.RETURN: 1,
}


@dataclass(frozen=True)
class InventoryState:
    """
    Stock snapshot for one (product, branch) pair.

    Guarantees:
        - quantity, min_quantity and reserved_quantity (when present) are
          non-negative Decimals.
    """

    product_id: str
    branch_id: str
    quantity: Decimal
    min_quantity: Decimal = ZERO
    reserved_quantity: Decimal | None = None

    def __post_init__(self) -> None:
        # INVARIANT: non_negative_stock -- a snapshot can never hold negative stock
        object.__setattr__(
            self,
            "quantity",
            require_non_negative(self.quantity, "quantity", NegativeQuantityError),
        )
        object.__setattr__(
            self,
            "min_quantity",
            require_non_negative(self.min_quantity, "min_quantity", NegativeQuantityError),
        )
        if self.reserved_quantity is not None:
            object.__setattr__(
                self,
                "reserved_quantity",
                require_non_negative(
                    self.reserved_quantity, "reserved_quantity", NegativeQuantityError
                ),
            )

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.branch_id)


@dataclass(frozen=True)
class InventoryOperation:
    """
    Stock command for one (product, branch) pair.

    ``quantity`` is not range-checked here so that ``validate_operation``
    can report a negative quantity instead of failing at construction.
    """

    product_id: str
    branch_id: str
    quantity: Decimal
    operation_type: InventoryOperationType

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity"))
        object.__setattr__(
            self, "operation_type", InventoryOperationType.parse(self.operation_type)
        )

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.branch_id)


def apply_operation(state: InventoryState, operation: InventoryOperation) -> InventoryState:
    """
    Apply one operation and return the resulting state.

    Preconditions:
        - operation.quantity >= 0
        - operation addresses the same product and branch as state

    Postconditions:
        - Decreasing kinds: quantity' = quantity - op.quantity >= 0
        - Increasing kinds: quantity' = quantity + op.quantity
        - All other fields are carried over; the input is not mutated.

    Raises:
        NegativeQuantityError, StateMismatchError,
        InsufficientInventoryError, UnknownOperationError.
    """
    amount = require_non_negative(operation.quantity, "quantity", NegativeQuantityError)

    if state.key != operation.key:
        raise StateMismatchError(state.key, operation.key)

    direction = OPERATION_DIRECTION.get(operation.operation_type)
    if direction is None:
        raise UnknownOperationError(operation.operation_type)

    new_quantity = state.quantity + direction * amount
    if new_quantity < ZERO:
        # INVARIANT: non_negative_stock -- reject, never clamp
        raise InsufficientInventoryError(
            state.product_id, state.branch_id, state.quantity, amount
        )

    return replace(state, quantity=new_quantity)


def validate_operation(
    state: InventoryState, operation: InventoryOperation
) -> ValidationResult:
    """
    Non-throwing precheck mirroring ``apply_operation``.

    Returns a failed ValidationResult whose error code equals the code of
    the exception ``apply_operation`` would raise.
    """
    if operation.quantity < ZERO:
        return ValidationResult.failure(
            ValidationError(
                code=NegativeQuantityError.code,
                message="Operation quantity must be non-negative",
                field="quantity",
            )
        )

    if state.key != operation.key:
        return ValidationResult.failure(
            ValidationError(
                code=StateMismatchError.code,
                message="Operation does not match inventory state",
            )
        )

    if OPERATION_DIRECTION[operation.operation_type] < 0 and state.quantity < operation.quantity:
        return ValidationResult.failure(
            ValidationError(
                code=InsufficientInventoryError.code,
                message=(
                    f"Insufficient inventory. Available: {state.quantity}, "
                    f"Required: {operation.quantity}"
                ),
                field="quantity",
                details={"available": state.quantity, "required": operation.quantity},
            )
        )

    return ValidationResult.success()


def is_low_stock(state: InventoryState) -> bool:
    """True when quantity is strictly below the minimum."""
    return state.quantity < state.min_quantity


def available_quantity(state: InventoryState) -> Decimal:
    """Quantity not held by reservations, floored at zero."""
    reserved = state.reserved_quantity or ZERO
    return max(ZERO, state.quantity - reserved)


def is_in_stock(state: InventoryState) -> bool:
    return state.quantity > ZERO


# ---------------------------------------------------------------------------
# Stock count
# ---------------------------------------------------------------------------


class VarianceType(str, Enum):
    SURPLUS = "surplus"
    SHORTAGE = "shortage"
    MATCH = "match"


@dataclass(frozen=True)
class StockCountLine:
    """Physical count of one (product, branch) against the system quantity."""

    product_id: str
    branch_id: str
    system_quantity: Decimal
    counted_quantity: Decimal
    variance: Decimal
    variance_type: VarianceType


@dataclass(frozen=True)
class StockCountSummary:
    total_variance: Decimal
    surplus_count: int
    shortage_count: int

    @property
    def variance_items(self) -> int:
        return self.surplus_count + self.shortage_count


def count_variance(
    product_id: str,
    branch_id: str,
    system_quantity: Number,
    counted_quantity: Number,
) -> StockCountLine:
    """
    Compare a physical count with the system quantity.

    Postconditions:
        - variance == counted - system
        - variance_type is SURPLUS / SHORTAGE / MATCH by the sign of variance

    Raises:
        NegativeQuantityError: either quantity is negative.
    """
    system = require_non_negative(system_quantity, "system_quantity", NegativeQuantityError)
    counted = require_non_negative(counted_quantity, "counted_quantity", NegativeQuantityError)
    variance = counted - system
    if variance > ZERO:
        variance_type = VarianceType.SURPLUS
    elif variance < ZERO:
        variance_type = VarianceType.SHORTAGE
    else:
        variance_type = VarianceType.MATCH
    return StockCountLine(
        product_id=product_id,
        branch_id=branch_id,
        system_quantity=system,
        counted_quantity=counted,
        variance=variance,
        variance_type=variance_type,
    )


def summarize_count(lines: Iterable[StockCountLine]) -> StockCountSummary:
    """Totals for a count sheet: absolute variance and surplus/shortage counts."""
    total = ZERO
    surplus = shortage = 0
    for line in lines:
        total += abs(line.variance)
        if line.variance_type is VarianceType.SURPLUS:
            surplus += 1
        elif line.variance_type is VarianceType.SHORTAGE:
            shortage += 1
    return StockCountSummary(
        total_variance=total, surplus_count=surplus, shortage_count=shortage
    )


def adjustment_operation(
    state: InventoryState, line: StockCountLine
) -> InventoryOperation | None:
    """
    Operation that brings ``state`` to the counted quantity.

    Surplus is booked as a PURCHASE, shortage as DAMAGE, both for the
    absolute variance. Returns None when the count matches.

    Raises:
        StateMismatchError: line and state describe different pairs.
    """
    if state.key != (line.product_id, line.branch_id):
        raise StateMismatchError(state.key, (line.product_id, line.branch_id))

    variance = line.counted_quantity - state.quantity
    if variance == ZERO:
        return None
    operation_type = (
        InventoryOperationType.PURCHASE if variance > ZERO else InventoryOperationType.DAMAGE
    )
    return InventoryOperation(
        product_id=state.product_id,
        branch_id=state.branch_id,
        quantity=abs(variance),
        operation_type=operation_type,
    )
