"""
Transfer -- Conserving stock movement between two locations.

Responsibility:
    Moves a quantity of one product from a source snapshot to a
    destination snapshot, returning both resulting states together.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Built on inventory.apply_operation (TRANSFER_OUT then TRANSFER_IN).
    Joint durability of the two legs is the host's job: it must write both
    states in one atomic compare-and-write (see
    retail_services.stock_committer.StockStore.compare_and_write_pair).

Invariants enforced:
    transfer_conservation --
        source.quantity - source'.quantity
        == destination'.quantity - destination.quantity
        == quantity

Failure modes:
    - NegativeQuantityError from can_transfer on negative inputs.
    - InvalidQuantityError when quantity <= 0.
    - ProductMismatchError when the snapshots describe different products.
    - InsufficientSourceError when the source holds less than quantity.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from retail_kernel.domain.inventory import (
    InventoryOperation,
    InventoryOperationType,
    InventoryState,
    apply_operation,
)
from retail_kernel.domain.values import (
    ZERO,
    Number,
    require_non_negative,
    to_decimal,
)
from retail_kernel.exceptions import (
    InsufficientSourceError,
    InvalidQuantityError,
    NegativeQuantityError,
    ProductMismatchError,
)


@dataclass(frozen=True)
class TransferResult:
    """Both legs of a transfer, produced together."""

    source: InventoryState
    destination: InventoryState
    quantity: Decimal


def can_transfer(source_quantity: Number, transfer_quantity: Number) -> bool:
    """
    True iff the source can cover the transfer.

    Raises:
        NegativeQuantityError: either input is negative.
    """
    source = require_non_negative(source_quantity, "source_quantity", NegativeQuantityError)
    wanted = require_non_negative(transfer_quantity, "transfer_quantity", NegativeQuantityError)
    return source >= wanted


def transfer(
    source: InventoryState,
    destination: InventoryState,
    quantity: Number,
) -> TransferResult:
    """
    Move ``quantity`` from source to destination.

    Preconditions:
        - quantity > 0
        - source.product_id == destination.product_id
        - source.quantity >= quantity

    Postconditions:
        - Conservation holds exactly (see module docstring).
        - Inputs are not mutated.

    Raises:
        InvalidQuantityError, ProductMismatchError, InsufficientSourceError.
    """
    amount = to_decimal(quantity, "quantity")
    if amount <= ZERO:
        raise InvalidQuantityError(amount)

    if source.product_id != destination.product_id:
        raise ProductMismatchError(source.product_id, destination.product_id)

    if not can_transfer(source.quantity, amount):
        raise InsufficientSourceError(source.branch_id, source.quantity, amount)

    new_source = apply_operation(
        source,
        InventoryOperation(
            product_id=source.product_id,
            branch_id=source.branch_id,
            quantity=amount,
            operation_type=InventoryOperationType.TRANSFER_OUT,
        ),
    )
    new_destination = apply_operation(
        destination,
        InventoryOperation(
            product_id=destination.product_id,
            branch_id=destination.branch_id,
            quantity=amount,
            operation_type=InventoryOperationType.TRANSFER_IN,
        ),
    )

    # INVARIANT: transfer_conservation
    assert (
        source.quantity - new_source.quantity
        == new_destination.quantity - destination.quantity
        == amount
    ), "transfer_conservation violation"

    return TransferResult(source=new_source, destination=new_destination, quantity=amount)
