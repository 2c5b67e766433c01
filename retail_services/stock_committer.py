"""
StockCommitter -- optimistic commit loop for inventory changes.

Responsibility:
    Drives the impure half of a stock change: read a versioned snapshot,
    compute the new state with the pure kernel, and compare-and-write it
    back. A lost race re-reads and recomputes; it never writes a state
    computed from a stale snapshot.

Architecture position:
    Services -- imperative shell over ``retail_kernel.domain``. Storage is
    abstracted behind the ``StockStore`` protocol the host implements.

Invariants enforced:
    NON_NEGATIVE_STOCK    -- every written state came from
                             ``apply_operation``/``transfer`` on the
                             snapshot it replaces.
    TRANSFER_CONSERVATION -- both transfer legs are written through one
                             ``compare_and_write_pair`` call, and the
                             legs must address two different rows.
    MAX_ATTEMPTS          -- bounded retry loop.

Failure modes:
    - Kernel errors (InsufficientInventoryError, StateMismatchError,
      InsufficientSourceError, ...) propagate on the first attempt; a
      rejected operation is never retried.
    - SameBranchTransferError: a transfer names the same branch twice;
      raised before any snapshot is read.
    - StaleSnapshotError: every attempt lost its compare-and-write.

Audit relevance:
    Each lost race is logged as ``stock_commit_conflict`` and each
    success as ``stock_commit_succeeded`` with the attempt number.

Usage:
    committer = StockCommitter.from_settings(store, get_active_settings())
    new_state = committer.commit_operation(
        InventoryOperation("p-1", "b-1", 2, InventoryOperationType.SALE)
    )
    result = committer.commit_transfer("p-1", "b-1", "b-2", 3)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from retail_config.schema import RetailSettings
from retail_kernel.domain.inventory import InventoryOperation, InventoryState, apply_operation
from retail_kernel.domain.transfer import TransferResult, transfer
from retail_kernel.domain.values import Number
from retail_kernel.exceptions import SameBranchTransferError, StaleSnapshotError
from retail_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.stock_committer")


@dataclass(frozen=True)
class VersionedState:
    """An inventory snapshot paired with the store's version token."""

    state: InventoryState
    version: int


class StockStore(Protocol):
    """Storage the host provides for one (product, branch) stock row."""

    def load(self, product_id: str, branch_id: str) -> VersionedState:
        """Read the current snapshot."""
        ...

    def compare_and_write(self, expected: VersionedState, new_state: InventoryState) -> bool:
        """Write ``new_state`` only if the row is still at ``expected.version``."""
        ...

    def compare_and_write_pair(
        self,
        expected_source: VersionedState,
        new_source: InventoryState,
        expected_destination: VersionedState,
        new_destination: InventoryState,
    ) -> bool:
        """Write both rows atomically, or neither if either version moved."""
        ...


class StockCommitter:
    """Applies kernel operations to a StockStore with optimistic retries.

    Contract:
        Each call performs at most ``max_attempts`` snapshot/compute/write
        cycles and returns the state(s) actually written.

    Guarantees:
        - The written state is always derived from the snapshot whose
          version the write was conditioned on.
        - Transfer legs are written together or not at all.

    Non-goals:
        - Does NOT sleep or back off between attempts.
        - Does NOT allocate sequences or persist documents.
    """

    DEFAULT_MAX_ATTEMPTS = 5

    def __init__(self, store: StockStore, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._max_attempts = max_attempts

    @classmethod
    def from_settings(cls, store: StockStore, settings: RetailSettings) -> StockCommitter:
        """Committer whose retry budget is ``stock.max_commit_attempts``."""
        return cls(store, max_attempts=settings.stock.max_commit_attempts)

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def commit_operation(self, operation: InventoryOperation) -> InventoryState:
        """Apply one inventory operation to its stock row.

        Returns:
            The state written to the store.

        Raises:
            RetailKernelError subclasses: the operation is invalid against
                the current snapshot (not retried).
            StaleSnapshotError: every attempt lost its compare-and-write.
        """
        with LogContext.bind(product_id=operation.product_id, branch_id=operation.branch_id):
            for attempt_number in range(1, self._max_attempts + 1):
                snapshot = self._store.load(operation.product_id, operation.branch_id)
                new_state = apply_operation(snapshot.state, operation)

                if self._store.compare_and_write(snapshot, new_state):
                    logger.info(
                        "stock_commit_succeeded",
                        extra={
                            "operation_type": operation.operation_type,
                            "quantity": operation.quantity,
                            "version": snapshot.version,
                            "attempt": attempt_number,
                            "quantity_after": new_state.quantity,
                        },
                    )
                    return new_state

                logger.warning(
                    "stock_commit_conflict",
                    extra={
                        "operation_type": operation.operation_type,
                        "version": snapshot.version,
                        "attempt": attempt_number,
                    },
                )

            error = StaleSnapshotError(operation.key, self._max_attempts)
            logger.error("stock_commit_exhausted", exc_info=error)
            raise error

    def commit_transfer(
        self,
        product_id: str,
        from_branch: str,
        to_branch: str,
        quantity: Number,
    ) -> TransferResult:
        """Move stock between two branches as one atomic pair write.

        Returns:
            The TransferResult whose states were written.

        Raises:
            SameBranchTransferError: ``from_branch == to_branch``.
            TransferError subclasses: the transfer is invalid against the
                current snapshots (not retried).
            StaleSnapshotError: every attempt lost its compare-and-write.
        """
        if from_branch == to_branch:
            raise SameBranchTransferError(product_id, from_branch)

        with LogContext.bind(product_id=product_id):
            for attempt_number in range(1, self._max_attempts + 1):
                source = self._store.load(product_id, from_branch)
                destination = self._store.load(product_id, to_branch)
                result = transfer(source.state, destination.state, quantity)

                if self._store.compare_and_write_pair(
                    source, result.source, destination, result.destination
                ):
                    logger.info(
                        "stock_transfer_committed",
                        extra={
                            "from_branch": from_branch,
                            "to_branch": to_branch,
                            "quantity": result.quantity,
                            "attempt": attempt_number,
                        },
                    )
                    return result

                logger.warning(
                    "stock_commit_conflict",
                    extra={
                        "from_branch": from_branch,
                        "to_branch": to_branch,
                        "source_version": source.version,
                        "destination_version": destination.version,
                        "attempt": attempt_number,
                    },
                )

            error = StaleSnapshotError(
                (product_id, from_branch, to_branch), self._max_attempts
            )
            logger.error("stock_commit_exhausted", exc_info=error)
            raise error
