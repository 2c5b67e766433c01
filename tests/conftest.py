"""
Pytest fixtures for the retail kernel test suite.

Provides:
- Structured logging configured once per session, with a per-test
  ``captured_logs`` fixture returning parsed JSON records
- ``InMemoryStockStore``: a thread-safe, versioned StockStore used by
  the committer and concurrency tests
- Common inventory snapshots
"""

import json
import logging
import threading
from decimal import Decimal
from io import StringIO

import pytest

from retail_kernel.domain.inventory import InventoryState
from retail_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from retail_services.stock_committer import VersionedState


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture retail_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            planner.plan_sale(...)
            logs = captured_logs()
            assert any(r["event"] == "sale_planned" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("retail_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Storage double
# =============================================================================


class InMemoryStockStore:
    """Versioned stock rows behind one lock; writes bump the version."""

    def __init__(self, states=()):
        self._lock = threading.Lock()
        self._rows: dict[tuple[str, str], VersionedState] = {
            state.key: VersionedState(state=state, version=0) for state in states
        }
        self.conflicts = 0
        self.writes = 0

    def load(self, product_id: str, branch_id: str) -> VersionedState:
        with self._lock:
            return self._rows[(product_id, branch_id)]

    def compare_and_write(self, expected: VersionedState, new_state: InventoryState) -> bool:
        with self._lock:
            if not self._is_current(expected):
                self.conflicts += 1
                return False
            self._write(expected, new_state)
            return True

    def compare_and_write_pair(
        self,
        expected_source: VersionedState,
        new_source: InventoryState,
        expected_destination: VersionedState,
        new_destination: InventoryState,
    ) -> bool:
        with self._lock:
            if not (self._is_current(expected_source) and self._is_current(expected_destination)):
                self.conflicts += 1
                return False
            self._write(expected_source, new_source)
            self._write(expected_destination, new_destination)
            return True

    def quantity(self, product_id: str, branch_id: str) -> Decimal:
        return self.load(product_id, branch_id).state.quantity

    def _is_current(self, expected: VersionedState) -> bool:
        return self._rows[expected.state.key].version == expected.version

    def _write(self, expected: VersionedState, new_state: InventoryState) -> None:
        self._rows[new_state.key] = VersionedState(
            state=new_state, version=expected.version + 1
        )
        self.writes += 1


@pytest.fixture
def memory_store():
    """Factory building an InMemoryStockStore seeded with the given states."""

    def _build(*states: InventoryState) -> InMemoryStockStore:
        return InMemoryStockStore(states)

    return _build


# =============================================================================
# Snapshots
# =============================================================================


@pytest.fixture
def main_branch_stock() -> InventoryState:
    return InventoryState(
        product_id="prod-1",
        branch_id="branch-main",
        quantity=Decimal("100"),
        min_quantity=Decimal("10"),
    )


@pytest.fixture
def second_branch_stock() -> InventoryState:
    return InventoryState(
        product_id="prod-1",
        branch_id="branch-east",
        quantity=Decimal("50"),
    )
