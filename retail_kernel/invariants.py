"""
Kernel Invariants Contract.

These invariants are structural law. They are hardcoded in the pure
calculation functions. No settings file, planner option or host flag may
override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across the domain modules (invoice, balance,
inventory, transfer, returns, damage, codes).
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Each value names one structural guarantee that the kernel provides
    unconditionally. Settings may influence *how* codes look or which
    prefixes are used, but never *whether* these rules apply.
    """

    NON_NEGATIVE_STOCK = "non_negative_stock"
    """Inventory quantity never drops below zero. Decreasing operations
    that would do so are rejected wholesale, never clamped. Enforced by
    inventory.apply_operation and InventoryState construction."""

    TRANSFER_CONSERVATION = "transfer_conservation"
    """The source decrease of a transfer equals the destination increase
    equals the transfer quantity. Enforced by transfer.transfer."""

    SINGLE_ROUNDING = "single_rounding"
    """Money is rounded half-away-from-zero to two places once, at the
    output of each public function. Enforced by values.round_money call
    sites."""

    LEDGER_DIRECTION_BY_KIND = "ledger_direction_by_kind"
    """Ledger amounts are stored non-negative; the sign is implied by the
    transaction kind alone. Enforced by balance.customer_balance and
    balance.supplier_balance."""

    RETURN_CEILING = "return_ceiling"
    """A return never exceeds original quantity minus previous returns.
    Enforced by returns.validate_return."""

    CLOSED_ENUMERATIONS = "closed_enumerations"
    """Operation, ledger and damage tags come from closed sets; unknown
    tags raise instead of falling through to a default."""

    CODE_DISTINCTNESS = "code_distinctness"
    """Distinct (prefix, date, sequence) tuples always format to distinct
    codes. Enforced by codes.format_code and prefix validation."""

    VALUE_IMMUTABILITY = "value_immutability"
    """Kernel values are frozen; every operation returns a new value and
    never mutates its inputs."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "retail_config",
    "retail_services",
)
