"""
Pure domain layer.

This package contains the kernel's value types and calculation functions
with NO dependencies on:
- Storage or ORM
- Time/clock
- I/O or logging

All domain objects are immutable and deterministic.
"""

from retail_kernel.domain.balance import (
    AccountStatus,
    LedgerTransaction,
    LedgerTransactionKind,
    account_status,
    available_credit,
    can_purchase,
    customer_balance,
    exceeds_credit_limit,
    supplier_balance,
)
from retail_kernel.domain.codes import (
    CodeBook,
    CodePrefix,
    all_unique,
    customer_code,
    damage_number,
    extract_sequence,
    format_code,
    invoice_number,
    next_sequence,
    product_code,
    purchase_number,
    return_number,
    supplier_code,
    transfer_number,
)
from retail_kernel.domain.damage import (
    DamageRecord,
    DamageType,
    build_damage_record,
    damage_cost,
    is_valid_damage_type,
    total_write_off,
)
from retail_kernel.domain.dtos import (
    Outcome,
    ValidationError,
    ValidationResult,
    attempt,
)
from retail_kernel.domain.inventory import (
    InventoryOperation,
    InventoryOperationType,
    InventoryState,
    StockCountLine,
    StockCountSummary,
    VarianceType,
    adjustment_operation,
    apply_operation,
    available_quantity,
    count_variance,
    is_in_stock,
    is_low_stock,
    summarize_count,
    validate_operation,
)
from retail_kernel.domain.invoice import (
    CartLine,
    InvoiceResult,
    calculate_invoice,
    invoice_total,
    line_total,
    percent_discount,
    remaining,
    subtotal,
)
from retail_kernel.domain.returns import (
    ReturnCheck,
    can_return,
    max_return_quantity,
    validate_return,
)
from retail_kernel.domain.transfer import TransferResult, can_transfer, transfer
from retail_kernel.domain.values import MONEY_PLACES, round_money, to_decimal

__all__ = [
    # Values
    "MONEY_PLACES",
    "round_money",
    "to_decimal",
    # Results
    "Outcome",
    "ValidationError",
    "ValidationResult",
    "attempt",
    # Invoice
    "CartLine",
    "InvoiceResult",
    "calculate_invoice",
    "invoice_total",
    "line_total",
    "percent_discount",
    "remaining",
    "subtotal",
    # Balance
    "AccountStatus",
    "LedgerTransaction",
    "LedgerTransactionKind",
    "account_status",
    "available_credit",
    "can_purchase",
    "customer_balance",
    "exceeds_credit_limit",
    "supplier_balance",
    # Inventory
    "InventoryOperation",
    "InventoryOperationType",
    "InventoryState",
    "StockCountLine",
    "StockCountSummary",
    "VarianceType",
    "adjustment_operation",
    "apply_operation",
    "available_quantity",
    "count_variance",
    "is_in_stock",
    "is_low_stock",
    "summarize_count",
    "validate_operation",
    # Transfer
    "TransferResult",
    "can_transfer",
    "transfer",
    # Returns
    "ReturnCheck",
    "can_return",
    "max_return_quantity",
    "validate_return",
    # Damage
    "DamageRecord",
    "DamageType",
    "build_damage_record",
    "damage_cost",
    "is_valid_damage_type",
    "total_write_off",
    # Codes
    "CodeBook",
    "CodePrefix",
    "all_unique",
    "customer_code",
    "damage_number",
    "extract_sequence",
    "format_code",
    "invoice_number",
    "next_sequence",
    "product_code",
    "purchase_number",
    "return_number",
    "supplier_code",
    "transfer_number",
]
