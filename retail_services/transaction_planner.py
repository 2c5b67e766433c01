"""
Transaction Planner (``retail_services.transaction_planner``).

Responsibility
--------------
Composes one business transaction (sale, purchase, sales return,
transfer, damage write-off, stock count) out of pure kernel calls and
returns an immutable plan: the document number, the derived amounts, the
inventory states after the change and any ledger entries to append. The
host persists a plan as one unit; this module never writes anything.

Architecture
------------
Layer: **Services** -- thin glue over ``retail_kernel.domain``. It holds
no business rules of its own; every figure comes from a kernel function.
Document numbers come from a ``CodeBook`` (``retail_config.bridges``
builds one from settings).

Invariants
----------
- NON_NEGATIVE_STOCK -- each ``inventory_after`` state was produced by
  ``apply_operation``/``transfer``; a plan that would drive stock negative
  is never built.
- RETURN_CEILING -- ``plan_sales_return`` refuses quantities above
  ``original - previous``.
- Credit policy -- a sale with an attached customer is refused when its
  unpaid part would carry the customer over the credit limit.

Failure Modes
-------------
- Kernel errors propagate unchanged (``InsufficientInventoryError``,
  ``DiscountExceedsSubtotalError``, ``InvalidDamageTypeError``, ...).
- ``CreditLimitExceededError`` -- credit policy refused a sale.
- ``ReturnQuantityExceededError`` -- return above the remaining quantity.
- ``SameBranchTransferError`` -- transfer names one branch twice.
- ``ValueError`` -- a cart line names a product with no snapshot.

Usage::

    planner = TransactionPlanner.from_settings(get_active_settings())
    plan = planner.plan_sale(
        sale_date=date(2024, 1, 15), sequence=1,
        lines=[CartLine("p-1", 2, "10.00")],
        state_by_product={"p-1": state},
        ledger=history, credit_limit="500.00", customer_id="c-9",
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from retail_config.bridges import build_code_book, default_credit_limit
from retail_config.schema import RetailSettings
from retail_kernel.domain.balance import (
    AccountStatus,
    LedgerTransaction,
    LedgerTransactionKind,
    account_status,
    can_purchase,
    customer_balance,
    supplier_balance,
)
from retail_kernel.domain.codes import DEFAULT_CODE_BOOK, CodeBook, CodePrefix
from retail_kernel.domain.damage import DamageRecord, DamageType, build_damage_record
from retail_kernel.domain.inventory import (
    InventoryOperation,
    InventoryOperationType,
    InventoryState,
    StockCountLine,
    StockCountSummary,
    adjustment_operation,
    apply_operation,
    count_variance,
    summarize_count,
)
from retail_kernel.domain.invoice import CartLine, InvoiceResult, calculate_invoice, line_total
from retail_kernel.domain.returns import validate_return
from retail_kernel.domain.transfer import TransferResult, transfer
from retail_kernel.domain.values import ZERO, Number, require_non_negative, to_decimal
from retail_kernel.exceptions import (
    CreditLimitExceededError,
    NegativeQuantityError,
    ReturnQuantityExceededError,
    SameBranchTransferError,
)
from retail_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.transaction_planner")

DocumentDate = date | datetime


# =============================================================================
# Plans
# =============================================================================


@dataclass(frozen=True)
class SalePlan:
    """A priced sale with its stock and customer-ledger effects.

    Balance fields and ``account_status`` are None for walk-in sales.
    """

    invoice_number: str
    invoice: InvoiceResult
    inventory_after: tuple[InventoryState, ...]
    balance_before: Decimal | None = None
    balance_after: Decimal | None = None
    account_status: AccountStatus | None = None
    ledger_entries: tuple[LedgerTransaction, ...] = ()

    def state_for(self, product_id: str) -> InventoryState:
        return _find_state(self.inventory_after, product_id)


@dataclass(frozen=True)
class PurchasePlan:
    """A priced purchase with its stock and supplier-ledger effects."""

    purchase_number: str
    invoice: InvoiceResult
    inventory_after: tuple[InventoryState, ...]
    balance_before: Decimal | None = None
    balance_after: Decimal | None = None
    ledger_entries: tuple[LedgerTransaction, ...] = ()

    def state_for(self, product_id: str) -> InventoryState:
        return _find_state(self.inventory_after, product_id)


@dataclass(frozen=True)
class ReturnPlan:
    return_number: str
    quantity: Decimal
    refund_amount: Decimal
    inventory_after: InventoryState
    ledger_entries: tuple[LedgerTransaction, ...] = ()


@dataclass(frozen=True)
class TransferPlan:
    transfer_number: str
    result: TransferResult


@dataclass(frozen=True)
class DamagePlan:
    damage_number: str
    record: DamageRecord
    inventory_after: InventoryState


@dataclass(frozen=True)
class StockCountPlan:
    """Variance lines for a count and the adjustments that settle them."""

    lines: tuple[StockCountLine, ...]
    summary: StockCountSummary
    adjustments: tuple[InventoryOperation, ...]
    inventory_after: tuple[InventoryState, ...]


def _find_state(states: Sequence[InventoryState], product_id: str) -> InventoryState:
    for state in states:
        if state.product_id == product_id:
            return state
    raise KeyError(product_id)


# =============================================================================
# Planner
# =============================================================================


class TransactionPlanner:
    """
    Builds immutable plans for retail business transactions.

    Contract
    --------
    Every ``plan_*`` method is a pure function of its arguments and the
    planner's code book and credit defaults. Calling it twice with the same
    arguments yields equal plans.

    Non-goals
    ---------
    - Does NOT persist plans or commit stock (see ``StockCommitter``).
    - Does NOT allocate sequences; the host supplies them.
    """

    def __init__(
        self,
        code_book: CodeBook | None = None,
        default_credit_limit: Number = ZERO,
        enforce_credit_limit: bool = True,
    ):
        self._codes = code_book or DEFAULT_CODE_BOOK
        self._default_credit_limit = to_decimal(default_credit_limit, "default_credit_limit")
        self._enforce_credit_limit = enforce_credit_limit

    @classmethod
    def from_settings(cls, settings: RetailSettings) -> TransactionPlanner:
        """Planner whose prefixes, widths and credit defaults come from settings."""
        return cls(
            code_book=build_code_book(settings),
            default_credit_limit=default_credit_limit(settings),
            enforce_credit_limit=settings.credit.enforce_on_sale,
        )

    @property
    def code_book(self) -> CodeBook:
        return self._codes

    # =========================================================================
    # Sales and purchases
    # =========================================================================

    def plan_sale(
        self,
        sale_date: DocumentDate,
        sequence: int,
        lines: Iterable[CartLine],
        state_by_product: Mapping[str, InventoryState],
        ledger: Iterable[LedgerTransaction] = (),
        credit_limit: Number | None = None,
        discount: Number = 0,
        tax: Number = 0,
        paid: Number = 0,
        customer_id: str | None = None,
    ) -> SalePlan:
        """
        Price a sale, decrease stock and book the unpaid part to the customer.

        Preconditions:
            - ``state_by_product`` holds a snapshot for every line's product.

        Postconditions:
            - ``invoice`` satisfies total = subtotal - discount + tax and
              remaining = total - paid.
            - Each product's stock is decreased by the sum of its line
              quantities.
            - With a customer attached, an unpaid remainder becomes one
              CREDIT_SALE ledger entry referencing the invoice number.

        Raises:
            CreditLimitExceededError: the unpaid part would carry the
                customer over ``credit_limit`` (or the default limit).
            InsufficientInventoryError: a line exceeds available stock.
        """
        cart = tuple(lines)
        invoice = calculate_invoice(cart, discount, tax, paid)
        number = self._codes.generate(CodePrefix.INVOICE, sequence, on=sale_date)

        with LogContext.bind(transaction_id=number):
            inventory_after = self._apply_lines(
                cart, state_by_product, InventoryOperationType.SALE
            )

            if customer_id is None:
                logger.info(
                    "sale_planned",
                    extra={"total": invoice.total_amount, "lines": len(cart)},
                )
                return SalePlan(
                    invoice_number=number,
                    invoice=invoice,
                    inventory_after=inventory_after,
                )

            history = tuple(ledger)
            limit = self._resolve_limit(credit_limit)
            balance_before = customer_balance(history)
            unpaid = max(ZERO, invoice.remaining_amount)

            if (
                self._enforce_credit_limit
                and unpaid > ZERO
                and not can_purchase(balance_before, unpaid, limit)
            ):
                error = CreditLimitExceededError(customer_id, balance_before, unpaid, limit)
                logger.warning(
                    "sale_rejected_credit_limit",
                    exc_info=error,
                    extra={"customer_id": customer_id, "unpaid": unpaid},
                )
                raise error

            entries = self._ledger_entry(
                LedgerTransactionKind.CREDIT_SALE, unpaid, number, sale_date
            )
            balance_after = customer_balance(history + entries)
            status = account_status(balance_after, limit)

            logger.info(
                "sale_planned",
                extra={
                    "customer_id": customer_id,
                    "total": invoice.total_amount,
                    "unpaid": unpaid,
                    "balance_after": balance_after,
                    "account_status": status,
                },
            )
            return SalePlan(
                invoice_number=number,
                invoice=invoice,
                inventory_after=inventory_after,
                balance_before=balance_before,
                balance_after=balance_after,
                account_status=status,
                ledger_entries=entries,
            )

    def plan_purchase(
        self,
        purchase_date: DocumentDate,
        sequence: int,
        lines: Iterable[CartLine],
        state_by_product: Mapping[str, InventoryState],
        supplier_ledger: Iterable[LedgerTransaction] = (),
        discount: Number = 0,
        tax: Number = 0,
        paid: Number = 0,
        supplier_id: str | None = None,
    ) -> PurchasePlan:
        """
        Price a purchase, increase stock and book the unpaid part to the supplier.

        Supplier balances carry no credit policy; the unpaid remainder is
        recorded as one CREDIT_PURCHASE entry when a supplier is attached.
        """
        cart = tuple(lines)
        invoice = calculate_invoice(cart, discount, tax, paid)
        number = self._codes.generate(CodePrefix.PURCHASE, sequence, on=purchase_date)

        with LogContext.bind(transaction_id=number):
            inventory_after = self._apply_lines(
                cart, state_by_product, InventoryOperationType.PURCHASE
            )

            balance_before = balance_after = None
            entries: tuple[LedgerTransaction, ...] = ()
            if supplier_id is not None:
                history = tuple(supplier_ledger)
                balance_before = supplier_balance(history)
                entries = self._ledger_entry(
                    LedgerTransactionKind.CREDIT_PURCHASE,
                    max(ZERO, invoice.remaining_amount),
                    number,
                    purchase_date,
                )
                balance_after = supplier_balance(history + entries)

            logger.info(
                "purchase_planned",
                extra={
                    "supplier_id": supplier_id,
                    "total": invoice.total_amount,
                    "lines": len(cart),
                    "balance_after": balance_after,
                },
            )
            return PurchasePlan(
                purchase_number=number,
                invoice=invoice,
                inventory_after=inventory_after,
                balance_before=balance_before,
                balance_after=balance_after,
                ledger_entries=entries,
            )

    # =========================================================================
    # Returns
    # =========================================================================

    def plan_sales_return(
        self,
        return_date: DocumentDate,
        sequence: int,
        product_id: str,
        state: InventoryState,
        return_qty: Number,
        original_qty: Number,
        previous_returns: Number,
        unit_price: Number,
        customer_id: str | None = None,
    ) -> ReturnPlan:
        """
        Validate a customer return, restock it and price the refund.

        The refund is ``return_qty x unit_price`` rounded to two places.
        With a customer attached it is also booked as a REFUND entry.

        Raises:
            NegativeQuantityError: return, original or previous quantity is
                negative (checked in that order).
            ReturnQuantityExceededError: the return is above the remaining
                quantity; carries the allowed quantity.
            StateMismatchError: ``state`` belongs to another product.
        """
        quantity = require_non_negative(return_qty, "return_qty", NegativeQuantityError)
        require_non_negative(original_qty, "original_qty", NegativeQuantityError)
        require_non_negative(previous_returns, "previous_returns", NegativeQuantityError)

        check = validate_return(quantity, original_qty, previous_returns)
        if not check:
            error = ReturnQuantityExceededError(quantity, check.allowed_quantity, check.error)
            logger.warning(
                "sales_return_rejected",
                exc_info=error,
                extra={"product_id": product_id, "requested": quantity},
            )
            raise error

        number = self._codes.generate(CodePrefix.RETURN, sequence, on=return_date)
        restocked = apply_operation(
            state,
            InventoryOperation(
                product_id=product_id,
                branch_id=state.branch_id,
                quantity=quantity,
                operation_type=InventoryOperationType.RETURN,
            ),
        )
        refund = line_total(CartLine(product_id, quantity, unit_price))

        entries: tuple[LedgerTransaction, ...] = ()
        if customer_id is not None:
            entries = self._ledger_entry(
                LedgerTransactionKind.REFUND, refund, number, return_date
            )

        logger.info(
            "sales_return_planned",
            extra={
                "return_number": number,
                "product_id": product_id,
                "quantity": quantity,
                "refund_amount": refund,
            },
        )
        return ReturnPlan(
            return_number=number,
            quantity=quantity,
            refund_amount=refund,
            inventory_after=restocked,
            ledger_entries=entries,
        )

    # =========================================================================
    # Transfers, damage and counts
    # =========================================================================

    def plan_transfer(
        self,
        transfer_date: DocumentDate,
        sequence: int,
        source: InventoryState,
        destination: InventoryState,
        quantity: Number,
    ) -> TransferPlan:
        """
        Number and compute a transfer; both legs come back together.

        Raises:
            SameBranchTransferError: source and destination are one row.
            TransferError subclasses from ``transfer``.
        """
        if source.key == destination.key:
            raise SameBranchTransferError(source.product_id, source.branch_id)
        result = transfer(source, destination, quantity)
        number = self._codes.generate(CodePrefix.TRANSFER, sequence, on=transfer_date)
        logger.info(
            "transfer_planned",
            extra={
                "transfer_number": number,
                "product_id": source.product_id,
                "from_branch": source.branch_id,
                "to_branch": destination.branch_id,
                "quantity": result.quantity,
            },
        )
        return TransferPlan(transfer_number=number, result=result)

    def plan_damage(
        self,
        damage_date: DocumentDate,
        sequence: int,
        state: InventoryState,
        quantity: Number,
        unit_cost: Number,
        damage_type: DamageType | str,
    ) -> DamagePlan:
        """
        Price a damage event and remove the damaged units from stock.

        Raises:
            InvalidDamageTypeError, NegativeQuantityError, NegativeCostError,
            InsufficientInventoryError.
        """
        record = build_damage_record(state.product_id, quantity, unit_cost, damage_type)
        inventory_after = apply_operation(
            state,
            InventoryOperation(
                product_id=state.product_id,
                branch_id=state.branch_id,
                quantity=record.quantity,
                operation_type=InventoryOperationType.DAMAGE,
            ),
        )
        number = self._codes.generate(CodePrefix.DAMAGE, sequence, on=damage_date)
        logger.info(
            "damage_planned",
            extra={
                "damage_number": number,
                "product_id": state.product_id,
                "branch_id": state.branch_id,
                "damage_type": record.damage_type,
                "total_cost": record.total_cost,
            },
        )
        return DamagePlan(damage_number=number, record=record, inventory_after=inventory_after)

    def plan_stock_count(
        self,
        states: Iterable[InventoryState],
        counted: Mapping[tuple[str, str], Number],
    ) -> StockCountPlan:
        """
        Compare counted quantities with snapshots and plan the adjustments.

        ``counted`` is keyed by (product_id, branch_id). Snapshots with no
        count are left out of the plan.
        """
        lines: list[StockCountLine] = []
        adjustments: list[InventoryOperation] = []
        after: list[InventoryState] = []
        for state in states:
            if state.key not in counted:
                continue
            line = count_variance(
                state.product_id, state.branch_id, state.quantity, counted[state.key]
            )
            lines.append(line)
            operation = adjustment_operation(state, line)
            if operation is None:
                after.append(state)
                continue
            adjustments.append(operation)
            after.append(apply_operation(state, operation))

        summary = summarize_count(lines)
        logger.info(
            "stock_count_planned",
            extra={
                "counted_items": len(lines),
                "variance_items": summary.variance_items,
                "total_variance": summary.total_variance,
            },
        )
        return StockCountPlan(
            lines=tuple(lines),
            summary=summary,
            adjustments=tuple(adjustments),
            inventory_after=tuple(after),
        )

    # =========================================================================
    # Internal
    # =========================================================================

    def _resolve_limit(self, credit_limit: Number | None) -> Decimal:
        if credit_limit is None:
            return self._default_credit_limit
        return to_decimal(credit_limit, "credit_limit")

    @staticmethod
    def _ledger_entry(
        kind: LedgerTransactionKind,
        amount: Decimal,
        reference: str,
        on: DocumentDate,
    ) -> tuple[LedgerTransaction, ...]:
        if amount <= ZERO:
            return ()
        occurred_on = on.date() if isinstance(on, datetime) else on
        return (LedgerTransaction(kind, amount, reference=reference, occurred_on=occurred_on),)

    @staticmethod
    def _apply_lines(
        lines: Sequence[CartLine],
        state_by_product: Mapping[str, InventoryState],
        operation_type: InventoryOperationType,
    ) -> tuple[InventoryState, ...]:
        current: dict[str, InventoryState] = {}
        for line in lines:
            state = current.get(line.product_id) or state_by_product.get(line.product_id)
            if state is None:
                raise ValueError(f"No inventory snapshot for product {line.product_id}")
            current[line.product_id] = apply_operation(
                state,
                InventoryOperation(
                    product_id=line.product_id,
                    branch_id=state.branch_id,
                    quantity=line.quantity,
                    operation_type=operation_type,
                ),
            )
        return tuple(current.values())
