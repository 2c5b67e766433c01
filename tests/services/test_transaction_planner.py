"""
TransactionPlanner tests.

Each plan_* method is exercised end to end against real kernel values:
document numbering, derived amounts, stock after the change, ledger
entries and the credit policy.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from retail_config.loader import parse_settings
from retail_kernel.domain.balance import (
    AccountStatus,
    LedgerTransaction,
    LedgerTransactionKind,
)
from retail_kernel.domain.codes import CodePrefix
from retail_kernel.domain.damage import DamageType
from retail_kernel.domain.inventory import InventoryOperationType, InventoryState
from retail_kernel.domain.invoice import CartLine
from retail_kernel.exceptions import (
    CreditLimitExceededError,
    DiscountExceedsSubtotalError,
    InsufficientInventoryError,
    InsufficientSourceError,
    InvalidDamageTypeError,
    NegativeQuantityError,
    ReturnQuantityExceededError,
    SameBranchTransferError,
    StateMismatchError,
)
from retail_services.transaction_planner import TransactionPlanner

K = LedgerTransactionKind
SALE_DAY = date(2024, 1, 15)


@pytest.fixture
def planner() -> TransactionPlanner:
    return TransactionPlanner()


@pytest.fixture
def shelf() -> dict[str, InventoryState]:
    return {
        "prod-1": InventoryState("prod-1", "branch-main", 100, min_quantity=10),
        "prod-2": InventoryState("prod-2", "branch-main", 5),
    }


# =============================================================================
# Sales
# =============================================================================


class TestPlanSale:

    def test_walk_in_cash_sale(self, planner, shelf):
        plan = planner.plan_sale(
            sale_date=SALE_DAY,
            sequence=1,
            lines=[CartLine("prod-1", 2, "45.50"), CartLine("prod-2", 1, 9)],
            state_by_product=shelf,
            paid=100,
        )

        assert plan.invoice_number == "INV-20240115-0001"
        assert plan.invoice.total_amount == Decimal("100.00")
        assert plan.invoice.is_fully_paid
        assert plan.state_for("prod-1").quantity == Decimal("98")
        assert plan.state_for("prod-2").quantity == Decimal("4")
        assert plan.balance_before is None
        assert plan.account_status is None
        assert plan.ledger_entries == ()

    def test_repeated_product_lines_accumulate(self, planner, shelf):
        plan = planner.plan_sale(
            SALE_DAY, 2, [CartLine("prod-2", 3, 1), CartLine("prod-2", 2, 1)], shelf, paid=5
        )
        assert plan.state_for("prod-2").quantity == Decimal("0")
        assert len(plan.inventory_after) == 1

    def test_repeated_lines_cannot_oversell(self, planner, shelf):
        with pytest.raises(InsufficientInventoryError):
            planner.plan_sale(
                SALE_DAY, 3, [CartLine("prod-2", 3, 1), CartLine("prod-2", 3, 1)], shelf
            )

    def test_credit_sale_books_unpaid_part(self, planner, shelf):
        history = [LedgerTransaction(K.CREDIT_SALE, 200), LedgerTransaction(K.PAYMENT, 50)]
        plan = planner.plan_sale(
            sale_date=SALE_DAY,
            sequence=7,
            lines=[CartLine("prod-1", 4, 25)],
            state_by_product=shelf,
            ledger=history,
            credit_limit=1000,
            paid=40,
            customer_id="cust-1",
        )

        assert plan.balance_before == Decimal("150.00")
        assert plan.balance_after == Decimal("210.00")
        assert plan.account_status is AccountStatus.ACTIVE
        (entry,) = plan.ledger_entries
        assert entry.kind is K.CREDIT_SALE
        assert entry.amount == Decimal("60.00")
        assert entry.reference == "INV-20240115-0007"
        assert entry.occurred_on == SALE_DAY

    def test_fully_paid_customer_sale_adds_no_entry(self, planner, shelf):
        plan = planner.plan_sale(
            SALE_DAY, 8, [CartLine("prod-1", 1, 10)], shelf,
            credit_limit=0, paid=10, customer_id="cust-1",
        )
        assert plan.ledger_entries == ()
        assert plan.account_status is AccountStatus.CLEAR

    def test_credit_limit_enforced(self, planner, shelf):
        history = [LedgerTransaction(K.CREDIT_SALE, 950)]
        with pytest.raises(CreditLimitExceededError) as exc_info:
            planner.plan_sale(
                SALE_DAY, 9, [CartLine("prod-1", 1, "50.01")], shelf,
                ledger=history, credit_limit=1000, customer_id="cust-1",
            )
        assert exc_info.value.account_id == "cust-1"
        assert exc_info.value.balance == Decimal("950.00")
        assert exc_info.value.amount == Decimal("50.01")

    def test_sale_up_to_limit_allowed(self, planner, shelf):
        history = [LedgerTransaction(K.CREDIT_SALE, 950)]
        plan = planner.plan_sale(
            SALE_DAY, 10, [CartLine("prod-1", 1, 50)], shelf,
            ledger=history, credit_limit=1000, customer_id="cust-1",
        )
        assert plan.balance_after == Decimal("1000.00")
        assert plan.account_status is AccountStatus.ACTIVE

    def test_default_limit_used_when_none_given(self, shelf):
        planner = TransactionPlanner(default_credit_limit=20)
        with pytest.raises(CreditLimitExceededError):
            planner.plan_sale(
                SALE_DAY, 11, [CartLine("prod-1", 1, 25)], shelf, customer_id="cust-1"
            )

    def test_enforcement_can_be_disabled(self, shelf):
        planner = TransactionPlanner(enforce_credit_limit=False)
        plan = planner.plan_sale(
            SALE_DAY, 12, [CartLine("prod-1", 1, 25)], shelf, customer_id="cust-1"
        )
        assert plan.account_status is AccountStatus.OVER_LIMIT

    def test_walk_in_sale_skips_credit_policy(self, planner, shelf):
        plan = planner.plan_sale(SALE_DAY, 13, [CartLine("prod-1", 1, 25)], shelf)
        assert plan.invoice.remaining_amount == Decimal("25.00")

    def test_missing_snapshot(self, planner, shelf):
        with pytest.raises(ValueError, match="prod-9"):
            planner.plan_sale(SALE_DAY, 14, [CartLine("prod-9", 1, 1)], shelf)

    def test_snapshot_for_wrong_product(self, planner):
        shelf = {"prod-1": InventoryState("prod-2", "branch-main", 10)}
        with pytest.raises(StateMismatchError):
            planner.plan_sale(SALE_DAY, 15, [CartLine("prod-1", 1, 1)], shelf)

    def test_invoice_errors_propagate(self, planner, shelf):
        with pytest.raises(DiscountExceedsSubtotalError):
            planner.plan_sale(SALE_DAY, 16, [CartLine("prod-1", 1, 5)], shelf, discount=6)

    def test_datetime_sale_date(self, planner, shelf):
        plan = planner.plan_sale(
            datetime(2024, 1, 15, 18, 30), 17, [CartLine("prod-1", 1, 5)], shelf,
            credit_limit=100, customer_id="cust-1",
        )
        assert plan.invoice_number == "INV-20240115-0017"
        assert plan.ledger_entries[0].occurred_on == SALE_DAY

    def test_logs_plan(self, planner, shelf, captured_logs):
        planner.plan_sale(SALE_DAY, 18, [CartLine("prod-1", 1, 5)], shelf, paid=5)
        record = next(r for r in captured_logs() if r["event"] == "sale_planned")
        assert record["transaction_id"] == "INV-20240115-0018"
        assert record["total"] == "5.00"

    def test_rejection_logged(self, planner, shelf, captured_logs):
        with pytest.raises(CreditLimitExceededError):
            planner.plan_sale(
                SALE_DAY, 19, [CartLine("prod-1", 1, 5)], shelf,
                credit_limit=0, customer_id="cust-1",
            )
        rejected = next(r for r in captured_logs() if r["event"] == "sale_rejected_credit_limit")
        assert rejected["level"] == "WARNING"
        assert rejected["error_code"] == "CREDIT_LIMIT_EXCEEDED"
        assert rejected["customer_id"] == "cust-1"


# =============================================================================
# Purchases
# =============================================================================


class TestPlanPurchase:

    def test_purchase_on_credit(self, planner, shelf):
        plan = planner.plan_purchase(
            purchase_date=SALE_DAY,
            sequence=3,
            lines=[CartLine("prod-2", 20, "3.25")],
            state_by_product=shelf,
            supplier_ledger=[LedgerTransaction(K.OPENING_BALANCE, 500)],
            tax="9.10",
            paid=20,
            supplier_id="supp-1",
        )

        assert plan.purchase_number == "PUR-20240115-0003"
        assert plan.invoice.total_amount == Decimal("74.10")
        assert plan.state_for("prod-2").quantity == Decimal("25")
        assert plan.balance_before == Decimal("500.00")
        assert plan.balance_after == Decimal("554.10")
        (entry,) = plan.ledger_entries
        assert entry.kind is K.CREDIT_PURCHASE

    def test_cash_purchase_without_supplier(self, planner, shelf):
        plan = planner.plan_purchase(SALE_DAY, 4, [CartLine("prod-1", 1, 1)], shelf, paid=1)
        assert plan.balance_after is None
        assert plan.ledger_entries == ()
        assert plan.state_for("prod-1").quantity == Decimal("101")


# =============================================================================
# Returns, transfers, damage, counts
# =============================================================================


class TestPlanSalesReturn:

    def test_restock_and_refund(self, planner, shelf):
        plan = planner.plan_sales_return(
            return_date=SALE_DAY,
            sequence=2,
            product_id="prod-1",
            state=shelf["prod-1"],
            return_qty=3,
            original_qty=10,
            previous_returns=4,
            unit_price="12.50",
            customer_id="cust-1",
        )
        assert plan.return_number == "RET-20240115-0002"
        assert plan.quantity == Decimal("3")
        assert plan.refund_amount == Decimal("37.50")
        assert plan.inventory_after.quantity == Decimal("103")
        (entry,) = plan.ledger_entries
        assert entry.kind is K.REFUND
        assert entry.amount == Decimal("37.50")

    def test_over_return_rejected(self, planner, shelf):
        with pytest.raises(ReturnQuantityExceededError) as exc_info:
            planner.plan_sales_return(SALE_DAY, 3, "prod-1", shelf["prod-1"], 8, 10, 3, 1)
        assert exc_info.value.allowed_quantity == Decimal("7")
        assert str(exc_info.value) == "Return quantity (8) exceeds remaining quantity (7)"

    @pytest.mark.parametrize(
        "return_qty, original_qty, previous_returns, field",
        [
            (-1, 10, 0, "return_qty"),
            (1, -10, 0, "original_qty"),
            (1, 10, -2, "previous_returns"),
        ],
    )
    def test_negative_quantities_rejected(
        self, planner, shelf, return_qty, original_qty, previous_returns, field
    ):
        with pytest.raises(NegativeQuantityError) as exc_info:
            planner.plan_sales_return(
                SALE_DAY, 4, "prod-1", shelf["prod-1"],
                return_qty, original_qty, previous_returns, 1,
            )
        assert exc_info.value.field == field

    def test_over_return_always_reports_allowed_quantity(self, planner, shelf):
        with pytest.raises(ReturnQuantityExceededError) as exc_info:
            planner.plan_sales_return(SALE_DAY, 6, "prod-1", shelf["prod-1"], 1, 2, 2, 1)
        assert exc_info.value.allowed_quantity == Decimal("0")

    def test_wrong_state(self, planner, shelf):
        with pytest.raises(StateMismatchError):
            planner.plan_sales_return(SALE_DAY, 5, "prod-1", shelf["prod-2"], 1, 10, 0, 1)


class TestPlanTransfer:

    def test_both_legs(self, planner, main_branch_stock, second_branch_stock):
        plan = planner.plan_transfer(SALE_DAY, 1, main_branch_stock, second_branch_stock, 30)
        assert plan.transfer_number == "TRF-20240115-0001"
        assert plan.result.source.quantity == Decimal("70")
        assert plan.result.destination.quantity == Decimal("80")

    def test_insufficient_source(self, planner, main_branch_stock, second_branch_stock):
        with pytest.raises(InsufficientSourceError):
            planner.plan_transfer(SALE_DAY, 2, second_branch_stock, main_branch_stock, 60)

    def test_same_branch_rejected(self, planner, main_branch_stock):
        with pytest.raises(SameBranchTransferError) as exc_info:
            planner.plan_transfer(SALE_DAY, 3, main_branch_stock, main_branch_stock, 30)
        assert exc_info.value.branch_id == "branch-main"


class TestPlanDamage:

    def test_write_off(self, planner, main_branch_stock):
        plan = planner.plan_damage(
            SALE_DAY, 1, main_branch_stock, 4, "2.50", DamageType.EXPIRED
        )
        assert plan.damage_number == "DMG-20240115-0001"
        assert plan.record.total_cost == Decimal("10.00")
        assert plan.inventory_after.quantity == Decimal("96")

    def test_invalid_type(self, planner, main_branch_stock):
        with pytest.raises(InvalidDamageTypeError):
            planner.plan_damage(SALE_DAY, 2, main_branch_stock, 1, 1, "STOLEN")

    def test_more_than_on_hand(self, planner, second_branch_stock):
        with pytest.raises(InsufficientInventoryError):
            planner.plan_damage(SALE_DAY, 3, second_branch_stock, 51, 1, "OTHER")


class TestPlanStockCount:

    def test_adjustments(self, planner, main_branch_stock, second_branch_stock):
        third = InventoryState("prod-3", "branch-main", 7)
        plan = planner.plan_stock_count(
            [main_branch_stock, second_branch_stock, third],
            {
                ("prod-1", "branch-main"): 97,
                ("prod-1", "branch-east"): 52,
                ("prod-3", "branch-main"): 7,
            },
        )

        assert plan.summary.total_variance == Decimal("5")
        assert plan.summary.variance_items == 2
        assert [a.operation_type for a in plan.adjustments] == [
            InventoryOperationType.DAMAGE,
            InventoryOperationType.PURCHASE,
        ]
        assert [s.quantity for s in plan.inventory_after] == [
            Decimal("97"),
            Decimal("52"),
            Decimal("7"),
        ]

    def test_uncounted_rows_left_out(self, planner, main_branch_stock, second_branch_stock):
        plan = planner.plan_stock_count(
            [main_branch_stock, second_branch_stock], {("prod-1", "branch-main"): 100}
        )
        assert len(plan.lines) == 1
        assert plan.adjustments == ()


# =============================================================================
# Settings
# =============================================================================


class TestFromSettings:

    def test_prefixes_and_credit_from_settings(self, shelf):
        settings = parse_settings(
            {
                "settings_id": "branch-cairo",
                "version": 2,
                "store": {"name": "Cairo"},
                "codes": {"dated_width": 5, "prefixes": {"invoice": "CAI"}},
                "credit": {"default_customer_limit": "30", "enforce_on_sale": True},
            }
        )
        planner = TransactionPlanner.from_settings(settings)

        assert planner.code_book.prefixes[CodePrefix.INVOICE] == "CAI"
        plan = planner.plan_sale(
            SALE_DAY, 1, [CartLine("prod-1", 1, 30)], shelf, customer_id="cust-1"
        )
        assert plan.invoice_number == "CAI-20240115-00001"
        with pytest.raises(CreditLimitExceededError):
            planner.plan_sale(
                SALE_DAY, 2, [CartLine("prod-1", 1, "30.01")], shelf, customer_id="cust-1"
            )
