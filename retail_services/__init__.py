"""
Host-side orchestration over the retail kernel.

- ``stock_committer``: snapshot -> compute -> compare-and-write loop
  against a host ``StockStore``.
- ``transaction_planner``: composes one business transaction into an
  immutable plan the host persists.
"""

from retail_services.stock_committer import StockCommitter, StockStore, VersionedState
from retail_services.transaction_planner import (
    DamagePlan,
    PurchasePlan,
    ReturnPlan,
    SalePlan,
    StockCountPlan,
    TransactionPlanner,
    TransferPlan,
)

__all__ = [
    "DamagePlan",
    "PurchasePlan",
    "ReturnPlan",
    "SalePlan",
    "StockCommitter",
    "StockCountPlan",
    "StockStore",
    "TransactionPlanner",
    "TransferPlan",
    "VersionedState",
]
