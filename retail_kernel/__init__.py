"""
Retail Kernel - Ledger & Inventory Invariant Engine

A pure, synchronous calculation library for a retail back-office:
- Invoice arithmetic with single-point rounding
- Customer/supplier balances recomputed from transaction history
- Credit-limit policy and account status classification
- Inventory state transitions and conserving transfers
- Return-quantity and damage write-off rules
- Deterministic business codes for invoices, returns, transfers
"""

__version__ = "0.1.0"
