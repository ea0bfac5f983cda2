"""Ledger model and balance reconciliation."""

from statement_verifier.ledger.models import (
    BalanceCheck,
    Direction,
    Ledger,
    MonetaryAmount,
    Transaction,
)
from statement_verifier.ledger.reconciler import BalanceReconciler, calculate_balance, parse_amount

__all__ = [
    "BalanceCheck",
    "BalanceReconciler",
    "Direction",
    "Ledger",
    "MonetaryAmount",
    "Transaction",
    "calculate_balance",
    "parse_amount",
]
