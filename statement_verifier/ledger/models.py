"""Data classes for statement ledgers."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class Direction(Enum):
    """Direction of money movement relative to the account."""
    INCOMING = "incoming"
    OUTGOING = "outgoing"


@dataclass(frozen=True)
class MonetaryAmount:
    """A decimal value tagged with its currency code and symbol."""
    currency: str
    symbol: str
    value: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "symbol": self.symbol,
            "value": str(self.value),
        }

    def __str__(self) -> str:
        return f"{self.symbol}{self.value:,.2f}"


@dataclass(frozen=True)
class Transaction:
    """A dated movement of money on the statement."""
    date: str
    amount: MonetaryAmount
    direction: Direction
    description: Optional[str] = None
    details: Optional[str] = None

    @property
    def signed_value(self) -> Decimal:
        """Amount value, positive for incoming and negative for outgoing."""
        if self.direction is Direction.INCOMING:
            return self.amount.value
        return -self.amount.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "description": self.description,
            "details": self.details,
            "direction": self.direction.value,
            "amount": self.amount.to_dict(),
        }


@dataclass(frozen=True)
class Ledger:
    """Opening balance, claimed closing balance and ordered transactions."""
    opening_balance: MonetaryAmount
    closing_balance: MonetaryAmount
    transactions: List[Transaction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "opening_balance": self.opening_balance.to_dict(),
            "closing_balance": self.closing_balance.to_dict(),
            "transactions": [t.to_dict() for t in self.transactions],
        }


@dataclass(frozen=True)
class BalanceCheck:
    """Outcome of comparing a calculated closing balance to the claimed one."""
    currency: str
    opening: Decimal
    claimed_closing: Decimal
    calculated_closing: Decimal

    @property
    def difference(self) -> Decimal:
        return self.calculated_closing - self.claimed_closing

    @property
    def is_balanced(self) -> bool:
        return self.difference == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "opening": str(self.opening),
            "claimed_closing": str(self.claimed_closing),
            "calculated_closing": str(self.calculated_closing),
            "difference": str(self.difference),
            "is_balanced": self.is_balanced,
        }
