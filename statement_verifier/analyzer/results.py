"""Domain results returned by document analyzers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from statement_verifier.ledger.models import Ledger, MonetaryAmount


class Severity(Enum):
    """Severity of a fraud concern."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ClassificationResult:
    accepted: bool
    confidence: float
    analysis: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"accepted": self.accepted, "confidence": self.confidence, "analysis": self.analysis}


@dataclass(frozen=True)
class IdentityResult:
    """Account holder fields; ``None`` when the field was not found."""
    name: Optional[str] = None
    address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "address": self.address}


@dataclass(frozen=True)
class LedgerResult:
    """Extracted ledger plus the service's own consistency flags."""
    ledger: Ledger
    balances_reconcile: bool
    information_missing: bool
    calculated_balance: Optional[MonetaryAmount] = None

    @property
    def is_valid(self) -> bool:
        return self.balances_reconcile and not self.information_missing

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ledger": self.ledger.to_dict(),
            "balances_reconcile": self.balances_reconcile,
            "information_missing": self.information_missing,
            "calculated_balance": self.calculated_balance.to_dict() if self.calculated_balance else None,
            "is_valid": self.is_valid,
        }


@dataclass(frozen=True)
class FraudConcern:
    description: str
    severity: Severity

    def to_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "severity": self.severity.value}


@dataclass(frozen=True)
class FraudAssessment:
    analysis: str
    likelihood: float
    concerns: List[FraudConcern] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis": self.analysis,
            "likelihood": self.likelihood,
            "concerns": [c.to_dict() for c in self.concerns],
        }
