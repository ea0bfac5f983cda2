"""Pytest configuration and fixtures for the statement verifier."""

import os
import shutil
import subprocess
import tempfile
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from typing import List
from unittest.mock import patch

import pytest

from statement_verifier.analyzer.results import (
    ClassificationResult,
    FraudAssessment,
    FraudConcern,
    IdentityResult,
    LedgerResult,
    Severity,
)
from statement_verifier.analyzer.service import DocumentAnalyzer
from statement_verifier.config.settings import Settings
from statement_verifier.ledger.models import Direction, Ledger, MonetaryAmount, Transaction
from statement_verifier.ledger.reconciler import BalanceReconciler
from statement_verifier.pipeline.runner import PipelineResult, PipelineStatus


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def scratch_dir(temp_dir):
    """Parent directory for rasterizer scratch areas."""
    path = temp_dir / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def sample_pdf_file(temp_dir):
    """Create a placeholder PDF file; tests never parse it for real."""
    pdf_file = temp_dir / "statement.pdf"
    pdf_file.write_bytes(b"%PDF-1.4\n1 0 obj\n<<\n/Type /Catalog\n/Pages 2 0 R\n>>\nendobj\n")
    return str(pdf_file)


@pytest.fixture
def sample_settings(temp_dir):
    """Create sample settings for testing."""
    return Settings(
        openai_api_key="sk-test",
        log_level="INFO",
        reports_dir=str(temp_dir / "reports"),
        logs_dir=str(temp_dir / "logs"),
        temp_dir=str(temp_dir / "temp"),
    )


@pytest.fixture
def sample_environment():
    """Create sample environment variables for testing."""
    env_vars = {
        "OPENAI_API_KEY": "sk-env",
        "LEDGER_MODEL": "o3-mini",
        "ACCEPTANCE_THRESHOLD": "80",
        "RASTERIZER_DPI": "200",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


def page_bytes(label: str, number: int) -> bytes:
    """Distinct fake PNG payload for one rendered page."""
    return b"\x89PNG\r\n\x1a\n" + f"{label}:{number}".encode("ascii")


class FakeRasterizerRunner:
    """Stands in for ``subprocess.run`` and writes pdftoppm-style output files."""

    def __init__(self, pages: int, label: str = "doc", zero_pad: bool = True, error=None):
        self.pages = pages
        self.label = label
        self.zero_pad = zero_pad
        self.error = error
        self.calls: List[SimpleNamespace] = []

    def __call__(self, command, **kwargs):
        self.calls.append(SimpleNamespace(command=command, kwargs=kwargs))
        prefix = command[-1]
        width = len(str(self.pages)) if self.zero_pad else 1
        for number in range(1, self.pages + 1):
            with open(f"{prefix}-{str(number).zfill(width)}.png", "wb") as f:
                f.write(page_bytes(self.label, number))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(command, 0, b"", b"")


@pytest.fixture
def fake_runner_factory():
    return FakeRasterizerRunner


def gbp(value: str) -> MonetaryAmount:
    return MonetaryAmount(currency="GBP", symbol="£", value=Decimal(value))


@pytest.fixture
def sample_ledger():
    """Ledger whose transactions explain its closing balance."""
    return Ledger(
        opening_balance=gbp("1000.00"),
        closing_balance=gbp("1050.00"),
        transactions=[
            Transaction(date="2024-01-03", amount=gbp("100.00"), direction=Direction.INCOMING,
                        description="Salary"),
            Transaction(date="2024-01-10", amount=gbp("50.00"), direction=Direction.OUTGOING,
                        description="Groceries", details="Card payment"),
        ],
    )


class StubAnalyzer(DocumentAnalyzer):
    """Deterministic DocumentAnalyzer that records the calls it receives."""

    def __init__(self, ledger, confidence=95.0, balances_reconcile=True, information_missing=False):
        self.ledger = ledger
        self.confidence = confidence
        self.balances_reconcile = balances_reconcile
        self.information_missing = information_missing
        self.calls: List[str] = []
        self.fraud_texts = None

    def classify(self, images):
        self.calls.append("classify")
        return ClassificationResult(accepted=self.confidence >= 70, confidence=self.confidence,
                                    analysis="Looks like a statement")

    def extract_identity(self, images):
        self.calls.append("extract_identity")
        return IdentityResult(name="Jane Doe", address=None)

    def extract_ledger(self, images):
        self.calls.append("extract_ledger")
        return LedgerResult(
            ledger=self.ledger,
            balances_reconcile=self.balances_reconcile,
            information_missing=self.information_missing,
            calculated_balance=self.ledger.closing_balance,
        )

    def assess_fraud(self, images, texts):
        self.calls.append("assess_fraud")
        self.fraud_texts = list(texts)
        return FraudAssessment(
            analysis="Fonts are consistent",
            likelihood=12.0,
            concerns=[FraudConcern(description="Logo slightly blurred", severity=Severity.LOW)],
        )


@pytest.fixture
def stub_analyzer(sample_ledger):
    return StubAnalyzer(sample_ledger)


@pytest.fixture
def stub_analyzer_factory():
    return StubAnalyzer


@pytest.fixture
def page_payload():
    return page_bytes


@pytest.fixture
def completed_result(sample_ledger, sample_pdf_file):
    """PipelineResult of a statement that passed every stage."""
    return PipelineResult(
        status=PipelineStatus.COMPLETED,
        source_file=sample_pdf_file,
        page_count=2,
        classification=ClassificationResult(accepted=True, confidence=95.0, analysis="Bank statement"),
        identity=IdentityResult(name="Jane Doe", address="1 High Street"),
        ledger=LedgerResult(ledger=sample_ledger, balances_reconcile=True, information_missing=False,
                            calculated_balance=sample_ledger.closing_balance),
        balance_check=BalanceReconciler().reconcile(sample_ledger),
        fraud=FraudAssessment(
            analysis="Fonts are consistent",
            likelihood=12.0,
            concerns=[FraudConcern(description="Logo slightly blurred", severity=Severity.LOW)],
        ),
    )


@pytest.fixture
def rejected_result(sample_pdf_file):
    return PipelineResult(
        status=PipelineStatus.REJECTED,
        source_file=sample_pdf_file,
        page_count=1,
        classification=ClassificationResult(accepted=False, confidence=20.0, analysis="A utility bill"),
    )
