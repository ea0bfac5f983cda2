"""Sequential statement verification pipeline.

Stages run in a fixed order, each feeding the next:

1. load the document (page images and page text)
2. classify it; a low-confidence document ends the run as REJECTED
3. extract the account holder's details
4. extract the ledger and recompute its closing balance locally
5. assess fraud signals

An invalid ledger is flagged in the result but does not stop stage 5.
Any error ends the run; there are no retries and no partial results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from openai import OpenAI

from statement_verifier.analyzer.results import (
    ClassificationResult,
    FraudAssessment,
    IdentityResult,
    LedgerResult,
)
from statement_verifier.analyzer.service import DocumentAnalyzer, OpenAIDocumentAnalyzer
from statement_verifier.config.settings import Settings
from statement_verifier.ledger.models import BalanceCheck
from statement_verifier.ledger.reconciler import BalanceReconciler
from statement_verifier.pdf_processor.document import load_document
from statement_verifier.pdf_processor.rasterizer import PageRasterizer
from statement_verifier.pdf_processor.text_extractor import PageTextExtractor
from statement_verifier.utils.logger import get_logger
from statement_verifier.utils.validators import validate_pdf_file


class PipelineStatus(Enum):
    """Terminal state of a pipeline run."""
    REJECTED = "rejected"
    COMPLETED = "completed"


@dataclass
class PipelineResult:
    """Everything a pipeline run produced."""
    status: PipelineStatus
    source_file: str
    page_count: int
    classification: ClassificationResult
    identity: Optional[IdentityResult] = None
    ledger: Optional[LedgerResult] = None
    balance_check: Optional[BalanceCheck] = None
    fraud: Optional[FraudAssessment] = None

    @property
    def ledger_valid(self) -> bool:
        return self.ledger is not None and self.ledger.is_valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "source_file": self.source_file,
            "page_count": self.page_count,
            "classification": self.classification.to_dict(),
            "identity": self.identity.to_dict() if self.identity else None,
            "ledger": self.ledger.to_dict() if self.ledger else None,
            "ledger_valid": self.ledger_valid,
            "balance_check": self.balance_check.to_dict() if self.balance_check else None,
            "fraud": self.fraud.to_dict() if self.fraud else None,
        }


class StatementPipeline:
    """Runs the verification stages for one statement at a time."""

    def __init__(
        self,
        analyzer: DocumentAnalyzer,
        rasterizer: Optional[PageRasterizer] = None,
        text_extractor: Optional[PageTextExtractor] = None,
        reconciler: Optional[BalanceReconciler] = None,
        max_file_size_mb: int = 100
    ) -> None:
        self.logger = get_logger(__name__)
        self.analyzer = analyzer
        self.rasterizer = rasterizer or PageRasterizer()
        self.text_extractor = text_extractor or PageTextExtractor()
        self.reconciler = reconciler or BalanceReconciler()
        self.max_file_size_mb = max_file_size_mb

    @classmethod
    def from_settings(cls, settings: Settings, client: OpenAI) -> "StatementPipeline":
        """Wire a pipeline from settings around an explicit OpenAI client."""
        return cls(
            analyzer=OpenAIDocumentAnalyzer.from_settings(client, settings),
            rasterizer=PageRasterizer(
                binary=settings.rasterizer_binary,
                dpi=settings.rasterizer_dpi,
                timeout_seconds=settings.rasterizer_timeout_seconds,
                temp_dir=settings.temp_dir,
            ),
            text_extractor=PageTextExtractor(),
            reconciler=BalanceReconciler(),
            max_file_size_mb=settings.max_file_size_mb,
        )

    def run(self, pdf_path: str, password: Optional[str] = None) -> PipelineResult:
        """Verify one statement PDF.

        Args:
            pdf_path: Path to the statement PDF.
            password: Optional password for encrypted PDFs.

        Returns:
            PipelineResult with status REJECTED or COMPLETED.

        Raises:
            PDFNotFoundError: If the PDF does not exist.
            RasterizerError: If rasterization fails.
            SchemaValidationError: If an analysis response is malformed.
            CurrencyMismatchError: If the extracted ledger mixes currencies.
        """
        validate_pdf_file(pdf_path, self.max_file_size_mb)
        self.logger.info(f"Processing PDF: {pdf_path}")

        document = load_document(pdf_path, self.rasterizer, self.text_extractor, password)

        classification = self.analyzer.classify(document.images)
        if not classification.accepted:
            self.logger.info(
                f"Document is not a statement (confidence {classification.confidence:.0f})"
            )
            return PipelineResult(
                status=PipelineStatus.REJECTED,
                source_file=pdf_path,
                page_count=document.page_count,
                classification=classification,
            )
        self.logger.info(f"Document is a statement (confidence {classification.confidence:.0f})")

        identity = self.analyzer.extract_identity(document.images)

        ledger = self.analyzer.extract_ledger(document.images)
        balance_check = self.reconciler.reconcile(ledger.ledger)

        if not ledger.is_valid:
            self.logger.warning(
                "Transaction details are not valid "
                f"(balances reconcile: {ledger.balances_reconcile}, "
                f"information missing: {ledger.information_missing})"
            )
        if balance_check.is_balanced != ledger.balances_reconcile:
            self.logger.warning(
                f"Local reconciliation ({balance_check.is_balanced}) disagrees with "
                f"the extracted flag ({ledger.balances_reconcile})"
            )

        fraud = self.analyzer.assess_fraud(document.images, document.texts)
        self.logger.info(
            f"Fraud likelihood {fraud.likelihood:.0f} with {len(fraud.concerns)} concerns"
        )

        return PipelineResult(
            status=PipelineStatus.COMPLETED,
            source_file=pdf_path,
            page_count=document.page_count,
            classification=classification,
            identity=identity,
            ledger=ledger,
            balance_check=balance_check,
            fraud=fraud,
        )
