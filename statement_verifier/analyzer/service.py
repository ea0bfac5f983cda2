"""Document analyzer interface and its OpenAI implementation."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, TypeVar

from openai import ContentFilterFinishReasonError, LengthFinishReasonError, OpenAI
from pydantic import BaseModel, ValidationError as PydanticValidationError

from statement_verifier.analyzer import prompts
from statement_verifier.analyzer.results import (
    ClassificationResult,
    FraudAssessment,
    FraudConcern,
    IdentityResult,
    LedgerResult,
    Severity,
)
from statement_verifier.analyzer.schemas import (
    AmountEntry,
    FraudAnalysis,
    StatementClassification,
    StatementDetails,
    TransactionDetails,
)
from statement_verifier.config.settings import Settings
from statement_verifier.ledger.models import Direction, Ledger, MonetaryAmount, Transaction
from statement_verifier.ledger.reconciler import parse_amount
from statement_verifier.utils.exceptions import ConfigurationError, SchemaValidationError
from statement_verifier.utils.logger import get_logger

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


class DocumentAnalyzer(ABC):
    """Judgement calls about a statement, delegated to an inference service."""

    @abstractmethod
    def classify(self, images: List[str]) -> ClassificationResult:
        """Decide whether the page images make up a bank statement."""

    @abstractmethod
    def extract_identity(self, images: List[str]) -> IdentityResult:
        """Extract the account holder's name and address."""

    @abstractmethod
    def extract_ledger(self, images: List[str]) -> LedgerResult:
        """Extract balances and transactions."""

    @abstractmethod
    def assess_fraud(self, images: List[str], texts: List[str]) -> FraudAssessment:
        """Compare page images with extracted page text for tampering."""


def create_openai_client(settings: Settings) -> OpenAI:
    """Build an OpenAI client from settings.

    Raises:
        ConfigurationError: If no API key is configured.
    """
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is not set")
    return OpenAI(api_key=settings.openai_api_key)


def _check_score(value: float, name: str) -> float:
    if not 0 <= value <= 100:
        raise SchemaValidationError(f"{name} {value} is outside 0-100")
    return value


def _to_amount(entry: AmountEntry, name: str, signed: bool = False) -> MonetaryAmount:
    value = parse_amount(entry.value)
    if value is None:
        raise SchemaValidationError(f"Unparsable {name} amount: {entry.value!r}")
    # Transaction direction carries the sign; balances may be overdrawn
    if not signed:
        value = abs(value)
    return MonetaryAmount(currency=entry.currency.strip().upper(), symbol=entry.symbol, value=value)


def to_ledger_result(parsed: TransactionDetails) -> LedgerResult:
    """Convert a ledger extraction response into domain objects.

    Raises:
        SchemaValidationError: If an amount cannot be parsed.
    """
    transactions = []
    for index, entry in enumerate(parsed.transactions, 1):
        transactions.append(Transaction(
            date=entry.date,
            amount=_to_amount(entry.amount, f"transaction {index}"),
            direction=Direction(entry.direction),
            description=entry.description or None,
            details=entry.details or None,
        ))

    ledger = Ledger(
        opening_balance=_to_amount(parsed.original_balance, "opening balance", signed=True),
        closing_balance=_to_amount(parsed.final_balance_on_statement, "closing balance", signed=True),
        transactions=transactions,
    )
    return LedgerResult(
        ledger=ledger,
        balances_reconcile=parsed.is_balances_equal,
        information_missing=parsed.any_missing_information,
        calculated_balance=_to_amount(parsed.final_balance_calculated, "calculated balance", signed=True),
    )


class OpenAIDocumentAnalyzer(DocumentAnalyzer):
    """Document analyzer backed by OpenAI structured outputs."""

    def __init__(
        self,
        client: OpenAI,
        classify_model: str = "gpt-4o-2024-08-06",
        details_model: str = "gpt-4o",
        ledger_model: str = "o1",
        fraud_model: str = "gpt-4o",
        reasoning_effort: Optional[str] = "medium",
        acceptance_threshold: int = 70
    ) -> None:
        """Initialize the analyzer.

        Args:
            client: OpenAI client used for every request.
            classify_model: Model for the classification request.
            details_model: Model for the account holder request.
            ledger_model: Model for the ledger request.
            fraud_model: Model for the fraud request.
            reasoning_effort: Reasoning effort for the ledger request, or None.
            acceptance_threshold: Minimum likelihood (0-100) to accept a document.
        """
        self.logger = get_logger(__name__)
        self.client = client
        self.classify_model = classify_model
        self.details_model = details_model
        self.ledger_model = ledger_model
        self.fraud_model = fraud_model
        self.reasoning_effort = reasoning_effort
        self.acceptance_threshold = acceptance_threshold

    @classmethod
    def from_settings(cls, client: OpenAI, settings: Settings) -> "OpenAIDocumentAnalyzer":
        return cls(
            client=client,
            classify_model=settings.classify_model,
            details_model=settings.details_model,
            ledger_model=settings.ledger_model,
            fraud_model=settings.fraud_model,
            reasoning_effort=settings.reasoning_effort,
            acceptance_threshold=settings.acceptance_threshold,
        )

    @staticmethod
    def image_content(images: List[str]) -> List[Dict[str, Any]]:
        """Build the user content blocks for a list of page data URLs."""
        content: List[Dict[str, Any]] = [{"type": "text", "text": "Images:"}]
        for image in images:
            content.append({"type": "image_url", "image_url": {"url": image}})
        return content

    def _parse(
        self,
        model: str,
        system_prompt: str,
        content: List[Dict[str, Any]],
        response_format: Type[ResponseModel],
        **options: Any
    ) -> ResponseModel:
        self.logger.debug(f"Requesting {response_format.__name__} from {model}")
        try:
            completion = self.client.chat.completions.parse(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": content},
                ],
                response_format=response_format,
                **options,
            )
        except (PydanticValidationError, LengthFinishReasonError, ContentFilterFinishReasonError) as e:
            raise SchemaValidationError(
                f"{response_format.__name__} response did not match its schema: {e}"
            ) from e

        message = completion.choices[0].message
        if getattr(message, "refusal", None):
            raise SchemaValidationError(f"{response_format.__name__} request refused: {message.refusal}")
        if message.parsed is None:
            raise SchemaValidationError(f"{response_format.__name__} response was empty")
        return message.parsed

    def classify(self, images: List[str]) -> ClassificationResult:
        parsed = self._parse(
            self.classify_model,
            prompts.CLASSIFY_SYSTEM_PROMPT,
            self.image_content(images),
            StatementClassification,
        )
        confidence = _check_score(parsed.statement_likelihood, "Statement likelihood")
        return ClassificationResult(
            accepted=confidence >= self.acceptance_threshold,
            confidence=confidence,
            analysis=parsed.concluding_thoughts,
        )

    def extract_identity(self, images: List[str]) -> IdentityResult:
        parsed = self._parse(
            self.details_model,
            prompts.DETAILS_SYSTEM_PROMPT,
            self.image_content(images),
            StatementDetails,
        )
        return IdentityResult(
            name=parsed.name if parsed.name_found else None,
            address=parsed.address if parsed.address_found else None,
        )

    def extract_ledger(self, images: List[str]) -> LedgerResult:
        options = {}
        if self.reasoning_effort:
            options["reasoning_effort"] = self.reasoning_effort
        parsed = self._parse(
            self.ledger_model,
            prompts.LEDGER_SYSTEM_PROMPT,
            self.image_content(images),
            TransactionDetails,
            **options,
        )
        return to_ledger_result(parsed)

    def assess_fraud(self, images: List[str], texts: List[str]) -> FraudAssessment:
        content = self.image_content(images)
        for page_number, text in enumerate(texts, 1):
            content.append({"type": "text", "text": f"Page {page_number} text:\n{text}"})

        parsed = self._parse(
            self.fraud_model,
            prompts.FRAUD_SYSTEM_PROMPT,
            content,
            FraudAnalysis,
        )
        return FraudAssessment(
            analysis=parsed.analysis,
            likelihood=_check_score(parsed.fraud_likelihood, "Fraud likelihood"),
            concerns=[
                FraudConcern(description=c.description, severity=Severity(c.severity))
                for c in parsed.concerns
            ],
        )
