"""Exception hierarchy for the statement verifier."""


class StatementVerifierError(Exception):
    """Base class for all statement verifier errors."""
    pass


class PDFNotFoundError(StatementVerifierError, FileNotFoundError):
    """Raised when the input PDF does not exist."""
    pass


class RasterizerError(StatementVerifierError):
    """Raised when the external PDF rasterizer fails or produces bad output."""
    pass


class RasterizerTimeoutError(RasterizerError):
    """Raised when the external PDF rasterizer exceeds its timeout."""
    pass


class TextExtractionError(StatementVerifierError):
    """Raised when per-page text cannot be extracted."""
    pass


class SchemaValidationError(StatementVerifierError):
    """Raised when an inference response does not match its schema."""
    pass


class CurrencyMismatchError(StatementVerifierError):
    """Raised when a ledger mixes currency codes."""
    pass


class ConfigurationError(StatementVerifierError):
    """Raised for missing or invalid configuration."""
    pass


class ReportGenerationError(StatementVerifierError):
    """Raised when a report workbook cannot be written."""
    pass
