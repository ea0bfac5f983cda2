#!/usr/bin/env python3
"""Bank statement verifier.

Renders a PDF bank statement to page images, asks an inference service to
classify it, extract the account holder and ledger, and look for signs of
tampering, then reconciles the ledger locally and prints the findings.

Usage:
    python main.py --pdf-file <path_to_pdf> [--password <password>] [--report-dir <dir>] [--json] [--config <file>]

    python main.py --health   # Check dependencies and configuration

    python main.py --daemon   # Run as background worker
"""

import argparse
import json
import sys
from typing import Optional

from dotenv import load_dotenv

from statement_verifier.analyzer.service import create_openai_client
from statement_verifier.config.settings import REPORTS_DIR, Settings, load_config_from_file
from statement_verifier.excel_generator.converter import ExcelReportConverter
from statement_verifier.monitoring.health_checker import HealthChecker
from statement_verifier.pipeline.runner import PipelineResult, PipelineStatus, StatementPipeline
from statement_verifier.utils.exceptions import ConfigurationError, StatementVerifierError
from statement_verifier.utils.logger import get_logger, setup_logger
from statement_verifier.utils.validators import ValidationError, validate_password

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_REJECTED = 2


class StatementVerifier:
    """Command-line front end for the verification pipeline."""

    def __init__(self, settings: Settings, pipeline: Optional[StatementPipeline] = None) -> None:
        """Initialize the verifier.

        Args:
            settings: Loaded settings.
            pipeline: Pipeline to use; built from settings when omitted.
        """
        self.logger = get_logger(__name__)
        self.settings = settings
        self.pipeline = pipeline or StatementPipeline.from_settings(
            settings, create_openai_client(settings)
        )
        self.converter = ExcelReportConverter()

    def verify(
        self,
        pdf_path: str,
        password: Optional[str] = None,
        report_dir: Optional[str] = None
    ) -> PipelineResult:
        """Run the pipeline and optionally write an Excel report."""
        if password is not None:
            validate_password(password)
        result = self.pipeline.run(pdf_path, password)
        if report_dir and result.status is PipelineStatus.COMPLETED:
            self.converter.create_report(result, report_dir)
        return result


def print_result(result: PipelineResult) -> None:
    """Print the findings of a pipeline run."""
    if result.status is PipelineStatus.REJECTED:
        print(f"Document is not a statement (confidence {result.classification.confidence:.0f})")
        return

    print(f"Document is a statement (confidence {result.classification.confidence:.0f})")
    print("Name:", result.identity.name if result.identity and result.identity.name else "Not found")
    print("Address:", result.identity.address if result.identity and result.identity.address else "Not found")

    if result.ledger is not None:
        ledger = result.ledger.ledger
        print("Transaction details are valid" if result.ledger_valid else "Transaction details are not valid")
        print("Original balance:", ledger.opening_balance)
        print("Final balance on statement:", ledger.closing_balance)
        if result.ledger.calculated_balance is not None:
            print("Calculated balance (extracted):", result.ledger.calculated_balance)
        if result.balance_check is not None:
            print("Calculated balance (recomputed):", result.balance_check.calculated_closing)
            print("Balances reconcile:", "yes" if result.balance_check.is_balanced else "no")
        print(f"Transactions: {len(ledger.transactions)}")
        for transaction in ledger.transactions:
            sign = "+" if transaction.signed_value >= 0 else "-"
            print(f"  {transaction.date}  {sign}{transaction.amount}  {transaction.description or ''}")

    if result.fraud is not None:
        print(f"Fraud likelihood: {result.fraud.likelihood:.0f}")
        for concern in result.fraud.concerns:
            print(f"  [{concern.severity.value}] {concern.description}")
        print("Analysis:", result.fraud.analysis)


def load_settings(config_file: Optional[str] = None) -> Settings:
    """Load settings from the environment, then apply an optional JSON override file.

    Raises:
        ConfigurationError: If the file cannot be read or the settings are invalid.
    """
    settings = Settings.from_env()
    if config_file:
        try:
            settings.update(load_config_from_file(config_file))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot load config file {config_file}: {e}") from e
    if not settings.validate():
        raise ConfigurationError("Invalid settings: check thresholds, rasterizer options and file size limit")
    return settings


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Verify a PDF bank statement with an inference service and local reconciliation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Verify a statement
    python main.py --pdf-file statement.pdf

    # Verify an encrypted statement and write an Excel report
    python main.py --pdf-file statement.pdf --password secret --report-dir ./reports

    # Check dependencies
    python main.py --health
        """
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        '--pdf-file',
        type=str,
        help='Path to the statement PDF to verify'
    )
    group.add_argument(
        '--health',
        action='store_true',
        help='Check dependencies and configuration, then exit'
    )
    group.add_argument(
        '--daemon',
        action='store_true',
        help='Run as background worker'
    )

    parser.add_argument(
        '--password',
        type=str,
        help='Password for an encrypted PDF'
    )
    parser.add_argument(
        '--report-dir',
        type=str,
        default=None,
        help=f'Write an Excel report to this directory (e.g. {REPORTS_DIR})'
    )
    parser.add_argument(
        '--config',
        type=str,
        help='JSON file whose keys override settings from the environment'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the result as JSON'
    )

    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 verified, 2 rejected document, 1 error).
    """
    load_dotenv()
    args = parse_arguments(argv)
    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return EXIT_FAILED
    setup_logger("statement_verifier", level=settings.get_log_level(), logs_dir=settings.logs_dir)

    try:
        if args.health:
            health = HealthChecker(settings).run_health_check()
            print(json.dumps(health, indent=2))
            return EXIT_OK if health['status'] != 'unhealthy' else EXIT_FAILED

        if args.daemon:
            from statement_verifier.tasks.celery_app import celery_app
            celery_app.worker_main(['worker', '--loglevel=info'])
            return EXIT_OK

        print("Starting...")
        verifier = StatementVerifier(settings)
        result = verifier.verify(args.pdf_file, args.password, args.report_dir)

        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print_result(result)

        return EXIT_REJECTED if result.status is PipelineStatus.REJECTED else EXIT_OK

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130
    except (StatementVerifierError, ValidationError) as e:
        print(f"Error: {e}")
        return EXIT_FAILED
    except Exception as e:
        print(f"Unexpected error: {str(e)}")
        if settings.is_debug_enabled():
            get_logger(__name__).exception("Unexpected error")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
