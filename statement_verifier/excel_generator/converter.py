"""Excel report generation for statement verification results."""

import os
from datetime import datetime
from typing import Any, List, Optional, Tuple

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows
from openpyxl.worksheet.worksheet import Worksheet

from statement_verifier.config.settings import EXCEL_OUTPUT_FORMAT, REPORTS_DIR
from statement_verifier.ledger.models import Transaction
from statement_verifier.pipeline.runner import PipelineResult, PipelineStatus
from statement_verifier.utils.exceptions import ReportGenerationError
from statement_verifier.utils.logger import get_logger
from statement_verifier.utils.validators import ValidationError, validate_directory_path


class ExcelReportConverter:
    """Writes a completed pipeline result to an Excel workbook."""

    def __init__(self) -> None:
        """Initialize Excel converter."""
        self.logger = get_logger(__name__)

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        self.header_alignment = Alignment(horizontal="center", vertical="center")
        self.warning_fill = PatternFill(start_color="F8CBAD", end_color="F8CBAD", fill_type="solid")

        self.amount_format = '#,##0.00'

    def generate_filename(self, source_file: str, timestamp: bool = True) -> str:
        """Generate a report filename from the source PDF name."""
        parts = [os.path.splitext(os.path.basename(source_file))[0], "verification"]
        if timestamp:
            parts.append(datetime.now().strftime("%Y%m%d_%H%M%S"))
        return f"{'_'.join(parts)}.{EXCEL_OUTPUT_FORMAT}"

    def transactions_to_dataframe(self, transactions: List[Transaction]) -> pd.DataFrame:
        """Convert transactions to a DataFrame with a signed amount column."""
        data = []
        for transaction in transactions:
            data.append({
                "Date": transaction.date,
                "Description": transaction.description or "",
                "Details": transaction.details or "",
                "Direction": transaction.direction.value,
                "Currency": transaction.amount.currency,
                "Amount": float(transaction.signed_value),
            })
        return pd.DataFrame(data, columns=["Date", "Description", "Details", "Direction", "Currency", "Amount"])

    def summary_rows(self, result: PipelineResult) -> List[Tuple[str, Any]]:
        """Key/value rows for the summary sheet."""
        rows: List[Tuple[str, Any]] = [
            ("Source file", os.path.basename(result.source_file)),
            ("Pages", result.page_count),
            ("Statement confidence", result.classification.confidence),
            ("Account holder", result.identity.name if result.identity else None),
            ("Address", result.identity.address if result.identity else None),
        ]
        if result.balance_check is not None:
            check = result.balance_check
            rows.extend([
                ("Currency", check.currency),
                ("Opening balance", float(check.opening)),
                ("Closing balance on statement", float(check.claimed_closing)),
                ("Calculated closing balance", float(check.calculated_closing)),
                ("Difference", float(check.difference)),
                ("Balances reconcile", "Yes" if check.is_balanced else "No"),
            ])
        rows.append(("Ledger valid", "Yes" if result.ledger_valid else "No"))
        if result.fraud is not None:
            rows.append(("Fraud likelihood", result.fraud.likelihood))
        return rows

    def _style_header(self, worksheet: Worksheet, columns: int) -> None:
        for col_num in range(1, columns + 1):
            cell = worksheet.cell(row=1, column=col_num)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.header_alignment

    def _autosize(self, worksheet: Worksheet) -> None:
        for col_idx in range(1, worksheet.max_column + 1):
            max_length = 0
            for row_idx in range(1, worksheet.max_row + 1):
                value = worksheet.cell(row=row_idx, column=col_idx).value
                if value is not None and len(str(value)) > max_length:
                    max_length = len(str(value))
            worksheet.column_dimensions[get_column_letter(col_idx)].width = min(max_length + 2, 60)

    def create_summary_sheet(self, workbook: Workbook, result: PipelineResult) -> None:
        worksheet = workbook.create_sheet(title="Summary")
        worksheet.append(["Field", "Value"])
        self._style_header(worksheet, 2)

        for key, value in self.summary_rows(result):
            worksheet.append([key, value])
            cell = worksheet.cell(row=worksheet.max_row, column=2)
            if isinstance(value, float):
                cell.number_format = self.amount_format
            if value == "No":
                cell.fill = self.warning_fill

        self._autosize(worksheet)

    def create_transactions_sheet(self, workbook: Workbook, transactions_df: pd.DataFrame) -> None:
        worksheet = workbook.create_sheet(title="Transactions")
        for row in dataframe_to_rows(transactions_df, index=False, header=True):
            worksheet.append(row)
        self._style_header(worksheet, len(transactions_df.columns))

        amount_col = transactions_df.columns.get_loc("Amount") + 1
        for row_idx in range(2, worksheet.max_row + 1):
            worksheet.cell(row=row_idx, column=amount_col).number_format = self.amount_format

        self._autosize(worksheet)
        self.logger.info(f"Created transactions sheet with {len(transactions_df)} rows")

    def create_concerns_sheet(self, workbook: Workbook, result: PipelineResult) -> None:
        worksheet = workbook.create_sheet(title="Fraud Concerns")
        worksheet.append(["Severity", "Concern"])
        self._style_header(worksheet, 2)

        if result.fraud is not None:
            for concern in result.fraud.concerns:
                worksheet.append([concern.severity.value, concern.description])
            worksheet.append([])
            worksheet.append(["Analysis", result.fraud.analysis])

        self._autosize(worksheet)

    def create_report(
        self,
        result: PipelineResult,
        output_path: Optional[str] = None,
        filename: Optional[str] = None
    ) -> str:
        """Write a completed pipeline result to an Excel workbook.

        Args:
            result: Result of a COMPLETED pipeline run.
            output_path: Optional output directory path.
            filename: Optional filename for output file.

        Returns:
            Path to created Excel file.

        Raises:
            ReportGenerationError: If the result is not complete or writing fails.
        """
        if result.status is not PipelineStatus.COMPLETED:
            raise ReportGenerationError(
                f"Cannot write a report for a {result.status.value} document"
            )

        output_path = output_path or REPORTS_DIR
        try:
            validate_directory_path(output_path)
        except ValidationError as e:
            raise ReportGenerationError(f"Validation error: {str(e)}") from e

        filename = filename or self.generate_filename(result.source_file)
        if not filename.endswith(f".{EXCEL_OUTPUT_FORMAT}"):
            filename = f"{filename}.{EXCEL_OUTPUT_FORMAT}"
        full_path = os.path.join(output_path, filename)

        transactions = result.ledger.ledger.transactions if result.ledger else []

        workbook = Workbook()
        workbook.remove(workbook.active)
        self.create_summary_sheet(workbook, result)
        self.create_transactions_sheet(workbook, self.transactions_to_dataframe(transactions))
        self.create_concerns_sheet(workbook, result)

        try:
            workbook.save(full_path)
        except OSError as e:
            raise ReportGenerationError(f"Failed to write report {full_path}: {str(e)}") from e
        finally:
            workbook.close()

        self.logger.info(f"Excel report created: {full_path}")
        return full_path
