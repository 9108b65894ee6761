"""
Excel report generator for reconciliation results.
Creates a multi-sheet workbook with one sheet per partition of the result.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..config import ReconConfig, SheetConfig
from ..matching.identifier import get_identifier
from ..models.transaction import GapKind, ReconciliationResult, Transaction
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
NEW_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
RECOVERED_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
DROPPED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

TRANSACTION_HEADERS = ["Vendor ID", "Date", "Amount", "Original Bank Label", "Identifier"]


class ExcelReportGenerator:
    """Generates Excel reconciliation reports with multiple sheets."""

    def __init__(self, config: ReconConfig):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config
        self.sheet_config = config.output.sheets

    def default_output_path(self, now: Optional[datetime] = None) -> Path:
        """Build the report file name from the configured template."""
        now = now or datetime.now()
        template = self.config.output.excel.filename_template
        return Path(
            template.format(date=now.strftime("%Y%m%d"), time=now.strftime("%H%M%S"))
        )

    def generate_report(
        self,
        result: ReconciliationResult,
        output_path: Path,
        remote_filename: str = "",
        local_filename: str = "",
    ) -> Path:
        """
        Generate the complete reconciliation report.

        Args:
            result: Reconciliation result
            output_path: Path for output file
            remote_filename: Name of the remote batch file, for the summary
            local_filename: Name of the local batch file, for the summary

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be written
        """
        logger.info(f"Generating Excel report: {output_path}")

        wb = Workbook()

        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        if self.sheet_config.summary.enabled:
            self._create_summary_sheet(wb, result, remote_filename, local_filename)

        # Without a split date every new transaction passes through unsplit
        fresh = result.after_split if result.split_date else result.new
        transaction_sheets = [
            (self.sheet_config.new, fresh, NEW_FILL),
            (self.sheet_config.recovered, result.recovered, RECOVERED_FILL),
            (self.sheet_config.updated, result.updated, None),
            (self.sheet_config.dropped, result.dropped, DROPPED_FILL),
        ]
        for sheet, transactions, fill in transaction_sheets:
            if sheet.enabled:
                self._create_transaction_sheet(wb, sheet, transactions, fill)

        if self.sheet_config.gap_events.enabled:
            self._create_gap_events_sheet(wb, result)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            raise ReportGenerationError(f"Failed to save report {output_path}: {e}") from e

        logger.info(f"Report saved: {output_path}")
        return output_path

    def _create_summary_sheet(
        self,
        wb: Workbook,
        result: ReconciliationResult,
        remote_filename: str,
        local_filename: str,
    ) -> None:
        """Create the summary sheet with key counts."""
        ws = wb.create_sheet(self.sheet_config.summary.name)

        ws["A1"] = "Transaction Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        ws["A3"] = "Batches"
        ws["A3"].font = Font(bold=True)

        batch_info = [
            ("Remote File:", remote_filename or "-"),
            ("Local File:", local_filename or "-"),
            ("Reconciled At:", result.reconciled_at.strftime("%Y-%m-%d %H:%M:%S")),
            ("Split Date:", result.split_date or "None"),
            ("Config File:", self.config.config_file_path or "Default"),
        ]
        for i, (label, value) in enumerate(batch_info, start=4):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = str(value)

        ws["A10"] = "Transaction Counts"
        ws["A10"].font = Font(bold=True)

        count_data = [
            ("Remote Transactions:", result.remote_count),
            ("Local Transactions:", result.local_count),
            ("New (after split):", len(result.after_split)),
            ("Recovered (missed):", len(result.recovered)),
            ("Total New:", len(result.new)),
            ("Updated:", len(result.updated)),
            ("Dropped (bad date):", len(result.dropped)),
            ("Identifiers with more upstream:", result.more_upstream_count),
            ("Identifiers with fewer upstream:", result.fewer_upstream_count),
        ]
        for i, (label, value) in enumerate(count_data, start=11):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = value

        ws.column_dimensions["A"].width = 34
        ws.column_dimensions["B"].width = 40

    def _create_transaction_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        transactions: list[Transaction],
        fill: Optional[PatternFill],
    ) -> None:
        """Create a sheet listing one group of transactions."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(ws, TRANSACTION_HEADERS)

        for row_num, txn in enumerate(transactions, start=2):
            record = txn.to_record()
            row_data = [
                txn.vendor_id or "",
                record["date"] if record["date"] is not None else "",
                float(txn.amount) if txn.amount is not None else "",
                txn.original_bank_label or "",
                get_identifier(txn),
            ]

            for col, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
                if fill is not None:
                    cell.fill = fill

        self._auto_fit_columns(ws)

    def _create_gap_events_sheet(self, wb: Workbook, result: ReconciliationResult) -> None:
        """Create the sheet listing identifier count mismatches."""
        ws = wb.create_sheet(self.sheet_config.gap_events.name)
        self._write_headers(
            ws, ["Identifier", "Kind", "Upstream Count", "Local Count", "Recovered"]
        )

        for row_num, event in enumerate(result.gap_events, start=2):
            row_data = [
                event.identifier,
                event.kind.value,
                event.upstream_count,
                event.local_count,
                event.surplus,
            ]
            for col, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
                if event.kind is GapKind.MORE_UPSTREAM and event.local_count > 0:
                    cell.fill = RECOVERED_FILL

        self._auto_fit_columns(ws)

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            column = column_cells[0].column_letter
            max_length = max(
                (len(str(cell.value)) for cell in column_cells if cell.value is not None),
                default=0,
            )
            ws.column_dimensions[column].width = min(max_length + 2, 50)
