"""
Command-line interface for the transaction reconciliation tool.
"""

from pathlib import Path
from typing import Optional
import logging
import sys

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import DuplicateVendorIdPolicy, ReconConfig, generate_default_config, load_config
from .matching.engine import ReconciliationEngine
from .models.transaction import ReconciliationResult
from .parsers.batch_parser import BatchParser
from .reports.excel_generator import ExcelReportGenerator
from .reports.json_writer import write_json_report
from .utils.exceptions import ReconciliationError
from .utils.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version="0.1.0")
def main():
    """Reconcile freshly fetched bank transactions against stored ones."""
    pass


@main.command()
@click.argument("remote_file", type=click.Path(exists=True, path_type=Path))
@click.argument("local_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output file (.json or .xlsx)",
)
@click.option(
    "--first-match",
    is_flag=True,
    help="Match repeated local vendor ids against their first occurrence",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--dry-run", is_flag=True, help="Show the summary without writing output")
def reconcile(
    remote_file: Path,
    local_file: Path,
    config: Optional[Path],
    output: Optional[Path],
    first_match: bool,
    verbose: bool,
    dry_run: bool,
):
    """
    Reconcile a fetched batch with the stored batch of the same account.

    REMOTE_FILE: Transactions freshly fetched upstream (.json or .csv)
    LOCAL_FILE: Transactions already stored (.json or .csv)
    """
    try:
        recon_config = load_config(config)
        _setup_logging(recon_config, verbose)

        if first_match:
            recon_config.reconciliation.duplicate_vendor_ids = (
                DuplicateVendorIdPolicy.FIRST_MATCH
            )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            parser = BatchParser(recon_config)

            task = progress.add_task("Parsing remote batch...", total=None)
            remote_transactions = parser.parse_file(remote_file)
            progress.update(task, completed=True)

            task = progress.add_task("Parsing local batch...", total=None)
            local_transactions = parser.parse_file(local_file)
            progress.update(task, completed=True)

            task = progress.add_task("Running reconciliation...", total=None)
            engine = ReconciliationEngine(recon_config)
            result = engine.reconcile(remote_transactions, local_transactions)
            progress.update(task, completed=True)

        _display_summary(result)

        if dry_run:
            console.print("\n[yellow]Dry run - no output written[/yellow]")
            return

        if output is not None and output.suffix.lower() == ".json":
            report_path = write_json_report(result, output, recon_config)
        else:
            generator = ExcelReportGenerator(recon_config)
            report_path = generator.generate_report(
                result,
                output or generator.default_output_path(),
                remote_filename=remote_file.name,
                local_filename=local_file.name,
            )

        console.print(f"\n[green]Output written: {report_path}[/green]")

    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command()
@click.argument("batch_file", type=click.Path(exists=True, path_type=Path))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
@click.option("-n", "--limit", type=int, default=20, show_default=True, help="Rows to show")
def inspect(batch_file: Path, config: Optional[Path], limit: int):
    """
    Parse a batch file and display its transactions.

    BATCH_FILE: Transaction batch (.json or .csv)
    """
    try:
        recon_config = load_config(config)
        parser = BatchParser(recon_config)
        transactions = parser.parse_file(batch_file)
        summary = parser.summarize(transactions)
    except ReconciliationError as e:
        console.print(f"[red]Error parsing file: {e}[/red]")
        sys.exit(1)

    table = Table(title=f"Transactions: {batch_file.name}")
    table.add_column("Vendor ID")
    table.add_column("Date")
    table.add_column("Amount", justify="right")
    table.add_column("Original Bank Label")

    for txn in transactions[:limit]:
        label = txn.original_bank_label or "-"
        table.add_row(
            txn.vendor_id or "-",
            str(txn.date) if txn.date is not None else "-",
            f"{txn.amount:,.2f}" if txn.amount is not None else "-",
            label[:40] + "..." if len(label) > 40 else label,
        )

    console.print(table)

    if len(transactions) > limit:
        console.print(f"\n... and {len(transactions) - limit} more transactions")

    date_range = summary["date_range"]
    console.print(f"\nTotal transactions: {summary['transaction_count']}")
    console.print(f"Date range: {date_range['start']} to {date_range['end']}")
    if summary["malformed_dates"]:
        console.print(f"[yellow]Malformed dates: {summary['malformed_dates']}[/yellow]")
    if summary["duplicate_vendor_ids"]:
        console.print(
            "[yellow]Duplicate vendor ids: "
            f"{', '.join(summary['duplicate_vendor_ids'])}[/yellow]"
        )


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _setup_logging(config: ReconConfig, verbose: bool) -> None:
    log_config = config.logging
    level = logging.DEBUG if verbose else log_config.level
    setup_logging(
        level,
        log_file=Path(log_config.file) if log_config.file else None,
        log_format=log_config.format,
    )


def _display_summary(result: ReconciliationResult) -> None:
    """Display reconciliation summary in console."""
    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Remote Transactions", str(result.remote_count))
    table.add_row("Local Transactions", str(result.local_count))
    table.add_row("Split Date", result.split_date or "-")
    table.add_row("New (after split)", str(len(result.after_split)))
    table.add_row("Recovered", str(len(result.recovered)))
    table.add_row("Total New", str(len(result.new)))
    table.add_row("Updated", str(len(result.updated)))
    table.add_row("Dropped (bad date)", str(len(result.dropped)))
    table.add_row("Identifiers with more upstream", str(result.more_upstream_count))
    table.add_row("Identifiers with fewer upstream", str(result.fewer_upstream_count))
    table.add_row("Processing Time", f"{result.processing_time_seconds:.2f}s")

    console.print(table)


if __name__ == "__main__":
    main()
