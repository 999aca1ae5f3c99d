"""Console output helpers built on rich."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Optional

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from .sync.result import ListResult, OperationResult

# Keyed by OutcomeKind value
OUTCOME_STYLES = {
    "uploaded": "green",
    "downloaded": "green",
    "deleted": "yellow",
    "moved": "cyan",
    "skipped": "dim",
    "failed": "bold red",
}


class OutputFormatter:
    """Formats messages, tables and results for the terminal or as JSON."""

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        """Initialize the formatter.

        Args:
            json_output: Emit machine readable JSON instead of tables
            quiet: Suppress informational messages
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def info(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(message, highlight=False)

    def success(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(f"[green]{message}[/green]", highlight=False)

    def warning(self, message: str) -> None:
        if not self.quiet:
            self.err_console.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        self.err_console.print(f"[bold red]Error:[/bold red] {message}")

    def output_json(self, data: Any) -> None:
        self.console.print_json(json.dumps(data, default=str))

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print key/value pairs as a two column table."""
        if self.json_output:
            self.output_json({key: value for key, value in items})
            return
        table = Table(title=title, show_header=False)
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in items:
            table.add_row(key, value)
        self.console.print(table)

    def print_result(self, result: OperationResult) -> None:
        """Render an operation result as a table followed by a summary line."""
        if self.json_output:
            self.output_json(result.to_dict())
            return

        if result.outcomes and not self.quiet:
            table = Table(title=f"{result.operation} {result.feature_set or ''}")
            table.add_column("Outcome")
            table.add_column("Remote path")
            table.add_column("Local path")
            table.add_column("Details")
            for outcome in result.outcomes:
                style = OUTCOME_STYLES[outcome.kind.value]
                details = outcome.reason or ""
                if outcome.cause:
                    details = f"{outcome.cause}: {details}"
                table.add_row(
                    f"[{style}]{outcome.kind.value}[/{style}]",
                    outcome.remote_path,
                    outcome.local_path or "",
                    details,
                )
            self.console.print(table)

        if result.aborted:
            self.error(f"{result.operation} aborted: {result.error}")
            return

        counts = ", ".join(
            f"{count} {kind}" for kind, count in result.counts().items() if count
        )
        if result.success:
            self.success(f"{result.operation} completed ({counts or 'nothing to do'})")
        else:
            self.error(
                f"{result.operation} completed with "
                f"{len(result.failures)} failure(s) ({counts})"
            )

    def print_listing(self, result: ListResult) -> None:
        """Render the entries of a list operation."""
        if self.json_output:
            self.output_json(result.to_dict())
            return
        if result.aborted:
            self.error(f"list aborted: {result.error}")
            return

        if result.feature_set is None:
            table = Table(title="Feature Sets")
            table.add_column("Name")
            for entry in result.entries:
                table.add_row(entry.path)
        else:
            table = Table(title=f"Feature Set: {result.feature_set}")
            table.add_column("Role")
            table.add_column("Remote path")
            table.add_column("Local path")
            for entry in result.entries:
                table.add_row(
                    entry.role.value if entry.role else "",
                    entry.path,
                    entry.local_path or "",
                )
        self.console.print(table)
