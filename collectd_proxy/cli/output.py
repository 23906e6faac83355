"""Output formatting utilities for CLI."""

import json
from typing import Any

from rich.console import Console
from rich.table import Table

console = Console()
console_err = Console(stderr=True)


def print_table(
    data: list[dict[str, Any]],
    title: str | None = None,
    columns: list[str] | None = None,
) -> None:
    """Print data as a Rich table.

    Args:
        data: List of dictionaries to display
        title: Optional table title
        columns: Optional list of column names (defaults to all keys)
    """
    if not data:
        console.print("[yellow]No data to display[/yellow]")
        return

    if columns is None:
        columns = list(data[0].keys())

    table = Table(title=title, show_header=True, header_style="bold cyan")

    for col in columns:
        table.add_column(col, style="white", no_wrap=False)

    for row in data:
        table.add_row(*[str(row.get(col, "")) for col in columns])

    console.print(table)


def print_json(data: Any, indent: int = 2) -> None:
    """Print data as JSON."""
    console.print_json(json.dumps(data, indent=indent, default=str))


def print_dict(data: dict[str, Any], title: str | None = None) -> None:
    """Print dictionary as a formatted table.

    Args:
        data: Dictionary to display
        title: Optional table title
    """
    table = Table(title=title, show_header=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_error(message: str) -> None:
    """Print error message with X mark."""
    console_err.print(f"[red]✗[/red] {message}")


def print_info(message: str) -> None:
    """Print info message with info symbol."""
    console.print(f"[blue]ℹ[/blue] {message}")
