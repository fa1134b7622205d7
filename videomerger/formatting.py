"""Rich-based console output for the videomerger CLI"""

from typing import Iterable

from rich.console import Console
from rich.table import Table
from rich.text import Text

console = Console()

def _print_marked(mark: str, mark_style: str, message: str, message_style: str = "bold") -> None:
    console.print(Text(f"{mark} ", style=mark_style) + Text(message, style=message_style))

def print_check(message: str) -> None:
    """Print a checkmark message in bold green."""
    _print_marked("✓", "bold green", message)

def print_warning(message: str) -> None:
    _print_marked("⚠", "bold yellow", message)

def print_error(message: str) -> None:
    _print_marked("✗", "bold red", message)

def print_success(message: str) -> None:
    _print_marked("✓", "green", message, "green")

def print_info(message: str) -> None:
    _print_marked("ℹ", "bold blue", message, "blue")

def print_status(label: str, style: str) -> None:
    """Print a merge status line with a coloured dot."""
    _print_marked("●", style, label)

def print_header(title: str) -> None:
    console.rule(Text(title, style="bold blue"), style="blue")

def print_command(line: str) -> None:
    """Print a command preview so it can be copied as is."""
    console.print(Text(line, style="dim"), soft_wrap=True)

def print_segments(title: str, rows: Iterable[tuple]) -> None:
    """Print segments as (position, name, captured, size) rows."""
    table = Table(title=title or None)
    table.add_column("#", justify="right")
    table.add_column("File")
    table.add_column("Captured")
    table.add_column("Size", justify="right")
    for row in rows:
        table.add_row(*(str(cell) for cell in row))
    console.print(table)

def print_settings(title: str, rows: Iterable[tuple]) -> None:
    """Print (label, value) pairs as a two-column table."""
    table = Table(title=title, show_header=False)
    for label, value in rows:
        table.add_row(label, value)
    console.print(table)
