"""Styled terminal output for the CLI (rich, on stderr)."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from rich.console import Console
from rich.table import Table

_console = Console(stderr=True, highlight=False)


def info(text: str) -> None:
    _console.print(text)


def success(text: str) -> None:
    _console.print(f"[green]✓[/green] {text}")


def error(text: str) -> None:
    _console.print(f"[bold red]error:[/bold red] {text}")


def table(title: str, columns: list[str], rows: list[list[Any]]) -> None:
    """Print a simple table with string-formatted cells."""
    tbl = Table(title=title, title_justify="left")
    for col in columns:
        tbl.add_column(col)
    for row in rows:
        tbl.add_row(*(str(cell) for cell in row))
    _console.print(tbl)


@contextmanager
def status(text: str) -> Iterator[None]:
    with _console.status(text):
        yield
