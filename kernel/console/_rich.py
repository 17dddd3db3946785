"""kernel.console._rich -- Rich-based terminal backend.

Colours verdicts by status and violations by severity; the budget table
is a borderless Rich table with the status column styled per row.
"""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.rule import Rule
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from kernel.console._protocol import BUDGET_HEADERS

_THEME = Theme(
    {
        "info": "blue",
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "status.pass": "bold green",
        "status.warn": "bold yellow",
        "status.fail": "bold red",
        "severity.minor": "yellow",
        "severity.moderate": "dark_orange",
        "severity.severe": "bold red",
        "dim": "dim",
    }
)

_MARKS = {"pass": "✓", "warn": "⚠", "fail": "✗"}
_RULE_STYLES = {"pass": "green", "warn": "yellow", "fail": "red"}


class RichBackend:
    """ConsoleProtocol implementation backed by Rich."""

    def __init__(self) -> None:
        self._con = Console(theme=_THEME, highlight=False)

    # -- General messages ---------------------------------------------------

    def info(self, message: str) -> None:
        self._con.print(f"  {message}", style="info", markup=False)

    def success(self, message: str) -> None:
        self._con.print(f"  ✓ {message}", style="success", markup=False)

    def warning(self, message: str) -> None:
        self._con.print(f"  ⚠ {message}", style="warning", markup=False)

    def error(self, message: str) -> None:
        self._con.print(f"  ✗ {message}", style="error", markup=False)

    # -- Check report -------------------------------------------------------

    def verdict(self, name: str, status: str) -> None:
        line = Text(f"  {_MARKS.get(status, '?')} {name}: {status.upper()}")
        line.stylize(f"status.{status}", 2)
        self._con.print()
        self._con.print(line)

    def budget_table(self, rows: list[list[str]]) -> None:
        if not rows:
            return
        t = Table(box=box.SIMPLE, show_edge=False, pad_edge=False, padding=(0, 2, 0, 4))
        metric, *numeric, status = BUDGET_HEADERS
        t.add_column(metric, style="bold")
        for header in numeric:
            t.add_column(header, justify="right")
        t.add_column(status)
        for *cells, row_status in rows:
            t.add_row(*cells, Text(row_status, style=f"status.{row_status}"))
        self._con.print(t)

    def violation(self, metric: str, exceeded_by: float, severity: str) -> None:
        line = Text(f"    - {metric}: exceeded by {exceeded_by * 100:.0f}% ")
        line.append(f"({severity})", style=f"severity.{severity}")
        self._con.print(line)

    def config_errors(self, where: str, errors: list[str]) -> None:
        self.error(f"Invalid configuration {where}".rstrip())
        for error in errors:
            self._con.print(Text(f"    - {error}", style="dim"))

    def detail(self, message: str) -> None:
        self._con.print(Text(f"    {message}", style="dim"))

    def check_result(self, status: str, *, passed: int, warned: int, failed: int) -> None:
        mark = _MARKS.get(status, "?")
        self._con.print()
        self._con.print(
            Rule(
                f" {mark} {status.upper()} "
                f"── {passed} passed · {warned} warned · {failed} failed ",
                style=_RULE_STYLES.get(status, "dim"),
            ),
        )
