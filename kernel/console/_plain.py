"""kernel.console._plain -- Plain-text fallback backend.

print()-based output for CI logs: no colour, no box drawing beyond the
closing rule. Used when stdout is not a TTY or ``--plain`` is given.
"""

from __future__ import annotations

from kernel.console._protocol import BUDGET_HEADERS

_MARKS = {"pass": "✓", "warn": "⚠", "fail": "✗"}


class PlainBackend:
    """ConsoleProtocol implementation using only built-in print()."""

    # -- General messages ---------------------------------------------------

    def info(self, message: str) -> None:
        print(f"  {message}")

    def success(self, message: str) -> None:
        print(f"  [ok] {message}")

    def warning(self, message: str) -> None:
        print(f"  [warn] {message}")

    def error(self, message: str) -> None:
        print(f"  [error] {message}")

    # -- Check report -------------------------------------------------------

    def verdict(self, name: str, status: str) -> None:
        print(f"\n  {_MARKS.get(status, '?')} {name}: {status.upper()}")

    def budget_table(self, rows: list[list[str]]) -> None:
        if not rows:
            return
        widths = [
            max(len(header), *(len(row[i]) for row in rows))
            for i, header in enumerate(BUDGET_HEADERS)
        ]
        # Metric name left-aligned, numbers right-aligned, status left-aligned.
        print("    " + _join(BUDGET_HEADERS, widths))
        print("    " + "  ".join("-" * w for w in widths))
        for row in rows:
            print("    " + _join(row, widths))

    def violation(self, metric: str, exceeded_by: float, severity: str) -> None:
        print(f"    - {metric}: exceeded by {exceeded_by * 100:.0f}% ({severity})")

    def config_errors(self, where: str, errors: list[str]) -> None:
        print(f"  [error] Invalid configuration {where}".rstrip())
        for error in errors:
            print(f"    - {error}")

    def detail(self, message: str) -> None:
        print(f"    {message}")

    def check_result(self, status: str, *, passed: int, warned: int, failed: int) -> None:
        rule = "━" * 60
        print(f"\n{rule}")
        print(
            f"  {_MARKS.get(status, '?')} {status.upper()} "
            f"── {passed} passed · {warned} warned · {failed} failed"
        )
        print(rule)


def _join(cells: list[str] | tuple[str, ...], widths: list[int]) -> str:
    last = len(widths) - 1
    parts = [
        cell.ljust(width) if i in (0, last) else cell.rjust(width)
        for i, (cell, width) in enumerate(zip(cells, widths, strict=True))
    ]
    return "  ".join(parts).rstrip()
