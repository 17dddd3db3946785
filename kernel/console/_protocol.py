"""kernel.console._protocol -- ConsoleProtocol definition.

Pure standard-library typing.Protocol for the perflock terminal output system.
No external dependencies allowed in this file.
"""

from __future__ import annotations

from typing import Protocol

# Column headers of the per-component budget table
BUDGET_HEADERS = ("Metric", "Actual", "Budget", "Used", "Status")


class ConsoleProtocol(Protocol):
    """perflock terminal output protocol.

    Two layers of methods:

    **General messages** -- usable from any module::

        console.info("Loaded 4 contracts")
        console.success("All contracts passed")
        console.warning("Sidebar: contract declared but no runs recorded")
        console.error("Cannot read measurements from results.json")

    **Check report** -- used by kernel/cli.py, one block per component::

        console.verdict("UserCard", "warn")
        console.budget_table([["renderTime", "14.00", "16", "88%", "warn"]])
        console.violation("renderCount", 0.6, "severe")
        console.check_result("fail", passed=3, warned=0, failed=1)

    Statuses are the lowercase ``pass`` / ``warn`` / ``fail`` strings.
    """

    # -- General messages ---------------------------------------------------

    def info(self, message: str) -> None:
        """Informational message."""
        ...

    def success(self, message: str) -> None:
        """Success / positive-outcome message."""
        ...

    def warning(self, message: str) -> None:
        """Warning message."""
        ...

    def error(self, message: str) -> None:
        """Error message."""
        ...

    # -- Check report -------------------------------------------------------

    def verdict(self, name: str, status: str) -> None:
        """Display a component's status line."""
        ...

    def budget_table(self, rows: list[list[str]]) -> None:
        """Display checked metrics; each row follows ``BUDGET_HEADERS``."""
        ...

    def violation(self, metric: str, exceeded_by: float, severity: str) -> None:
        """Display one failing metric; ``exceeded_by`` is a fraction of budget."""
        ...

    def config_errors(self, where: str, errors: list[str]) -> None:
        """Display every structural problem found in a configuration."""
        ...

    def detail(self, message: str) -> None:
        """Display an indented detail line under the current verdict."""
        ...

    def check_result(self, status: str, *, passed: int, warned: int, failed: int) -> None:
        """Display the closing summary of a whole check."""
        ...
