"""kernel.console -- perflock terminal output system.

Usage (any file)::

    from kernel.console import console

    console.verdict("UserCard", "pass")
    console.budget_table([["renderTime", "12.00", "16", "75%", "pass"]])

Configuration (call once in ``cli.py:main()``)::

    from kernel.console import configure

    configure(backend="auto")  # "rich" | "plain" | "auto"

In ``auto`` mode the plain backend is chosen for CI runners and pipes, so
build logs stay free of ANSI escapes.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from kernel.console._plain import PlainBackend

if TYPE_CHECKING:
    from kernel.console._protocol import ConsoleProtocol

# Environment variables that force plain output in auto mode
PLAIN_ENV_VARS = ("NO_COLOR", "CI")

_backend: ConsoleProtocol = PlainBackend()


def configure(*, backend: str = "auto") -> None:
    """Select the console backend.

    Args:
        backend: ``"rich"`` -- always use Rich.
                 ``"plain"`` -- always use plain text.
                 ``"auto"`` (default) -- plain when stdout is not a TTY or
                 one of ``PLAIN_ENV_VARS`` is set, Rich otherwise.
    """
    global _backend  # noqa: PLW0603

    if backend == "plain" or (backend == "auto" and _prefers_plain()):
        _backend = PlainBackend()
        return

    from kernel.console._rich import RichBackend

    _backend = RichBackend()


def get_console() -> ConsoleProtocol:
    """Return the active backend."""
    return _backend


def _prefers_plain() -> bool:
    if not sys.stdout.isatty():
        return True
    return any(os.environ.get(name) for name in PLAIN_ENV_VARS)


class _ConsoleProxy:
    """Forwards attribute access to whichever backend is active.

    Modules bind ``console`` at import time; a later ``configure()`` still
    takes effect for them.
    """

    def __getattr__(self, name: str) -> object:
        return getattr(_backend, name)


console: ConsoleProtocol = _ConsoleProxy()  # type: ignore[assignment]
