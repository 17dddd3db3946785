"""Port interfaces for perflock.

All ports are defined as typing.Protocol -- structural subtyping means any class
with matching method signatures satisfies the Protocol without inheritance.
Each port is the boundary of an external collaborator; the engine itself
never renders UI or simulates input.

This module has ZERO external imports -- only stdlib and typing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from domain.models import LoadedConfig


class RenderCallback(Protocol):
    """Instrumentation callback invoked synchronously on every commit."""

    def __call__(
        self,
        phase: str,
        actual_duration: float,
        base_duration: float,
        start_time: float,
        commit_time: float,
    ) -> None: ...


class MountedComponent(Protocol):
    """A live component instance produced by ``ComponentMountPort.mount``."""

    def unmount(self) -> None:
        """Tear the component down. Called exactly once per run."""
        ...


class ComponentMountPort(Protocol):
    """Abstraction over rendering a component under instrumentation."""

    def mount(self, on_render: RenderCallback) -> MountedComponent:
        """Render the component, reporting every commit to ``on_render``."""
        ...


class InteractionDriverPort(Protocol):
    """Abstraction over resolving targets and firing simulated UI events."""

    def find_element(self, selector: str) -> object | None:
        """Resolve ``selector`` to an element, or None when nothing matches."""
        ...

    def fire(self, element: object, event: str, value: str | None = None) -> None:
        """Fire ``event`` on ``element``; ``value`` is the new input value for ``change``."""
        ...

    async def settle(self) -> None:
        """Return once pending rendering work has been committed."""
        ...


class ConfigSourcePort(Protocol):
    """Abstraction over where a contract configuration comes from."""

    def load(self) -> LoadedConfig | None:
        """Load the configuration, or None when no configuration exists."""
        ...
