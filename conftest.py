"""Shared pytest fixtures and test factories for perflock.

Provides:
- ``FakeHarness``: a fake component + interaction driver satisfying both
  ComponentMountPort and InteractionDriverPort
- Factory fixtures for measurement and contract models with sensible defaults
"""

from __future__ import annotations

from typing import Any

import pytest

from domain.models import (
    INFINITY,
    InteractionBudget,
    InteractionKind,
    InteractionResult,
    InteractionSpec,
    MeasurementResult,
    RenderMetrics,
    ResolvedComponentContract,
)
from domain.ports import RenderCallback

# ── Fake Port Implementations ─────────────────────────────────────────────


class FakeHarness:
    """Stateful fake of the instrumentation + interaction driver pair.

    Mounting commits ``mount_commits`` synchronously (``cold_mount_commits``
    instead on the very first mount, when given). Firing an event
    queues the commit durations listed for it in ``commits_per_event``;
    they are only committed when ``settle()`` is awaited, so a tracker
    that reads counters before settling sees nothing.
    """

    def __init__(
        self,
        *,
        mount_commits: tuple[float, ...] = (4.0,),
        cold_mount_commits: tuple[float, ...] | None = None,
        commits_per_event: dict[str, tuple[float, ...]] | None = None,
        selectors: tuple[str, ...] = ("#button", "#input", "#list"),
    ) -> None:
        self.mount_commits = mount_commits
        self.cold_mount_commits = cold_mount_commits
        self.commits_per_event = (
            commits_per_event
            if commits_per_event is not None
            else {
                "click": (2.0, 1.0),
                "change": (1.0,),
                "focus": (0.5,),
                "blur": (0.5,),
                "scroll": (),
                "mouseenter": (3.0,),
            }
        )
        self.selectors = set(selectors)
        self.lookups: list[str] = []
        self.fired: list[tuple[str, str | None]] = []
        self.mounts = 0
        self.unmounts = 0
        self.settles = 0
        self._callback: RenderCallback | None = None
        self._pending: list[float] = []
        self._clock = 0.0

    # ComponentMountPort

    def mount(self, on_render: RenderCallback) -> FakeHarness:
        """Attach the callback and commit the mount renders."""
        self.mounts += 1
        self._callback = on_render
        commits = self.mount_commits
        if self.mounts == 1 and self.cold_mount_commits is not None:
            commits = self.cold_mount_commits
        for duration in commits:
            self._commit("mount", duration)
        return self

    def unmount(self) -> None:
        """Detach the callback."""
        self.unmounts += 1
        self._callback = None

    # InteractionDriverPort

    def find_element(self, selector: str) -> object | None:
        """Return the selector itself when it is known."""
        self.lookups.append(selector)
        return selector if selector in self.selectors else None

    def fire(self, element: object, event: str, value: str | None = None) -> None:
        """Record the event and queue its commits."""
        self.fired.append((event, value))
        self._pending.extend(self.commits_per_event.get(event, ()))

    async def settle(self) -> None:
        """Commit everything queued since the last settle."""
        self.settles += 1
        pending, self._pending = self._pending, []
        for duration in pending:
            self._commit("update", duration)

    def _commit(self, phase: str, duration: float) -> None:
        assert self._callback is not None, "commit after unmount"
        start = self._clock
        self._clock += duration
        self._callback(phase, duration, duration * 1.5, start, self._clock)


@pytest.fixture()
def harness() -> FakeHarness:
    """A fresh fake harness with default commit timings."""
    return FakeHarness()


@pytest.fixture()
def make_harness() -> type[FakeHarness]:
    """The harness class, for tests that need custom timings."""
    return FakeHarness


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------

_Factory = Any  # callable[..., model]


@pytest.fixture()
def make_metrics() -> _Factory:
    """Factory for RenderMetrics (3 renders averaging 10ms by default)."""

    def _factory(
        *,
        component_name: str = "TestComponent",
        render_count: int = 3,
        total_actual_duration: float = 30.0,
        total_base_duration: float = 25.0,
        average_render_time: float = 10.0,
    ) -> RenderMetrics:
        return RenderMetrics(
            component_name=component_name,
            render_count=render_count,
            total_actual_duration=total_actual_duration,
            total_base_duration=total_base_duration,
            average_render_time=average_render_time,
        )

    return _factory


@pytest.fixture()
def make_contract() -> _Factory:
    """Factory for a resolved contract (16ms / 5 renders by default)."""

    def _factory(
        *,
        max_render_time: float = 16,
        max_render_count: float = 5,
        max_memory_delta: float = INFINITY,
        warning_threshold: float = 0.8,
        interactions: dict[str, float] | None = None,
    ) -> ResolvedComponentContract:
        return ResolvedComponentContract(
            max_render_time=max_render_time,
            max_render_count=max_render_count,
            max_memory_delta=max_memory_delta,
            warning_threshold=warning_threshold,
            interactions={
                InteractionKind(kind): InteractionBudget(max_renders=limit)
                for kind, limit in (interactions or {}).items()
            },
        )

    return _factory


@pytest.fixture()
def make_interaction_result() -> _Factory:
    """Factory for InteractionResult; the average is derived."""

    def _factory(
        kind: str = "click",
        *,
        target: str = "#button",
        renders: int = 2,
        total_time: float = 4.0,
        text: str | None = None,
    ) -> InteractionResult:
        return InteractionResult(
            interaction=InteractionSpec(kind=InteractionKind(kind), target=target, text=text),
            renders_triggered=renders,
            total_render_time=total_time,
            average_render_time=total_time / renders if renders else 0.0,
        )

    return _factory


@pytest.fixture()
def make_measurement(make_metrics: _Factory) -> _Factory:
    """Factory for an interaction-tagged MeasurementResult."""

    def _factory(
        *,
        metrics: RenderMetrics | None = None,
        interaction_results: tuple[InteractionResult, ...] = (),
        renders_by_type: dict[str, int] | None = None,
        memory_delta: float | None = None,
        timestamp: float = 1000.0,
    ) -> MeasurementResult:
        by_type = {InteractionKind(k): v for k, v in (renders_by_type or {}).items()}
        total = sum(r.renders_triggered for r in interaction_results) or sum(by_type.values())
        count = len(interaction_results)
        return MeasurementResult(
            component_name="TestComponent",
            metrics=metrics or make_metrics(),
            interaction_results=interaction_results,
            total_renders=total,
            renders_per_interaction=total / count if count else 0.0,
            renders_by_type=by_type,
            timestamp=timestamp,
            memory_delta=memory_delta,
        )

    return _factory
