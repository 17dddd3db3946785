"""Render profiler -- run-scoped accumulation of commit events.

A ``RenderAccumulator`` is created per run, handed to that run's mount
and interaction steps only, and discarded at unmount. It is the single
mutable object in the measurement path; everything it hands out
(``snapshot``) is an immutable ``RenderMetrics``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from domain.models import RenderEvent, RenderMetrics, RenderPhase

logger = logging.getLogger("perflock.profiler")


def average_render_time(total_actual_duration: float, render_count: float) -> float:
    """Mean duration per render, 0 when there were no renders."""
    if render_count <= 0:
        return 0.0
    return total_actual_duration / render_count


def metrics_from_events(component_name: str, events: Iterable[RenderEvent]) -> RenderMetrics:
    """Fold a sequence of render events into ``RenderMetrics``.

    Args:
        component_name: Name of the observed component.
        events: Commit events in the order they were observed.

    Returns:
        Metrics whose scalars are derived from ``events``.
    """
    accumulator = RenderAccumulator(component_name)
    for event in events:
        accumulator.record(event)
    return accumulator.snapshot()


class RenderAccumulator:
    """Mutable per-run render counter and time accumulator.

    ``on_render`` has the instrumentation callback signature and can be
    passed directly to ``ComponentMountPort.mount``.
    """

    def __init__(self, component_name: str) -> None:
        self.component_name = component_name
        self._render_count = 0
        self._total_actual = 0.0
        self._total_base = 0.0
        self._renders: list[RenderEvent] = []

    @property
    def render_count(self) -> int:
        """Commits recorded so far."""
        return self._render_count

    @property
    def total_actual_duration(self) -> float:
        """Sum of ``actual_duration`` over recorded commits."""
        return self._total_actual

    def on_render(
        self,
        phase: str,
        actual_duration: float,
        base_duration: float,
        start_time: float,
        commit_time: float,
    ) -> None:
        """Record one commit reported by the instrumentation collaborator."""
        self.record(
            RenderEvent(
                phase=RenderPhase(phase),
                actual_duration=actual_duration,
                base_duration=base_duration,
                start_time=start_time,
                commit_time=commit_time,
            )
        )

    def record(self, event: RenderEvent) -> None:
        """Append an already-built event."""
        self._render_count += 1
        self._total_actual += event.actual_duration
        self._total_base += event.base_duration
        self._renders.append(event)
        logger.debug(
            "%s %s commit #%d took %.3fms",
            self.component_name,
            event.phase.value,
            self._render_count,
            event.actual_duration,
        )

    def reset(self) -> None:
        """Forget every recorded commit."""
        self._render_count = 0
        self._total_actual = 0.0
        self._total_base = 0.0
        self._renders = []

    def snapshot(self) -> RenderMetrics:
        """Return an immutable copy of the current metrics."""
        return RenderMetrics(
            component_name=self.component_name,
            render_count=self._render_count,
            total_actual_duration=self._total_actual,
            total_base_duration=self._total_base,
            average_render_time=average_render_time(self._total_actual, self._render_count),
            renders=tuple(self._renders),
        )
