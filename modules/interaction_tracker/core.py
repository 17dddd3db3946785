"""Interaction tracker -- attribute renders to each scripted interaction.

Interactions run strictly one at a time. For each one the tracker takes a
``(render_count, total_actual_duration)`` snapshot from the run's
accumulator, delegates the side effect to the interaction driver, awaits
the driver's ``settle()`` once, and snapshots again. The delta belongs to
that interaction and only that interaction.

The tracker never owns counter state: the ``RenderAccumulator`` belongs to
the run (see ``measure_run``) and is only read here.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from domain.models import (
    InteractionKind,
    InteractionResult,
    InteractionSpec,
    MeasurementResult,
    RenderMetrics,
)
from modules.render_profiler.core import RenderAccumulator, average_render_time
from modules.run_aggregator.core import EmptyAggregationInput, aggregate_runs

if TYPE_CHECKING:
    from domain.ports import ComponentMountPort, InteractionDriverPort

logger = logging.getLogger("perflock.tracker")

# Kinds that fire exactly one event; TYPE is handled per character.
_SINGLE_EVENT: dict[InteractionKind, str] = {
    InteractionKind.CLICK: "click",
    InteractionKind.FOCUS: "focus",
    InteractionKind.BLUR: "blur",
    InteractionKind.SCROLL: "scroll",
    InteractionKind.HOVER: "mouseenter",
}


class ElementNotFound(Exception):
    """Raised when the driver cannot resolve an interaction's target."""

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"Element not found: {selector}")


class UnsupportedInteractionKind(Exception):
    """Raised for an interaction kind the tracker cannot dispatch."""

    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__(f"Unsupported interaction kind: {kind!r}")


# ---------------------------------------------------------------------------
# Single interaction
# ---------------------------------------------------------------------------


async def perform_interaction(
    interaction: InteractionSpec,
    accumulator: RenderAccumulator,
    driver: InteractionDriverPort,
) -> InteractionResult:
    """Perform one interaction and attribute the renders it caused.

    Args:
        interaction: What to perform.
        accumulator: The current run's render accumulator (read only).
        driver: Resolves targets and fires simulated events.

    Returns:
        The render delta observed between the before/after snapshots.

    Raises:
        UnsupportedInteractionKind: Before any side effect, if the kind
            cannot be dispatched.
        ElementNotFound: If the target selector does not resolve.
    """
    kind = interaction.kind
    if kind is not InteractionKind.TYPE and kind not in _SINGLE_EVENT:
        raise UnsupportedInteractionKind(kind)

    element = driver.find_element(interaction.target)
    if element is None:
        raise ElementNotFound(interaction.target)

    renders_before = accumulator.render_count
    time_before = accumulator.total_actual_duration

    if kind is InteractionKind.TYPE:
        # One change event per keystroke so per-keystroke renders are counted.
        text = interaction.text or ""
        for i in range(len(text)):
            driver.fire(element, "change", text[: i + 1])
    else:
        driver.fire(element, _SINGLE_EVENT[kind])

    await driver.settle()

    renders_triggered = accumulator.render_count - renders_before
    total_render_time = accumulator.total_actual_duration - time_before

    logger.debug(
        "%s on %s triggered %d render(s) in %.3fms",
        kind.value,
        interaction.target,
        renders_triggered,
        total_render_time,
    )
    return InteractionResult(
        interaction=interaction,
        renders_triggered=renders_triggered,
        total_render_time=total_render_time,
        average_render_time=average_render_time(total_render_time, renders_triggered),
    )


async def track_interactions(
    script: Sequence[InteractionSpec],
    accumulator: RenderAccumulator,
    driver: InteractionDriverPort,
) -> list[InteractionResult]:
    """Perform every scripted interaction in order, never concurrently."""
    results: list[InteractionResult] = []
    for interaction in script:
        results.append(await perform_interaction(interaction, accumulator, driver))
    return results


# ---------------------------------------------------------------------------
# Derived per-run fields
# ---------------------------------------------------------------------------


def renders_by_kind(results: Sequence[InteractionResult]) -> dict[InteractionKind, int]:
    """Sum triggered renders per interaction kind, in first-seen order."""
    totals: dict[InteractionKind, int] = {}
    for result in results:
        kind = result.interaction.kind
        totals[kind] = totals.get(kind, 0) + result.renders_triggered
    return totals


def build_measurement(
    component_name: str,
    metrics: RenderMetrics,
    interaction_results: Sequence[InteractionResult],
    *,
    timestamp: float,
    run_number: int | None = None,
    memory_delta: float | None = None,
) -> MeasurementResult:
    """Assemble a ``MeasurementResult`` and its derived interaction totals."""
    total_renders = sum(r.renders_triggered for r in interaction_results)
    count = len(interaction_results)
    return MeasurementResult(
        component_name=component_name,
        metrics=metrics,
        interaction_results=tuple(interaction_results),
        total_renders=total_renders,
        renders_per_interaction=total_renders / count if count else 0.0,
        renders_by_type=renders_by_kind(interaction_results),
        timestamp=timestamp,
        memory_delta=memory_delta,
        run_number=run_number,
    )


# ---------------------------------------------------------------------------
# Runs and sessions
# ---------------------------------------------------------------------------


async def measure_run(
    component_name: str,
    script: Sequence[InteractionSpec],
    mount: ComponentMountPort,
    driver: InteractionDriverPort,
    *,
    run_number: int | None = None,
) -> MeasurementResult:
    """Execute one mount → script → unmount cycle.

    A fresh accumulator is created for the run and is only visible to the
    run's own steps. The component is always unmounted; on failure the
    exception propagates and no partial result is returned.
    """
    accumulator = RenderAccumulator(component_name)
    mounted = mount.mount(accumulator.on_render)
    try:
        await driver.settle()
        interaction_results = await track_interactions(script, accumulator, driver)
        metrics = accumulator.snapshot()
    finally:
        mounted.unmount()

    return build_measurement(
        component_name,
        metrics,
        interaction_results,
        timestamp=time.time() * 1000,
        run_number=run_number,
    )


async def measure_interactions(
    component_name: str,
    script: Sequence[InteractionSpec],
    mount: ComponentMountPort,
    driver: InteractionDriverPort,
    *,
    runs: int = 1,
    warmup_runs: int = 0,
) -> MeasurementResult:
    """Run warmups, then measured runs, and aggregate the measured ones.

    Warmup results are discarded and never reach the aggregator.

    Args:
        component_name: Name used for metrics and contract lookup.
        script: Ordered interactions performed in every run.
        mount: Renders the component under instrumentation.
        driver: Fires interaction events.
        runs: Measured runs (at least 1).
        warmup_runs: Discarded runs executed first.

    Returns:
        The single run when ``runs == 1``, else the aggregate.

    Raises:
        EmptyAggregationInput: If ``runs`` is below 1; nothing is mounted.
    """
    if runs < 1:
        msg = f"runs must be at least 1, got {runs}"
        raise EmptyAggregationInput(msg)

    for _ in range(warmup_runs):
        await measure_run(component_name, script, mount, driver)
    if warmup_runs:
        logger.info("%s: discarded %d warmup run(s)", component_name, warmup_runs)

    measured: list[MeasurementResult] = []
    for run_number in range(1, runs + 1):
        measured.append(
            await measure_run(component_name, script, mount, driver, run_number=run_number)
        )

    logger.info("%s: measured %d run(s)", component_name, runs)
    return aggregate_runs(measured)


def make_measurer(
    mount: ComponentMountPort,
    driver: InteractionDriverPort,
) -> Callable[..., Awaitable[MeasurementResult]]:
    """Bind a harness once and return a ``measure(name, script, ...)`` coroutine.

    The returned callable takes the same keyword arguments as
    ``measure_interactions`` (``runs``, ``warmup_runs``).
    """

    async def measure(
        component_name: str,
        script: Sequence[InteractionSpec],
        **options: int,
    ) -> MeasurementResult:
        return await measure_interactions(component_name, script, mount, driver, **options)

    return measure


# ---------------------------------------------------------------------------
# Script builders
# ---------------------------------------------------------------------------


def click(target: str) -> InteractionSpec:
    return InteractionSpec(kind=InteractionKind.CLICK, target=target)


def type_text(target: str, text: str) -> InteractionSpec:
    """Type ``text`` into ``target``, one change event per character."""
    return InteractionSpec(kind=InteractionKind.TYPE, target=target, text=text)


def focus(target: str) -> InteractionSpec:
    return InteractionSpec(kind=InteractionKind.FOCUS, target=target)


def blur(target: str) -> InteractionSpec:
    return InteractionSpec(kind=InteractionKind.BLUR, target=target)


def scroll(target: str) -> InteractionSpec:
    return InteractionSpec(kind=InteractionKind.SCROLL, target=target)


def hover(target: str) -> InteractionSpec:
    return InteractionSpec(kind=InteractionKind.HOVER, target=target)
