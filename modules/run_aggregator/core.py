"""Run aggregator -- merge independent runs into one stable measurement.

Pure functions over immutable ``MeasurementResult`` / ``RenderMetrics``
values. Counts stay integral (rounded mean); durations are arithmetic means;
derived averages are recomputed from the means rather than averaged.
"""

from __future__ import annotations

import logging
import math
import statistics
from collections.abc import Sequence

from domain.models import (
    InteractionKind,
    InteractionResult,
    MeasurementKind,
    MeasurementResult,
    MeasurementStats,
    RenderEvent,
    RenderMetrics,
    RunStatistics,
)

logger = logging.getLogger("perflock.aggregator")


class EmptyAggregationInput(Exception):
    """Raised when asked to aggregate zero runs."""


class InteractionScriptMismatch(Exception):
    """Raised when runs did not execute the same interaction script."""


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def _mean(values: Sequence[float]) -> float:
    return float(statistics.mean(values))


def _derived_average(total: float, count: float) -> float:
    return total / count if count > 0 else 0.0


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate_metrics(runs: Sequence[RenderMetrics]) -> RenderMetrics:
    """Merge per-run render metrics.

    Args:
        runs: Metrics of each run, at least one.

    Returns:
        The sole run unchanged when there is one, else the merged metrics.

    Raises:
        EmptyAggregationInput: If ``runs`` is empty.
    """
    if not runs:
        raise EmptyAggregationInput("No runs to aggregate")
    if len(runs) == 1:
        return runs[0]

    mean_count = _mean([r.render_count for r in runs])
    mean_actual = _mean([r.total_actual_duration for r in runs])
    mean_base = _mean([r.total_base_duration for r in runs])

    renders: list[RenderEvent] = []
    for run in runs:
        renders.extend(run.renders)

    return RenderMetrics(
        component_name=runs[0].component_name,
        render_count=round_half_up(mean_count),
        total_actual_duration=mean_actual,
        total_base_duration=mean_base,
        average_render_time=_derived_average(mean_actual, mean_count),
        renders=tuple(renders),
    )


def aggregate_runs(runs: Sequence[MeasurementResult]) -> MeasurementResult:
    """Merge ``R >= 1`` runs of the same component and interaction script.

    Interaction results are aggregated index by index; ``renders_by_type``
    is recomputed from the aggregated interactions so the two stay
    consistent.

    Args:
        runs: Measured runs in execution order.

    Returns:
        The sole run unchanged when ``R == 1``, else the aggregate.

    Raises:
        EmptyAggregationInput: If ``runs`` is empty.
        InteractionScriptMismatch: If runs differ in component or script.
    """
    if not runs:
        raise EmptyAggregationInput("No runs to aggregate")
    if len(runs) == 1:
        return runs[0]

    _check_same_script(runs)

    first = runs[0]
    interactions = tuple(
        _aggregate_interaction([run.interaction_results[i] for run in runs])
        for i in range(len(first.interaction_results))
    )

    total_renders = sum(r.renders_triggered for r in interactions)
    renders_by_type: dict[InteractionKind, int] = {}
    for result in interactions:
        kind = result.interaction.kind
        renders_by_type[kind] = renders_by_type.get(kind, 0) + result.renders_triggered

    memory = [r.memory_delta for r in runs if r.memory_delta is not None]

    logger.debug("Aggregated %d runs of %s", len(runs), first.component_name)
    return MeasurementResult(
        component_name=first.component_name,
        metrics=aggregate_metrics([r.metrics for r in runs]),
        interaction_results=interactions,
        total_renders=total_renders,
        renders_per_interaction=(
            total_renders / len(interactions) if interactions else 0.0
        ),
        renders_by_type=renders_by_type,
        timestamp=max(r.timestamp for r in runs),
        memory_delta=_mean(memory) if memory else None,
        run_number=None,
    )


def _aggregate_interaction(aligned: Sequence[InteractionResult]) -> InteractionResult:
    mean_renders = _mean([r.renders_triggered for r in aligned])
    mean_time = _mean([r.total_render_time for r in aligned])
    return InteractionResult(
        interaction=aligned[0].interaction,
        renders_triggered=round_half_up(mean_renders),
        total_render_time=mean_time,
        average_render_time=_derived_average(mean_time, mean_renders),
    )


def _check_same_script(runs: Sequence[MeasurementResult]) -> None:
    first = runs[0]
    expected = [r.interaction for r in first.interaction_results]
    for index, run in enumerate(runs[1:], start=2):
        if run.component_name != first.component_name:
            msg = (
                f"run {index} measured {run.component_name!r}, "
                f"expected {first.component_name!r}"
            )
            raise InteractionScriptMismatch(msg)
        actual = [r.interaction for r in run.interaction_results]
        if len(actual) != len(expected):
            msg = (
                f"run {index} performed {len(actual)} interaction(s), "
                f"expected {len(expected)}"
            )
            raise InteractionScriptMismatch(msg)
        for position, (want, got) in enumerate(zip(expected, actual, strict=True)):
            if want != got:
                msg = f"run {index} interaction {position} is {got}, expected {want}"
                raise InteractionScriptMismatch(msg)


# ---------------------------------------------------------------------------
# Run statistics
# ---------------------------------------------------------------------------


def compute_stats(values: Sequence[float]) -> MeasurementStats:
    """Descriptive statistics; p95 uses the nearest-rank method.

    Raises:
        EmptyAggregationInput: If ``values`` is empty.
    """
    if not values:
        raise EmptyAggregationInput("No values to summarize")
    ordered = sorted(values)
    rank = max(math.ceil(0.95 * len(ordered)), 1)
    return MeasurementStats(
        mean=_mean(ordered),
        median=float(statistics.median(ordered)),
        std_dev=float(statistics.pstdev(ordered)),
        p95=float(ordered[rank - 1]),
        min=float(ordered[0]),
        max=float(ordered[-1]),
        count=len(ordered),
    )


def summarize_runs(runs: Sequence[MeasurementResult | RenderMetrics]) -> RunStatistics:
    """Spread of per-run average render time and render count."""
    if not runs:
        raise EmptyAggregationInput("No runs to summarize")
    metrics = [
        r.metrics if r.kind is MeasurementKind.INTERACTIONS else r  # type: ignore[union-attr]
        for r in runs
    ]
    return RunStatistics(
        component_name=metrics[0].component_name,
        render_time=compute_stats([m.average_render_time for m in metrics]),
        render_count=compute_stats([m.render_count for m in metrics]),
        runs=len(metrics),
    )
