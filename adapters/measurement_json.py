"""Measurement adapter: recorded runs (JSON) → typed measurements.

The instrumentation harness records each run as raw commit events plus
per-interaction deltas. This adapter decodes that file and rebuilds the
derived scalars with the profiler and tracker helpers, so the numbers the
validator sees are always consistent with the events.

File shape::

    {"components": {"UserCard": [{"renders": [...], "interactions": [...]}]}}

A run without an ``interactions`` key is a plain render-metrics run.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from domain.models import (
    InteractionKind,
    InteractionResult,
    InteractionSpec,
    Measurement,
    MeasurementKind,
    MeasurementResult,
    RenderEvent,
    RenderMetrics,
    RenderPhase,
)
from modules.interaction_tracker.core import build_measurement
from modules.render_profiler.core import average_render_time, metrics_from_events
from modules.run_aggregator.core import aggregate_metrics, aggregate_runs

logger = logging.getLogger("perflock.measurements")


class MeasurementDecodeError(Exception):
    """Raised when a recorded-runs file is malformed."""


def load_measurements(path: Path) -> dict[str, list[Measurement]]:
    """Read every component's recorded runs from ``path``.

    Raises:
        MeasurementDecodeError: If the file is unreadable or malformed.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot read measurements from {path}: {exc}"
        raise MeasurementDecodeError(msg) from exc
    return decode_measurements(data)


def decode_measurements(data: Any) -> dict[str, list[Measurement]]:
    """Decode the ``{"components": {name: [run, ...]}}`` mapping."""
    if not isinstance(data, Mapping) or not isinstance(data.get("components"), Mapping):
        raise MeasurementDecodeError("measurements must contain a 'components' mapping")

    decoded: dict[str, list[Measurement]] = {}
    for name, runs in data["components"].items():
        if not isinstance(runs, list) or not runs:
            msg = f"{name}: expected a non-empty list of runs"
            raise MeasurementDecodeError(msg)
        decoded[str(name)] = [
            decode_run(str(name), raw, run_number=i) for i, raw in enumerate(runs, start=1)
        ]
    logger.info("Decoded runs for %d component(s)", len(decoded))
    return decoded


def decode_run(component_name: str, raw: Any, *, run_number: int | None = None) -> Measurement:
    """Decode one recorded run."""
    where = f"{component_name} run {run_number}"
    if not isinstance(raw, Mapping):
        raise MeasurementDecodeError(f"{where}: run must be a mapping")

    renders = raw.get("renders", [])
    interactions = raw.get("interactions", [])
    if not isinstance(renders, list) or not isinstance(interactions, list):
        raise MeasurementDecodeError(f"{where}: renders and interactions must be lists")

    events = [_decode_event(where, e) for e in renders]
    metrics = metrics_from_events(component_name, events)

    if "interactions" not in raw:
        return metrics

    results = [_decode_interaction(where, r) for r in interactions]
    memory_delta = raw.get("memoryDelta")
    return build_measurement(
        component_name,
        metrics,
        results,
        timestamp=_decode_float(where, "timestamp", raw.get("timestamp", 0.0)),
        run_number=run_number,
        memory_delta=(
            _decode_float(where, "memoryDelta", memory_delta)
            if memory_delta is not None
            else None
        ),
    )


def merge_runs(runs: Sequence[Measurement]) -> Measurement:
    """Aggregate a component's runs; all runs must share one shape."""
    kinds = {run.kind for run in runs}
    if len(kinds) > 1:
        msg = f"{runs[0].component_name}: cannot mix plain and interaction runs"
        raise MeasurementDecodeError(msg)
    if kinds == {MeasurementKind.INTERACTIONS}:
        return aggregate_runs([r for r in runs if isinstance(r, MeasurementResult)])
    return aggregate_metrics([r for r in runs if isinstance(r, RenderMetrics)])


def _decode_event(where: str, raw: Any) -> RenderEvent:
    try:
        return RenderEvent(
            phase=RenderPhase(raw["phase"]),
            actual_duration=float(raw["actualDuration"]),
            base_duration=float(raw["baseDuration"]),
            start_time=float(raw["startTime"]),
            commit_time=float(raw["commitTime"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MeasurementDecodeError(f"{where}: bad render event {raw!r}") from exc


def _decode_interaction(where: str, raw: Any) -> InteractionResult:
    try:
        spec = raw["interaction"]
        interaction = InteractionSpec(
            kind=InteractionKind(spec["type"]),
            target=str(spec["target"]),
            text=spec.get("text"),
        )
        renders = _render_count(raw["rendersTriggered"])
        total_time = float(raw["totalRenderTime"])
    except (KeyError, TypeError, ValueError) as exc:
        raise MeasurementDecodeError(f"{where}: bad interaction result {raw!r}") from exc
    return InteractionResult(
        interaction=interaction,
        renders_triggered=renders,
        total_render_time=total_time,
        average_render_time=average_render_time(total_time, renders),
    )


def _decode_float(where: str, field: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MeasurementDecodeError(f"{where}: {field} must be a number, got {value!r}") from exc


def _render_count(value: Any) -> int:
    # Whole commits only; a fractional count is rejected rather than truncated.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"render count must be a number, got {value!r}")
    if not float(value).is_integer() or value < 0:
        raise ValueError(f"render count must be a non-negative integer, got {value!r}")
    return int(value)
