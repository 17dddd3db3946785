"""Contract validator -- compare measurements against resolved budgets.

Pure functions: a ``ValidationResult`` depends only on the measurement
and the contract; nothing reads the clock or hidden state.

Per metric:
- budgets of ``INFINITY`` are skipped entirely;
- ``utilization = actual / budget`` (0 when the budget is 0);
- ``fail`` above 1, ``warn`` above the warning threshold, else ``pass``;
- only ``fail`` metrics produce a ``Violation``.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Iterable, Mapping, Sequence

from domain.models import (
    AggregateContract,
    FixSuggestion,
    Measurement,
    MeasurementKind,
    MetricValidation,
    ResolvedComponentContract,
    ResolvedConfig,
    Severity,
    StatusCounts,
    ValidationResult,
    ValidationStatus,
    Violation,
)

logger = logging.getLogger("perflock.validator")

# Lower bounds of the half-open severity bands, as a fraction of budget.
MODERATE_OVERAGE = 0.25
SEVERE_OVERAGE = 0.5

AGGREGATE_WARNING_THRESHOLD = 0.8

_STATUS_RANK = {
    ValidationStatus.PASS: 0,
    ValidationStatus.WARN: 1,
    ValidationStatus.FAIL: 2,
}

_STATUS_MARK = {
    ValidationStatus.PASS: "✓",
    ValidationStatus.WARN: "⚠",
    ValidationStatus.FAIL: "✗",
}


# ---------------------------------------------------------------------------
# Single metric (pure, no I/O)
# ---------------------------------------------------------------------------


def is_within_budget(actual: float, budget: float) -> bool:
    """Return True when ``actual`` does not exceed ``budget``."""
    return actual <= budget


def get_budget_utilization(actual: float, budget: float) -> float:
    """Fraction of budget consumed; 0 for a non-positive budget, never NaN."""
    return actual / budget if budget > 0 else 0.0


def status_from_utilization(utilization: float, warning_threshold: float) -> ValidationStatus:
    """Map a utilization to its tri-state verdict."""
    if utilization > 1:
        return ValidationStatus.FAIL
    if utilization > warning_threshold:
        return ValidationStatus.WARN
    return ValidationStatus.PASS


def validate_metric(actual: float, budget: float, warning_threshold: float) -> MetricValidation:
    """Check one metric against a finite budget."""
    utilization = get_budget_utilization(actual, budget)
    status = status_from_utilization(utilization, warning_threshold)
    exceeded_by = (actual - budget) / budget if status is ValidationStatus.FAIL else None
    return MetricValidation(
        actual=actual,
        budget=budget,
        utilization=utilization,
        status=status,
        exceeded_by=exceeded_by,
    )


def violation_severity(exceeded_by_percent: float) -> Severity:
    """Classify an overage: [0, .25) minor, [.25, .5) moderate, [.5, inf) severe."""
    if exceeded_by_percent < MODERATE_OVERAGE:
        return Severity.MINOR
    if exceeded_by_percent < SEVERE_OVERAGE:
        return Severity.MODERATE
    return Severity.SEVERE


def create_violation(metric: str, budget: float, actual: float) -> Violation:
    """Build the violation record for a failing metric."""
    exceeded_by_percent = (actual - budget) / budget if budget > 0 else 0.0
    return Violation(
        metric=metric,
        budget=budget,
        actual=actual,
        exceeded_by_percent=exceeded_by_percent,
        severity=violation_severity(exceeded_by_percent),
    )


def combine_statuses(statuses: Iterable[ValidationStatus]) -> ValidationStatus:
    """Most severe status wins; an empty input is a vacuous pass."""
    worst = ValidationStatus.PASS
    for status in statuses:
        if _STATUS_RANK[status] > _STATUS_RANK[worst]:
            worst = status
    return worst


# ---------------------------------------------------------------------------
# Component validation
# ---------------------------------------------------------------------------


class _Checks:
    """Collects metric validations and violations in check order."""

    def __init__(self, warning_threshold: float) -> None:
        self.warning_threshold = warning_threshold
        self.metrics: dict[str, MetricValidation] = {}
        self.violations: list[Violation] = []

    def check(self, name: str, actual: float, budget: float) -> None:
        if math.isinf(budget):
            return
        validation = validate_metric(actual, budget, self.warning_threshold)
        self.metrics[name] = validation
        if validation.status is ValidationStatus.FAIL:
            self.violations.append(create_violation(name, budget, actual))

    def result(self, component_name: str) -> ValidationResult:
        status = combine_statuses(m.status for m in self.metrics.values())
        return ValidationResult(
            status=status,
            component_name=component_name,
            metrics=dict(self.metrics),
            violations=tuple(self.violations),
            suggestions=(),
        )


def validate_against_contract(
    component_name: str,
    measurement: Measurement,
    contract: ResolvedComponentContract,
) -> ValidationResult:
    """Validate one measurement against one resolved contract.

    Per-interaction budgets and the memory budget are only checked for
    interaction-tagged measurements; plain render metrics carry neither.

    Args:
        component_name: Name reported in the result.
        measurement: Single-run or aggregated measurement.
        contract: Fully resolved component contract.

    Returns:
        The verdict with per-metric details and violations. Suggestions are
        always empty here; see ``add_suggestions``.
    """
    if measurement.kind is MeasurementKind.INTERACTIONS:
        render_metrics = measurement.metrics  # type: ignore[union-attr]
    else:
        render_metrics = measurement

    checks = _Checks(contract.warning_threshold)
    checks.check("renderTime", render_metrics.average_render_time, contract.max_render_time)  # type: ignore[union-attr]
    checks.check("renderCount", render_metrics.render_count, contract.max_render_count)  # type: ignore[union-attr]

    if measurement.kind is MeasurementKind.INTERACTIONS:
        memory_delta = measurement.memory_delta  # type: ignore[union-attr]
        if memory_delta is not None:
            checks.check("memoryDelta", memory_delta, contract.max_memory_delta)

        renders_by_type = measurement.renders_by_type  # type: ignore[union-attr]
        for kind, budget in contract.interactions.items():
            checks.check(
                f"rendersPerInteraction.{kind.value}",
                renders_by_type.get(kind, 0),
                budget.max_renders,
            )

    result = checks.result(component_name)
    _log_result(result)
    return result


def validate_contract(
    component_name: str,
    measurement: Measurement,
    resolved: ResolvedConfig,
) -> ValidationResult | None:
    """Validate against the component's configured contract, if any."""
    contract = resolved.components.get(component_name)
    if contract is None:
        logger.debug("No contract declared for %s", component_name)
        return None
    return validate_against_contract(component_name, measurement, contract)


def validate_multiple(
    measurements: Iterable[tuple[str, Measurement]],
    resolved: ResolvedConfig,
) -> list[ValidationResult]:
    """Validate many components, skipping those without a contract."""
    results: list[ValidationResult] = []
    for component_name, measurement in measurements:
        result = validate_contract(component_name, measurement, resolved)
        if result is not None:
            results.append(result)
    return results


def passes_contract(measurement: Measurement, contract: ResolvedComponentContract) -> bool:
    """Return True unless the verdict is ``fail`` (warnings pass)."""
    result = validate_against_contract(measurement.component_name, measurement, contract)
    return result.status is not ValidationStatus.FAIL


def validate_aggregate(
    aggregate_name: str,
    aggregate: AggregateContract,
    measurements: Mapping[str, Measurement],
    warning_threshold: float = AGGREGATE_WARNING_THRESHOLD,
) -> ValidationResult:
    """Validate the summed totals of a component group.

    ``totalRenderTime`` is the sum of each member's total actual duration
    and ``totalRenderCount`` the sum of render counts. Members without a
    measurement are skipped.
    """
    total_time = 0.0
    total_count = 0
    for member in aggregate.components:
        measurement = measurements.get(member)
        if measurement is None:
            logger.warning("Aggregate %s: no measurement for %s", aggregate_name, member)
            continue
        if measurement.kind is MeasurementKind.INTERACTIONS:
            metrics = measurement.metrics  # type: ignore[union-attr]
        else:
            metrics = measurement
        total_time += metrics.total_actual_duration  # type: ignore[union-attr]
        total_count += metrics.render_count  # type: ignore[union-attr]

    checks = _Checks(warning_threshold)
    checks.check("totalRenderTime", total_time, aggregate.max_total_render_time)
    checks.check("totalRenderCount", total_count, aggregate.max_total_render_count)
    result = checks.result(aggregate_name)
    _log_result(result)
    return result


def _log_result(result: ValidationResult) -> None:
    if result.status is ValidationStatus.FAIL:
        logger.warning(
            "%s failed its contract with %d violation(s)",
            result.component_name,
            len(result.violations),
        )
    else:
        logger.info("%s: %s", result.component_name, result.status.value)


# ---------------------------------------------------------------------------
# Result-list helpers
# ---------------------------------------------------------------------------


def get_overall_status(results: Iterable[ValidationResult]) -> ValidationStatus:
    """Most severe status across results (``pass`` for an empty list)."""
    return combine_statuses(r.status for r in results)


def count_by_status(results: Iterable[ValidationResult]) -> StatusCounts:
    """Count results per status."""
    counts = {status: 0 for status in ValidationStatus}
    for result in results:
        counts[result.status] += 1
    return StatusCounts(
        pass_count=counts[ValidationStatus.PASS],
        warn_count=counts[ValidationStatus.WARN],
        fail_count=counts[ValidationStatus.FAIL],
    )


def add_suggestions(
    result: ValidationResult, suggestions: Sequence[FixSuggestion]
) -> ValidationResult:
    """Return a copy of ``result`` with ``suggestions`` appended."""
    return dataclasses.replace(result, suggestions=(*result.suggestions, *suggestions))


def format_validation_summary(result: ValidationResult) -> str:
    """Render a validation result as indented plain text."""
    lines = [
        f"{_STATUS_MARK[result.status]} {result.component_name}: "
        f"{result.status.value.upper()}"
    ]

    for name, metric in result.metrics.items():
        lines.append(f"  {_metric_label(name)}: {_format_usage(name, metric)}")

    if result.violations:
        lines.append("  Violations:")
        for v in result.violations:
            lines.append(
                f"    - {v.metric}: exceeded by {v.exceeded_by_percent * 100:.0f}% "
                f"({v.severity.value})"
            )

    return "\n".join(lines)


def _metric_label(name: str) -> str:
    labels = {
        "renderTime": "Render Time",
        "renderCount": "Render Count",
        "memoryDelta": "Memory Delta",
        "totalRenderTime": "Total Render Time",
        "totalRenderCount": "Total Render Count",
    }
    if name.startswith("rendersPerInteraction."):
        return f"Renders/{name.split('.', 1)[1]}"
    return labels.get(name, name)


def _format_usage(name: str, metric: MetricValidation) -> str:
    percent = f"({metric.utilization * 100:.0f}%)"
    if name in ("renderTime", "totalRenderTime"):
        return f"{metric.actual:.2f}ms / {metric.budget:g}ms {percent}"
    if name == "memoryDelta":
        return f"{metric.actual:.2f}MB / {metric.budget:g}MB {percent}"
    return f"{metric.actual:g} / {metric.budget:g} {percent}"
