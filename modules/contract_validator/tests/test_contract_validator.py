"""Tests for modules/contract_validator/core.py -- budgets, verdicts, violations."""

from __future__ import annotations

from typing import Any

import pytest

from domain.models import (
    INFINITY,
    AggregateContract,
    ComponentContract,
    ContractConfig,
    FixSuggestion,
    MetricValidation,
    Severity,
    SuggestionSeverity,
    ValidationResult,
    ValidationStatus,
)
from modules.contract_resolver.core import resolve_config
from modules.contract_validator.core import (
    add_suggestions,
    combine_statuses,
    count_by_status,
    create_violation,
    format_validation_summary,
    get_budget_utilization,
    get_overall_status,
    is_within_budget,
    passes_contract,
    status_from_utilization,
    validate_against_contract,
    validate_aggregate,
    validate_contract,
    validate_metric,
    validate_multiple,
    violation_severity,
)

PASS = ValidationStatus.PASS
WARN = ValidationStatus.WARN
FAIL = ValidationStatus.FAIL


def _result(status: ValidationStatus, name: str = "C") -> ValidationResult:
    return ValidationResult(status=status, component_name=name)


# ---------------------------------------------------------------------------
# Single-metric helpers
# ---------------------------------------------------------------------------


def test_within_budget_is_inclusive() -> None:
    """Hitting the budget exactly is still within it."""
    assert is_within_budget(16, 16)
    assert not is_within_budget(16.01, 16)


def test_utilization_with_zero_budget_is_zero() -> None:
    """A zero budget never produces NaN or infinity."""
    assert get_budget_utilization(5, 0) == 0.0
    assert get_budget_utilization(0, 0) == 0.0
    assert get_budget_utilization(8, 16) == 0.5


@pytest.mark.parametrize(
    ("utilization", "threshold", "expected"),
    [
        (0.0, 0.8, PASS),
        (0.8, 0.8, PASS),
        (0.81, 0.8, WARN),
        (1.0, 0.8, WARN),
        (1.01, 0.8, FAIL),
        (0.5, 0.0, WARN),
        (1.0, 1.0, PASS),
    ],
)
def test_status_from_utilization(
    utilization: float, threshold: float, expected: ValidationStatus
) -> None:
    """fail above 1, warn above the threshold, otherwise pass."""
    assert status_from_utilization(utilization, threshold) is expected


def test_validate_metric_sets_exceeded_by_only_on_fail() -> None:
    """exceeded_by is populated for failures and None otherwise."""
    assert validate_metric(14, 16, 0.8).exceeded_by is None
    failed = validate_metric(24, 16, 0.8)
    assert failed.status is FAIL
    assert failed.exceeded_by == 0.5
    assert failed.utilization == 1.5


@pytest.mark.parametrize(
    ("exceeded_by", "expected"),
    [
        (0.0, Severity.MINOR),
        (0.2499, Severity.MINOR),
        (0.25, Severity.MODERATE),
        (0.4999, Severity.MODERATE),
        (0.5, Severity.SEVERE),
        (3.0, Severity.SEVERE),
    ],
)
def test_violation_severity_bands(exceeded_by: float, expected: Severity) -> None:
    """Severity bands are half-open: [0, .25), [.25, .5), [.5, inf)."""
    assert violation_severity(exceeded_by) is expected


def test_create_violation_at_band_edges() -> None:
    """Exact 25% and 50% overages land in the upper band."""
    assert create_violation("renderTime", 4, 5).severity is Severity.MODERATE
    assert create_violation("renderTime", 4, 6).severity is Severity.SEVERE


def test_combine_statuses() -> None:
    """The most severe status wins; nothing at all is a pass."""
    assert combine_statuses([]) is PASS
    assert combine_statuses([PASS, WARN, PASS]) is WARN
    assert combine_statuses([WARN, FAIL, PASS]) is FAIL


# ---------------------------------------------------------------------------
# validate_against_contract
# ---------------------------------------------------------------------------


def test_render_time_warning(make_metrics: Any, make_contract: Any) -> None:
    """14ms of a 16ms budget warns; 3 of 5 renders passes."""
    measurement = make_metrics(render_count=3, average_render_time=14.0)
    result = validate_against_contract("Card", measurement, make_contract())

    assert result.status is WARN
    assert result.metrics["renderTime"].utilization == 0.875
    assert result.metrics["renderTime"].status is WARN
    assert result.metrics["renderCount"].utilization == 0.6
    assert result.metrics["renderCount"].status is PASS
    assert result.violations == ()


def test_render_count_violation(make_metrics: Any, make_contract: Any) -> None:
    """8 renders against a budget of 5 is a severe violation."""
    measurement = make_metrics(render_count=8, average_render_time=10.0)
    result = validate_against_contract("Card", measurement, make_contract())

    assert result.status is FAIL
    assert len(result.violations) == 1
    violation = result.violations[0]
    assert violation.metric == "renderCount"
    assert violation.budget == 5
    assert violation.actual == 8
    assert violation.exceeded_by_percent == pytest.approx(0.6)
    assert violation.severity is Severity.SEVERE


def test_per_interaction_budgets(make_measurement: Any, make_contract: Any) -> None:
    """Clicks over budget fail; typing within budget passes."""
    contract = make_contract(
        max_render_time=INFINITY,
        max_render_count=INFINITY,
        interactions={"click": 2, "type": 3},
    )
    measurement = make_measurement(renders_by_type={"click": 4, "type": 1})
    result = validate_against_contract("Card", measurement, contract)

    assert result.status is FAIL
    assert set(result.metrics) == {"rendersPerInteraction.click", "rendersPerInteraction.type"}
    assert result.metrics["rendersPerInteraction.type"].status is PASS
    assert [v.metric for v in result.violations] == ["rendersPerInteraction.click"]
    assert result.violations[0].exceeded_by_percent == 1.0
    assert result.violations[0].severity is Severity.SEVERE


def test_unmeasured_interaction_kind_counts_as_zero(
    make_measurement: Any, make_contract: Any
) -> None:
    """A budgeted kind that was never performed has zero renders."""
    contract = make_contract(interactions={"hover": 1})
    result = validate_against_contract("Card", make_measurement(), contract)
    assert result.metrics["rendersPerInteraction.hover"].actual == 0


def test_infinite_budgets_are_never_checked(make_metrics: Any) -> None:
    """A contract with no budgets has no metrics and passes."""
    contract = resolve_config(ContractConfig(components={"Card": ComponentContract()}))
    measurement = make_metrics(render_count=10_000, average_render_time=1e6)
    result = validate_against_contract("Card", measurement, contract.components["Card"])
    assert result.metrics == {}
    assert result.violations == ()
    assert result.status is PASS


def test_plain_metrics_ignore_interaction_budgets(make_metrics: Any, make_contract: Any) -> None:
    """Interaction and memory budgets need an interaction-tagged measurement."""
    contract = make_contract(interactions={"click": 1}, max_memory_delta=1.0)
    result = validate_against_contract("Card", make_metrics(), contract)
    assert set(result.metrics) == {"renderTime", "renderCount"}


def test_memory_delta_checked_when_measured(make_measurement: Any, make_contract: Any) -> None:
    """A measured memory delta is checked against its budget."""
    contract = make_contract(max_memory_delta=2.0)
    result = validate_against_contract("Card", make_measurement(memory_delta=3.0), contract)
    assert result.metrics["memoryDelta"].status is FAIL
    assert result.violations[0].metric == "memoryDelta"

    unmeasured = validate_against_contract("Card", make_measurement(), contract)
    assert "memoryDelta" not in unmeasured.metrics


def test_interaction_measurement_uses_its_render_metrics(
    make_measurement: Any, make_metrics: Any, make_contract: Any
) -> None:
    """renderTime and renderCount come from the nested metrics."""
    measurement = make_measurement(metrics=make_metrics(render_count=6, average_render_time=4.0))
    result = validate_against_contract("Card", measurement, make_contract())
    assert result.metrics["renderCount"].actual == 6
    assert result.metrics["renderTime"].actual == 4.0


def test_validation_is_deterministic(make_metrics: Any, make_contract: Any) -> None:
    """Same inputs, same result."""
    measurement = make_metrics(render_count=8)
    contract = make_contract()
    assert validate_against_contract("Card", measurement, contract) == validate_against_contract(
        "Card", measurement, contract
    )


def test_suggestions_start_empty(make_metrics: Any, make_contract: Any) -> None:
    """The validator itself never attaches suggestions."""
    assert validate_against_contract("Card", make_metrics(), make_contract()).suggestions == ()


# ---------------------------------------------------------------------------
# Config-level helpers
# ---------------------------------------------------------------------------


def _resolved() -> Any:
    return resolve_config(
        ContractConfig(
            components={
                "Card": ComponentContract(max_render_time=16, max_render_count=5),
                "List": ComponentContract(max_render_count=2),
            }
        )
    )


def test_validate_contract_without_contract_returns_none(make_metrics: Any) -> None:
    """Components without a contract are not validated."""
    assert validate_contract("Unknown", make_metrics(), _resolved()) is None


def test_validate_multiple_skips_uncontracted(make_metrics: Any) -> None:
    """Only contracted components produce results, in input order."""
    results = validate_multiple(
        [
            ("List", make_metrics(component_name="List")),
            ("Unknown", make_metrics(component_name="Unknown")),
            ("Card", make_metrics(component_name="Card")),
        ],
        _resolved(),
    )
    assert [(r.component_name, r.status) for r in results] == [("List", FAIL), ("Card", PASS)]


def test_passes_contract_treats_warn_as_pass(make_metrics: Any, make_contract: Any) -> None:
    """Warnings pass; failures do not."""
    contract = make_contract()
    assert passes_contract(make_metrics(render_count=3, average_render_time=14.0), contract)
    assert not passes_contract(make_metrics(render_count=8), contract)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def test_validate_aggregate_sums_members(make_metrics: Any, make_measurement: Any) -> None:
    """Totals are summed across members of both measurement shapes."""
    aggregate = AggregateContract(
        components=("A", "B"),
        max_total_render_time=40,
        max_total_render_count=10,
    )
    measurements = {
        "A": make_metrics(render_count=3, total_actual_duration=30.0),
        "B": make_measurement(metrics=make_metrics(render_count=2, total_actual_duration=20.0)),
    }
    result = validate_aggregate("Page", aggregate, measurements)

    assert result.component_name == "Page"
    assert result.metrics["totalRenderTime"].actual == 50.0
    assert result.metrics["totalRenderCount"].actual == 5
    assert result.metrics["totalRenderCount"].status is PASS
    assert result.status is FAIL
    assert result.violations[0].severity is Severity.MODERATE


def test_validate_aggregate_skips_missing_members(make_metrics: Any) -> None:
    """A member without a measurement contributes nothing."""
    aggregate = AggregateContract(components=("A", "Missing"), max_total_render_count=10)
    result = validate_aggregate("Page", aggregate, {"A": make_metrics(render_count=3)})
    assert result.metrics["totalRenderCount"].actual == 3
    assert "totalRenderTime" not in result.metrics
    assert result.status is PASS


# ---------------------------------------------------------------------------
# Result-list helpers
# ---------------------------------------------------------------------------


def test_overall_status_and_counts() -> None:
    """Overall is the worst status; counts cover every status."""
    results = [_result(PASS), _result(WARN), _result(PASS), _result(FAIL)]
    assert get_overall_status(results) is FAIL
    counts = count_by_status(results)
    assert (counts.pass_count, counts.warn_count, counts.fail_count) == (2, 1, 1)


def test_overall_status_of_nothing_is_pass() -> None:
    """An empty result list is a vacuous pass."""
    assert get_overall_status([]) is PASS
    assert count_by_status([]).fail_count == 0


def test_add_suggestions_returns_new_result() -> None:
    """Suggestions are appended to a copy; the input is unchanged."""
    original = _result(FAIL)
    suggestion = FixSuggestion(
        severity=SuggestionSeverity.HIGH,
        line=12,
        pattern="inline-object-prop",
        description="Object literal passed as prop",
        fix="Hoist the object or memoize it",
    )
    updated = add_suggestions(original, [suggestion])
    assert updated.suggestions == (suggestion,)
    assert original.suggestions == ()
    assert add_suggestions(updated, [suggestion]).suggestions == (suggestion, suggestion)


def test_format_summary_warning(make_metrics: Any, make_contract: Any) -> None:
    """The summary lists each checked metric with its usage."""
    measurement = make_metrics(render_count=3, average_render_time=14.0)
    result = validate_against_contract("Card", measurement, make_contract())
    assert format_validation_summary(result).splitlines() == [
        "⚠ Card: WARN",
        "  Render Time: 14.00ms / 16ms (88%)",
        "  Render Count: 3 / 5 (60%)",
    ]


def test_format_summary_lists_violations(make_measurement: Any, make_contract: Any) -> None:
    """Violations are listed after the metrics with their severity."""
    contract = make_contract(
        max_render_time=INFINITY, max_render_count=INFINITY, interactions={"click": 2}
    )
    result = validate_against_contract(
        "Card", make_measurement(renders_by_type={"click": 4}), contract
    )
    assert format_validation_summary(result).splitlines() == [
        "✗ Card: FAIL",
        "  Renders/click: 4 / 2 (200%)",
        "  Violations:",
        "    - rendersPerInteraction.click: exceeded by 100% (severe)",
    ]


def test_format_summary_without_metrics() -> None:
    """A result with nothing checked is a single line."""
    result = ValidationResult(
        status=PASS,
        component_name="Card",
        metrics={},
    )
    assert format_validation_summary(result) == "✓ Card: PASS"


def test_metric_validation_is_frozen() -> None:
    """Validation records are immutable."""
    metric = MetricValidation(actual=1, budget=2, utilization=0.5, status=PASS)
    with pytest.raises(AttributeError):
        metric.actual = 3  # type: ignore[misc]
