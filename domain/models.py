"""Core data types for perflock.

All types are frozen dataclasses with complete type annotations.
This module has ZERO imports from outside the Python standard library.

Budgets that the user did not declare are represented by ``INFINITY``,
meaning "no check", never by zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

INFINITY = math.inf


class RenderPhase(Enum):
    """Commit phase reported by the instrumentation collaborator."""

    MOUNT = "mount"
    UPDATE = "update"
    NESTED_UPDATE = "nested-update"


class InteractionKind(Enum):
    """Simulated user action that can be scripted against a component."""

    CLICK = "click"
    TYPE = "type"
    FOCUS = "focus"
    BLUR = "blur"
    SCROLL = "scroll"
    HOVER = "hover"


class MeasurementKind(Enum):
    """Discriminant for the two measurement shapes the validator accepts."""

    RENDER_METRICS = "render_metrics"
    INTERACTIONS = "interactions"


class ValidationStatus(Enum):
    """Tri-state verdict, ordered ``PASS < WARN < FAIL`` by severity."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class Severity(Enum):
    """How far a failing metric overshot its budget."""

    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"


class SuggestionSeverity(Enum):
    """Priority of a fix suggestion supplied by the diagnostics collaborator."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Measurement types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RenderEvent:
    """One commit observed by the instrumentation collaborator (milliseconds)."""

    phase: RenderPhase
    actual_duration: float
    base_duration: float
    start_time: float
    commit_time: float


@dataclass(frozen=True)
class RenderMetrics:
    """Per-component aggregate over a set of render events."""

    component_name: str
    render_count: int = 0
    total_actual_duration: float = 0.0
    total_base_duration: float = 0.0
    average_render_time: float = 0.0
    renders: tuple[RenderEvent, ...] = ()
    kind: MeasurementKind = field(default=MeasurementKind.RENDER_METRICS, init=False)


@dataclass(frozen=True)
class InteractionSpec:
    """Declares what to perform; not a measurement."""

    kind: InteractionKind
    target: str
    text: str | None = None


@dataclass(frozen=True)
class InteractionResult:
    """Renders and render time attributed to one interaction within one run."""

    interaction: InteractionSpec
    renders_triggered: int
    total_render_time: float
    average_render_time: float


@dataclass(frozen=True)
class MeasurementResult:
    """Single-run (or aggregated) measurement of a scripted component."""

    component_name: str
    metrics: RenderMetrics
    interaction_results: tuple[InteractionResult, ...] = ()
    total_renders: int = 0
    renders_per_interaction: float = 0.0
    renders_by_type: dict[InteractionKind, int] = field(
        default_factory=lambda: dict[InteractionKind, int]()
    )
    timestamp: float = 0.0
    memory_delta: float | None = None
    run_number: int | None = None
    kind: MeasurementKind = field(default=MeasurementKind.INTERACTIONS, init=False)


Measurement = RenderMetrics | MeasurementResult


@dataclass(frozen=True)
class MeasurementStats:
    """Descriptive statistics of one scalar across runs."""

    mean: float
    median: float
    std_dev: float
    p95: float
    min: float
    max: float
    count: int


@dataclass(frozen=True)
class RunStatistics:
    """Spread of per-run render time and render count for one component."""

    component_name: str
    render_time: MeasurementStats
    render_count: MeasurementStats
    runs: int


# ---------------------------------------------------------------------------
# Contract types (sparse, as declared by the user)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InteractionBudget:
    """Render budget for one interaction kind."""

    max_renders: float


@dataclass(frozen=True)
class ComponentContract:
    """User-declared budget for one component. ``None`` means unset."""

    max_render_time: float | None = None
    max_render_count: float | None = None
    max_memory_delta: float | None = None
    warning_threshold: float | None = None
    interactions: dict[str, InteractionBudget] | None = None
    meta: dict[str, object] | None = None


@dataclass(frozen=True)
class AggregateContract:
    """Budget shared by a group of components."""

    components: tuple[str, ...]
    max_total_render_time: float = INFINITY
    max_total_render_count: float = INFINITY


@dataclass(frozen=True)
class BundleStatsConfig:
    """Bundle statistics settings."""

    enabled: bool = False
    stats_file: str | None = None


@dataclass(frozen=True)
class DiagnosticsConfig:
    """Fix-suggestion diagnostics settings."""

    enabled: bool = True
    suggest_fixes: bool = True
    source_dir: str = "src"


@dataclass(frozen=True)
class GlobalConfig:
    """User-declared global settings. ``None`` means unset."""

    runs: int | None = None
    warmup_runs: int | None = None
    history_window: int | None = None
    regression_threshold: float | None = None
    output_dir: str | None = None
    artifact_name: str | None = None
    bundle_stats: BundleStatsConfig | None = None
    diagnostics: DiagnosticsConfig | None = None


@dataclass(frozen=True)
class ContractConfig:
    """Complete, sparse contract configuration."""

    global_config: GlobalConfig | None = None
    components: dict[str, ComponentContract] = field(
        default_factory=lambda: dict[str, ComponentContract]()
    )
    aggregates: dict[str, AggregateContract] = field(
        default_factory=lambda: dict[str, AggregateContract]()
    )


# ---------------------------------------------------------------------------
# Resolved contract types (every field populated)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedComponentContract:
    """Fully defaulted component budget. ``INFINITY`` disables a check."""

    max_render_time: float = INFINITY
    max_render_count: float = INFINITY
    max_memory_delta: float = INFINITY
    warning_threshold: float = 0.8
    interactions: dict[InteractionKind, InteractionBudget] = field(
        default_factory=lambda: dict[InteractionKind, InteractionBudget]()
    )
    meta: dict[str, object] = field(default_factory=lambda: dict[str, object]())


@dataclass(frozen=True)
class ResolvedGlobalConfig:
    """Fully defaulted global settings."""

    runs: int = 10
    warmup_runs: int = 1
    history_window: int = 20
    regression_threshold: float = 0.15
    output_dir: str = ".perf-contracts"
    artifact_name: str = "perf-results"
    bundle_stats: BundleStatsConfig = field(default_factory=BundleStatsConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


@dataclass(frozen=True)
class ResolvedConfig:
    """Configuration with all defaults applied, in declaration order."""

    global_config: ResolvedGlobalConfig
    components: dict[str, ResolvedComponentContract]
    aggregates: dict[str, AggregateContract]


@dataclass(frozen=True)
class LoadedConfig:
    """A configuration read by the configuration collaborator."""

    config: ContractConfig
    filepath: str
    is_empty: bool = False


# ---------------------------------------------------------------------------
# Validation types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricValidation:
    """Result of checking one metric against its budget."""

    actual: float
    budget: float
    utilization: float
    status: ValidationStatus
    exceeded_by: float | None = None


@dataclass(frozen=True)
class Violation:
    """A failing metric with its overage severity."""

    metric: str
    budget: float
    actual: float
    exceeded_by_percent: float
    severity: Severity


@dataclass(frozen=True)
class FixSuggestion:
    """A code fix proposed by the diagnostics collaborator."""

    severity: SuggestionSeverity
    line: int
    pattern: str
    description: str
    fix: str
    column: int | None = None
    code_snippet: str | None = None
    file_path: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Verdict for one component (or aggregate) against its contract."""

    status: ValidationStatus
    component_name: str
    metrics: dict[str, MetricValidation] = field(
        default_factory=lambda: dict[str, MetricValidation]()
    )
    violations: tuple[Violation, ...] = ()
    suggestions: tuple[FixSuggestion, ...] = ()


@dataclass(frozen=True)
class StatusCounts:
    """Number of results per status."""

    pass_count: int = 0
    warn_count: int = 0
    fail_count: int = 0
