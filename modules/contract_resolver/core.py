"""Contract resolver -- parsing, defaults and structural validation.

Turns a sparse, user-declared ``ContractConfig`` into a ``ResolvedConfig``
where every budget is populated (unset budgets become ``INFINITY``, meaning
"no check") and validates the declaration exhaustively so a caller sees every
problem in one pass.

Resolution is pure and idempotent; nothing here performs I/O.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from domain.models import (
    INFINITY,
    AggregateContract,
    BundleStatsConfig,
    ComponentContract,
    ContractConfig,
    DiagnosticsConfig,
    GlobalConfig,
    InteractionBudget,
    InteractionKind,
    ResolvedComponentContract,
    ResolvedConfig,
    ResolvedGlobalConfig,
)

logger = logging.getLogger("perflock.resolver")

DEFAULT_GLOBAL_CONFIG = ResolvedGlobalConfig()
DEFAULT_WARNING_THRESHOLD = 0.8

_INTERACTION_KINDS = {kind.value: kind for kind in InteractionKind}


class ConfigValidationError(Exception):
    """Raised when a configuration breaks one or more structural rules.

    Carries every collected message, never just the first one.
    """

    def __init__(self, errors: list[str], filepath: str | None = None) -> None:
        self.errors = list(errors)
        self.filepath = filepath
        lines = "\n".join(f"  - {e}" for e in self.errors)
        where = f" ({filepath})" if filepath else ""
        super().__init__(f"Invalid configuration{where}:\n{lines}")


# ---------------------------------------------------------------------------
# Parsing (camelCase mapping → ContractConfig)
# ---------------------------------------------------------------------------


def parse_contract_config(data: Mapping[str, Any] | None) -> ContractConfig:
    """Build a ``ContractConfig`` from the mapping a config file yields.

    Keys follow the published camelCase file format (``maxRenderTime``,
    ``warningThreshold``, ...). Scalar values are carried over as-is, even
    when ill-typed, so that ``validate_config`` can report them.

    Args:
        data: Parsed configuration mapping, or None for an empty file.

    Returns:
        The sparse contract configuration.

    Raises:
        ConfigValidationError: If a section has the wrong container shape.
            The error lists the shape problems followed by every rule
            violation in the entries that could still be read.
    """
    config, errors = read_contract_config(data)
    if errors:
        errors.extend(validate_config(config))
        raise ConfigValidationError(errors)
    return config


def read_contract_config(data: Mapping[str, Any] | None) -> tuple[ContractConfig, list[str]]:
    """Best-effort parse that never raises.

    Entries with the wrong container shape are left out of the returned
    configuration and described in the returned messages instead.
    """
    if data is None:
        return ContractConfig(), []

    errors: list[str] = []
    if not isinstance(data, Mapping):
        return ContractConfig(), ["configuration must be a mapping"]

    global_config = _parse_global(data.get("global"), errors)

    components: dict[str, ComponentContract] = {}
    for name, raw in _section(data, "components", errors).items():
        if not isinstance(raw, Mapping):
            errors.append(f"{name} must be a mapping")
            continue
        components[str(name)] = _parse_component(str(name), raw, errors)

    aggregates: dict[str, AggregateContract] = {}
    for name, raw in _section(data, "aggregates", errors).items():
        if not isinstance(raw, Mapping):
            errors.append(f"{name} must be a mapping")
            continue
        aggregates[str(name)] = _parse_aggregate(raw)

    config = ContractConfig(
        global_config=global_config,
        components=components,
        aggregates=aggregates,
    )
    return config, errors


def _section(data: Mapping[str, Any], key: str, errors: list[str]) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        errors.append(f"{key} must be a mapping")
        return {}
    return value


def _parse_global(raw: Any, errors: list[str]) -> GlobalConfig | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        errors.append("global must be a mapping")
        return None

    bundle_stats: BundleStatsConfig | None = None
    bundle_raw = raw.get("bundleStats")
    if isinstance(bundle_raw, Mapping):
        bundle_stats = BundleStatsConfig(
            enabled=bool(bundle_raw.get("enabled", False)),
            stats_file=bundle_raw.get("statsFile"),
        )
    elif bundle_raw is not None:
        errors.append("global.bundleStats must be a mapping")

    diagnostics: DiagnosticsConfig | None = None
    diag_raw = raw.get("diagnostics")
    if diag_raw is not None and not isinstance(diag_raw, Mapping):
        errors.append("global.diagnostics must be a mapping")
    elif diag_raw is not None:
        diagnostics = DiagnosticsConfig(
            enabled=bool(diag_raw.get("enabled", True)),
            suggest_fixes=bool(diag_raw.get("suggestFixes", True)),
            source_dir=str(diag_raw.get("sourceDir", "src")),
        )

    return GlobalConfig(
        runs=raw.get("runs"),
        warmup_runs=raw.get("warmupRuns"),
        history_window=raw.get("historyWindow"),
        regression_threshold=raw.get("regressionThreshold"),
        output_dir=raw.get("outputDir"),
        artifact_name=raw.get("artifactName"),
        bundle_stats=bundle_stats,
        diagnostics=diagnostics,
    )


def _parse_component(name: str, raw: Mapping[str, Any], errors: list[str]) -> ComponentContract:
    interactions: dict[str, InteractionBudget] | None = None
    interactions_raw = raw.get("interactions")
    if interactions_raw is not None:
        if not isinstance(interactions_raw, Mapping):
            errors.append(f"{name}.interactions must be a mapping")
        else:
            interactions = {}
            for kind, budget in interactions_raw.items():
                if not isinstance(budget, Mapping):
                    errors.append(f"{name}.interactions.{kind} must be a mapping")
                    continue
                interactions[str(kind)] = InteractionBudget(
                    max_renders=budget.get("maxRenders", INFINITY),
                )

    meta = raw.get("meta")
    if meta is not None and not isinstance(meta, Mapping):
        errors.append(f"{name}.meta must be a mapping")
    return ComponentContract(
        max_render_time=raw.get("maxRenderTime"),
        max_render_count=raw.get("maxRenderCount"),
        max_memory_delta=raw.get("maxMemoryDelta"),
        warning_threshold=raw.get("warningThreshold"),
        interactions=interactions,
        meta=dict(meta) if isinstance(meta, Mapping) else None,
    )


def _parse_aggregate(raw: Mapping[str, Any]) -> AggregateContract:
    members = raw.get("components")
    components = tuple(str(m) for m in members) if isinstance(members, list) else ()
    return AggregateContract(
        components=components,
        max_total_render_time=raw.get("maxTotalRenderTime", INFINITY),
        max_total_render_count=raw.get("maxTotalRenderCount", INFINITY),
    )


# ---------------------------------------------------------------------------
# Resolution (pure)
# ---------------------------------------------------------------------------


def resolve_config(config: ContractConfig) -> ResolvedConfig:
    """Resolve a sparse configuration with all defaults applied.

    Does not validate; call ``validate_config`` first (or use
    ``resolve_valid_config``). Interaction budgets whose kind is not a
    known ``InteractionKind`` are dropped.

    Args:
        config: Sparse configuration.

    Returns:
        A new ``ResolvedConfig``; the input is never mutated.
    """
    components = {
        name: _resolve_component(name, contract)
        for name, contract in config.components.items()
    }
    aggregates = {
        name: AggregateContract(
            components=tuple(aggregate.components),
            max_total_render_time=aggregate.max_total_render_time,
            max_total_render_count=aggregate.max_total_render_count,
        )
        for name, aggregate in config.aggregates.items()
    }
    return ResolvedConfig(
        global_config=_resolve_global(config.global_config),
        components=components,
        aggregates=aggregates,
    )


def resolve_valid_config(config: ContractConfig, filepath: str | None = None) -> ResolvedConfig:
    """Validate then resolve, raising with every error when invalid.

    Raises:
        ConfigValidationError: If ``validate_config`` reports any error.
    """
    errors = validate_config(config)
    if errors:
        logger.warning("Configuration has %d error(s)", len(errors))
        raise ConfigValidationError(errors, filepath)
    return resolve_config(config)


def _resolve_component(name: str, contract: ComponentContract) -> ResolvedComponentContract:
    interactions: dict[InteractionKind, InteractionBudget] = {}
    for kind_name, budget in (contract.interactions or {}).items():
        kind = _INTERACTION_KINDS.get(kind_name)
        if kind is None:
            logger.debug("Dropping unknown interaction kind %r for %s", kind_name, name)
            continue
        interactions[kind] = InteractionBudget(max_renders=budget.max_renders)

    return ResolvedComponentContract(
        max_render_time=_or_infinity(contract.max_render_time),
        max_render_count=_or_infinity(contract.max_render_count),
        max_memory_delta=_or_infinity(contract.max_memory_delta),
        warning_threshold=(
            contract.warning_threshold
            if contract.warning_threshold is not None
            else DEFAULT_WARNING_THRESHOLD
        ),
        interactions=interactions,
        meta=dict(contract.meta or {}),
    )


def _resolve_global(config: GlobalConfig | None) -> ResolvedGlobalConfig:
    if config is None:
        return ResolvedGlobalConfig()
    defaults = DEFAULT_GLOBAL_CONFIG
    return ResolvedGlobalConfig(
        runs=_or_default(config.runs, defaults.runs),
        warmup_runs=_or_default(config.warmup_runs, defaults.warmup_runs),
        history_window=_or_default(config.history_window, defaults.history_window),
        regression_threshold=_or_default(
            config.regression_threshold, defaults.regression_threshold
        ),
        output_dir=_or_default(config.output_dir, defaults.output_dir),
        artifact_name=_or_default(config.artifact_name, defaults.artifact_name),
        bundle_stats=config.bundle_stats or defaults.bundle_stats,
        diagnostics=config.diagnostics or defaults.diagnostics,
    )


def _or_infinity(value: float | None) -> float:
    return INFINITY if value is None else value


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


# ---------------------------------------------------------------------------
# Structural validation (exhaustive)
# ---------------------------------------------------------------------------


def validate_config(config: ContractConfig) -> list[str]:
    """Check every structural rule and collect every violation.

    Args:
        config: Sparse configuration to check.

    Returns:
        Human-readable error messages; empty when the configuration is valid.
    """
    errors: list[str] = []
    _check_global(config.global_config, errors)
    for name, contract in config.components.items():
        _check_component(name, contract, errors)
    for name, aggregate in config.aggregates.items():
        _check_aggregate(name, aggregate, errors)
    return errors


def _check_global(config: GlobalConfig | None, errors: list[str]) -> None:
    if config is None:
        return
    if config.runs is not None and not _is_positive_int(config.runs):
        errors.append("global.runs must be a positive integer")
    if config.warmup_runs is not None and not (
        _is_integral(config.warmup_runs) and config.warmup_runs >= 0
    ):
        errors.append("global.warmupRuns must be a non-negative integer")
    if config.history_window is not None and not _is_positive_int(config.history_window):
        errors.append("global.historyWindow must be a positive integer")
    if config.regression_threshold is not None and not _is_fraction(
        config.regression_threshold
    ):
        errors.append("global.regressionThreshold must be between 0 and 1")


def _check_component(name: str, contract: ComponentContract, errors: list[str]) -> None:
    if contract.max_render_time is not None and not _is_positive(contract.max_render_time):
        errors.append(f"{name}.maxRenderTime must be positive")
    if contract.max_render_count is not None and not _is_positive_int(
        contract.max_render_count
    ):
        errors.append(f"{name}.maxRenderCount must be a positive integer")
    if contract.max_memory_delta is not None and not _is_positive(contract.max_memory_delta):
        errors.append(f"{name}.maxMemoryDelta must be positive")
    if contract.warning_threshold is not None and not _is_fraction(
        contract.warning_threshold
    ):
        errors.append(f"{name}.warningThreshold must be between 0 and 1")

    for kind, budget in (contract.interactions or {}).items():
        if kind not in _INTERACTION_KINDS:
            allowed = ", ".join(_INTERACTION_KINDS)
            errors.append(f"{name}.interactions.{kind} is not a known interaction ({allowed})")
        if not _is_positive(budget.max_renders):
            errors.append(f"{name}.interactions.{kind}.maxRenders must be positive")


def _check_aggregate(name: str, aggregate: AggregateContract, errors: list[str]) -> None:
    if not aggregate.components:
        errors.append(f"{name}.components must be a non-empty list")
    if not _is_positive(aggregate.max_total_render_time):
        errors.append(f"{name}.maxTotalRenderTime must be positive")
    if not _is_positive(aggregate.max_total_render_count):
        errors.append(f"{name}.maxTotalRenderCount must be positive")


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not (
        isinstance(value, float) and math.isnan(value)
    )


def _is_positive(value: object) -> bool:
    return _is_number(value) and value > 0  # type: ignore[operator]


def _is_integral(value: object) -> bool:
    return _is_number(value) and math.isfinite(value) and float(value).is_integer()  # type: ignore[arg-type]


def _is_positive_int(value: object) -> bool:
    return _is_integral(value) and value >= 1  # type: ignore[operator]


def _is_fraction(value: object) -> bool:
    return _is_number(value) and 0 <= value <= 1  # type: ignore[operator]


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


def get_component_contract(
    resolved: ResolvedConfig, component_name: str
) -> ResolvedComponentContract | None:
    """Return the resolved contract for a component, or None if undeclared."""
    return resolved.components.get(component_name)


def has_contract(resolved: ResolvedConfig, component_name: str) -> bool:
    """Return True if a contract is declared for the component."""
    return component_name in resolved.components


def get_contracted_components(resolved: ResolvedConfig) -> list[str]:
    """Return every contracted component name, in declaration order."""
    return list(resolved.components)
