#!/usr/bin/env python3
"""
perflock CLI -- Enforce component performance contracts in CI.

Usage:
  perflock check --config FILE --results FILE [--verbose | --quiet] [--plain]
  perflock validate-config --config FILE_OR_DIR

``check`` exits 1 when any contract fails; warnings do not fail the build.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from adapters.measurement_json import MeasurementDecodeError, load_measurements, merge_runs
from adapters.yaml_config import (
    ConfigContext,
    ConfigLoadError,
    YamlConfigSource,
    find_config,
    load_config_file,
)
from domain.models import ResolvedConfig, ValidationResult, ValidationStatus
from kernel.config import (
    CONFIG_FILE_NAMES,
    EXIT_FAILED,
    EXIT_OK,
    EXIT_USAGE,
    LOG_FILE_NAME,
    LOG_FORMAT,
)
from kernel.console import configure, console
from modules.contract_resolver.core import (
    DEFAULT_GLOBAL_CONFIG,
    ConfigValidationError,
    get_contracted_components,
    validate_config,
)
from modules.contract_validator.core import (
    count_by_status,
    get_overall_status,
    validate_aggregate,
    validate_multiple,
)
from modules.run_aggregator.core import InteractionScriptMismatch

logger = logging.getLogger("perflock")

# ---------------------------------------------------------------------------
# CLI commands
# ---------------------------------------------------------------------------


def cmd_check(args: argparse.Namespace) -> int:
    """Validate recorded runs against the configured contracts."""
    context = ConfigContext(YamlConfigSource(Path(args.config)))
    resolved = _load_resolved(context)
    if resolved is None:
        return EXIT_USAGE

    try:
        recorded = load_measurements(Path(args.results))
    except MeasurementDecodeError as exc:
        console.error(str(exc))
        return EXIT_USAGE

    try:
        merged = {name: merge_runs(runs) for name, runs in recorded.items()}
    except (MeasurementDecodeError, InteractionScriptMismatch) as exc:
        console.error(str(exc))
        return EXIT_USAGE

    results = validate_multiple(merged.items(), resolved)
    for name, aggregate in resolved.aggregates.items():
        results.append(validate_aggregate(name, aggregate, merged))

    contracted = set(get_contracted_components(resolved))
    for name in merged:
        if name not in contracted:
            console.info(f"{name}: no contract declared, skipped")
    for name in get_contracted_components(resolved):
        if name not in merged:
            console.warning(f"{name}: contract declared but no runs recorded")

    for result in results:
        _report(result)

    status = get_overall_status(results)
    counts = count_by_status(results)
    console.check_result(
        status.value,
        passed=counts.pass_count,
        warned=counts.warn_count,
        failed=counts.fail_count,
    )
    logger.info(
        "Check finished: %s (%d pass, %d warn, %d fail)",
        status.value,
        counts.pass_count,
        counts.warn_count,
        counts.fail_count,
    )
    return EXIT_FAILED if status is ValidationStatus.FAIL else EXIT_OK


def cmd_validate_config(args: argparse.Namespace) -> int:
    """List every structural problem in a configuration file."""
    path = Path(args.config)
    if path.is_dir():
        found = find_config(path)
        if found is None:
            names = ", ".join(CONFIG_FILE_NAMES)
            console.error(f"No contract configuration found in {path} (looked for {names})")
            return EXIT_USAGE
        path = found
    try:
        loaded = load_config_file(path)
    except ConfigLoadError as exc:
        console.error(str(exc))
        return EXIT_USAGE
    except ConfigValidationError as exc:
        _report_config_errors(exc.errors, str(path))
        return EXIT_FAILED

    errors = validate_config(loaded.config)
    if errors:
        _report_config_errors(errors, str(path))
        return EXIT_FAILED

    console.success(f"{path}: {len(loaded.config.components)} contract(s), no problems found")
    return EXIT_OK


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_resolved(context: ConfigContext) -> ResolvedConfig | None:
    try:
        return context.get()
    except ConfigLoadError as exc:
        console.error(str(exc))
    except ConfigValidationError as exc:
        _report_config_errors(exc.errors, exc.filepath or "")
    return None


def _report_config_errors(errors: list[str], where: str) -> None:
    console.config_errors(where, errors)
    logger.warning("Configuration %s has %d error(s)", where or "<unknown>", len(errors))


def _report(result: ValidationResult) -> None:
    console.verdict(result.component_name, result.status.value)
    if not result.metrics:
        console.detail("no budgets declared")
        return

    rows: list[list[str]] = []
    for name, metric in result.metrics.items():
        rows.append(
            [
                name,
                f"{metric.actual:.2f}",
                f"{metric.budget:g}",
                f"{metric.utilization * 100:.0f}%",
                metric.status.value,
            ]
        )
    console.budget_table(rows)

    for v in result.violations:
        console.violation(v.metric, v.exceeded_by_percent, v.severity.value)


def _setup_logging(log_dir: Path, level: int) -> None:
    """Configure file logging to <log_dir>/perflock.log."""
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_dir / LOG_FILE_NAME),
        format=LOG_FORMAT,
        level=level,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="perflock",
        description="perflock -- performance contracts for UI components",
    )
    sub = parser.add_subparsers(dest="command")

    # perflock check
    check_p = sub.add_parser("check", help="Validate recorded runs against contracts")
    check_p.add_argument("--config", required=True, help="Contract file or directory")
    check_p.add_argument("--results", required=True, help="Recorded runs (JSON)")
    check_p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    check_p.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    check_p.add_argument("--plain", action="store_true", help="Disable coloured output")
    check_p.add_argument(
        "--log-dir",
        default=DEFAULT_GLOBAL_CONFIG.output_dir,
        help=f"Directory for {LOG_FILE_NAME} (default: {DEFAULT_GLOBAL_CONFIG.output_dir})",
    )

    # perflock validate-config
    validate_p = sub.add_parser("validate-config", help="Report every configuration error")
    validate_p.add_argument("--config", required=True, help="Contract file or directory")
    validate_p.add_argument("--plain", action="store_true", help="Disable coloured output")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_USAGE

    # -- Console configuration ------------------------------------------------
    configure(backend="plain" if args.plain else "auto")

    # -- Logging configuration (file-based audit log) -------------------------
    if args.command == "check":
        if args.verbose:
            level = logging.DEBUG
        elif args.quiet:
            level = logging.WARNING
        else:
            level = logging.INFO
        _setup_logging(Path(args.log_dir), level)
        return cmd_check(args)

    return cmd_validate_config(args)


if __name__ == "__main__":
    sys.exit(main())
