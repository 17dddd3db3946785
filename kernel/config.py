"""
kernel/config.py -- File names and CLI settings.

All path constants and system settings live here. The config adapter
and kernel/cli.py import from this file. Contract defaults live with
the contract resolver, not here.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Configuration files
# ---------------------------------------------------------------------------

# Searched in order inside a single directory; JSON is read as YAML.
CONFIG_FILE_NAMES = (
    "perf-contracts.yaml",
    "perf-contracts.yml",
    ".perf-contractsrc.yaml",
    ".perf-contractsrc.yml",
    ".perf-contractsrc.json",
    ".perf-contractsrc",
)

# Log file written under the resolved output directory
LOG_FILE_NAME = "perflock.log"

# ---------------------------------------------------------------------------
# System settings
# ---------------------------------------------------------------------------

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Exit codes for `perflock check` / `perflock validate-config`
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
