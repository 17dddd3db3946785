"""YAML configuration adapter implementing ConfigSourcePort.

Reads a contract configuration file with PyYAML (JSON files parse as
YAML too) and turns it into a ``ContractConfig``. ``ConfigContext`` is the
caller-owned cache of the resolved configuration: there is no process-wide
singleton, every entry point receives the context explicitly.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from domain.models import ContractConfig, LoadedConfig, ResolvedConfig
from domain.ports import ConfigSourcePort
from kernel.config import CONFIG_FILE_NAMES
from modules.contract_resolver.core import (
    ConfigValidationError,
    parse_contract_config,
    resolve_config,
    resolve_valid_config,
)

logger = logging.getLogger("perflock.config")


class ConfigLoadError(Exception):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(self, message: str, filepath: str | None = None) -> None:
        self.filepath = filepath
        super().__init__(message)


def load_config_file(path: Path) -> LoadedConfig:
    """Load a configuration from a specific file.

    Args:
        path: YAML or JSON file.

    Returns:
        The parsed configuration; ``is_empty`` is True for an empty file.

    Raises:
        ConfigLoadError: If the file is missing or is not valid YAML.
        ConfigValidationError: If a section has the wrong shape; the error
            also lists every rule violation in the readable entries.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigLoadError(f"Config file not found: {path}", str(path)) from exc
    except OSError as exc:
        raise ConfigLoadError(f"Failed to read config file: {path}", str(path)) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Failed to parse config file: {path}", str(path)) from exc

    try:
        config = parse_contract_config(data)
    except ConfigValidationError as exc:
        raise ConfigValidationError(exc.errors, str(path)) from exc

    logger.info("Loaded contracts from %s", path)
    return LoadedConfig(config=config, filepath=str(path), is_empty=data is None)


def find_config(directory: Path) -> Path | None:
    """Return the first known config file name present in ``directory``."""
    for name in CONFIG_FILE_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


class YamlConfigSource:
    """Concrete ConfigSourcePort reading one file or searching one directory.

    Parameters
    ----------
    path:
        A config file, or a directory searched for ``CONFIG_FILE_NAMES``.

    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> LoadedConfig | None:
        """Load the configuration, or None when no file exists."""
        target = find_config(self._path) if self._path.is_dir() else self._path
        if target is None:
            logger.info("No contract configuration found in %s", self._path)
            return None
        loaded = load_config_file(target)
        return None if loaded.is_empty else loaded


class ConfigContext:
    """Explicit holder of the resolved configuration.

    ``get`` loads and caches on first use; ``reload`` forces a
    fresh load; ``invalidate`` drops the cache so the next ``get`` reloads.
    A missing configuration resolves to all defaults.
    """

    def __init__(self, source: ConfigSourcePort) -> None:
        self._source = source
        self._resolved: ResolvedConfig | None = None
        self._path: str | None = None

    @property
    def path(self) -> str | None:
        """File the cached configuration came from, if any."""
        return self._path

    def get(self) -> ResolvedConfig:
        """Return the cached configuration, loading it on first use.

        Raises:
            ConfigValidationError: With every structural error at once.
            ConfigLoadError: If the file cannot be read or parsed.
        """
        if self._resolved is None:
            self._resolved = self._load()
        return self._resolved

    def reload(self) -> ResolvedConfig:
        """Discard the cache and load again."""
        self.invalidate()
        return self.get()

    def invalidate(self) -> None:
        """Drop the cached configuration."""
        self._resolved = None
        self._path = None

    def _load(self) -> ResolvedConfig:
        loaded = self._source.load()
        if loaded is None:
            return resolve_config(ContractConfig())
        resolved = resolve_valid_config(loaded.config, loaded.filepath)
        self._path = loaded.filepath
        return resolved
