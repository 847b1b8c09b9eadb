"""
Linter Configuration

Loads configuration from a YAML file and environment variables.

Example .buildlint.yaml:

    warnings: [constant-glob, duplicated-name, positional-args]
    disabled: [native-build]
    positional_exempt: [my_macro]
    file_type: build
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import yaml

from buildlint.errors import ConfigError
from buildlint.parser.nodes import FileType
from buildlint.warn import ALL_WARNINGS, DEFAULT_WARNINGS, FUNCTIONS_WITH_POSITIONAL_ARGUMENTS

logger = logging.getLogger(__name__)


# Configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path(".buildlint.yaml"),
    Path.home() / ".buildlint.yaml",
]

DEFAULT_CONFIG: Dict[str, Any] = {
    "warnings": list(DEFAULT_WARNINGS),
    "disabled": [],
    "positional_exempt": [],
    "file_type": None,  # infer from file name
}

ENV_MAPPINGS = {
    "BUILDLINT_WARNINGS": "warnings",
    "BUILDLINT_DISABLED": "disabled",
}


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class LintConfig:
    """Configuration for a lint run."""

    def __init__(self, config_path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None

        self._load_config(config_path)
        self._apply_env_overrides()
        if overrides:
            self._config.update({k: v for k, v in overrides.items() if v is not None})
        self._validate()

    def _load_config(self, explicit_path: Optional[Path] = None) -> None:
        """Load configuration from YAML file."""
        if explicit_path is not None and not explicit_path.exists():
            raise ConfigError(f"Config file not found: {explicit_path}")

        search_paths = [explicit_path] if explicit_path else CONFIG_SEARCH_PATHS
        for config_path in search_paths:
            if not config_path.exists():
                continue
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    user_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Failed to load config from {config_path}: {e}") from e
            if not isinstance(user_config, dict):
                raise ConfigError(f"{config_path}: expected a mapping at top level")
            self._config.update(user_config)
            self._config_path = config_path
            logger.debug(f"Loaded config from {config_path}")
            return

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        for env_var, config_key in ENV_MAPPINGS.items():
            if env_var in os.environ:
                self._config[config_key] = _split_list(os.environ[env_var])

    def _validate(self) -> None:
        for key in ("warnings", "disabled", "positional_exempt"):
            value = self._config.get(key)
            if isinstance(value, str):
                value = _split_list(value)
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"'{key}' must be a list of strings")
            self._config[key] = value

        unknown = (set(self._config["warnings"]) | set(self._config["disabled"])) - set(ALL_WARNINGS)
        if unknown:
            raise ConfigError(f"Unknown warning categories: {', '.join(sorted(unknown))}")

        file_type = self._config.get("file_type")
        if file_type is not None and not isinstance(file_type, FileType):
            try:
                self._config["file_type"] = FileType(str(file_type).lower())
            except ValueError:
                choices = ", ".join(t.value for t in FileType)
                raise ConfigError(f"Invalid file_type {file_type!r}, expected one of: {choices}") from None

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    @property
    def warnings(self) -> Tuple[str, ...]:
        """Enabled categories, in rule registration order."""
        enabled = set(self._config["warnings"]) - set(self._config["disabled"])
        return tuple(c for c in ALL_WARNINGS if c in enabled)

    @property
    def positional_exempt(self) -> FrozenSet[str]:
        """Functions allowed to take positional arguments."""
        return FUNCTIONS_WITH_POSITIONAL_ARGUMENTS | frozenset(self._config["positional_exempt"])

    @property
    def file_type(self) -> Optional[FileType]:
        """Forced dialect, or None to infer it from the file name."""
        return self._config["file_type"]

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            "warnings": list(self.warnings),
            "positional_exempt": sorted(self.positional_exempt),
            "file_type": self.file_type.value if self.file_type else None,
            "config_file": str(self._config_path) if self._config_path else None,
        }


def load_config(config_path: Optional[Path] = None, **overrides) -> LintConfig:
    """Load configuration; keyword overrides win over file and environment."""
    return LintConfig(config_path, overrides)
