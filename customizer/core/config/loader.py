"""
Configuration loader — reads customizer.yml into domain models.

Every setting has a default, so running without a config file is
normal. Path defaults are rooted at the home of the invoking user
(the ``SUDO_USER`` home when privileged).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from customizer.core.models.config import CustomizerConfig, Flags, PathsConfig
from customizer.core.models.identity import Identity

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "customizer.yml"
CONFIG_ENV_VAR = "CUSTOMIZER_CONFIG"


class ConfigError(Exception):
    """Raised when configuration or the feature table is invalid or missing."""


def find_config_file(identity: Identity) -> Path | None:
    """Locate customizer.yml.

    Lookup order: ``CUSTOMIZER_CONFIG``, then
    ``~/.config/customizer/customizer.yml`` of the invoking user.

    Returns:
        Path to the config file, or None if not found.
    """
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)

    candidate = identity.home / ".config" / "customizer" / CONFIG_FILE
    if candidate.is_file():
        return candidate
    return None


def read_yaml_mapping(path: Path) -> dict[str, Any]:
    """Read a YAML file that must contain a mapping (empty file = {})."""
    if not path.is_file():
        raise ConfigError(f"File not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def _expand_home(value: Any, home: Path) -> Path:
    """Expand a leading ``~`` against ``home`` rather than the process HOME."""
    text = str(value)
    if text == "~" or text.startswith("~/"):
        return home / text[2:]
    return Path(text)


def load_config(
    path: Path | None = None,
    identity: Identity | None = None,
    flag_overrides: dict[str, Any] | None = None,
) -> CustomizerConfig:
    """Load and validate the customizer configuration.

    Args:
        path: Explicit path to customizer.yml. If None, searches the
            default locations and falls back to defaults.
        identity: Invoking user; detected when omitted.
        flag_overrides: Flag values from the command line. ``None``
            values are ignored.

    Raises:
        ConfigError: If an explicit file is missing or the file is invalid.
    """
    identity = identity or Identity.detect()

    if path is None:
        path = find_config_file(identity)

    data: dict[str, Any] = {}
    if path is not None:
        logger.debug("Loading config from %s", path)
        data = read_yaml_mapping(path)
    else:
        logger.debug("No %s found, using defaults", CONFIG_FILE)

    # The YAML may wrap everything under a "customizer" key or be flat
    if "customizer" in data and isinstance(data["customizer"], dict):
        data = data["customizer"]

    raw_paths = data.get("paths") or {}
    if not isinstance(raw_paths, dict):
        raise ConfigError("'paths' must be a mapping")

    try:
        paths = PathsConfig.for_home(
            identity.home,
            **{key: _expand_home(value, identity.home) for key, value in raw_paths.items()},
        )
        flags_data = dict(data.get("flags") or {})
        flags_data.update({k: v for k, v in (flag_overrides or {}).items() if v is not None})
        config = CustomizerConfig.model_validate(
            {
                "paths": paths,
                "flags": Flags.model_validate(flags_data),
                "package_manager": data.get("package_manager") or {},
            }
        )
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug("Customizer root: %s", config.paths.customizer_dir)
    return config
