"""
Feature table loader — reads features.yml into FeatureDescriptors.

The table is a YAML mapping of feature key to attribute bundle,
optionally wrapped under a top-level ``features`` key. The bundled
sample table is used when no path is given.
"""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path

from pydantic import ValidationError

from customizer.core.config.loader import ConfigError, read_yaml_mapping
from customizer.core.models.feature import FeatureDescriptor

logger = logging.getLogger(__name__)

FEATURES_FILE = "features.yml"


def bundled_features_path() -> Path:
    """Path of the sample table shipped with the package."""
    return Path(str(resources.files("customizer.core.data") / FEATURES_FILE))


def load_features(path: Path | None = None) -> dict[str, FeatureDescriptor]:
    """Load the feature table.

    Returns:
        Mapping of feature key to descriptor, in table order.

    Raises:
        ConfigError: If the table is missing, malformed, or any entry
            fails validation.
    """
    path = path or bundled_features_path()
    logger.debug("Loading feature table from %s", path)

    data = read_yaml_mapping(path)
    if "features" in data and isinstance(data["features"], dict):
        data = data["features"]

    features: dict[str, FeatureDescriptor] = {}
    errors: list[str] = []
    for key, attributes in data.items():
        key = str(key)
        if attributes is None:
            attributes = {}
        if not isinstance(attributes, dict):
            errors.append(f"{key}: expected a mapping of attributes")
            continue
        try:
            features[key] = FeatureDescriptor.model_validate({**attributes, "key": key})
        except (ValidationError, ValueError) as e:
            errors.append(f"{key}: {e}")

    if errors:
        raise ConfigError(f"Invalid feature table {path}:\n" + "\n".join(errors))

    logger.debug("Loaded %d features", len(features))
    return features
