"""
Domain models — Pydantic types for the customizer.

All models are re-exported here for convenient access:

    from customizer.core.models import FeatureDescriptor, CustomizerConfig, Receipt
"""

from customizer.core.models.action import Action, Receipt
from customizer.core.models.config import (
    CustomizerConfig,
    Flags,
    PackageManagerCommands,
    PathsConfig,
)
from customizer.core.models.feature import (
    BinaryLink,
    DownloadSpec,
    FeatureDescriptor,
    FileAssociation,
    FileSpec,
    InstallationType,
    Keybinding,
    MoveSpec,
)
from customizer.core.models.identity import Identity

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # config.py
    "CustomizerConfig",
    "Flags",
    "PackageManagerCommands",
    "PathsConfig",
    # feature.py
    "BinaryLink",
    "DownloadSpec",
    "FeatureDescriptor",
    "FileAssociation",
    "FileSpec",
    "InstallationType",
    "Keybinding",
    "MoveSpec",
    # identity.py
    "Identity",
]
