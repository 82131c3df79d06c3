"""
Parameter management for flowdiag.

This module provides:
- Validated, immutable parameter records and rotation models (schema.py)
- YAML loading utilities (loader.py)
"""

from flowdiag.params.schema import (
    DIAGNOSTIC_NAMES,
    EARTH_ROTATION_RATE,
    AnisotropicDiffusivity,
    BetaPlane,
    ConstantCartesianCoriolis,
    CoriolisComponents,
    DiagnosticsConfig,
    DiffusivityParams,
    FPlane,
    GridParams,
    ShearBackground,
    ValidationError,
    coriolis_from_dict,
    coriolis_to_dict,
)
from flowdiag.params.loader import load_config, load_config_with_overrides, save_config

__all__ = [
    # Schema classes
    "DIAGNOSTIC_NAMES",
    "EARTH_ROTATION_RATE",
    "AnisotropicDiffusivity",
    "BetaPlane",
    "ConstantCartesianCoriolis",
    "CoriolisComponents",
    "DiagnosticsConfig",
    "DiffusivityParams",
    "FPlane",
    "GridParams",
    "ShearBackground",
    "ValidationError",
    "coriolis_from_dict",
    "coriolis_to_dict",
    # Loader functions
    "load_config",
    "load_config_with_overrides",
    "save_config",
]
