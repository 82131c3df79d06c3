"""
Read and write DiagnosticsConfig as YAML.

A file holds any subset of the groups ``grid``, ``coriolis``, ``background``,
``diffusivity`` and ``diagnostics``; missing groups keep their defaults.

    coriolis:
      model: f_plane
      f: 1.0e-4
    background:
      N2_bg: 1.0e-5
    diagnostics: [richardson_number, ertel_potential_vorticity]
"""

from pathlib import Path
from typing import Any

import yaml

from flowdiag.params.schema import DiagnosticsConfig, ValidationError


def load_config(path: str | Path) -> DiagnosticsConfig:
    """Load a configuration file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the file is not a mapping or a value is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValidationError(f"Configuration must be a mapping, got {type(data).__name__}")

    return DiagnosticsConfig.from_dict(data)


def save_config(config: DiagnosticsConfig, path: str | Path) -> None:
    """Write a configuration file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)


def load_config_with_overrides(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> DiagnosticsConfig:
    """Defaults (or the file at ``path``) with per-group overrides applied."""
    config = DiagnosticsConfig() if path is None else load_config(path)
    return config.with_updates(**overrides) if overrides else config
