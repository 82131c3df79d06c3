"""
Diagnostic kernels for rotating, stratified flows.

This module provides the six diagnostic constructors and a registry for
selecting them by name.

Usage:
    from flowdiag.kernels import get_registry

    registry = get_registry()
    pv = registry.build("ertel_potential_vorticity", state)
    pv[4, 4, 4]

Submodules:
- shear: Richardson number, Rossby number
- vorticity: thermal-wind and Ertel potential vorticity
- dissipation: isotropic and anisotropic tracer variance dissipation rates
- rotation: Coriolis-model dispatch
"""

import logging
from typing import Callable

from flowdiag.fields.kernel_field import KernelFunctionField
from flowdiag.kernels.dissipation import (
    ANISOTROPIC_TRACER_VARIANCE_DISSIPATION_RATE,
    ISOTROPIC_TRACER_VARIANCE_DISSIPATION_RATE,
    anisotropic_tracer_variance_dissipation_rate,
    isotropic_tracer_variance_dissipation_rate,
)
from flowdiag.kernels.rotation import (
    RotationModelError,
    coriolis_components,
    scalar_coriolis_parameter,
)
from flowdiag.kernels.shear import (
    RICHARDSON_NUMBER,
    ROSSBY_NUMBER,
    RossbyParameters,
    richardson_number,
    rossby_number,
)
from flowdiag.kernels.vorticity import (
    ERTEL_POTENTIAL_VORTICITY,
    THERMAL_WIND_POTENTIAL_VORTICITY,
    ertel_potential_vorticity,
    thermal_wind_potential_vorticity,
)
from flowdiag.params.schema import DiagnosticsConfig
from flowdiag.state import FlowState

logger = logging.getLogger(__name__)

DiagnosticConstructor = Callable[..., KernelFunctionField]


class DiagnosticRegistry:
    """Registry of diagnostic constructors, selected by name.

    Example:
        registry = DiagnosticRegistry()

        # Build a registered diagnostic
        ri = registry.build("richardson_number", state, N2_bg=1e-5)

        # Register a custom diagnostic
        registry.register("my_diagnostic", my_constructor)
    """

    def __init__(self):
        """Initialize registry with the built-in diagnostics."""
        self._constructors: dict[str, DiagnosticConstructor] = {
            "richardson_number": richardson_number,
            "rossby_number": rossby_number,
            "thermal_wind_potential_vorticity": thermal_wind_potential_vorticity,
            "ertel_potential_vorticity": ertel_potential_vorticity,
            "isotropic_tracer_variance_dissipation_rate": isotropic_tracer_variance_dissipation_rate,
            "anisotropic_tracer_variance_dissipation_rate": anisotropic_tracer_variance_dissipation_rate,
        }

    def get(self, name: str) -> DiagnosticConstructor:
        """Get a diagnostic constructor.

        Raises:
            KeyError: If name not registered
        """
        if name not in self._constructors:
            raise KeyError(
                f"No diagnostic registered as '{name}'. "
                f"Available: {self.available()}"
            )
        return self._constructors[name]

    def register(self, name: str, constructor: DiagnosticConstructor) -> None:
        """Register (or replace) a diagnostic constructor."""
        if not callable(constructor):
            raise TypeError(f"Constructor for '{name}' must be callable")
        self._constructors[name] = constructor

    def available(self) -> list[str]:
        """Names of all registered diagnostics."""
        return list(self._constructors.keys())

    def build(self, name: str, state: FlowState, **kwargs) -> KernelFunctionField:
        """Construct a diagnostic field by name."""
        return self.get(name)(state, **kwargs)

    def __contains__(self, name: str) -> bool:
        return name in self._constructors


# Default registry instance for convenience
_default_registry = DiagnosticRegistry()


def get_registry() -> DiagnosticRegistry:
    """Get the default diagnostic registry."""
    return _default_registry


def _config_kwargs(name: str, state: FlowState, config: DiagnosticsConfig) -> dict:
    """Keyword arguments a configured diagnostic is built with."""
    background = config.background
    coriolis = config.coriolis if config.coriolis is not None else state.coriolis

    if name == "richardson_number":
        return {
            "N2_bg": background.N2_bg,
            "dUdz_bg": background.dUdz_bg,
            "dVdz_bg": background.dVdz_bg,
        }
    if name == "rossby_number":
        return {
            "dUdy_bg": background.dUdy_bg,
            "dVdx_bg": background.dVdx_bg,
            "coriolis": coriolis,
        }
    if name in ("thermal_wind_potential_vorticity", "ertel_potential_vorticity"):
        return {"coriolis": coriolis}
    if name == "isotropic_tracer_variance_dissipation_rate":
        return {"b": None, "kappa": config.diffusivity.kappa}
    if name == "anisotropic_tracer_variance_dissipation_rate":
        d = config.diffusivity
        return {"b": None, "kx": d.kx, "ky": d.ky, "kz": d.kz}
    return {}


def build_diagnostics(
    state: FlowState,
    config: DiagnosticsConfig,
    registry: DiagnosticRegistry | None = None,
) -> dict[str, KernelFunctionField]:
    """Build every diagnostic listed in a configuration.

    Parameters (background gradients, diffusivities, rotation model) are
    taken from the configuration; a rotation model in the config takes
    precedence over the one in ``state``.

    Raises:
        KeyError: If a listed diagnostic is not registered
        RotationModelError, LocationError: As raised by the constructors
    """
    registry = registry or get_registry()
    fields = {}
    for name in config.diagnostics:
        fields[name] = registry.build(name, state, **_config_kwargs(name, state, config))
        logger.info("Built diagnostic %s", name)
    return fields


__all__ = [
    # Registry
    "DiagnosticRegistry",
    "get_registry",
    "build_diagnostics",
    # Constructors
    "richardson_number",
    "rossby_number",
    "thermal_wind_potential_vorticity",
    "ertel_potential_vorticity",
    "isotropic_tracer_variance_dissipation_rate",
    "anisotropic_tracer_variance_dissipation_rate",
    # Kernel declarations
    "RICHARDSON_NUMBER",
    "ROSSBY_NUMBER",
    "THERMAL_WIND_POTENTIAL_VORTICITY",
    "ERTEL_POTENTIAL_VORTICITY",
    "ISOTROPIC_TRACER_VARIANCE_DISSIPATION_RATE",
    "ANISOTROPIC_TRACER_VARIANCE_DISSIPATION_RATE",
    # Rotation
    "RotationModelError",
    "RossbyParameters",
    "coriolis_components",
    "scalar_coriolis_parameter",
]
