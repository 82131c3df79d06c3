"""Staggered-grid derivative and interpolation operators."""

from flowdiag.operators.stencils import (
    VALUE,
    Stencil,
    StencilStep,
    ddx_center,
    ddx_face,
    ddy_center,
    ddy_face,
    ddz_center,
    ddz_face,
    derivative,
    interpolate,
    interpolate_squared,
    interpolate_xy,
    interpolate_xz,
    interpolate_yz,
    squared,
)

__all__ = [
    "VALUE",
    "Stencil",
    "StencilStep",
    "ddx_center",
    "ddx_face",
    "ddy_center",
    "ddy_face",
    "ddz_center",
    "ddz_face",
    "derivative",
    "interpolate",
    "interpolate_squared",
    "interpolate_xy",
    "interpolate_xz",
    "interpolate_yz",
    "squared",
]
