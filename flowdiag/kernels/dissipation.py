"""
Tracer variance dissipation rates, located at (C, C, C).

Squared gradients are formed on faces and interpolated back to centers
(derivative -> square -> interpolate):

    dbdx² = ℑxᶜ((∂xᶠ b)²)     C C C -> F C C -> C C C
    dbdy² = ℑyᶜ((∂yᶠ b)²)     C C C -> C F C -> C C C
    dbdz² = ℑzᶜ((∂zᶠ b)²)     C C C -> C C F -> C C C

Isotropic:    χ = 2 κ[i, j, k] (dbdx² + dbdy² + dbdz²)
Anisotropic:  χ = 2 (κx dbdx² + κy dbdy² + κz dbdz²)
"""

import math
from numbers import Real

import taichi as ti

from flowdiag.core.locations import CCC, Location
from flowdiag.fields.base import ConstantField, FieldLike
from flowdiag.fields.kernel_field import KernelFunction, KernelFunctionField
from flowdiag.operators.stencils import (
    VALUE,
    ddx_face,
    ddy_face,
    ddz_face,
    interpolate_squared,
)
from flowdiag.params.schema import AnisotropicDiffusivity, ValidationError
from flowdiag.state import FlowState

C = Location.CENTER

dbdx2_ccc = interpolate_squared("x", C, ddx_face)
dbdy2_ccc = interpolate_squared("y", C, ddy_face)
dbdz2_ccc = interpolate_squared("z", C, ddz_face)

_dbdx2 = dbdx2_ccc.func
_dbdy2 = dbdy2_ccc.func
_dbdz2 = dbdz2_ccc.func


@ti.func
def isotropic_tracer_variance_dissipation_rate_ccc(
    i, j, k,
    grid: ti.template(),
    b: ti.template(),
    kappa: ti.template(),
    params: ti.template(),
):
    dbdx2 = _dbdx2(i, j, k, grid, b)
    dbdy2 = _dbdy2(i, j, k, grid, b)
    dbdz2 = _dbdz2(i, j, k, grid, b)
    return 2.0 * kappa.at(i, j, k) * (dbdx2 + dbdy2 + dbdz2)


@ti.func
def anisotropic_tracer_variance_dissipation_rate_ccc(
    i, j, k,
    grid: ti.template(),
    b: ti.template(),
    params: ti.template(),
):
    dbdx2 = _dbdx2(i, j, k, grid, b)
    dbdy2 = _dbdy2(i, j, k, grid, b)
    dbdz2 = _dbdz2(i, j, k, grid, b)
    return 2.0 * (params.kx * dbdx2 + params.ky * dbdy2 + params.kz * dbdz2)


ISOTROPIC_TRACER_VARIANCE_DISSIPATION_RATE = KernelFunction(
    func=isotropic_tracer_variance_dissipation_rate_ccc,
    location=CCC,
    name="IsotropicTracerVarianceDissipationRate",
    dependencies=("b", "kappa"),
    # kappa is sampled at the same index, so it must already be at (C, C, C)
    terms=((0, dbdx2_ccc), (0, dbdy2_ccc), (0, dbdz2_ccc), (1, VALUE)),
)

ANISOTROPIC_TRACER_VARIANCE_DISSIPATION_RATE = KernelFunction(
    func=anisotropic_tracer_variance_dissipation_rate_ccc,
    location=CCC,
    name="AnisotropicTracerVarianceDissipationRate",
    dependencies=("b",),
    terms=((0, dbdx2_ccc), (0, dbdy2_ccc), (0, dbdz2_ccc)),
)


def _as_field(state: FlowState, kappa: FieldLike | float) -> FieldLike:
    if isinstance(kappa, FieldLike):
        return kappa
    if isinstance(kappa, bool) or not isinstance(kappa, Real):
        raise ValidationError(
            f"kappa must be a number or a field, got {type(kappa).__name__}"
        )
    if not 0 <= kappa < math.inf:
        raise ValidationError(f"kappa must be finite and non-negative, got {kappa}")
    return ConstantField(state.grid, CCC, kappa, name="kappa")


def isotropic_tracer_variance_dissipation_rate(
    state: FlowState,
    b: FieldLike | None,
    kappa: FieldLike | float,
    location=None,
) -> KernelFunctionField:
    """Tracer variance dissipation rate with a shared diffusivity.

    Args:
        state: Flow state (supplies the grid, and b when ``b`` is None)
        b: Tracer at (C, C, C)
        kappa: Diffusivity field at (C, C, C), or a constant [m²/s]
        location: Requested location; only (C, C, C) is supported

    Raises:
        LocationError: If location, b or kappa is not at (C, C, C)
        ValidationError: If kappa is not a field or a finite non-negative number
    """
    b = state.b if b is None else b
    return KernelFunctionField(
        ISOTROPIC_TRACER_VARIANCE_DISSIPATION_RATE,
        state.grid,
        (b, _as_field(state, kappa)),
        location=location,
    )


def anisotropic_tracer_variance_dissipation_rate(
    state: FlowState,
    b: FieldLike | None,
    kx: float,
    ky: float,
    kz: float,
    location=None,
) -> KernelFunctionField:
    """Tracer variance dissipation rate with per-axis diffusivities.

    Raises:
        LocationError: If location or b is not at (C, C, C)
        ValidationError: If a diffusivity is negative
    """
    b = state.b if b is None else b
    return KernelFunctionField(
        ANISOTROPIC_TRACER_VARIANCE_DISSIPATION_RATE,
        state.grid,
        (b,),
        parameters=AnisotropicDiffusivity(kx=kx, ky=ky, kz=kz),
        location=location,
    )
