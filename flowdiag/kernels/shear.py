"""
Shear diagnostics: Richardson number and Rossby number.

Richardson number (located at (C, C, F), the location of ∂z b):

    Ri = (∂z b + N²_bg) / ((∂z u + dUdz_bg)² + (∂z v + dVdz_bg)²)

The shear terms ∂z u at (F, C, F) and ∂z v at (C, F, F) are combined with
∂z b without interpolation. The mismatch is reported as a warning when the
field is built. Where the shear vanishes Ri is undefined: point evaluations
raise DomainError, compute() keeps inf/nan and warns.

Rossby number (located at (F, F, C)):

    Ro = (∂x v + dVdx_bg - ∂y u - dUdy_bg) / f
"""

from dataclasses import dataclass

import taichi as ti

from flowdiag.core.locations import Location
from flowdiag.fields.base import FieldLike
from flowdiag.fields.kernel_field import KernelFunction, KernelFunctionField
from flowdiag.kernels.rotation import scalar_coriolis_parameter
from flowdiag.operators.stencils import ddx_face, ddy_face, ddz_face
from flowdiag.params.schema import ShearBackground, ValidationError
from flowdiag.state import FlowState

C = Location.CENTER
F = Location.FACE

_dx_face = ddx_face.func
_dy_face = ddy_face.func
_dz_face = ddz_face.func


@dataclass(frozen=True)
class RossbyParameters:
    """Coriolis parameter and background horizontal shear for the Rossby number."""

    f: float
    dUdy_bg: float = 0.0
    dVdx_bg: float = 0.0


@ti.func
def richardson_number_ccf(
    i, j, k,
    grid: ti.template(),
    u: ti.template(),
    v: ti.template(),
    b: ti.template(),
    params: ti.template(),
):
    dbdz = _dz_face(i, j, k, grid, b) + params.N2_bg
    dudz = _dz_face(i, j, k, grid, u) + params.dUdz_bg
    dvdz = _dz_face(i, j, k, grid, v) + params.dVdz_bg
    return dbdz / (dudz * dudz + dvdz * dvdz)


@ti.func
def rossby_number_ffc(
    i, j, k,
    grid: ti.template(),
    u: ti.template(),
    v: ti.template(),
    params: ti.template(),
):
    dvdx = _dx_face(i, j, k, grid, v) + params.dVdx_bg
    dudy = _dy_face(i, j, k, grid, u) + params.dUdy_bg
    return (dvdx - dudy) / params.f


RICHARDSON_NUMBER = KernelFunction(
    func=richardson_number_ccf,
    location=(C, C, F),
    name="RichardsonNumber",
    dependencies=("u", "v", "b"),
    terms=((2, ddz_face),),
    unreconciled=((0, ddz_face), (1, ddz_face)),
    finite_only=True,
)

ROSSBY_NUMBER = KernelFunction(
    func=rossby_number_ffc,
    location=(F, F, C),
    name="RossbyNumber",
    dependencies=("u", "v"),
    terms=((1, ddx_face), (0, ddy_face)),
)


def richardson_number(
    state: FlowState,
    b: FieldLike | None = None,
    N2_bg: float = 0.0,
    dUdz_bg: float = 0.0,
    dVdz_bg: float = 0.0,
    location=None,
) -> KernelFunctionField:
    """Gradient Richardson number.

    Args:
        state: Flow state providing u, v and (by default) b
        b: Buoyancy field to use instead of state.b
        N2_bg: Background stratification added to ∂z b [1/s²]
        dUdz_bg, dVdz_bg: Background vertical shear [1/s]
        location: Requested location; only (C, C, F) is supported

    Returns:
        Lazy field at (C, C, F)
    """
    params = ShearBackground(N2_bg=N2_bg, dUdz_bg=dUdz_bg, dVdz_bg=dVdz_bg)
    b = state.b if b is None else b
    return KernelFunctionField(
        RICHARDSON_NUMBER,
        state.grid,
        (state.u, state.v, b),
        parameters=params,
        location=location,
    )


def rossby_number(
    state: FlowState,
    dUdy_bg: float = 0.0,
    dVdx_bg: float = 0.0,
    f: float | None = None,
    coriolis=None,
    location=None,
) -> KernelFunctionField:
    """Rossby number: vertical relative vorticity over f.

    f is taken, in order, from ``f``, from ``coriolis`` and from
    ``state.coriolis``; the rotation models must be FPlane.

    Raises:
        RotationModelError: If no scalar f can be resolved
        ValidationError: If f is zero
    """
    f = scalar_coriolis_parameter(
        "RossbyNumber", f, coriolis if coriolis is not None else state.coriolis
    )
    if f == 0:
        raise ValidationError("RossbyNumber needs a nonzero Coriolis parameter")
    return KernelFunctionField(
        ROSSBY_NUMBER,
        state.grid,
        (state.u, state.v),
        parameters=RossbyParameters(f=f, dUdy_bg=dUdy_bg, dVdx_bg=dVdx_bg),
        location=location,
    )
