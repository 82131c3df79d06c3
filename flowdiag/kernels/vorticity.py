"""
Potential vorticity diagnostics, both located at (F, F, F).

Thermal-wind PV (scalar f):

    q = (f + ℑz ∂x v - ℑz ∂y u) ℑxy ∂z b  -  f ((ℑy ∂z u)² + (ℑx ∂z v)²)

Ertel PV (rotation vector fx, fy, fz):

    q = (fx + ∂y w - ∂z v) ∂x b
      + (fy + ∂z u - ∂x w) ∂y b
      + (fz + ∂x v - ∂y u) ∂z b

Every term is brought to (F, F, F) by interpolating along the axes it lacks:

    term        operand  after ∂     after ℑ
    ∂x v        C F C    F F C       ℑz -> F F F
    ∂y u        F C C    F F C       ℑz -> F F F
    ∂z b        C C C    C C F       ℑxy -> F F F
    ∂z u        F C C    F C F       ℑy -> F F F
    ∂z v        C F C    C F F       ℑx -> F F F
    ∂y w        C C F    C F F       ℑx -> F F F
    ∂x w        C C F    F C F       ℑy -> F F F
    ∂x b        C C C    F C C       ℑyz -> F F F
    ∂y b        C C C    C F C       ℑxz -> F F F
"""

import taichi as ti

from flowdiag.core.locations import FFF, Location
from flowdiag.fields.kernel_field import KernelFunction, KernelFunctionField
from flowdiag.kernels.rotation import coriolis_components, scalar_coriolis_parameter
from flowdiag.operators.stencils import (
    ddx_face,
    ddy_face,
    ddz_face,
    interpolate,
    interpolate_xy,
    interpolate_xz,
    interpolate_yz,
)
from flowdiag.state import FlowState

F = Location.FACE

dvdx_fff = interpolate("z", F, ddx_face)
dudy_fff = interpolate("z", F, ddy_face)
dbdz_fff = interpolate_xy(F, F, ddz_face)
dudz_fff = interpolate("y", F, ddz_face)
dvdz_fff = interpolate("x", F, ddz_face)
dwdy_fff = interpolate("x", F, ddy_face)
dwdx_fff = interpolate("y", F, ddx_face)
dbdx_fff = interpolate_yz(F, F, ddx_face)
dbdy_fff = interpolate_xz(F, F, ddy_face)

_dvdx = dvdx_fff.func
_dudy = dudy_fff.func
_dbdz = dbdz_fff.func
_dudz = dudz_fff.func
_dvdz = dvdz_fff.func
_dwdy = dwdy_fff.func
_dwdx = dwdx_fff.func
_dbdx = dbdx_fff.func
_dbdy = dbdy_fff.func


@ti.func
def potential_vorticity_in_thermal_wind_fff(
    i, j, k,
    grid: ti.template(),
    u: ti.template(),
    v: ti.template(),
    b: ti.template(),
    f: ti.template(),
):
    dvdx = _dvdx(i, j, k, grid, v)
    dudy = _dudy(i, j, k, grid, u)
    dbdz = _dbdz(i, j, k, grid, b)
    pv_barotropic = (f + dvdx - dudy) * dbdz

    dudz = _dudz(i, j, k, grid, u)
    dvdz = _dvdz(i, j, k, grid, v)
    pv_baroclinic = -f * (dudz * dudz + dvdz * dvdz)

    return pv_barotropic + pv_baroclinic


@ti.func
def ertel_potential_vorticity_fff(
    i, j, k,
    grid: ti.template(),
    u: ti.template(),
    v: ti.template(),
    w: ti.template(),
    b: ti.template(),
    params: ti.template(),
):
    pv_x = (params.fx + _dwdy(i, j, k, grid, w) - _dvdz(i, j, k, grid, v)) * _dbdx(i, j, k, grid, b)
    pv_y = (params.fy + _dudz(i, j, k, grid, u) - _dwdx(i, j, k, grid, w)) * _dbdy(i, j, k, grid, b)
    pv_z = (params.fz + _dvdx(i, j, k, grid, v) - _dudy(i, j, k, grid, u)) * _dbdz(i, j, k, grid, b)
    return pv_x + pv_y + pv_z


THERMAL_WIND_POTENTIAL_VORTICITY = KernelFunction(
    func=potential_vorticity_in_thermal_wind_fff,
    location=FFF,
    name="ThermalWindPotentialVorticity",
    dependencies=("u", "v", "b"),
    terms=(
        (1, dvdx_fff),
        (0, dudy_fff),
        (2, dbdz_fff),
        (0, dudz_fff),
        (1, dvdz_fff),
    ),
)

ERTEL_POTENTIAL_VORTICITY = KernelFunction(
    func=ertel_potential_vorticity_fff,
    location=FFF,
    name="ErtelPotentialVorticity",
    dependencies=("u", "v", "w", "b"),
    terms=(
        (2, dwdy_fff),
        (1, dvdz_fff),
        (3, dbdx_fff),
        (0, dudz_fff),
        (2, dwdx_fff),
        (3, dbdy_fff),
        (1, dvdx_fff),
        (0, dudy_fff),
        (3, dbdz_fff),
    ),
)


def thermal_wind_potential_vorticity(
    state: FlowState,
    f: float | None = None,
    coriolis=None,
    location=None,
) -> KernelFunctionField:
    """Potential vorticity under the thermal-wind approximation.

    f is taken, in order, from ``f``, from ``coriolis`` and from
    ``state.coriolis``; the rotation models must be FPlane.

    Raises:
        RotationModelError: If no scalar f can be resolved
        LocationError: If location is not (F, F, F)
    """
    f = scalar_coriolis_parameter(
        "ThermalWindPotentialVorticity",
        f,
        coriolis if coriolis is not None else state.coriolis,
    )
    return KernelFunctionField(
        THERMAL_WIND_POTENTIAL_VORTICITY,
        state.grid,
        (state.u, state.v, state.b),
        parameters=f,
        location=location,
    )


def ertel_potential_vorticity(
    state: FlowState,
    coriolis=None,
    location=None,
) -> KernelFunctionField:
    """Full Ertel potential vorticity.

    Background fields in ``state.background`` are added to u, v, w and b
    where present; absent backgrounds are skipped.

    Args:
        state: Flow state
        coriolis: Rotation model overriding state.coriolis
        location: Requested location; only (F, F, F) is supported

    Raises:
        RotationModelError: Unless the rotation model is FPlane or
            ConstantCartesianCoriolis
        LocationError: If location is not (F, F, F)
    """
    components = coriolis_components(
        "ErtelPotentialVorticity",
        coriolis if coriolis is not None else state.coriolis,
    )
    u, v, w = state.total_velocities()
    b = state.total_buoyancy()
    return KernelFunctionField(
        ERTEL_POTENTIAL_VORTICITY,
        state.grid,
        (u, v, w, b),
        parameters=components,
        location=location,
    )
