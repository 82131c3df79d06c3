"""
Staggered-grid stencil operators.

A Stencil pairs a point-wise @ti.func with the location transform it performs.
All stencil functions share one signature,

    func(i, j, k, grid, a) -> value

where ``a`` is any field-like object exposing ``a.at(i, j, k)``.

Primitive derivatives (second-order, one-point offsets):

    to face:    ∂xᶠ a[i] = (a[i] - a[i-1]) / Δxᶠ[i]     (C -> F)
    to center:  ∂xᶜ a[i] = (a[i+1] - a[i]) / Δxᶜ[i]     (F -> C)

Primitive interpolation (arithmetic mean of two neighbours):

    to face:    ℑxᶠ a[i] = (a[i] + a[i-1]) / 2          (C -> F)
    to center:  ℑxᶜ a[i] = (a[i] + a[i+1]) / 2          (F -> C)

Composite stencils are built by wrapping an inner stencil, e.g.

    interpolate("z", FACE, ddx_face)            # ℑzᶠ(∂xᶠ a)
    interpolate_squared("x", CENTER, ddx_face)  # ℑxᶜ((∂xᶠ a)²)

The wrapping happens once at import time in Python; inside Taichi scope the
composition is plain inlined function calls.
"""

from dataclasses import dataclass
from typing import Callable

import taichi as ti

from flowdiag.core.locations import (
    AXES,
    Location,
    LocationError,
    LocationTriple,
    StencilKind,
    axis_index,
    location_after,
    location_string,
)

_SUPERSCRIPT = {Location.CENTER: "ᶜ", Location.FACE: "ᶠ"}


@dataclass(frozen=True)
class StencilStep:
    """One primitive operator application: kind, axis and target placement."""

    kind: StencilKind
    axis: int
    target: Location

    def apply(self, location: LocationTriple) -> LocationTriple:
        """Location after this step.

        Raises:
            LocationError: If the operand already sits at the target placement
        """
        if location[self.axis] is self.target:
            raise LocationError(
                f"{self.kind.name.lower()} along {AXES[self.axis]} to "
                f"{self.target.name.lower()} needs an operand at "
                f"{self.target.toggled().name.lower()}, got "
                f"{location_string(location)}"
            )
        return location_after(self.kind, self.axis, location)


@dataclass(frozen=True)
class Stencil:
    """A point-wise operator and its location transform.

    Attributes:
        func: @ti.func (i, j, k, grid, a)
        steps: Primitive steps, innermost first
        name: Human-readable form, e.g. 'ℑzᶠ(∂xᶠ)'
    """

    func: Callable
    steps: tuple[StencilStep, ...] = ()
    name: str = ""

    def output_location(self, location: LocationTriple) -> LocationTriple:
        """Location of the result when applied to an operand at ``location``."""
        for step in self.steps:
            location = step.apply(location)
        return location


# =============================================================================
# Primitive operators
# =============================================================================


@ti.func
def _value(i, j, k, grid: ti.template(), a: ti.template()):
    return a.at(i, j, k)


@ti.func
def _ddx_face(i, j, k, grid: ti.template(), a: ti.template()):
    return (a.at(i, j, k) - a.at(i - 1, j, k)) / grid.dx_face[i]


@ti.func
def _ddx_center(i, j, k, grid: ti.template(), a: ti.template()):
    return (a.at(i + 1, j, k) - a.at(i, j, k)) / grid.dx_center[i]


@ti.func
def _ddy_face(i, j, k, grid: ti.template(), a: ti.template()):
    return (a.at(i, j, k) - a.at(i, j - 1, k)) / grid.dy_face[j]


@ti.func
def _ddy_center(i, j, k, grid: ti.template(), a: ti.template()):
    return (a.at(i, j + 1, k) - a.at(i, j, k)) / grid.dy_center[j]


@ti.func
def _ddz_face(i, j, k, grid: ti.template(), a: ti.template()):
    return (a.at(i, j, k) - a.at(i, j, k - 1)) / grid.dz_face[k]


@ti.func
def _ddz_center(i, j, k, grid: ti.template(), a: ti.template()):
    return (a.at(i, j, k + 1) - a.at(i, j, k)) / grid.dz_center[k]


def _derivative_stencil(func: Callable, axis: int, target: Location) -> Stencil:
    return Stencil(
        func,
        (StencilStep(StencilKind.DERIVATIVE, axis, target),),
        f"∂{AXES[axis]}{_SUPERSCRIPT[target]}",
    )


VALUE = Stencil(_value, (), "")

ddx_face = _derivative_stencil(_ddx_face, 0, Location.FACE)
ddx_center = _derivative_stencil(_ddx_center, 0, Location.CENTER)
ddy_face = _derivative_stencil(_ddy_face, 1, Location.FACE)
ddy_center = _derivative_stencil(_ddy_center, 1, Location.CENTER)
ddz_face = _derivative_stencil(_ddz_face, 2, Location.FACE)
ddz_center = _derivative_stencil(_ddz_center, 2, Location.CENTER)

_DERIVATIVES = {
    (0, Location.FACE): ddx_face,
    (0, Location.CENTER): ddx_center,
    (1, Location.FACE): ddy_face,
    (1, Location.CENTER): ddy_center,
    (2, Location.FACE): ddz_face,
    (2, Location.CENTER): ddz_center,
}


def derivative(axis: str | int, target: Location) -> Stencil:
    """Primitive derivative along ``axis`` landing on ``target``."""
    return _DERIVATIVES[(axis_index(axis), target)]


# =============================================================================
# Composite operators
# =============================================================================


def interpolate(axis: str | int, target: Location, inner: Stencil = VALUE) -> Stencil:
    """Interpolate the result of ``inner`` along ``axis`` onto ``target``.

    With the default ``inner`` this interpolates the operand itself.
    """
    n_axis = axis_index(axis)
    shift = -1 if target is Location.FACE else 1
    di, dj, dk = (shift if n == n_axis else 0 for n in range(3))
    op = inner.func

    @ti.func
    def _interpolate(i, j, k, grid: ti.template(), a: ti.template()):
        return 0.5 * (op(i, j, k, grid, a) + op(i + di, j + dj, k + dk, grid, a))

    step = StencilStep(StencilKind.INTERPOLATION, n_axis, target)
    name = f"ℑ{AXES[n_axis]}{_SUPERSCRIPT[target]}"
    if inner.name:
        name = f"{name}({inner.name})"
    return Stencil(_interpolate, inner.steps + (step,), name)


def squared(inner: Stencil) -> Stencil:
    """Point-wise square of ``inner``; locations pass through."""
    op = inner.func

    @ti.func
    def _squared(i, j, k, grid: ti.template(), a: ti.template()):
        value = op(i, j, k, grid, a)
        return value * value

    return Stencil(_squared, inner.steps, f"({inner.name})²")


def interpolate_squared(axis: str | int, target: Location, inner: Stencil) -> Stencil:
    """Interpolate the square of ``inner`` along ``axis``.

    Order is derivative -> square -> interpolate. Interpolating first and
    squaring afterwards gives a different (and wrong) variance estimate.
    """
    return interpolate(axis, target, squared(inner))


def interpolate_xy(target_x: Location, target_y: Location, inner: Stencil = VALUE) -> Stencil:
    """ℑx(ℑy(inner)); equal to ℑy(ℑx(inner)) on a rectilinear grid."""
    return interpolate("x", target_x, interpolate("y", target_y, inner))


def interpolate_xz(target_x: Location, target_z: Location, inner: Stencil = VALUE) -> Stencil:
    """ℑx(ℑz(inner))."""
    return interpolate("x", target_x, interpolate("z", target_z, inner))


def interpolate_yz(target_y: Location, target_z: Location, inner: Stencil = VALUE) -> Stencil:
    """ℑy(ℑz(inner))."""
    return interpolate("y", target_y, interpolate("z", target_z, inner))
