"""Rotation-model dispatch for the diagnostics that need a Coriolis parameter.

Only two variants are supported:
- FPlane: a single f, used as is or as fx = fy = fz = f
- ConstantCartesianCoriolis: three independent components fx, fy, fz

Any other variant (or no rotation model at all) raises RotationModelError at
construction time.
"""

from flowdiag.params.schema import ConstantCartesianCoriolis, CoriolisComponents, FPlane


class RotationModelError(ValueError):
    """The rotation model cannot supply what a diagnostic needs."""


def scalar_coriolis_parameter(diagnostic: str, f: float | None = None, coriolis=None) -> float:
    """Resolve a scalar f: explicit value first, then an FPlane model.

    Raises:
        RotationModelError: If f is None and coriolis is not an FPlane
    """
    if f is not None:
        return float(f)
    if isinstance(coriolis, FPlane):
        return coriolis.f
    if coriolis is None:
        raise RotationModelError(
            f"{diagnostic} needs a Coriolis parameter: pass f or an FPlane rotation model"
        )
    raise RotationModelError(
        f"{diagnostic} needs a scalar Coriolis parameter; "
        f"{type(coriolis).__name__} is not supported (use FPlane or pass f)"
    )


def coriolis_components(diagnostic: str, coriolis) -> CoriolisComponents:
    """Resolve (fx, fy, fz) from an FPlane or a ConstantCartesianCoriolis.

    Raises:
        RotationModelError: For any other rotation model
    """
    if isinstance(coriolis, FPlane):
        return CoriolisComponents(fx=coriolis.f, fy=coriolis.f, fz=coriolis.f)
    if isinstance(coriolis, ConstantCartesianCoriolis):
        return CoriolisComponents(fx=coriolis.fx, fy=coriolis.fy, fz=coriolis.fz)
    raise RotationModelError(
        f"{diagnostic} is only implemented for FPlane and ConstantCartesianCoriolis, "
        f"got {type(coriolis).__name__}"
    )
