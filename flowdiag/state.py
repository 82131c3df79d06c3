"""Flow state handed to the diagnostic constructors.

The simulation engine owns the velocity and tracer fields; FlowState only
bundles read access to them together with the grid, the rotation model and
any background fields.
"""

from dataclasses import dataclass, field
from typing import Any

from flowdiag.core.grid import RectilinearGrid
from flowdiag.core.locations import (
    TRACER_LOCATION,
    U_LOCATION,
    V_LOCATION,
    W_LOCATION,
    LocationError,
    location_string,
)
from flowdiag.fields.base import FieldLike, add_background


@dataclass(frozen=True)
class BackgroundFields:
    """Optional background fields; None means the background contributes nothing."""

    u: FieldLike | None = None
    v: FieldLike | None = None
    w: FieldLike | None = None
    b: FieldLike | None = None


@dataclass(frozen=True)
class FlowState:
    """Velocity, buoyancy, rotation and background of a stratified flow.

    Attributes:
        grid: Grid all fields live on
        u, v, w: Velocity components at (F, C, C), (C, F, C), (C, C, F)
        b: Buoyancy at (C, C, C)
        coriolis: Rotation model (FPlane, ConstantCartesianCoriolis, ...) or None
        background: Background fields added by Ertel PV
    """

    grid: RectilinearGrid
    u: FieldLike
    v: FieldLike
    w: FieldLike
    b: FieldLike
    coriolis: Any = None
    background: BackgroundFields = field(default_factory=BackgroundFields)

    def __post_init__(self) -> None:
        """Check that every field sits at its native location on this grid."""
        expected = {
            "u": U_LOCATION,
            "v": V_LOCATION,
            "w": W_LOCATION,
            "b": TRACER_LOCATION,
        }
        for name, location in expected.items():
            for label, f in ((name, getattr(self, name)), (f"background {name}", getattr(self.background, name))):
                if f is None:
                    continue
                if f.location != location:
                    raise LocationError(
                        f"{label} must be at {location_string(location)}, "
                        f"got {location_string(f.location)}"
                    )
                if f.grid is not self.grid:
                    raise ValueError(f"{label} is defined on a different grid")

    @property
    def velocities(self) -> tuple[FieldLike, FieldLike, FieldLike]:
        return (self.u, self.v, self.w)

    def total_velocities(self) -> tuple[FieldLike, FieldLike, FieldLike]:
        """Velocities with their background added where one is present."""
        return (
            add_background(self.u, self.background.u),
            add_background(self.v, self.background.v),
            add_background(self.w, self.background.w),
        )

    def total_buoyancy(self) -> FieldLike:
        """Buoyancy with its background added where one is present."""
        return add_background(self.b, self.background.b)
