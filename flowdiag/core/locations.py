"""Staggered-grid locations and the location algebra of stencil operators.

Every field sample point is tagged per axis as CENTER (cell midpoint) or FACE
(cell boundary). A field's location is the triple (Lx, Ly, Lz).

Both derivatives and interpolations along an axis toggle the location on that
axis and leave the other two untouched:

    ∂x : (C, ·, ·) -> (F, ·, ·)    ℑx : (C, ·, ·) -> (F, ·, ·)
         (F, ·, ·) -> (C, ·, ·)         (F, ·, ·) -> (C, ·, ·)
"""

from enum import Enum, auto


class LocationError(ValueError):
    """A field or operator was requested at a location it cannot produce."""


class Location(Enum):
    """Sample-point placement along one axis."""

    CENTER = "C"
    FACE = "F"

    def toggled(self) -> "Location":
        """The other placement."""
        return Location.FACE if self is Location.CENTER else Location.CENTER


class StencilKind(Enum):
    """Primitive operator kinds."""

    DERIVATIVE = auto()
    INTERPOLATION = auto()


AXES: tuple[str, str, str] = ("x", "y", "z")

LocationTriple = tuple[Location, Location, Location]

C = Location.CENTER
F = Location.FACE

CCC: LocationTriple = (C, C, C)
FFF: LocationTriple = (F, F, F)

# Native locations of the state variables
U_LOCATION: LocationTriple = (F, C, C)
V_LOCATION: LocationTriple = (C, F, C)
W_LOCATION: LocationTriple = (C, C, F)
TRACER_LOCATION: LocationTriple = CCC


def axis_index(axis: str | int) -> int:
    """Normalize an axis given as 'x'/'y'/'z' or 0/1/2."""
    if isinstance(axis, int):
        if not 0 <= axis < 3:
            raise ValueError(f"axis must be 0, 1 or 2, got {axis}")
        return axis
    if axis not in AXES:
        raise ValueError(f"axis must be one of {AXES}, got {axis!r}")
    return AXES.index(axis)


def location_after(
    kind: StencilKind, axis: str | int, location: LocationTriple
) -> LocationTriple:
    """Location of the result of a primitive operator.

    Args:
        kind: Derivative or interpolation
        axis: Axis the operator acts along
        location: Location of the operand

    Returns:
        Location triple with the entry for ``axis`` toggled
    """
    if not isinstance(kind, StencilKind):
        raise TypeError(f"kind must be a StencilKind, got {kind!r}")
    a = axis_index(axis)
    result = list(location)
    result[a] = location[a].toggled()
    return tuple(result)


def as_location(location) -> LocationTriple:
    """Coerce a triple of Location members or 'C'/'F' strings."""
    if isinstance(location, str):
        location = tuple(location)
    if len(location) != 3:
        raise LocationError(f"location must have three entries, got {location!r}")
    try:
        return tuple(
            loc if isinstance(loc, Location) else Location(loc.upper()[0])
            for loc in location
        )
    except (ValueError, AttributeError) as e:
        raise LocationError(f"invalid location {location!r}") from e


def location_string(location: LocationTriple) -> str:
    """Short form, e.g. '(F, F, C)'."""
    return "(" + ", ".join(loc.value for loc in location) + ")"
