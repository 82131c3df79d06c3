"""Core infrastructure: precision, locations, and grid geometry."""

from flowdiag.core.dtypes import DTYPE
from flowdiag.core.grid import RectilinearGrid
from flowdiag.core.locations import (
    AXES,
    CCC,
    FFF,
    TRACER_LOCATION,
    U_LOCATION,
    V_LOCATION,
    W_LOCATION,
    Location,
    LocationError,
    LocationTriple,
    StencilKind,
    as_location,
    axis_index,
    location_after,
    location_string,
)

__all__ = [
    "DTYPE",
    "RectilinearGrid",
    "AXES",
    "CCC",
    "FFF",
    "TRACER_LOCATION",
    "U_LOCATION",
    "V_LOCATION",
    "W_LOCATION",
    "Location",
    "LocationError",
    "LocationTriple",
    "StencilKind",
    "as_location",
    "axis_index",
    "location_after",
    "location_string",
]
