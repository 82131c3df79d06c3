"""Staggered fields and lazy field sums.

Every field-like object in flowdiag shares one contract:
- location: LocationTriple the values live at
- grid: the RectilinearGrid it is defined on
- at(i, j, k): @ti.func returning the value at a grid index (Taichi scope)
- field[i, j, k]: the same value read from Python scope

Stencil operators only ever call ``a.at(i, j, k)``, so stored fields, sums of
fields and kernel fields can be used interchangeably as stencil inputs.

Usage:
    b = StaggeredField(grid, CCC, name="b")
    b.set_from_indices(lambda i, j, k: k)
    b_total = add_background(b, b_background)  # FieldSum, or b if None
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable

import numpy as np
import taichi as ti

from flowdiag.core.dtypes import DTYPE
from flowdiag.core.grid import RectilinearGrid
from flowdiag.core.locations import (
    LocationError,
    LocationTriple,
    as_location,
    location_string,
)

logger = logging.getLogger(__name__)


class FieldLike(ABC):
    """Shared Python-side behaviour of field-like objects."""

    location: LocationTriple
    grid: RectilinearGrid
    name: str = ""

    @abstractmethod
    def at(self, i, j, k):
        """Value at a grid index, callable from Taichi scope."""

    @abstractmethod
    def __getitem__(self, index: tuple[int, int, int]) -> float:
        """Value at a grid index, read from Python scope."""

    def __add__(self, other: "FieldLike") -> "FieldSum":
        return FieldSum(self, other)


@ti.data_oriented
class StaggeredField(FieldLike):
    """A Taichi field tagged with a staggered-grid location.

    Storage covers the interior points plus ``grid.halo`` points on each side
    of every axis, indexed from -halo. Halo values are whatever the caller
    put there; boundary conditions are not enforced here.

    Each field owns its own Taichi SNode tree. Call destroy() to release it
    once the field is no longer needed; Taichi caps the number of live trees.

    Attributes:
        grid: Grid the field lives on
        location: Location triple, e.g. (F, C, C) for u
        name: Field identifier
        data: Underlying Taichi field
    """

    def __init__(
        self,
        grid: RectilinearGrid,
        location,
        name: str = "",
        dtype=DTYPE,
    ):
        self.grid = grid
        self.location = as_location(location)
        self.name = name
        self.data = ti.field(dtype)
        fb = ti.FieldsBuilder()
        fb.dense(ti.ijk, grid.storage_shape(self.location)).place(
            self.data, offset=grid.offset
        )
        self._tree = fb.finalize()

    @ti.func
    def at(self, i, j, k):
        return self.data[i, j, k]

    def __getitem__(self, index: tuple[int, int, int]) -> float:
        i, j, k = index
        return self.data[i, j, k]

    def __setitem__(self, index: tuple[int, int, int], value: float) -> None:
        i, j, k = index
        self.data[i, j, k] = value

    @property
    def shape(self) -> tuple[int, int, int]:
        """Interior shape."""
        return self.grid.shape(self.location)

    def fill(self, value: float) -> None:
        """Set every stored point, halos included."""
        self.data.fill(value)

    def set(self, values: np.ndarray) -> None:
        """Set interior values; halo values are left untouched.

        Raises:
            ValueError: If values do not have the interior shape
        """
        values = np.asarray(values, dtype=np.float64)
        if values.shape != self.shape:
            raise ValueError(
                f"Field '{self.name}' at {location_string(self.location)} "
                f"expects interior shape {self.shape}, got {values.shape}"
            )
        h = self.grid.halo
        full = self.data.to_numpy()
        full[h:-h, h:-h, h:-h] = values
        self.data.from_numpy(full)

    def set_full(self, values: np.ndarray) -> None:
        """Set every stored point from an array that includes the halos."""
        values = np.asarray(values, dtype=np.float64)
        storage = self.grid.storage_shape(self.location)
        if values.shape != storage:
            raise ValueError(
                f"Field '{self.name}' expects storage shape {storage}, "
                f"got {values.shape}"
            )
        self.data.from_numpy(values)

    def set_from_indices(self, func: Callable) -> None:
        """Set every stored point to func(i, j, k), halos included.

        ``func`` receives broadcastable integer index arrays (starting at
        -halo) and must return something broadcastable to the storage shape.
        """
        h = self.grid.halo
        storage = self.grid.storage_shape(self.location)
        i, j, k = np.meshgrid(
            *(np.arange(-h, n - h) for n in storage), indexing="ij"
        )
        values = np.broadcast_to(np.asarray(func(i, j, k), dtype=np.float64), storage)
        self.data.from_numpy(np.ascontiguousarray(values))

    def to_numpy(self, include_halo: bool = False) -> np.ndarray:
        """Copy values out; interior only unless include_halo."""
        full = self.data.to_numpy()
        if include_halo:
            return full
        h = self.grid.halo
        return full[h:-h, h:-h, h:-h].copy()

    def destroy(self) -> None:
        """Release the Taichi storage. The field must not be used afterwards."""
        if self._tree is not None:
            self._tree.destroy()
            self._tree = None

    def __repr__(self) -> str:
        return (
            f"StaggeredField('{self.name}', "
            f"location={location_string(self.location)}, size={self.grid.size})"
        )


@ti.data_oriented
class FieldSum(FieldLike):
    """Lazy point-wise sum of two co-located fields.

    Nothing is materialized: every evaluation reads both operands, so the sum
    follows later changes to either of them.
    """

    def __init__(self, left: FieldLike, right: FieldLike):
        if left.location != right.location:
            raise LocationError(
                f"Cannot add fields at {location_string(left.location)} and "
                f"{location_string(right.location)}"
            )
        if left.grid is not right.grid:
            raise ValueError("Cannot add fields defined on different grids")
        self.left = left
        self.right = right
        self.grid = left.grid
        self.location = left.location
        self.name = f"{left.name}+{right.name}"

    @ti.func
    def at(self, i, j, k):
        return self.left.at(i, j, k) + self.right.at(i, j, k)

    def __getitem__(self, index: tuple[int, int, int]) -> float:
        return self.left[index] + self.right[index]

    def __repr__(self) -> str:
        return f"FieldSum({self.left!r}, {self.right!r})"


@ti.data_oriented
class ConstantField(FieldLike):
    """A uniform value at a location. Holds no Taichi storage.

    The value is baked into every kernel that reads it, so it is fixed at
    construction.
    """

    def __init__(self, grid: RectilinearGrid, location, value: float, name: str = ""):
        self.grid = grid
        self.location = as_location(location)
        self.value = float(value)
        self.name = name

    @ti.func
    def at(self, i, j, k):
        return self.value

    def __getitem__(self, index: tuple[int, int, int]) -> float:
        return self.value

    def __repr__(self) -> str:
        return (
            f"ConstantField('{self.name}', {self.value}, "
            f"location={location_string(self.location)})"
        )


def add_background(field: FieldLike, background: FieldLike | None) -> FieldLike:
    """Total field = field + background, skipping an absent background.

    Args:
        field: State field (velocity component or tracer)
        background: Background field, or None for "contributes nothing"

    Returns:
        ``field`` itself when background is None, otherwise a FieldSum
    """
    if background is None:
        logger.debug("No background for '%s'; using field as is", field.name)
        return field
    return FieldSum(field, background)
