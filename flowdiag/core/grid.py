"""Rectilinear staggered grid.

This module centralizes all spatial metric logic:
- RectilinearGrid: cell faces along each axis, halo width, spacing fields
- Spacing conventions used by the stencil operators

Index convention (per axis, N cells):

    face index:     0     1     2         N-1    N
                    |  c0 |  c1 |   ...    | cN-1 |
    center index:      0     1               N-1

Face i sits on the left of center i. Spacings are stored per location:
- Center spacing Δᶜ[i] = xᶠ[i+1] - xᶠ[i]  (width of cell i)
- Face spacing   Δᶠ[i] = xᶜ[i] - xᶜ[i-1]  (distance between adjacent centers)

A derivative that lands on a face divides by the face spacing, a derivative
that lands on a center divides by the center spacing. Halo cells repeat the
width of the outermost interior cell.
"""

from typing import Sequence

import numpy as np
import taichi as ti

from flowdiag.core.dtypes import DTYPE
from flowdiag.core.locations import AXES, Location, LocationTriple, axis_index


def _extend(faces: np.ndarray, width: int) -> np.ndarray:
    """Pad face coordinates with `width` uniformly spaced points on each side."""
    left = faces[0] - (faces[1] - faces[0]) * np.arange(width, 0, -1)
    right = faces[-1] + (faces[-1] - faces[-2]) * np.arange(1, width + 1)
    return np.concatenate([left, faces, right])


@ti.data_oriented
class RectilinearGrid:
    """Immutable rectilinear grid with staggered spacing metrics.

    Attributes:
        size: Number of cells (nx, ny, nz)
        halo: Number of halo points on each side of every axis
        dx_center, dx_face, dy_center, dy_face, dz_center, dz_face:
            1-D Taichi fields of spacings, indexed from -halo to N+halo

    Example:
        grid = RectilinearGrid.uniform(16, 16, 8, extent=(1000, 1000, 100))
        grid.shape((Location.FACE, Location.CENTER, Location.CENTER))
        # (17, 16, 8)
    """

    def __init__(
        self,
        x_faces: Sequence[float],
        y_faces: Sequence[float],
        z_faces: Sequence[float],
        halo: int = 1,
    ):
        """Build a grid from face coordinates along each axis.

        Args:
            x_faces, y_faces, z_faces: Strictly increasing face coordinates,
                N+1 values for N cells
            halo: Halo width (>= 1, needed by the one-point stencils)

        Raises:
            ValueError: If an axis has no cells, faces are not increasing,
                or halo < 1
        """
        if halo < 1:
            raise ValueError(f"halo must be >= 1, got {halo}")

        faces = []
        for name, f in zip(AXES, (x_faces, y_faces, z_faces)):
            f = np.asarray(f, dtype=np.float64)
            if f.ndim != 1 or f.size < 2:
                raise ValueError(
                    f"{name}_faces must hold at least two coordinates, got {f.size}"
                )
            if np.any(np.diff(f) <= 0):
                raise ValueError(f"{name}_faces must be strictly increasing")
            faces.append(f)

        self.halo = halo
        self.size: tuple[int, int, int] = tuple(f.size - 1 for f in faces)
        self._faces = tuple(faces)

        # Spacing fields cover indices -halo .. N+halo for both locations
        spacings = {}
        for name, f in zip(AXES, faces):
            ext = _extend(f, halo + 1)  # indices -(halo+1) .. N+halo+1
            centers = 0.5 * (ext[1:] + ext[:-1])  # indices -(halo+1) .. N+halo
            center_spacing = np.diff(ext)[1:]  # Δᶜ[i], i = -halo .. N+halo
            face_spacing = np.diff(centers)  # Δᶠ[i], i = -halo .. N+halo
            spacings[f"d{name}_center"] = center_spacing
            spacings[f"d{name}_face"] = face_spacing

        # All six spacing fields share one SNode tree
        fb = ti.FieldsBuilder()
        for attr, values in spacings.items():
            spacing = ti.field(DTYPE)
            fb.dense(ti.i, values.size).place(spacing, offset=(-halo,))
            setattr(self, attr, spacing)
        self._tree = fb.finalize()
        for attr, values in spacings.items():
            getattr(self, attr).from_numpy(values)

    @classmethod
    def uniform(
        cls,
        nx: int,
        ny: int,
        nz: int,
        extent: tuple[float, float, float] = (1.0, 1.0, 1.0),
        halo: int = 1,
    ) -> "RectilinearGrid":
        """Uniformly spaced grid on [0, Lx] x [0, Ly] x [0, Lz]."""
        for name, n in zip(AXES, (nx, ny, nz)):
            if n < 1:
                raise ValueError(f"n{name} must be >= 1, got {n}")
        return cls(
            *(np.linspace(0.0, L, n + 1) for n, L in zip((nx, ny, nz), extent)),
            halo=halo,
        )

    @classmethod
    def from_params(cls, params) -> "RectilinearGrid":
        """Build a uniform grid from a GridParams record."""
        return cls.uniform(
            params.nx,
            params.ny,
            params.nz,
            extent=(params.Lx, params.Ly, params.Lz),
            halo=params.halo,
        )

    @property
    def nx(self) -> int:
        return self.size[0]

    @property
    def ny(self) -> int:
        return self.size[1]

    @property
    def nz(self) -> int:
        return self.size[2]

    @property
    def offset(self) -> tuple[int, int, int]:
        """Index offset of the first stored (halo) point."""
        return (-self.halo,) * 3

    def shape(self, location: LocationTriple) -> tuple[int, int, int]:
        """Number of interior points at a location (N for Center, N+1 for Face)."""
        return tuple(
            n + 1 if loc is Location.FACE else n
            for n, loc in zip(self.size, location)
        )

    def storage_shape(self, location: LocationTriple) -> tuple[int, int, int]:
        """Number of stored points at a location, halos included."""
        return tuple(n + 2 * self.halo for n in self.shape(location))

    def nodes(
        self, axis: str | int, location: Location, include_halo: bool = False
    ) -> np.ndarray:
        """Coordinates of the points along one axis.

        Args:
            axis: 'x', 'y', 'z' or 0, 1, 2
            location: CENTER or FACE
            include_halo: Also return the halo points

        Returns:
            1-D array, starting at index -halo if include_halo else at 0
        """
        faces = self._faces[axis_index(axis)]
        if include_halo:
            faces = _extend(faces, self.halo)
        if location is Location.FACE:
            return faces.copy()
        return 0.5 * (faces[1:] + faces[:-1])

    def destroy(self) -> None:
        """Release the spacing fields. Kernels must not read this grid afterwards."""
        if self._tree is not None:
            self._tree.destroy()
            self._tree = None

    def __repr__(self) -> str:
        return f"RectilinearGrid(size={self.size}, halo={self.halo})"
