"""Tests for the rectilinear grid and its spacing metrics."""

import numpy as np
import pytest

from flowdiag.core.grid import RectilinearGrid
from flowdiag.core.locations import CCC, FFF, U_LOCATION, Location
from flowdiag.params.schema import GridParams


class TestUniformGrid:
    """Tests for uniformly spaced grids."""

    def test_size_and_shapes(self, managed):
        grid = managed(RectilinearGrid.uniform(4, 5, 6))
        assert grid.size == (4, 5, 6)
        assert grid.shape(CCC) == (4, 5, 6)
        assert grid.shape(FFF) == (5, 6, 7)
        assert grid.shape(U_LOCATION) == (5, 5, 6)
        assert grid.storage_shape(CCC) == (6, 7, 8)

    def test_uniform_spacing(self, managed):
        grid = managed(RectilinearGrid.uniform(4, 4, 4, extent=(8.0, 4.0, 2.0)))
        for i in range(-1, 5):
            assert grid.dx_center[i] == pytest.approx(2.0)
            assert grid.dx_face[i] == pytest.approx(2.0)
            assert grid.dy_center[i] == pytest.approx(1.0)
            assert grid.dz_face[i] == pytest.approx(0.5)

    def test_nodes(self, managed):
        grid = managed(RectilinearGrid.uniform(4, 4, 4, extent=(4.0, 4.0, 4.0)))
        np.testing.assert_allclose(grid.nodes("x", Location.CENTER), [0.5, 1.5, 2.5, 3.5])
        np.testing.assert_allclose(grid.nodes("y", Location.FACE), [0, 1, 2, 3, 4])
        np.testing.assert_allclose(
            grid.nodes("z", Location.FACE, include_halo=True), [-1, 0, 1, 2, 3, 4, 5]
        )
        assert grid.nodes(0, Location.CENTER, include_halo=True).size == grid.storage_shape(CCC)[0]

    def test_from_params(self, managed):
        grid = managed(RectilinearGrid.from_params(GridParams(nx=3, ny=4, nz=5, Lz=10.0, halo=2)))
        assert grid.size == (3, 4, 5)
        assert grid.halo == 2
        assert grid.offset == (-2, -2, -2)
        assert grid.dz_center[0] == pytest.approx(2.0)


class TestStretchedGrid:
    """Spacings on a vertically stretched grid: faces at z = 0, 1, 3, 6."""

    @pytest.fixture
    def grid(self, managed):
        return managed(RectilinearGrid([0, 1, 2], [0, 1, 2], [0.0, 1.0, 3.0, 6.0]))

    def test_center_spacing_is_cell_width(self, grid):
        assert grid.dz_center[0] == pytest.approx(1.0)
        assert grid.dz_center[1] == pytest.approx(2.0)
        assert grid.dz_center[2] == pytest.approx(3.0)

    def test_face_spacing_is_center_distance(self, grid):
        # centers at 0.5, 2.0, 4.5
        assert grid.dz_face[1] == pytest.approx(1.5)
        assert grid.dz_face[2] == pytest.approx(2.5)

    def test_halo_repeats_outer_cells(self, grid):
        assert grid.dz_center[-1] == pytest.approx(1.0)
        assert grid.dz_center[3] == pytest.approx(3.0)
        assert grid.dz_face[0] == pytest.approx(1.0)
        assert grid.dz_face[3] == pytest.approx(3.0)


class TestGridValidation:
    """Invalid grids are rejected."""

    def test_halo_must_be_positive(self):
        with pytest.raises(ValueError, match="halo"):
            RectilinearGrid.uniform(4, 4, 4, halo=0)

    def test_faces_must_increase(self):
        with pytest.raises(ValueError, match="strictly increasing"):
            RectilinearGrid([0, 1, 2], [0, 2, 1], [0, 1])

    def test_needs_a_cell(self):
        with pytest.raises(ValueError):
            RectilinearGrid([0], [0, 1], [0, 1])
        with pytest.raises(ValueError):
            RectilinearGrid.uniform(0, 4, 4)
