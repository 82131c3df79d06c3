"""Tests for staggered derivative and interpolation stencils."""

import pytest

from flowdiag.core.grid import RectilinearGrid
from flowdiag.core.locations import (
    CCC,
    FFF,
    U_LOCATION,
    V_LOCATION,
    Location,
    LocationError,
)
from flowdiag.fields.base import StaggeredField
from flowdiag.fields.kernel_field import stencil_field
from flowdiag.operators.stencils import (
    ddx_center,
    ddx_face,
    ddy_face,
    ddz_center,
    ddz_face,
    derivative,
    interpolate,
    interpolate_squared,
    interpolate_xy,
    squared,
)

C = Location.CENTER
F = Location.FACE

POINTS = [(1, 1, 1), (2, 3, 4), (4, 2, 5), (5, 5, 5)]


class TestLocationTransforms:
    """Output locations of primitive and composite stencils."""

    def test_derivatives(self):
        assert ddx_face.output_location(CCC) == (F, C, C)
        assert ddx_center.output_location(U_LOCATION) == CCC
        assert derivative("z", F) is ddz_face

    def test_composite(self):
        assert interpolate("z", F, ddx_face).output_location(V_LOCATION) == (F, F, F)
        assert interpolate_xy(F, F, ddz_face).output_location(CCC) == FFF
        assert interpolate_squared("x", C, ddx_face).output_location(CCC) == CCC

    def test_names(self):
        assert ddx_face.name == "∂xᶠ"
        assert interpolate("z", F, ddx_face).name == "ℑzᶠ(∂xᶠ)"

    def test_wrong_operand_location(self):
        with pytest.raises(LocationError):
            ddx_face.output_location(U_LOCATION)
        with pytest.raises(LocationError):
            interpolate("z", F, ddz_face).output_location(CCC)

    def test_stencil_field_rejects_wrong_operand(self, make_field):
        with pytest.raises(LocationError):
            stencil_field(ddx_face, make_field(U_LOCATION, name="u"))


class TestDerivatives:
    """Finite-difference values on uniform and stretched grids."""

    def test_linear_field_has_unit_derivative(self, make_field):
        b = make_field(CCC, lambda i, j, k: i + 2 * j + 3 * k, "b")
        for stencil, expected in ((ddx_face, 1.0), (ddy_face, 2.0), (ddz_face, 3.0)):
            field = stencil_field(stencil, b)
            for p in POINTS:
                assert field[p] == pytest.approx(expected)

    def test_center_derivative_of_face_field(self, make_field):
        u = make_field(U_LOCATION, lambda i, j, k: 0.5 * i, "u")
        dudx = stencil_field(ddx_center, u)
        assert dudx.location == CCC
        assert dudx[2, 2, 2] == pytest.approx(0.5)

    def test_stretched_grid_uses_face_spacing(self, managed):
        grid = managed(RectilinearGrid([0, 1, 2], [0, 1, 2], [0.0, 1.0, 3.0, 6.0]))
        zc = grid.nodes("z", C, include_halo=True)
        b = managed(StaggeredField(grid, CCC, name="b"))
        b.set_from_indices(lambda i, j, k: zc[k + grid.halo])
        dbdz = stencil_field(ddz_face, b)
        for k in range(4):
            assert dbdz[0, 0, k] == pytest.approx(1.0)

    def test_kernel_fields_compose(self, make_field):
        b = make_field(CCC, lambda i, j, k: k**2, "b")
        dbdz = stencil_field(ddz_face, b)
        curvature = stencil_field(ddz_center, dbdz)
        assert curvature.location == CCC
        for p in POINTS:
            assert curvature[p] == pytest.approx(2.0)

    def test_same_direction_twice_is_rejected(self, make_field):
        dbdz = stencil_field(ddz_face, make_field(CCC, name="b"))
        with pytest.raises(LocationError):
            stencil_field(ddz_face, dbdz)


class TestInterpolation:
    """Interpolation and squared-gradient stencils."""

    def test_interpolate_to_face_is_mean_of_neighbours(self, make_field):
        b = make_field(CCC, lambda i, j, k: i**2, "b")
        bf = stencil_field(interpolate("x", F), b)
        assert bf.location == U_LOCATION
        assert bf[3, 0, 0] == pytest.approx((9 + 4) / 2)

    def test_interpolate_to_center_is_mean_of_neighbours(self, make_field):
        u = make_field(U_LOCATION, lambda i, j, k: i**2, "u")
        uc = stencil_field(interpolate("x", C), u)
        assert uc.location == CCC
        assert uc[3, 0, 0] == pytest.approx((9 + 16) / 2)

    def test_interpolation_commutes(self, make_field):
        b = make_field(CCC, lambda i, j, k: i * j + k * i**2 + j**3, "b")
        xy = stencil_field(interpolate("x", F, interpolate("y", F)), b)
        yx = stencil_field(interpolate("y", F, interpolate("x", F)), b)
        assert xy.location == yx.location == (F, F, C)
        for p in POINTS:
            assert xy[p] == pytest.approx(yx[p])

    def test_linear_ramp_has_unit_squared_gradient(self, make_field):
        b = make_field(CCC, lambda i, j, k: i, "b")
        dbdx2 = stencil_field(interpolate_squared("x", C, ddx_face), b)
        assert dbdx2.location == CCC
        for p in POINTS:
            assert dbdx2[p] == pytest.approx(1.0)

    def test_square_before_interpolating(self, make_field):
        # b = i²: ∂xᶠ b = 2i - 1, so the mean of squares is 4i² + 1
        # while the square of the mean is 4i²
        b = make_field(CCC, lambda i, j, k: i**2, "b")
        mean_of_squares = stencil_field(interpolate_squared("x", C, ddx_face), b)
        square_of_mean = stencil_field(squared(interpolate("x", C, ddx_face)), b)
        for i in range(1, 5):
            assert mean_of_squares[i, 2, 2] == pytest.approx(4 * i**2 + 1)
            assert square_of_mean[i, 2, 2] == pytest.approx(4 * i**2)
