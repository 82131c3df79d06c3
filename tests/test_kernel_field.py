"""Tests for lazily evaluated kernel fields."""

import logging

import numpy as np
import pytest
import taichi as ti

from flowdiag.core.grid import RectilinearGrid
from flowdiag.core.locations import CCC, FFF, U_LOCATION, LocationError
from flowdiag.fields.base import StaggeredField
from flowdiag.fields.kernel_field import (
    DomainError,
    KernelFunction,
    KernelFunctionField,
    stencil_field,
)
from flowdiag.operators.stencils import VALUE, ddx_face


@ti.func
def _scaled_sum_ccc(i, j, k, grid: ti.template(), a: ti.template(), c: ti.template(), params: ti.template()):
    return params * (a.at(i, j, k) + c.at(i, j, k))


@ti.func
def _reciprocal_ccc(i, j, k, grid: ti.template(), a: ti.template(), params: ti.template()):
    return 1.0 / a.at(i, j, k)


SCALED_SUM = KernelFunction(
    func=_scaled_sum_ccc,
    location=CCC,
    name="ScaledSum",
    dependencies=("a", "c"),
    terms=((0, VALUE), (1, VALUE)),
)

RECIPROCAL = KernelFunction(
    func=_reciprocal_ccc,
    location=CCC,
    name="Reciprocal",
    dependencies=("a",),
    terms=((0, VALUE),),
    finite_only=True,
)


class TestConstruction:
    """Location and input checks at construction time."""

    def test_location_defaults_to_kernel_location(self, grid, make_field):
        field = KernelFunctionField(SCALED_SUM, grid, (make_field(CCC), make_field(CCC)), 2.0)
        assert field.location == CCC
        assert field.shape == (6, 6, 6)
        assert field.name == "ScaledSum"

    def test_rejects_other_location(self, grid, make_field):
        with pytest.raises(LocationError, match="only implemented at"):
            KernelFunctionField(
                SCALED_SUM, grid, (make_field(CCC), make_field(CCC)), 2.0, location=FFF
            )

    def test_rejects_misplaced_input(self, grid, make_field):
        with pytest.raises(LocationError, match="lands on"):
            KernelFunctionField(SCALED_SUM, grid, (make_field(CCC), make_field(U_LOCATION)), 2.0)

    def test_rejects_wrong_input_count(self, grid, make_field):
        with pytest.raises(ValueError, match="expects 2 input fields"):
            KernelFunctionField(SCALED_SUM, grid, (make_field(CCC),), 2.0)

    def test_rejects_input_on_other_grid(self, grid, make_field, managed):
        other_grid = managed(RectilinearGrid.uniform(6, 6, 6))
        other = managed(StaggeredField(other_grid, CCC))
        with pytest.raises(ValueError, match="different grid"):
            KernelFunctionField(SCALED_SUM, grid, (make_field(CCC), other), 2.0)


class TestEvaluation:
    """Point evaluation and bulk computation."""

    def test_point_evaluation(self, grid, make_field):
        a = make_field(CCC, lambda i, j, k: i, "a")
        c = make_field(CCC, lambda i, j, k: k, "c")
        field = KernelFunctionField(SCALED_SUM, grid, (a, c), 2.0)
        assert field[1, 0, 3] == pytest.approx(8.0)
        assert field.evaluate(5, 5, 5) == pytest.approx(20.0)

    def test_evaluation_is_not_cached(self, grid, make_field):
        a = make_field(CCC, 1.0, "a")
        c = make_field(CCC, 0.0, "c")
        field = KernelFunctionField(SCALED_SUM, grid, (a, c), 3.0)
        assert field[2, 2, 2] == pytest.approx(3.0)
        a[2, 2, 2] = 5.0
        assert field[2, 2, 2] == pytest.approx(15.0)

    def test_compute_fills_interior(self, grid, make_field, managed):
        a = make_field(CCC, lambda i, j, k: i + j, "a")
        c = make_field(CCC, lambda i, j, k: k, "c")
        result = managed(KernelFunctionField(SCALED_SUM, grid, (a, c), 0.5)).compute()
        assert isinstance(result, StaggeredField)
        assert result.location == CCC
        i, j, k = np.meshgrid(*(np.arange(6),) * 3, indexing="ij")
        np.testing.assert_allclose(result.to_numpy(), 0.5 * (i + j + k))

    def test_compute_into_existing_field(self, grid, make_field):
        field = KernelFunctionField(SCALED_SUM, grid, (make_field(CCC, 1.0), make_field(CCC, 1.0)), 1.0)
        out = make_field(CCC)
        assert field.compute(out) is out
        np.testing.assert_allclose(out.to_numpy(), 2.0)

    def test_compute_rejects_misplaced_output(self, grid, make_field):
        field = KernelFunctionField(SCALED_SUM, grid, (make_field(CCC), make_field(CCC)), 1.0)
        with pytest.raises(LocationError):
            field.compute(make_field(U_LOCATION))


class TestComputeBuffer:
    """compute() writes into one buffer per kernel field."""

    def test_repeated_compute_reuses_buffer(self, grid, make_field, managed):
        a = make_field(CCC, 1.0, "a")
        field = managed(KernelFunctionField(SCALED_SUM, grid, (a, make_field(CCC)), 1.0))
        first = field.compute()
        for step in range(1000):
            a.fill(float(step))
            assert field.compute() is first
        np.testing.assert_allclose(first.to_numpy(), 999.0)

    def test_destroy_releases_buffer(self, grid, make_field):
        field = KernelFunctionField(SCALED_SUM, grid, (make_field(CCC, 2.0), make_field(CCC)), 1.0)
        first = field.compute()
        field.destroy()
        field.destroy()
        second = field.compute()
        assert second is not first
        np.testing.assert_allclose(second.to_numpy(), 2.0)
        field.destroy()


class TestNonFiniteValues:
    """Finite-only kernels raise on point evaluation and warn on compute."""

    def test_point_evaluation_raises(self, grid, make_field):
        a = make_field(CCC, 2.0, "a")
        field = KernelFunctionField(RECIPROCAL, grid, (a,))
        assert field[1, 1, 1] == pytest.approx(0.5)
        a[1, 1, 1] = 0.0
        with pytest.raises(DomainError):
            field[1, 1, 1]

    def test_compute_keeps_ieee_values(self, grid, make_field, managed, caplog):
        a = make_field(CCC, 2.0, "a")
        a[1, 1, 1] = 0.0
        field = managed(KernelFunctionField(RECIPROCAL, grid, (a,)))
        with caplog.at_level(logging.WARNING):
            result = field.compute()
        values = result.to_numpy()
        assert np.isinf(values[1, 1, 1])
        assert np.count_nonzero(~np.isfinite(values)) == 1
        assert "1 of 216 points are not finite" in caplog.text


class TestStencilField:
    """Single stencils wrapped as lazy fields."""

    def test_location_and_name(self, make_field):
        dbdx = stencil_field(ddx_face, make_field(CCC, name="b"))
        assert dbdx.location == U_LOCATION
        assert dbdx.name == "∂xᶠ(b)"
        assert dbdx.shape == (7, 6, 6)
