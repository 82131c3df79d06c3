"""Pytest fixtures and test utilities for flowdiag."""

import pytest

from flowdiag.config import init_taichi
from flowdiag.core.grid import RectilinearGrid
from flowdiag.core.locations import (
    TRACER_LOCATION,
    U_LOCATION,
    V_LOCATION,
    W_LOCATION,
)
from flowdiag.fields.base import StaggeredField
from flowdiag.state import BackgroundFields, FlowState


@pytest.fixture(scope="session", autouse=True)
def taichi_init():
    """Initialize Taichi once per test session with CPU backend."""
    init_taichi(backend="cpu", debug=True)
    yield


@pytest.fixture(scope="session")
def grid(taichi_init):
    """6x6x6 grid with unit spacing, shared by the whole session."""
    grid = RectilinearGrid.uniform(6, 6, 6, extent=(6.0, 6.0, 6.0))
    yield grid
    grid.destroy()


@pytest.fixture
def managed():
    """Register grids, fields and kernel fields for destroy() after the test.

    Every object owning Taichi storage that a test builds goes through here,
    so SNode trees are released and their ids reused across the session.
    """
    owned = []

    def _manage(obj):
        owned.append(obj)
        return obj

    yield _manage
    for obj in reversed(owned):
        obj.destroy()


@pytest.fixture
def make_field(grid, managed):
    """Factory for staggered fields set from a function of (i, j, k) or a constant."""
    return lambda location, values=0.0, name="": managed(
        make_staggered(grid, location, values, name)
    )


def make_staggered(grid, location, values=0.0, name=""):
    """Field at ``location`` with every stored point (halos included) set."""
    field = StaggeredField(grid, location, name=name)
    if callable(values):
        field.set_from_indices(values)
    else:
        field.fill(float(values))
    return field


@pytest.fixture
def make_state(grid, make_field):
    """Factory for FlowState; velocities and buoyancy default to zero."""

    def _make(
        u=0.0,
        v=0.0,
        w=0.0,
        b=0.0,
        coriolis=None,
        background: BackgroundFields | None = None,
    ):
        return FlowState(
            grid=grid,
            u=make_field(U_LOCATION, u, "u"),
            v=make_field(V_LOCATION, v, "v"),
            w=make_field(W_LOCATION, w, "w"),
            b=make_field(TRACER_LOCATION, b, "b"),
            coriolis=coriolis,
            background=background or BackgroundFields(),
        )

    return _make
