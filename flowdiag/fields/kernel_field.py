"""Lazy, point-wise evaluated kernel fields.

A KernelFunctionField stores a point-wise @ti.func, its input fields and a
parameter record. It evaluates on demand:

    field[i, j, k]      one point, recomputed on every call
    field.at(i, j, k)   same, from Taichi scope (so kernel fields compose)
    field.compute()     parallel evaluation of all interior points into an
                        output buffer, when the caller wants an array

Nothing is cached, so evaluations always reflect the current contents of the
input fields. The compute() buffer is allocated on the first call and reused
by every later call.

Kernel function signature:

    func(i, j, k, grid, *dependencies, parameters) -> value

Location contract, checked once at construction:
- the requested location must be the kernel's declared location
- every declared term (dependency index, Stencil) must land on that location
  when applied to the actual location of its dependency
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Sequence

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
from flowdiag.fields.base import FieldLike, StaggeredField
from flowdiag.operators.stencils import Stencil

logger = logging.getLogger(__name__)


class DomainError(ArithmeticError):
    """A point evaluation produced a value outside the diagnostic's domain."""


@dataclass(frozen=True)
class KernelFunction:
    """Declaration of a point-wise diagnostic kernel.

    Attributes:
        func: @ti.func (i, j, k, grid, *dependencies, parameters)
        location: The only location the kernel is valid at
        name: Diagnostic name used in messages
        dependencies: Names of the expected input fields, in call order
        terms: (dependency index, Stencil) pairs that must land on location
        unreconciled: Terms that are combined without being moved to
            location; mismatches are logged instead of rejected
        finite_only: Point evaluations raise DomainError on inf/nan
    """

    func: Callable
    location: LocationTriple
    name: str
    dependencies: tuple[str, ...] = ()
    terms: tuple[tuple[int, Stencil], ...] = ()
    unreconciled: tuple[tuple[int, Stencil], ...] = ()
    finite_only: bool = False


def _check_terms(
    kernel: KernelFunction,
    dependencies: Sequence[FieldLike],
) -> None:
    """Validate every declared term against the actual input locations."""
    for index, stencil in kernel.terms:
        dep = dependencies[index]
        produced = stencil.output_location(dep.location)
        if produced != kernel.location:
            raise LocationError(
                f"{kernel.name}: {stencil.name} of '{dep.name}' at "
                f"{location_string(dep.location)} lands on "
                f"{location_string(produced)}, expected "
                f"{location_string(kernel.location)}"
            )

    for index, stencil in kernel.unreconciled:
        dep = dependencies[index]
        produced = stencil.output_location(dep.location)
        if produced != kernel.location:
            logger.warning(
                "%s combines %s of '%s' at %s with terms at %s without interpolation",
                kernel.name,
                stencil.name,
                dep.name,
                location_string(produced),
                location_string(kernel.location),
            )


@ti.data_oriented
class KernelFunctionField(FieldLike):
    """A field whose values are computed point-wise by a kernel function.

    Attributes:
        kernel: The KernelFunction declaration
        grid: Grid the result lives on
        location: Location of the result
        dependencies: Input fields, passed to the kernel in order
        parameters: Immutable parameter record (or None)
    """

    def __init__(
        self,
        kernel: KernelFunction,
        grid: RectilinearGrid,
        dependencies: Sequence[FieldLike] = (),
        parameters: Any = None,
        location=None,
        name: str | None = None,
    ):
        """Construct and validate a kernel field.

        Raises:
            LocationError: If ``location`` differs from the kernel's location
                or a term does not land on it
            ValueError: If the number of dependencies is wrong or an input
                lives on a different grid
        """
        target = kernel.location if location is None else as_location(location)
        if target != kernel.location:
            raise LocationError(
                f"{kernel.name} is only implemented at "
                f"{location_string(kernel.location)}, requested "
                f"{location_string(target)}"
            )

        dependencies = tuple(dependencies)
        if kernel.dependencies and len(dependencies) != len(kernel.dependencies):
            raise ValueError(
                f"{kernel.name} expects {len(kernel.dependencies)} input fields "
                f"{kernel.dependencies}, got {len(dependencies)}"
            )
        for dep in dependencies:
            if dep.grid is not grid:
                raise ValueError(
                    f"{kernel.name}: input '{dep.name}' is defined on a different grid"
                )

        _check_terms(kernel, dependencies)

        self.kernel = kernel
        self.kernel_function = kernel.func
        self.grid = grid
        self.location = target
        self.dependencies = dependencies
        self.parameters = parameters
        self.name = name or kernel.name
        self.out_nx, self.out_ny, self.out_nz = grid.shape(target)
        self._output: StaggeredField | None = None

        logger.debug(
            "Built %s at %s from %s",
            self.name,
            location_string(target),
            [dep.name for dep in dependencies],
        )

    @ti.func
    def at(self, i, j, k):
        return self.kernel_function(
            i, j, k, self.grid, *self.dependencies, self.parameters
        )

    @ti.kernel
    def _evaluate(self, i: ti.i32, j: ti.i32, k: ti.i32) -> DTYPE:
        return self.at(i, j, k)

    @ti.kernel
    def _compute(self, out: ti.template()):
        for i, j, k in ti.ndrange(self.out_nx, self.out_ny, self.out_nz):
            out[i, j, k] = self.at(i, j, k)

    def evaluate(self, i: int, j: int, k: int) -> float:
        """Evaluate at a single index.

        Raises:
            DomainError: If the kernel is finite-only and the value is inf/nan
        """
        value = float(self._evaluate(i, j, k))
        if self.kernel.finite_only and not math.isfinite(value):
            raise DomainError(
                f"{self.name} is undefined at ({i}, {j}, {k}): got {value}"
            )
        return value

    def __getitem__(self, index: tuple[int, int, int]) -> float:
        i, j, k = index
        return self.evaluate(i, j, k)

    @property
    def shape(self) -> tuple[int, int, int]:
        """Interior shape of the result."""
        return (self.out_nx, self.out_ny, self.out_nz)

    def compute(self, out: StaggeredField | None = None) -> StaggeredField:
        """Evaluate every interior point into a StaggeredField.

        Without ``out`` the result goes to this field's own buffer, allocated
        on the first call and overwritten by later calls. Halo points are not
        written. Non-finite results are kept as IEEE values and reported with
        a warning.

        Args:
            out: Destination field at this field's location

        Returns:
            The destination field
        """
        if out is None:
            if self._output is None:
                self._output = StaggeredField(self.grid, self.location, name=self.name)
            out = self._output
        elif out.location != self.location or out.grid is not self.grid:
            raise LocationError(
                f"Cannot compute {self.name} at {location_string(self.location)} "
                f"into '{out.name}' at {location_string(out.location)}"
            )

        self._compute(out.data)

        n_bad = int(np.count_nonzero(~np.isfinite(out.to_numpy())))
        if n_bad:
            logger.warning(
                "%s: %d of %d points are not finite",
                self.name,
                n_bad,
                self.out_nx * self.out_ny * self.out_nz,
            )
        return out

    def destroy(self) -> None:
        """Release the compute() buffer. Input fields are left alone."""
        if self._output is not None:
            self._output.destroy()
            self._output = None

    def __repr__(self) -> str:
        return (
            f"KernelFunctionField('{self.name}', "
            f"location={location_string(self.location)}, size={self.grid.size})"
        )


def _stencil_kernel(stencil: Stencil) -> Callable:
    op = stencil.func

    @ti.func
    def _apply(i, j, k, grid: ti.template(), a: ti.template(), parameters: ti.template()):
        return op(i, j, k, grid, a)

    return _apply


def stencil_field(stencil: Stencil, field: FieldLike, name: str | None = None) -> KernelFunctionField:
    """Apply a stencil to a field, lazily, at the location it produces.

    Example:
        dbdz = stencil_field(ddz_face, b)   # (C, C, F)
        dbdz[2, 2, 3]

    Raises:
        LocationError: If the stencil cannot act on the field's location
    """
    location = stencil.output_location(field.location)
    label = f"{stencil.name}({field.name})" if stencil.name else field.name
    kernel = KernelFunction(
        func=_stencil_kernel(stencil),
        location=location,
        name=label,
        dependencies=(field.name,),
        terms=((0, stencil),),
    )
    return KernelFunctionField(kernel, field.grid, (field,), name=name or label)
