"""Field-like objects for flowdiag.

Main classes:
- StaggeredField: Taichi-backed storage tagged with a location triple
- FieldSum: Lazy sum of two co-located fields
- ConstantField: Uniform value with no storage
- KernelFunctionField: Lazy, point-wise evaluated diagnostic field

Helpers:
- add_background: Add an optional background field
- stencil_field: Apply a single stencil to a field, lazily
"""

from flowdiag.fields.base import (
    ConstantField,
    FieldLike,
    FieldSum,
    StaggeredField,
    add_background,
)
from flowdiag.fields.kernel_field import (
    DomainError,
    KernelFunction,
    KernelFunctionField,
    stencil_field,
)

__all__ = [
    "ConstantField",
    "FieldLike",
    "FieldSum",
    "StaggeredField",
    "add_background",
    "DomainError",
    "KernelFunction",
    "KernelFunctionField",
    "stencil_field",
]
