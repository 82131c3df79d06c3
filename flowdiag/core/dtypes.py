"""Type definitions for flowdiag.

This module defines the floating-point precision used by every field and kernel.
Diagnostics divide small gradients by one another (Richardson number, Rossby
number), so double precision is the default.
"""

import taichi as ti

# Default floating-point type for all fields and computations
# ti.f64: Double precision (64-bit float) - ~16 significant digits
# ti.f32: Single precision (32-bit float) - faster on GPU, ~7 significant digits
DTYPE = ti.f64
