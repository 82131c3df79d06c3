"""
flowdiag: Taichi kernels for diagnostics of rotating, stratified flows.

Lazy, point-wise evaluated Richardson number, Rossby number, potential
vorticity and tracer variance dissipation rates on a staggered grid.
"""

__version__ = "0.1.0"
