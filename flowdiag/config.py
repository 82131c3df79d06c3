"""
Taichi backend selection for diagnostic kernels.

Environment variables:
    FLOWDIAG_BACKEND: 'cuda', 'vulkan', 'cpu', or 'auto' (default)
    FLOWDIAG_DEBUG: '1' turns on Taichi debug mode, which bounds-checks
        every field access (out-of-range stencil reads raise)

Kernels run in double precision (DTYPE) on every backend.
"""

import logging
import os
import subprocess

import taichi as ti

from flowdiag.core.dtypes import DTYPE

logger = logging.getLogger(__name__)

_ARCHES = {"cuda": ti.cuda, "vulkan": ti.vulkan, "cpu": ti.cpu}


def _has_cuda_device() -> bool:
    try:
        result = subprocess.run(
            ["nvidia-smi", "-L"], capture_output=True, text=True, timeout=5
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("nvidia-smi unavailable")
        return False
    return result.returncode == 0 and "GPU" in result.stdout


def get_backend() -> str:
    """Backend named by FLOWDIAG_BACKEND, or CUDA when a GPU is visible, else CPU."""
    name = os.environ.get("FLOWDIAG_BACKEND", "auto").lower()
    if name in _ARCHES:
        return name
    if name != "auto":
        raise ValueError(f"Invalid FLOWDIAG_BACKEND: {name}")
    return "cuda" if _has_cuda_device() else "cpu"


def init_taichi(backend: str | None = None, debug: bool | None = None) -> str:
    """Initialize Taichi once per process, before any grid or field is built.

    Returns:
        The backend name in use
    """
    backend = get_backend() if backend is None else backend
    if backend not in _ARCHES:
        raise ValueError(f"Unknown backend: {backend}")
    if debug is None:
        debug = os.environ.get("FLOWDIAG_DEBUG", "0") == "1"

    ti.init(arch=_ARCHES[backend], default_fp=DTYPE, debug=debug, offline_cache=True)
    logger.info("Taichi initialized (backend=%s, debug=%s)", backend, debug)
    return backend
