"""
Shared FFT utilities with optional FFTW acceleration.

Real-to-complex transforms over the spatial axes of a :class:`SpectralGrid`.
Trailing non-spatial axes (such as a layer axis) are transformed
independently.
"""

from __future__ import annotations

import os

import numpy as np

FFTW_THREADS = int(os.environ.get("FFTW_THREADS", "4"))

try:  # pragma: no cover - relies on optional dependency
    import pyfftw
    from pyfftw.interfaces.numpy_fft import irfftn as _irfftn
    from pyfftw.interfaces.numpy_fft import rfftn as _rfftn

    pyfftw.interfaces.cache.enable()

    def rfftn(a, s=None, axes=None, overwrite_input=False):
        """Real-to-complex FFT using FFTW if available."""
        return _rfftn(a, s=s, axes=axes, overwrite_input=overwrite_input, threads=FFTW_THREADS)

    def irfftn(a, s=None, axes=None, overwrite_input=False):
        """Complex-to-real inverse FFT using FFTW; may destroy ``a`` when ``overwrite_input``."""
        return _irfftn(a, s=s, axes=axes, overwrite_input=overwrite_input, threads=FFTW_THREADS)

    FFT_BACKEND = "FFTW"
except ImportError:  # pragma: no cover - falls back automatically

    def rfftn(a, s=None, axes=None, overwrite_input=False):
        """Real-to-complex FFT (NumPy backend; ``overwrite_input`` is ignored)."""
        return np.fft.rfftn(a, s=s, axes=axes)

    def irfftn(a, s=None, axes=None, overwrite_input=False):
        """Complex-to-real inverse FFT (NumPy backend; ``overwrite_input`` is ignored)."""
        return np.fft.irfftn(a, s=s, axes=axes)

    FFT_BACKEND = "NumPy"


def set_fftw_threads(n: int) -> None:
    """
    Update the number of threads used by the FFTW backend.

    Parameters
    ----------
    n : int
        Desired number of threads (>=1). Ignored when FFTW is unavailable.
    """
    global FFTW_THREADS
    FFTW_THREADS = max(1, int(n))


class GridTransform:
    """
    Transform provider built on the tracer grid's own layout.

    ``forward(out, field)`` writes the spectral coefficients of the physical
    array ``field`` into ``out``.  ``inverse(out, field_hat)`` writes the
    physical array into ``out`` and is destructive: the contents of
    ``field_hat`` are undefined after the call and must be recomputed before
    being read again.
    """

    def __init__(self, grid):
        self.grid = grid
        self.axes = grid.transform_axes
        self.s = tuple(grid.n[a] for a in self.axes)

    def forward(self, out: np.ndarray, field: np.ndarray) -> None:
        out[...] = rfftn(field, axes=self.axes)

    def inverse(self, out: np.ndarray, field_hat: np.ndarray) -> None:
        out[...] = irfftn(field_hat, s=self.s, axes=self.axes, overwrite_input=True)


def warm_fft_cache(grid, layers: int = 1) -> None:
    """
    Perform dummy transforms to warm plan caches for the grid's array shapes.

    Parameters
    ----------
    grid : SpectralGrid
        Grid whose physical/spectral shapes are warmed.
    layers : int
        Number of layers stacked on a trailing axis (1 means no layer axis).
    """
    extra = (layers,) if layers > 1 else ()
    transform = GridTransform(grid)
    arr = grid.zeros(extra=extra)
    coeffs = grid.zeros(complex_=True, extra=extra)
    transform.forward(coeffs, arr)
    transform.inverse(arr, coeffs)


__all__ = [
    "rfftn",
    "irfftn",
    "FFT_BACKEND",
    "FFTW_THREADS",
    "GridTransform",
    "set_fftw_threads",
    "warm_fft_cache",
]
