"""
Spectral grid utilities shared by the tracer problem components.

The grid stores the wavenumbers of a real-to-complex transform in which the
x axis keeps only non-negative wavenumbers.  Wavenumber
arrays are shaped for broadcasting against spectral arrays of shape
``spectral_shape``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import ValidationError


@dataclass(frozen=True)
class SpectralGrid:
    """
    Pre-computed spectral quantities for a periodic box in one to three dimensions.

    Parameters
    ----------
    n : int or tuple of int
        Number of grid points per axis (each must be even).
    L : float or tuple of float
        Domain length per axis; must have as many entries as ``n``.
    dtype : np.dtype
        Floating-point dtype for physical-space arrays.
    """

    n: Tuple[int, ...]
    L: Tuple[float, ...]
    dtype: np.dtype = np.float64

    def __post_init__(self) -> None:
        n = tuple(int(v) for v in np.atleast_1d(self.n))
        L = tuple(float(v) for v in np.atleast_1d(self.L))
        if not 1 <= len(n) <= 3:
            raise ValidationError("grid must have one, two or three axes")
        if len(L) != len(n):
            raise ValidationError(f"got {len(n)} resolutions but {len(L)} domain lengths")
        if any(v <= 0 or v % 2 != 0 for v in n):
            raise ValidationError("grid resolution must be positive and even along every axis")
        if any(v <= 0 for v in L):
            raise ValidationError("domain lengths must be positive")

        ndim = len(n)
        object.__setattr__(self, "n", n)
        object.__setattr__(self, "L", L)
        object.__setattr__(self, "ndim", ndim)
        object.__setattr__(self, "cdtype", np.complex64 if self.dtype == np.float32 else np.complex128)
        object.__setattr__(self, "dx", tuple(Li / ni for Li, ni in zip(L, n)))
        object.__setattr__(self, "shape", n)
        object.__setattr__(self, "spectral_shape", (n[0] // 2 + 1,) + n[1:])
        # x last, so rfftn halves the x axis
        object.__setattr__(self, "transform_axes", tuple(reversed(range(ndim))))

        coords = tuple(
            np.linspace(-Li / 2, Li / 2, ni, endpoint=False).astype(self.dtype) for Li, ni in zip(L, n)
        )
        object.__setattr__(self, "coordinates", coords)

        wavenumbers = []
        for axis, (Li, ni) in enumerate(zip(L, n)):
            if axis == 0:
                k1 = 2.0 * np.pi * np.fft.rfftfreq(ni, d=Li / ni)
            else:
                k1 = 2.0 * np.pi * np.fft.fftfreq(ni, d=Li / ni)
            bshape = [1] * ndim
            bshape[axis] = k1.size
            wavenumbers.append(k1.astype(self.dtype).reshape(bshape))
        wavenumbers = tuple(wavenumbers)
        object.__setattr__(self, "wavenumbers", wavenumbers)
        object.__setattr__(self, "kr", wavenumbers[0])
        object.__setattr__(self, "l", wavenumbers[1] if ndim > 1 else None)
        object.__setattr__(self, "m", wavenumbers[2] if ndim > 2 else None)

        Krsq = np.zeros(self.spectral_shape, dtype=self.dtype)
        for k in wavenumbers:
            Krsq = Krsq + k**2
        object.__setattr__(self, "Krsq", Krsq)

    def gridpoints(self) -> Tuple[np.ndarray, ...]:
        """Return full coordinate arrays ``(x, y, z)[:ndim]`` shaped like the grid."""
        return tuple(np.meshgrid(*self.coordinates, indexing="ij"))

    def zeros(self, *, complex_: bool = False, extra: Tuple[int, ...] = ()) -> np.ndarray:
        """
        Return a zero array shaped like the grid.

        ``complex_`` selects the spectral shape and dtype; ``extra`` appends
        trailing dimensions (e.g. a layer axis).
        """
        if complex_:
            return np.zeros(self.spectral_shape + tuple(extra), dtype=self.cdtype)
        return np.zeros(self.shape + tuple(extra), dtype=self.dtype)


def make_filter(
    grid: SpectralGrid,
    inner_k: float = 0.65,
    outer_k: float = 1.0,
    order: int = 4,
    tol: float = 1e-15,
) -> np.ndarray:
    """
    Exponential spectral filter on the grid's spectral layout.

    The filter is one for modes with normalized wavenumber below ``inner_k``
    and decays to ``tol`` at ``outer_k``. Normalization divides every
    wavenumber component by its largest magnitude on the grid.
    """
    Ksq = np.zeros(grid.spectral_shape, dtype=grid.dtype)
    for k in grid.wavenumbers:
        kmax = np.max(np.abs(k))
        if kmax > 0:
            Ksq = Ksq + (k / kmax) ** 2
    K = np.sqrt(Ksq)

    decay = -np.log(tol) / (outer_k - inner_k) ** order
    filt = np.exp(-decay * np.clip(K - inner_k, 0.0, None) ** order)
    filt[K < inner_k] = 1.0
    return filt.astype(grid.dtype)


__all__ = ["SpectralGrid", "make_filter"]
