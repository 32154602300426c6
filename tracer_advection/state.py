"""
Physical- and spectral-space buffers of a tracer problem.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .grid import SpectralGrid


@dataclass(eq=False)
class StateVariables:
    """
    Tracer concentration and its first derivatives, in both representations.

    Derivative buffers exist only for the axes of the grid. With more than
    one layer every array gains a trailing layer axis.

    The spectral derivative buffers (``cxh``, ``cyh``, ``czh``) are scratch
    storage of the nonlinear term: they are consumed by a destructive inverse
    transform, so their contents are undefined between right-hand-side
    evaluations.
    """

    c: np.ndarray
    ch: np.ndarray
    cx: np.ndarray
    cxh: np.ndarray
    cy: Optional[np.ndarray] = None
    cyh: Optional[np.ndarray] = None
    cz: Optional[np.ndarray] = None
    czh: Optional[np.ndarray] = None

    @property
    def derivatives(self) -> Tuple[np.ndarray, ...]:
        """Physical derivative buffers in axis order."""
        return tuple(b for b in (self.cx, self.cy, self.cz) if b is not None)

    @property
    def spectral_derivatives(self) -> Tuple[np.ndarray, ...]:
        """Spectral derivative scratch buffers in axis order."""
        return tuple(b for b in (self.cxh, self.cyh, self.czh) if b is not None)


def allocate_state(grid: SpectralGrid, layer_shape: Tuple[int, ...] = ()) -> StateVariables:
    """
    Allocate zeroed buffers for ``grid``.

    ``layer_shape`` is ``(nlayers,)`` for multi-layer problems and ``()``
    otherwise; a single layer never gets a size-one axis.
    """
    physical = [grid.zeros(extra=layer_shape) for _ in range(grid.ndim + 1)]
    spectral = [grid.zeros(complex_=True, extra=layer_shape) for _ in range(grid.ndim + 1)]

    derivatives = {}
    for name, phys, spec in zip(("x", "y", "z"), physical[1:], spectral[1:]):
        derivatives[f"c{name}"] = phys
        derivatives[f"c{name}h"] = spec

    return StateVariables(c=physical[0], ch=spectral[0], **derivatives)


__all__ = ["StateVariables", "allocate_state"]
