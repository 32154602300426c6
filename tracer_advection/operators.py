"""
Linear (dissipative) operator of the tracer equation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .grid import SpectralGrid
    from .params import ParameterSet

logger = logging.getLogger(__name__)


def build_linear_operator(params: "ParameterSet", grid: "SpectralGrid") -> np.ndarray:
    """
    Diagonal decay rate of every Fourier mode.

    ``L = -κ kr² - η l² - ι m² - κh |k|^(2 nκh)``, keeping only the axes the
    grid has. For a multi-layer problem the same operator is stacked along a
    trailing layer axis. The result is read-only and never rebuilt: the
    advecting flow only enters the nonlinear term.
    """
    L = np.zeros(grid.spectral_shape, dtype=grid.dtype)
    for coeff, k in zip(params.diffusivities, grid.wavenumbers):
        L -= coeff * k**2
    L -= params.hyperdiffusivity * grid.Krsq ** params.hyperdiffusivity_order

    if params.layer_shape:
        L = np.repeat(L[..., np.newaxis], params.nlayers, axis=-1)

    logger.debug("Built linear operator with shape %s", L.shape)
    L.setflags(write=False)
    return L


__all__ = ["build_linear_operator"]
