"""
Moving the tracer between its spectral solution and physical buffers.
"""

from __future__ import annotations

import numpy as np

from .errors import ShapeMismatchError


def refresh_physical(problem) -> None:
    """
    Update ``state.ch`` and ``state.c`` from the spectral solution.

    The inverse transform is handed a copy, so ``ch`` stays intact.
    """
    state = problem.state
    state.ch[...] = problem.sol
    problem.transform.inverse(state.c, state.ch.copy())


def set_concentration(problem, field) -> None:
    """
    Set the tracer concentration from a physical-space ``field``.

    For multi-layer problems the same field is used in every layer. The
    physical buffer afterwards holds the transform round trip of ``field``.
    """
    grid = problem.grid
    c = np.asarray(field, dtype=grid.dtype)
    if c.shape != tuple(grid.shape):
        raise ShapeMismatchError(f"concentration has shape {c.shape}, grid is {tuple(grid.shape)}")

    layer_shape = problem.params.layer_shape
    if layer_shape:
        c = np.repeat(c[..., np.newaxis], problem.params.nlayers, axis=-1)

    problem.transform.forward(problem.sol, c)
    refresh_physical(problem)


__all__ = ["refresh_physical", "set_concentration"]
