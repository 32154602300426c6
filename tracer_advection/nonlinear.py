"""
Advective term of the tracer equation.

Evaluated once per right-hand-side call of the time stepper (once per stage
for multi-stage schemes). The evaluator performs no validation: shapes are
checked when the problem is built.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Tuple

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .grid import SpectralGrid
    from .params import ParameterSet
    from .state import StateVariables


class NonlinearTermEvaluator:
    """
    Compute ``N = FFT(-u · ∇c)`` in place.

    Parameters
    ----------
    params : ParameterSet
        Selects how the velocity is obtained (callables, stored arrays or the
        borrowed external flow).
    grid : SpectralGrid
        Supplies the wavenumbers.
    state : StateVariables
        Buffers reused at every call. ``cx`` ends up holding the physical
        flux divergence; the spectral derivative buffers are destroyed.
    transform
        Transform provider with ``forward(out, field)`` and a destructive
        ``inverse(out, field_hat)``.
    """

    def __init__(self, params: "ParameterSet", grid: "SpectralGrid", state: "StateVariables", transform):
        self.params = params
        self.grid = grid
        self.state = state
        self.transform = transform

        if params.layer_shape:
            wavenumbers = tuple(k[..., np.newaxis] for k in grid.wavenumbers)
        else:
            wavenumbers = grid.wavenumbers
        self._ik = tuple((1j * k).astype(grid.cdtype) for k in wavenumbers)

        if params.is_turbulent:
            self._velocity: Callable[[float], Tuple] = self._turbulent_velocity
        elif params.is_steady:
            self._velocity = self._steady_velocity
        else:
            self._points = grid.gridpoints()
            self._velocity = self._time_varying_velocity

    def __call__(self, N: np.ndarray, sol: np.ndarray, t: float) -> None:
        state = self.state
        derivatives = state.derivatives
        spectral_derivatives = state.spectral_derivatives

        for ik, ch_axis in zip(self._ik, spectral_derivatives):
            np.multiply(ik, sol, out=ch_axis)

        # ch_axis is destroyed here and must not be read until recomputed
        for c_axis, ch_axis in zip(derivatives, spectral_derivatives):
            self.transform.inverse(c_axis, ch_axis)

        velocity = self._velocity(t)

        # N in physical space is stored in cx
        flux = state.cx
        flux *= velocity[0]
        for u, c_axis in zip(velocity[1:], derivatives[1:]):
            flux += u * c_axis
        np.negative(flux, out=flux)

        self.transform.forward(N, flux)

    def _time_varying_velocity(self, t: float) -> Tuple:
        return tuple(f(*self._points, t) for f in self.params.velocities)

    def _steady_velocity(self, t: float) -> Tuple:
        return self.params.velocities

    def _turbulent_velocity(self, t: float) -> Tuple:
        return self.params.flow.velocities()


__all__ = ["NonlinearTermEvaluator"]
