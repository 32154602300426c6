"""
Time steppers for ``d(sol)/dt = L * sol + N(sol, t)``.

``L`` is the diagonal linear operator and ``N`` the nonlinear term, called
as ``N(out, sol, t)``. Explicit Runge-Kutta schemes (forward Euler, Heun,
RK4) and the exponential time-differencing scheme ETDRK4 are available.
The ``Filtered`` variants multiply the solution by an exponential spectral
filter after every step; that is the only place dealiasing happens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .errors import ValidationError
from .grid import SpectralGrid, make_filter

logger = logging.getLogger(__name__)


@dataclass
class Clock:
    """Simulation time, timestep and number of completed steps."""

    t: float = 0.0
    dt: float = 0.01
    step: int = 0


@dataclass
class Equation:
    """Linear operator and nonlinear term of the evolved equation."""

    L: np.ndarray
    calcN: Callable[[np.ndarray, np.ndarray, float], None]


class _Stepper:
    def __init__(self, equation: Equation, sol: np.ndarray, dt: Optional[float] = None):
        self.equation = equation
        self.dt = dt

    def _rhs(self, out: np.ndarray, sol: np.ndarray, t: float) -> np.ndarray:
        self.equation.calcN(out, sol, t)
        out += self.equation.L * sol
        return out

    def step(self, sol: np.ndarray, t: float, dt: float) -> None:
        raise NotImplementedError


class ForwardEulerStepper(_Stepper):
    def __init__(self, equation: Equation, sol: np.ndarray, dt: Optional[float] = None):
        super().__init__(equation, sol, dt)
        self.k1 = np.zeros_like(sol)

    def step(self, sol: np.ndarray, t: float, dt: float) -> None:
        sol += dt * self._rhs(self.k1, sol, t)


class HeunStepper(_Stepper):
    def __init__(self, equation: Equation, sol: np.ndarray, dt: Optional[float] = None):
        super().__init__(equation, sol, dt)
        self.k1 = np.zeros_like(sol)
        self.k2 = np.zeros_like(sol)

    def step(self, sol: np.ndarray, t: float, dt: float) -> None:
        k1 = self._rhs(self.k1, sol, t)
        k2 = self._rhs(self.k2, sol + dt * k1, t + dt)
        sol += 0.5 * dt * (k1 + k2)


class RK4Stepper(_Stepper):
    def __init__(self, equation: Equation, sol: np.ndarray, dt: Optional[float] = None):
        super().__init__(equation, sol, dt)
        self.k1 = np.zeros_like(sol)
        self.k2 = np.zeros_like(sol)
        self.k3 = np.zeros_like(sol)
        self.k4 = np.zeros_like(sol)

    def step(self, sol: np.ndarray, t: float, dt: float) -> None:
        k1 = self._rhs(self.k1, sol, t)
        k2 = self._rhs(self.k2, sol + 0.5 * dt * k1, t + 0.5 * dt)
        k3 = self._rhs(self.k3, sol + 0.5 * dt * k2, t + 0.5 * dt)
        k4 = self._rhs(self.k4, sol + dt * k3, t + dt)
        sol += (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


class ETDRK4Stepper(_Stepper):
    """
    Fourth-order exponential time differencing (Cox & Matthews, with the
    Kassam & Trefethen contour integral for the coefficients).
    """

    def __init__(self, equation: Equation, sol: np.ndarray, dt: Optional[float] = None):
        super().__init__(equation, sol, dt)
        self.Nv = np.zeros_like(sol)
        self.Na = np.zeros_like(sol)
        self.Nb = np.zeros_like(sol)
        self.Nc = np.zeros_like(sol)
        self._nominal: Optional[Tuple[np.ndarray, ...]] = None
        self._short: Optional[Tuple[float, Tuple[np.ndarray, ...]]] = None
        if dt is not None:
            self._nominal = etdrk4_coeffs(self.equation.L, dt)

    @property
    def cached_timesteps(self) -> Tuple[float, ...]:
        cached = () if self._nominal is None else (self.dt,)
        return cached + (() if self._short is None else (self._short[0],))

    def coefficients(self, dt: float) -> Tuple[np.ndarray, ...]:
        """
        Coefficients for a step of size ``dt``.

        The nominal timestep is cached for the life of the stepper; any other
        step size occupies a single slot that the next one overwrites.
        """
        if self._nominal is not None and dt == self.dt:
            return self._nominal
        if self._short is None or self._short[0] != dt:
            self._short = (dt, etdrk4_coeffs(self.equation.L, dt))
        return self._short[1]

    def step(self, sol: np.ndarray, t: float, dt: float) -> None:
        E, E2, Q, f1, f2, f3 = self.coefficients(dt)
        calcN = self.equation.calcN

        Nv = self.Nv
        calcN(Nv, sol, t)
        a_hat = E2 * sol + Q * Nv
        Na = self.Na
        calcN(Na, a_hat, t + 0.5 * dt)

        b_hat = E2 * sol + Q * Na
        Nb = self.Nb
        calcN(Nb, b_hat, t + 0.5 * dt)

        c_hat = E2 * a_hat + Q * (2.0 * Nb - Nv)
        Nc = self.Nc
        calcN(Nc, c_hat, t + dt)

        sol[...] = E * sol + f1 * Nv + 2.0 * f2 * (Na + Nb) + f3 * Nc


def etdrk4_coeffs(Llin: np.ndarray, dt: float, M: int = 16) -> Tuple[np.ndarray, ...]:
    E = np.exp(Llin * dt)
    E2 = np.exp(Llin * dt / 2.0)

    j = np.arange(1, M + 1)
    r = np.exp(1j * np.pi * (j - 0.5) / M)
    LR = Llin[..., None] * dt + r

    Q = dt * np.real(np.mean((np.exp(LR / 2.0) - 1.0) / LR, axis=-1))
    f1 = dt * np.real(np.mean((-4.0 - LR + np.exp(LR) * (4.0 - 3.0 * LR + LR**2)) / (LR**3), axis=-1))
    f2 = dt * np.real(np.mean((2.0 + LR + np.exp(LR) * (-2.0 + LR)) / (LR**3), axis=-1))
    f3 = dt * np.real(
        np.mean((-4.0 - 3.0 * LR - LR**2 + np.exp(LR) * (4.0 - LR)) / (LR**3), axis=-1)
    )
    return E, E2, Q, f1, f2, f3


STEPPERS = {
    "forwardeuler": ForwardEulerStepper,
    "heun": HeunStepper,
    "rk4": RK4Stepper,
    "etdrk4": ETDRK4Stepper,
}


def resolve_stepper(name: str) -> Tuple[type, bool]:
    """Return ``(stepper class, filtered)`` for a case-insensitive stepper name."""
    key = str(name).lower()
    filtered = key.startswith("filtered")
    if filtered:
        key = key[len("filtered"):]
    if key not in STEPPERS:
        choices = ", ".join(sorted(STEPPERS))
        raise ValidationError(f"unknown stepper {name!r}; choose one of {choices} (optionally 'Filtered' prefixed)")
    return STEPPERS[key], filtered


class Integrator:
    """
    Owns the spectral solution and the clock, and advances them in time.

    Parameters
    ----------
    name : str
        Stepper name, e.g. ``'RK4'`` or ``'FilteredETDRK4'``.
    equation : Equation
        Linear operator and nonlinear term.
    grid : SpectralGrid
        Used for the solution shape and, for filtered steppers, the filter.
    dt : float
        Timestep.
    t0 : float
        Initial simulation time.
    layer_shape : tuple
        Trailing layer axis of the solution (``()`` for a single layer).
    """

    def __init__(
        self,
        name: str,
        equation: Equation,
        grid: SpectralGrid,
        dt: float,
        t0: float = 0.0,
        layer_shape: Tuple[int, ...] = (),
    ):
        stepper_cls, filtered = resolve_stepper(name)
        if not dt > 0:
            raise ValidationError("dt must be positive")

        self.name = name
        self.equation = equation
        self.sol = grid.zeros(complex_=True, extra=layer_shape)
        self.clock = Clock(t=float(t0), dt=float(dt))
        self.stepper = stepper_cls(equation, self.sol, dt=self.clock.dt)

        self.filter: Optional[np.ndarray] = None
        if filtered:
            filt = make_filter(grid)
            if layer_shape:
                filt = filt[..., np.newaxis]
            self.filter = filt

    def _advance(self, dt: float) -> None:
        self.stepper.step(self.sol, self.clock.t, dt)
        if self.filter is not None:
            self.sol *= self.filter
        self.clock.t += dt
        self.clock.step += 1

    def step_forward(self, nsteps: int = 1) -> None:
        """Take ``nsteps`` steps of size ``clock.dt``."""
        for _ in range(nsteps):
            self._advance(self.clock.dt)

    def step_until(self, t: float) -> None:
        """
        Step until the clock reads exactly ``t``.

        Full steps are taken while they do not overshoot; a shorter final step
        closes the gap.
        """
        if t < self.clock.t:
            raise ValidationError(f"cannot step backwards from t={self.clock.t} to t={t}")

        dt = self.clock.dt
        tol = 1e-10 * max(1.0, abs(t))
        nfull = int(np.floor((t - self.clock.t) / dt + 1e-10))
        logger.debug("Stepping from t=%g to t=%g (%d full steps)", self.clock.t, t, nfull)
        self.step_forward(nfull)

        remaining = t - self.clock.t
        if remaining > tol:
            self._advance(remaining)
        self.clock.t = float(t)


__all__ = [
    "Clock",
    "Equation",
    "Integrator",
    "ForwardEulerStepper",
    "HeunStepper",
    "RK4Stepper",
    "ETDRK4Stepper",
    "STEPPERS",
    "etdrk4_coeffs",
    "resolve_stepper",
]
