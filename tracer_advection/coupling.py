"""
Coupling to an externally simulated multi-layer flow.

The tracer never owns the flow problem it is advected by.  The caller builds
and owns an object satisfying :class:`LayeredFlowProblem`; the tracer wraps it
in a :class:`BorrowedFlow`, which may advance it exactly once (to the tracer
release time) and only reads it afterwards.
"""

from __future__ import annotations

import logging
from typing import Protocol, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class LayeredFlowProblem(Protocol):
    """
    Interface of an external multi-layer flow solver.

    Attributes
    ----------
    grid : SpectralGrid
        Two-dimensional grid shared with the tracer.
    clock
        Object with the current time ``t`` and the timestep ``dt``.
    nlayers : int
        Number of layers; physical fields carry a trailing layer axis when > 1.
    u, v : np.ndarray
        Current physical-space velocity fields.
    U : float or np.ndarray
        Imposed background flow along x, broadcastable against ``u``.
    """

    grid: object
    clock: object
    nlayers: int
    u: np.ndarray
    v: np.ndarray
    U: object

    def step_until(self, t: float) -> None:
        ...

    def update_vars(self) -> None:
        ...

    def forward_transform(self, out: np.ndarray, field: np.ndarray) -> None:
        ...

    def inverse_transform(self, out: np.ndarray, field_hat: np.ndarray) -> None:
        ...


class BorrowedFlow:
    """
    Non-owning handle on a :class:`LayeredFlowProblem`.

    :meth:`release` is the only mutating call and may be made once.  Every
    other access is read-only; advancing the flow behind the tracer's back
    while a right-hand side is being evaluated is not supported.
    """

    def __init__(self, problem: LayeredFlowProblem):
        self._problem = problem
        self._released = False

    @property
    def problem(self) -> LayeredFlowProblem:
        return self._problem

    @property
    def grid(self):
        return self._problem.grid

    @property
    def clock(self):
        return self._problem.clock

    @property
    def nlayers(self) -> int:
        return int(self._problem.nlayers)

    @property
    def released(self) -> bool:
        return self._released

    def release(self, tracer_release_time: float) -> float:
        """
        Advance the flow by ``tracer_release_time`` and refresh its physical fields.

        Returns the flow time at which the tracer is released.
        """
        if self._released:
            raise RuntimeError("the borrowed flow has already been advanced to the release time")
        self._released = True

        if tracer_release_time > 0:
            target = self._problem.clock.t + tracer_release_time
            logger.info("Stepping the flow forward until t = %g (tracer release)", target)
            self._problem.step_until(target)
        self._problem.update_vars()
        return self._problem.clock.t

    def velocity_shapes(self) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
        return np.shape(self._problem.u), np.shape(self._problem.v)

    def velocities(self) -> Tuple[np.ndarray, np.ndarray]:
        """Current advecting velocity: ``(u + U, v)``."""
        return self._problem.u + self._problem.U, self._problem.v


class FlowTransform:
    """Transform provider routed through the external flow solver's own transforms."""

    def __init__(self, flow: BorrowedFlow):
        self.flow = flow

    def forward(self, out: np.ndarray, field: np.ndarray) -> None:
        self.flow.problem.forward_transform(out, field)

    def inverse(self, out: np.ndarray, field_hat: np.ndarray) -> None:
        self.flow.problem.inverse_transform(out, field_hat)


__all__ = ["LayeredFlowProblem", "BorrowedFlow", "FlowTransform"]
