"""
Assembly of runnable tracer problems.

:func:`make_problem` builds a problem advected by a prescribed (steady or
time-varying) flow; :func:`make_turbulent_problem` builds one advected by an
externally owned multi-layer flow solver. Every check runs before any
buffer is allocated or the external flow is touched.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

import numpy as np

from .config import ProblemConfig, per_axis, resolve_device, resolve_dtype
from .coupling import BorrowedFlow, LayeredFlowProblem
from .errors import ValidationError
from .flows import FlowDescriptor
from .grid import SpectralGrid
from .params import ParameterSet
from .state import StateVariables
from .timestepping import Clock, Equation, Integrator, resolve_stepper

logger = logging.getLogger(__name__)


class Problem:
    """
    A tracer problem ready to be stepped.

    Attributes
    ----------
    grid : SpectralGrid
    params : ParameterSet
    state : StateVariables
        Physical and spectral buffers (also available as ``vars``).
    linear_operator : np.ndarray
    evaluator : NonlinearTermEvaluator
    integrator : Integrator
        Holds the spectral solution ``sol`` and the ``clock``.
    """

    def __init__(
        self,
        grid: SpectralGrid,
        params: ParameterSet,
        state: StateVariables,
        linear_operator: np.ndarray,
        evaluator,
        integrator: Integrator,
    ):
        self.grid = grid
        self.params = params
        self.state = state
        self.linear_operator = linear_operator
        self.evaluator = evaluator
        self.integrator = integrator

    @property
    def vars(self) -> StateVariables:
        return self.state

    @property
    def sol(self) -> np.ndarray:
        return self.integrator.sol

    @property
    def clock(self) -> Clock:
        return self.integrator.clock

    @property
    def transform(self):
        return self.evaluator.transform

    def step_forward(self, nsteps: int = 1) -> None:
        self.integrator.step_forward(nsteps)

    def step_until(self, t: float) -> None:
        self.integrator.step_until(t)

    def __repr__(self) -> str:
        return (
            f"Problem({self.params.kind.value}, {self.grid.ndim}D, n={self.grid.n}, "
            f"layers={self.params.nlayers}, t={self.clock.t:g}, dt={self.clock.dt:g}, "
            f"stepper={self.integrator.name!r})"
        )


def _assemble(grid: SpectralGrid, params: ParameterSet, stepper: str, dt: float, t0: float) -> Problem:
    state = params.allocate_state(grid)
    L = params.build_linear_operator(grid)
    evaluator = params.nonlinear_evaluator(grid, state)
    integrator = Integrator(stepper, Equation(L, evaluator), grid, dt, t0=t0, layer_shape=params.layer_shape)
    problem = Problem(grid, params, state, L, evaluator, integrator)
    logger.info("Built %r", problem)
    return problem


def make_problem(flow: FlowDescriptor, config: Optional[ProblemConfig] = None, **overrides) -> Problem:
    """
    Construct a constant-diffusivity tracer problem advected by ``flow``.

    The dimensionality is that of ``flow``. Keyword ``overrides`` replace
    fields of ``config`` (see :class:`ProblemConfig`), e.g.
    ``make_problem(flow, n=64, diffusivities=(0.1, 0.2), stepper='ETDRK4')``.
    """
    config = dataclasses.replace(config or ProblemConfig(), **overrides)

    ndim = flow.ndim
    n = per_axis(config.n, ndim, "n")
    L = per_axis(config.L, ndim, "L")
    dtype = resolve_dtype(config.precision)
    resolve_device(config.device)
    resolve_stepper(config.stepper)
    if not config.dt > 0:
        raise ValidationError("dt must be positive")

    grid = SpectralGrid(n=n, L=L, dtype=dtype)
    params = ParameterSet.from_descriptor(
        flow,
        grid,
        diffusivities=config.diffusivities,
        hyperdiffusivity=config.hyperdiffusivity,
        hyperdiffusivity_order=config.hyperdiffusivity_order,
    )
    return _assemble(grid, params, config.stepper, config.dt, 0.0)


def make_turbulent_problem(
    flow_problem: LayeredFlowProblem,
    diffusivities=0.1,
    *,
    hyperdiffusivity: float = 0.0,
    hyperdiffusivity_order: int = 0,
    stepper: str = "FilteredRK4",
    tracer_release_time: float = 0.0,
) -> Problem:
    """
    Construct a tracer problem advected by an external multi-layer flow.

    The flow problem stays owned by the caller. If ``tracer_release_time`` is
    positive the flow is first stepped forward by that amount; the tracer
    clock starts at the flow time reached and uses the flow's timestep. The
    tracer lives on the flow's grid, one copy per layer.
    """
    resolve_stepper(stepper)
    flow = BorrowedFlow(flow_problem)
    params = ParameterSet.turbulent(
        flow,
        diffusivities=diffusivities,
        hyperdiffusivity=hyperdiffusivity,
        hyperdiffusivity_order=hyperdiffusivity_order,
        tracer_release_time=tracer_release_time,
    )

    t0 = flow.release(params.tracer_release_time)
    return _assemble(flow.grid, params, stepper, flow.clock.dt, t0)


__all__ = ["Problem", "make_problem", "make_turbulent_problem"]
