"""
Frozen physical parameters of a tracer problem.

A :class:`ParameterSet` is a tagged variant over the dimensionality of the
problem and the kind of advecting flow:

* ``TIME_VARYING`` keeps the velocity callables and evaluates them at every
  right-hand-side call;
* ``STEADY`` samples the velocity once on the grid and keeps the arrays;
* ``TURBULENT`` borrows an externally evolving multi-layer flow problem.

The variant exposes the construction steps that depend on it:
:meth:`~ParameterSet.build_linear_operator`, :meth:`~ParameterSet.allocate_state`
and :meth:`~ParameterSet.nonlinear_evaluator`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from .config import per_axis
from .coupling import BorrowedFlow, FlowTransform
from .errors import ShapeMismatchError, ValidationError
from .fft import GridTransform
from .flows import FlowDescriptor
from .grid import SpectralGrid
from .nonlinear import NonlinearTermEvaluator
from .operators import build_linear_operator
from .state import StateVariables, allocate_state

logger = logging.getLogger(__name__)


class FlowKind(Enum):
    TIME_VARYING = "time-varying"
    STEADY = "steady"
    TURBULENT = "turbulent"


@dataclass(frozen=True, eq=False)
class ParameterSet:
    """
    Parameters of a constant-diffusivity tracer problem.

    Attributes
    ----------
    kind : FlowKind
        Which advecting flow the problem uses.
    ndim : int
        Number of spatial axes (always 2 for turbulent flows).
    diffusivities : tuple of float
        Diffusivity along each axis (κ, η, ι).
    hyperdiffusivity : float
        Isotropic hyperdiffusivity coefficient κh.
    hyperdiffusivity_order : int
        Hyperdiffusion order nκh.
    velocities : tuple
        Velocity callables (time-varying) or read-only arrays (steady); empty
        for turbulent flows.
    flow : BorrowedFlow or None
        Handle on the external flow problem (turbulent only).
    tracer_release_time : float
        Time the external flow is run for before the tracer is released.
    nlayers : int
        Number of layers the tracer lives in.
    """

    kind: FlowKind
    ndim: int
    diffusivities: Tuple[float, ...]
    hyperdiffusivity: float = 0.0
    hyperdiffusivity_order: int = 0
    velocities: Tuple = ()
    flow: Optional[BorrowedFlow] = None
    tracer_release_time: float = 0.0
    nlayers: int = 1

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_descriptor(
        cls,
        descriptor: FlowDescriptor,
        grid: SpectralGrid,
        diffusivities=0.1,
        hyperdiffusivity: float = 0.0,
        hyperdiffusivity_order: int = 0,
    ) -> "ParameterSet":
        """Resolve a steady or time-varying parameter set from ``descriptor``."""
        if descriptor.ndim != grid.ndim:
            raise ValidationError(
                f"flow has {descriptor.ndim} velocity components but the grid is {grid.ndim}-dimensional"
            )
        diffs = _check_dissipation(diffusivities, hyperdiffusivity, hyperdiffusivity_order, grid.ndim)

        if descriptor.steady:
            velocities = tuple(_sample_steady(c, grid, axis) for axis, c in enumerate(descriptor.velocities))
            kind = FlowKind.STEADY
        else:
            velocities = descriptor.velocities
            kind = FlowKind.TIME_VARYING
        logger.debug("Resolved %s flow parameters on a %dD grid", kind.value, grid.ndim)

        return cls(
            kind=kind,
            ndim=grid.ndim,
            diffusivities=diffs,
            hyperdiffusivity=float(hyperdiffusivity),
            hyperdiffusivity_order=int(hyperdiffusivity_order),
            velocities=velocities,
        )

    @classmethod
    def turbulent(
        cls,
        flow: BorrowedFlow,
        diffusivities=0.1,
        hyperdiffusivity: float = 0.0,
        hyperdiffusivity_order: int = 0,
        tracer_release_time: float = 0.0,
    ) -> "ParameterSet":
        """
        Parameter set for a tracer advected by an external multi-layer flow.

        Only validates; advancing the flow to the release time is left to the
        problem assembler.
        """
        if tracer_release_time < 0:
            raise ValidationError("tracer_release_time must be non-negative")
        if not flow.clock.dt > 0:
            raise ValidationError(f"the flow timestep must be positive, got {flow.clock.dt}")

        grid = flow.grid
        if grid.ndim != 2:
            raise ValidationError(f"turbulent flows must live on a 2D grid, got {grid.ndim}D")
        diffs = _check_dissipation(diffusivities, hyperdiffusivity, hyperdiffusivity_order, 2)

        nlayers = flow.nlayers
        logger.debug("Coupling tracer to an external flow with %d layer(s)", nlayers)
        if nlayers < 1:
            raise ValidationError(f"the flow reports {nlayers} layers")
        expected = tuple(grid.shape) + ((nlayers,) if nlayers > 1 else ())
        for name, shape in zip(("u", "v"), flow.velocity_shapes()):
            if tuple(shape) != expected:
                raise ShapeMismatchError(
                    f"flow velocity {name} has shape {tuple(shape)}, expected {expected} for {nlayers} layer(s)"
                )

        return cls(
            kind=FlowKind.TURBULENT,
            ndim=2,
            diffusivities=diffs,
            hyperdiffusivity=float(hyperdiffusivity),
            hyperdiffusivity_order=int(hyperdiffusivity_order),
            flow=flow,
            tracer_release_time=float(tracer_release_time),
            nlayers=nlayers,
        )

    # ------------------------------------------------------------------
    # Variant queries
    # ------------------------------------------------------------------
    @property
    def is_steady(self) -> bool:
        return self.kind is FlowKind.STEADY

    @property
    def is_turbulent(self) -> bool:
        return self.kind is FlowKind.TURBULENT

    @property
    def kappa(self) -> float:
        return self.diffusivities[0]

    @property
    def eta(self) -> Optional[float]:
        return self.diffusivities[1] if self.ndim > 1 else None

    @property
    def iota(self) -> Optional[float]:
        return self.diffusivities[2] if self.ndim > 2 else None

    @property
    def layer_shape(self) -> Tuple[int, ...]:
        """Trailing layer axis shared by every state buffer; empty for one layer."""
        return (self.nlayers,) if self.nlayers > 1 else ()

    # ------------------------------------------------------------------
    # Construction steps that depend on the variant
    # ------------------------------------------------------------------
    def transform(self, grid: SpectralGrid):
        """Transform provider: the external flow's transforms for turbulent flows, else the grid's."""
        if self.is_turbulent:
            return FlowTransform(self.flow)
        return GridTransform(grid)

    def build_linear_operator(self, grid: SpectralGrid) -> np.ndarray:
        return build_linear_operator(self, grid)

    def allocate_state(self, grid: SpectralGrid) -> StateVariables:
        return allocate_state(grid, self.layer_shape)

    def nonlinear_evaluator(self, grid: SpectralGrid, state: StateVariables) -> NonlinearTermEvaluator:
        return NonlinearTermEvaluator(self, grid, state, self.transform(grid))


def _check_dissipation(diffusivities, hyperdiffusivity, order, ndim: int) -> Tuple[float, ...]:
    diffs = tuple(float(d) for d in per_axis(diffusivities, ndim, "diffusivities"))
    if any(d < 0 for d in diffs):
        raise ValidationError("diffusivities must be non-negative")
    if hyperdiffusivity < 0:
        raise ValidationError("hyperdiffusivity must be non-negative")
    if int(order) != order or order < 0:
        raise ValidationError("hyperdiffusivity_order must be a non-negative integer")
    return diffs


def _sample_steady(component, grid: SpectralGrid, axis: int) -> np.ndarray:
    """Sample one steady velocity component on the grid (no filtering)."""
    if callable(component):
        values = np.asarray(component(*grid.gridpoints(), 0.0), dtype=grid.dtype)
        if values.ndim == 0 or values.shape == tuple(grid.shape):
            values = np.broadcast_to(values, grid.shape).copy()
        else:
            raise ShapeMismatchError(
                f"velocity component {axis} returned shape {values.shape}, grid is {tuple(grid.shape)}"
            )
    else:
        if component.shape != tuple(grid.shape):
            raise ShapeMismatchError(
                f"velocity array {axis} has shape {component.shape}, grid is {tuple(grid.shape)}"
            )
        values = np.array(component, dtype=grid.dtype)
    values.setflags(write=False)
    return values


__all__ = ["FlowKind", "ParameterSet"]
