"""
Descriptions of the flow that advects the tracer.

A :class:`FlowDescriptor` holds one velocity component per spatial axis.
Components are vectorised callables ``f(x, [y, [z,]] t)`` evaluated on the
full coordinate arrays of the grid, or (for steady flows) arrays already
sampled on the grid.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

import numpy as np

from .errors import ValidationError

VelocityComponent = Union[Callable[..., object], np.ndarray]


def no_flow(*args) -> float:
    """Zero velocity, whatever the coordinates and time."""
    return 0.0


@dataclass(frozen=True, eq=False)
class FlowDescriptor:
    """
    Advecting velocity field, one component per axis.

    Parameters
    ----------
    velocities : tuple
        ``(u,)``, ``(u, v)`` or ``(u, v, w)``. The number of components sets the
        dimensionality of the problem.
    steady : bool
        ``True`` if the flow does not depend on time. Steady components are
        sampled once on the grid when the problem is built.
    """

    velocities: Tuple[VelocityComponent, ...] = (no_flow,)
    steady: bool = True

    def __post_init__(self) -> None:
        velocities = tuple(self.velocities)
        if not 1 <= len(velocities) <= 3:
            raise ValidationError("a flow needs one, two or three velocity components")
        for component in velocities:
            if callable(component):
                continue
            if not isinstance(component, np.ndarray):
                raise ValidationError(
                    f"velocity components must be callables or arrays, got {type(component).__name__}"
                )
            if not self.steady:
                raise ValidationError("precomputed velocity arrays can only describe a steady flow")
        object.__setattr__(self, "velocities", velocities)

    @property
    def ndim(self) -> int:
        return len(self.velocities)

    @property
    def u(self) -> VelocityComponent:
        return self.velocities[0]

    @property
    def v(self) -> Optional[VelocityComponent]:
        return self.velocities[1] if self.ndim > 1 else None

    @property
    def w(self) -> Optional[VelocityComponent]:
        return self.velocities[2] if self.ndim > 2 else None

    @classmethod
    def one_d(cls, u: VelocityComponent = no_flow, *, steady: bool = True) -> "FlowDescriptor":
        return cls((u,), steady)

    @classmethod
    def two_d(
        cls, u: VelocityComponent = no_flow, v: VelocityComponent = no_flow, *, steady: bool = True
    ) -> "FlowDescriptor":
        return cls((u, v), steady)

    @classmethod
    def three_d(
        cls,
        u: VelocityComponent = no_flow,
        v: VelocityComponent = no_flow,
        w: VelocityComponent = no_flow,
        *,
        steady: bool = True,
    ) -> "FlowDescriptor":
        return cls((u, v, w), steady)


def make_flow_descriptor(*velocities: VelocityComponent, steady: bool = True) -> FlowDescriptor:
    """
    Build a :class:`FlowDescriptor` from positional velocity components.

    ``make_flow_descriptor(u, v)`` describes a 2D flow. ``None`` entries are
    replaced by :func:`no_flow`; with no arguments the result is a 1D flow at rest.
    """
    components = tuple(no_flow if c is None else c for c in velocities) or (no_flow,)
    return FlowDescriptor(components, steady)


__all__ = ["FlowDescriptor", "make_flow_descriptor", "no_flow"]
