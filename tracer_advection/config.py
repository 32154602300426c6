"""
Configuration for tracer problems.

``ProblemConfig`` collects the keyword parameters of :func:`make_problem` so a
run can be described once and tweaked with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

from .errors import ValidationError

Number = Union[int, float]


@dataclass
class ProblemConfig:
    """
    Parameters of a tracer problem advected by a prescribed flow.

    Parameters
    ----------
    n : int or sequence of int
        Grid points per axis. A single value is used for every axis.
    L : float or sequence of float
        Domain length per axis.
    diffusivities : float or sequence of float
        Diffusivity along each axis (κ, η, ι). A single value is isotropic.
    hyperdiffusivity : float
        Isotropic hyperdiffusivity coefficient κh.
    hyperdiffusivity_order : int
        Power nκh applied to |k|² in the hyperdiffusive term.
    dt : float
        Timestep handed to the integrator.
    stepper : str
        Name of the time stepper (``'RK4'``, ``'ETDRK4'``, ``'FilteredRK4'``, ...).
    precision : str
        ``'float64'`` (default) or ``'float32'``.
    device : str
        Only ``'cpu'`` is available.
    """

    n: Union[int, Sequence[int]] = 128
    L: Union[Number, Sequence[Number]] = 2.0 * np.pi
    diffusivities: Union[Number, Sequence[Number]] = 0.1
    hyperdiffusivity: float = 0.0
    hyperdiffusivity_order: int = 0
    dt: float = 0.01
    stepper: str = "RK4"
    precision: str = "float64"
    device: str = "cpu"


def resolve_dtype(precision) -> type:
    """Map a precision name (or a numpy float type) to ``np.float32``/``np.float64``."""
    if precision in ("float64", np.float64):
        return np.float64
    if precision in ("float32", np.float32):
        return np.float32
    raise ValidationError("precision must be 'float32' or 'float64'")


def resolve_device(device: str) -> str:
    if str(device).lower() != "cpu":
        raise ValidationError(f"device {device!r} is not available; only 'cpu' is supported")
    return "cpu"


def per_axis(value, ndim: int, name: str) -> Tuple:
    """
    Expand ``value`` to one entry per axis.

    Scalars are repeated; sequences must have exactly ``ndim`` entries.
    """
    if np.ndim(value) == 0:
        return (value,) * ndim
    values = tuple(value)
    if len(values) != ndim:
        raise ValidationError(
            f"{name} has {len(values)} entries but the problem is {ndim}-dimensional"
        )
    return values


__all__ = ["ProblemConfig", "resolve_dtype", "resolve_device", "per_axis"]
