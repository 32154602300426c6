"""
Pseudospectral advection-diffusion of a passive tracer in a periodic box.

The tracer is advected by a steady or time-varying prescribed flow in one,
two or three dimensions, or by an externally simulated multi-layer flow.
"""

import logging

from .config import ProblemConfig
from .coupling import BorrowedFlow, LayeredFlowProblem
from .diagnostics import Spectrum, plot_scalar_spectrum, scalar_power_spectrum, tracer_mean, tracer_variance
from .errors import ShapeMismatchError, ValidationError
from .fft import FFT_BACKEND, GridTransform, set_fftw_threads, warm_fft_cache
from .flows import FlowDescriptor, make_flow_descriptor, no_flow
from .grid import SpectralGrid, make_filter
from .nonlinear import NonlinearTermEvaluator
from .operators import build_linear_operator
from .params import FlowKind, ParameterSet
from .problem import Problem, make_problem, make_turbulent_problem
from .state import StateVariables, allocate_state
from .sync import refresh_physical, set_concentration
from .timestepping import Clock, Equation, Integrator

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ProblemConfig",
    "BorrowedFlow",
    "LayeredFlowProblem",
    "Spectrum",
    "plot_scalar_spectrum",
    "scalar_power_spectrum",
    "tracer_mean",
    "tracer_variance",
    "ShapeMismatchError",
    "ValidationError",
    "FFT_BACKEND",
    "GridTransform",
    "set_fftw_threads",
    "warm_fft_cache",
    "FlowDescriptor",
    "make_flow_descriptor",
    "no_flow",
    "SpectralGrid",
    "make_filter",
    "NonlinearTermEvaluator",
    "build_linear_operator",
    "FlowKind",
    "ParameterSet",
    "Problem",
    "make_problem",
    "make_turbulent_problem",
    "StateVariables",
    "allocate_state",
    "refresh_physical",
    "set_concentration",
    "Clock",
    "Equation",
    "Integrator",
]
