"""
Exceptions raised while assembling a tracer problem.

Every check happens at construction time; the per-step right-hand side never
raises these.
"""

from __future__ import annotations


class ValidationError(ValueError):
    """Invalid argument: negative release time, dimensionality mismatch, bad stepper name."""


class ShapeMismatchError(ValueError):
    """An array (or a reported layer count) does not match the grid it is paired with."""


__all__ = ["ValidationError", "ShapeMismatchError"]
