"""
Tracer diagnostics: mean, variance and shell-averaged power spectrum.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import matplotlib.pyplot as plt

from .errors import ShapeMismatchError
from .fft import rfftn
from .grid import SpectralGrid


@dataclass
class Spectrum:
    k: np.ndarray
    Pk: np.ndarray
    edges: np.ndarray
    dk: np.ndarray
    Etot: float


def _half_spectrum_weights(grid: SpectralGrid) -> np.ndarray:
    """Multiplicity of each stored x-wavenumber in the full (conjugate-symmetric) spectrum."""
    w = np.full(grid.spectral_shape[0], 2.0)
    w[0] = 1.0
    w[-1] = 1.0  # Nyquist; resolutions are even
    return w.reshape(grid.kr.shape)


def _spectral_moments(problem):
    grid = problem.grid
    sol = problem.sol
    npts = float(np.prod(grid.n))
    spatial = tuple(range(grid.ndim))
    mean = sol[(0,) * grid.ndim].real / npts

    weights = _half_spectrum_weights(grid)
    if problem.params.layer_shape:
        weights = weights[..., np.newaxis]
    total = np.sum(weights * np.abs(sol) ** 2, axis=spatial) / npts**2
    return mean, total


def tracer_mean(problem) -> Union[float, np.ndarray]:
    """Domain-averaged concentration (one value per layer for multi-layer problems)."""
    mean, _ = _spectral_moments(problem)
    return mean if np.ndim(mean) else float(mean)


def tracer_variance(problem) -> Union[float, np.ndarray]:
    """
    Domain-averaged ``(c - mean(c))²`` computed from the spectral solution.
    """
    mean, total = _spectral_moments(problem)
    variance = total - mean**2
    return variance if np.ndim(variance) else float(variance)


def scalar_power_spectrum(
    field: np.ndarray,
    grid: SpectralGrid,
    *,
    subtract_mean: bool = True,
) -> Spectrum:
    """
    Shell-averaged power spectrum of a scalar field on ``grid``.

    Shells have unit width in units of the fundamental wavenumber
    ``2π / max(L)``, centred on the integers. ``Etot`` equals the
    domain-averaged square of the (mean-subtracted) field.
    """
    data = np.asarray(field, dtype=np.float64)
    if data.shape != tuple(grid.shape):
        raise ShapeMismatchError(f"field has shape {data.shape}, grid is {tuple(grid.shape)}")
    if subtract_mean:
        data = data - data.mean()

    npts = float(np.prod(grid.n))
    field_hat = rfftn(data, axes=grid.transform_axes)
    power = _half_spectrum_weights(grid) * np.abs(field_hat) ** 2 / npts**2

    k0 = 2.0 * np.pi / max(grid.L)
    k_norm = np.sqrt(grid.Krsq) / k0
    kmax = int(np.ceil(np.max(k_norm)))
    kbins = np.arange(-0.5, kmax + 1.0, 1.0)
    kcs = 0.5 * (kbins[:-1] + kbins[1:])
    dk = np.diff(kbins)

    E1d, be = np.histogram(k_norm.ravel(), bins=kbins, weights=power.ravel())
    Etot = float(E1d.sum())
    E1d /= dk
    return Spectrum(k=kcs, Pk=E1d, edges=be, dk=dk, Etot=Etot)


def plot_scalar_spectrum(
    spec: Spectrum,
    *,
    fname: Optional[str] = None,
    title: Optional[str] = None,
    label: str = r"$P_c(k)$",
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    """
    Plot a tracer spectrum on log-log axes.

    Parameters
    ----------
    spec : Spectrum
        Output of :func:`scalar_power_spectrum`.
    fname : str, optional
        Save path for the figure; the figure is closed after saving.
    title : str, optional
        Plot title.
    label : str
        Legend label for the spectrum.
    ax : matplotlib.axes.Axes, optional
        Existing axes to draw on.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(7.0, 4.8), dpi=140)
    else:
        fig = ax.figure

    mask = (spec.k > 0) & (spec.Pk > 0)
    ax.loglog(spec.k[mask], spec.Pk[mask], lw=1.8, alpha=0.9, label=label)

    ax.set_xlabel(r"$k$   (fundamental units; $k{=}1\equiv 2\pi/L$)")
    ax.set_ylabel(r"$P_c(k)$")
    if title:
        ax.set_title(title)
    ax.grid(True, which="both", ls=":", lw=0.5)
    ax.legend(frameon=False)

    fig.tight_layout()
    if fname:
        fig.savefig(fname, bbox_inches="tight")
        plt.close(fig)
    return ax


__all__ = [
    "Spectrum",
    "tracer_mean",
    "tracer_variance",
    "scalar_power_spectrum",
    "plot_scalar_spectrum",
]
