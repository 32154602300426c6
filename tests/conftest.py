import types

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from tracer_advection import SpectralGrid


class FakeLayeredFlow:
    """
    Minimal multi-layer flow problem: uniform velocity per layer, counters on
    every interaction the tracer makes with it.
    """

    def __init__(self, n=16, nlayers=2, u=0.0, v=0.0, U=0.0, t0=0.0, dt=0.25):
        self.grid = SpectralGrid(n=(n, n), L=(2 * np.pi, 2 * np.pi))
        self.nlayers = nlayers
        self.clock = types.SimpleNamespace(t=t0, dt=dt)
        layer_shape = (nlayers,) if nlayers > 1 else ()
        self.u = np.ones(self.grid.shape + layer_shape) * np.asarray(u)
        self.v = np.ones(self.grid.shape + layer_shape) * np.asarray(v)
        self.U = U
        self.nsteps = 0
        self.update_calls = 0
        self.forward_calls = 0
        self.inverse_calls = 0

    def step_forward(self):
        self.clock.t += self.clock.dt
        self.nsteps += 1

    def step_until(self, t):
        while self.clock.t < t - 1e-12:
            self.step_forward()

    def update_vars(self):
        self.update_calls += 1

    def forward_transform(self, out, field):
        self.forward_calls += 1
        out[...] = np.fft.rfftn(field, axes=(1, 0))

    def inverse_transform(self, out, field_hat):
        self.inverse_calls += 1
        out[...] = np.fft.irfftn(field_hat, s=self.grid.n[::-1], axes=(1, 0))


@pytest.fixture
def fake_flow():
    return FakeLayeredFlow


@pytest.fixture
def grid2d():
    return SpectralGrid(n=(16, 16), L=(2 * np.pi, 2 * np.pi))
