import numpy as np
import pytest

from tracer_advection import Equation, Integrator, SpectralGrid, ValidationError
from tracer_advection.timestepping import STEPPERS, etdrk4_coeffs, resolve_stepper


@pytest.fixture
def tiny_grid():
    # spectral shape (2,): two independent modes
    return SpectralGrid(n=2, L=2 * np.pi)


def _decay_equation(rates, forcing=0.0):
    L = -np.asarray(rates, dtype=float)

    def calcN(N, sol, t):
        N[...] = forcing

    return Equation(L, calcN)


@pytest.mark.parametrize("name, tol", [("ForwardEuler", 0.15), ("Heun", 5e-3), ("RK4", 1e-5), ("ETDRK4", 1e-12)])
def test_linear_decay(tiny_grid, name, tol):
    integ = Integrator(name, _decay_equation([1.0, 2.0]), tiny_grid, dt=0.05)
    integ.sol[...] = 1.0
    integ.step_forward(20)

    np.testing.assert_allclose(integ.sol.real, np.exp(-np.array([1.0, 2.0])), rtol=tol)
    assert integ.clock.step == 20


@pytest.mark.parametrize("name", ["RK4", "ETDRK4"])
def test_relaxation_towards_forcing(tiny_grid, name):
    integ = Integrator(name, _decay_equation([1.0, 1.0], forcing=1.0), tiny_grid, dt=0.01)
    integ.step_forward(100)
    np.testing.assert_allclose(integ.sol.real, 1.0 - np.exp(-1.0), rtol=1e-8)


def test_stage_times_are_passed_to_the_nonlinear_term(tiny_grid):
    times = []

    def calcN(N, sol, t):
        times.append(t)
        N[...] = 0.0

    integ = Integrator("RK4", Equation(np.zeros(2), calcN), tiny_grid, dt=0.1, t0=1.0)
    integ.step_forward()
    assert times == pytest.approx([1.0, 1.05, 1.05, 1.1])


def test_step_until_with_etdrk4_shortened_step(tiny_grid):
    integ = Integrator("ETDRK4", _decay_equation([1.0, 3.0]), tiny_grid, dt=0.3)
    integ.sol[...] = 1.0
    integ.step_until(1.0)

    assert integ.clock.t == 1.0
    np.testing.assert_allclose(integ.sol.real, np.exp(-np.array([1.0, 3.0])), rtol=1e-12)
    full, short = integ.stepper.cached_timesteps
    assert full == 0.3
    assert short == pytest.approx(0.1)


def test_etdrk4_keeps_one_shortened_step_cached(tiny_grid):
    integ = Integrator("ETDRK4", _decay_equation([1.0, 3.0]), tiny_grid, dt=0.01)
    integ.sol[...] = 1.0
    for i in range(1, 200):
        integ.step_until(0.037 * i)
        assert len(integ.stepper.cached_timesteps) <= 2

    assert integ.stepper.cached_timesteps[0] == 0.01
    np.testing.assert_allclose(integ.sol.real, np.exp(-np.array([1.0, 3.0]) * integ.clock.t), rtol=1e-8)


def test_cannot_step_backwards(tiny_grid):
    integ = Integrator("RK4", _decay_equation([1.0, 1.0]), tiny_grid, dt=0.1, t0=1.0)
    with pytest.raises(ValidationError):
        integ.step_until(0.5)


@pytest.mark.parametrize("name", ["rk4", "FilteredRK4", "filteredetdrk4", "FORWARDEULER", "FilteredHeun"])
def test_stepper_names_are_case_insensitive(name):
    cls, filtered = resolve_stepper(name)
    assert cls in STEPPERS.values()
    assert filtered == name.lower().startswith("filtered")


@pytest.mark.parametrize("name", ["AB3", "Filtered", "filteredLSRK54"])
def test_unknown_stepper(name):
    with pytest.raises(ValidationError):
        resolve_stepper(name)


def test_etdrk4_coefficients_at_zero_rate():
    E, E2, Q, f1, f2, f3 = etdrk4_coeffs(np.zeros(3), 0.1)
    np.testing.assert_allclose(E, 1.0)
    np.testing.assert_allclose(Q, 0.05)
    # f1 + 4 f2 + f3 integrates a constant over one step
    np.testing.assert_allclose(f1 + 4 * f2 + f3, 0.1)


def test_filtered_stepper_damps_only_small_scales():
    grid = SpectralGrid(n=32, L=2 * np.pi)
    integ = Integrator("FilteredRK4", Equation(np.zeros(17), lambda N, sol, t: N.fill(0.0)), grid, dt=0.1)
    integ.sol[1] = 1.0
    integ.sol[15] = 1.0

    integ.step_forward()

    assert integ.sol[1] == 1.0
    assert abs(integ.sol[15]) < 0.5
