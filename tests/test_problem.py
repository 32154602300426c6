import numpy as np
import pytest

from tracer_advection import (
    FlowDescriptor,
    FlowKind,
    ProblemConfig,
    ShapeMismatchError,
    ValidationError,
    make_problem,
    refresh_physical,
    set_concentration,
)


@pytest.mark.parametrize("steady", [True, False])
@pytest.mark.parametrize("stepper", ["RK4", "ETDRK4"])
def test_single_mode_diffusion(steady, stepper):
    kappa, eta = 0.1, 0.2
    dt, nsteps = 0.005, 20
    prob = make_problem(
        FlowDescriptor.two_d(steady=steady), n=16, diffusivities=(kappa, eta), dt=dt, stepper=stepper
    )
    x, y = prob.grid.gridpoints()
    set_concentration(prob, np.cos(2 * x + 3 * y))
    ch0 = prob.sol[2, 3]

    prob.step_forward(nsteps)

    t = nsteps * dt
    assert prob.clock.t == pytest.approx(t)
    expected = ch0 * np.exp(-(kappa * 2**2 + eta * 3**2) * t)
    assert abs(prob.sol[2, 3] - expected) <= 1e-8 * abs(expected)


def test_single_mode_diffusion_3d():
    diffs = (0.1, 0.2, 0.3)
    prob = make_problem(FlowDescriptor.three_d(), n=8, diffusivities=diffs, dt=0.005)
    x, y, z = prob.grid.gridpoints()
    set_concentration(prob, np.cos(x + 2 * y + 3 * z))
    ch0 = prob.sol[1, 2, 3]

    prob.step_forward(10)

    rate = diffs[0] * 1 + diffs[1] * 4 + diffs[2] * 9
    expected = ch0 * np.exp(-rate * 0.05)
    assert abs(prob.sol[1, 2, 3] - expected) <= 1e-8 * abs(expected)


def test_uniform_steady_translation_2d():
    U0 = 0.5
    prob = make_problem(
        FlowDescriptor.two_d(lambda x, y, t: U0), n=32, diffusivities=0.0, dt=0.01
    )
    assert prob.params.kind is FlowKind.STEADY

    def c0(x, y):
        return np.cos(x) + 0.5 * np.sin(2 * x + y)

    x, y = prob.grid.gridpoints()
    set_concentration(prob, c0(x, y))
    prob.step_forward(40)
    refresh_physical(prob)

    t = prob.clock.t
    np.testing.assert_allclose(prob.state.c, c0(x - U0 * t, y), atol=1e-9)



def test_uniform_steady_translation_3d_along_z():
    W0 = 0.75
    prob = make_problem(
        FlowDescriptor.three_d(w=lambda x, y, z, t: W0), n=8, diffusivities=0.0, dt=0.002
    )
    assert prob.params.kind is FlowKind.STEADY

    def c0(x, y, z):
        return np.sin(z) + 0.5 * np.cos(x + 2 * z)

    x, y, z = prob.grid.gridpoints()
    set_concentration(prob, c0(x, y, z))
    prob.step_forward(50)
    refresh_physical(prob)

    t = prob.clock.t
    np.testing.assert_allclose(prob.state.c, c0(x, y, z - W0 * t), atol=1e-9)

def test_uniform_steady_translation_1d_with_precomputed_array():
    U0 = -1.0
    prob = make_problem(FlowDescriptor((np.full(32, U0),)), n=32, diffusivities=0.0, dt=0.002)
    (x,) = prob.grid.gridpoints()
    set_concentration(prob, np.sin(3 * x))

    prob.step_forward(50)
    refresh_physical(prob)

    np.testing.assert_allclose(prob.state.c, np.sin(3 * (x - U0 * prob.clock.t)), atol=1e-9)


def test_time_varying_translation_uses_current_time():
    U0 = 1.0
    flow = FlowDescriptor.two_d(lambda x, y, t: U0 * np.cos(t) + 0 * x, steady=False)
    prob = make_problem(flow, n=16, diffusivities=0.0, dt=0.01)
    assert prob.params.kind is FlowKind.TIME_VARYING

    x, y = prob.grid.gridpoints()
    set_concentration(prob, np.cos(x) * np.cos(y))
    prob.step_until(0.5)
    refresh_physical(prob)

    shift = U0 * np.sin(prob.clock.t)
    np.testing.assert_allclose(prob.state.c, np.cos(x - shift) * np.cos(y), atol=1e-8)


def test_round_trip_is_idempotent_for_band_limited_fields():
    prob = make_problem(FlowDescriptor.two_d(), n=32)
    x, y = prob.grid.gridpoints()
    c0 = np.exp(np.sin(x) * np.cos(y))

    set_concentration(prob, c0)
    sol = prob.sol.copy()
    c_first = prob.state.c.copy()
    refresh_physical(prob)

    expected = np.fft.irfftn(np.fft.rfftn(c0, axes=(1, 0)), s=(32, 32), axes=(1, 0))
    np.testing.assert_allclose(prob.state.c, expected, atol=1e-12)
    np.testing.assert_allclose(prob.state.c, c_first, atol=1e-14)
    np.testing.assert_array_equal(prob.sol, sol)
    np.testing.assert_array_equal(prob.state.ch, sol)


def test_set_concentration_rejects_wrong_shape():
    prob = make_problem(FlowDescriptor.two_d(), n=16)
    with pytest.raises(ShapeMismatchError):
        set_concentration(prob, np.zeros((16, 8)))


def test_dimensionality_mismatch_fails():
    with pytest.raises(ValidationError):
        make_problem(FlowDescriptor.two_d(), n=(16, 16, 16))


@pytest.mark.parametrize(
    "overrides",
    [
        {"stepper": "LeapFrog"},
        {"device": "gpu"},
        {"precision": "float16"},
        {"dt": 0.0},
        {"L": (1.0, 2.0, 3.0)},
    ],
)
def test_invalid_configuration(overrides):
    with pytest.raises(ValidationError):
        make_problem(FlowDescriptor.two_d(), n=16, **overrides)


def test_config_object_and_overrides():
    config = ProblemConfig(n=(16, 8), L=(2.0, 1.0), dt=0.02, stepper="ETDRK4", precision="float32")
    prob = make_problem(FlowDescriptor.two_d(), config, diffusivities=(0.0, 0.5))

    assert prob.grid.n == (16, 8)
    assert prob.grid.L == (2.0, 1.0)
    assert prob.clock.dt == 0.02
    assert prob.clock.t == 0.0
    assert prob.params.diffusivities == (0.0, 0.5)
    assert prob.state.c.dtype == np.float32
    assert prob.sol.dtype == np.complex64
    assert prob.vars is prob.state
    assert config.diffusivities == 0.1


def test_step_until_lands_exactly():
    prob = make_problem(FlowDescriptor.one_d(), n=16, dt=0.3)
    prob.step_until(1.0)
    assert prob.clock.t == 1.0
    assert prob.clock.step == 4
