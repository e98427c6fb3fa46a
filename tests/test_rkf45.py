"""Tests for the Fehlberg stage computation and step-control utilities.

Tests cover:
- Stage node placement and trial-state construction
- One derivative call per component per stage
- Polynomial exactness of the propagated increment
- Error estimate and step-scale factor, including the zero-error case
- Value types (IntegratorConfig, Status, SolveResult)
"""

import math

import jax.numpy as jnp
import pytest

from rk45._adaptive import compute_error_estimate, compute_step_scale
from rk45._types import ErrorKind, IntegratorConfig, SolveResult, SolverState, Status
from rk45.rkf45 import evaluate_derivatives, rkf45_increment, rkf45_stages

_NODES = (0.0, 1.0 / 4.0, 3.0 / 8.0, 12.0 / 13.0, 1.0, 1.0 / 2.0)


# ──────────────────────────────────────────────
# Helper derivative functions
# ──────────────────────────────────────────────

def _time(t, x):
    """dx/dt = t. Solution: x(t) = x0 + t^2 / 2."""
    return t


def _cubic(t, x):
    """dx/dt = 3t^2. Solution: x(t) = x0 + t^3."""
    return 3.0 * t**2


def _decay(t, x):
    """dx/dt = -x. Solution: x(t) = x0 * exp(-t)."""
    return -x[0]


class _CountingFn:
    """Derivative wrapper recording every call."""

    def __init__(self, fn):
        self.fn = fn
        self.calls = []

    def __call__(self, t, x):
        self.calls.append((t, [float(v) for v in x]))
        return self.fn(t, x)


# ──────────────────────────────────────────────
# Value types
# ──────────────────────────────────────────────

class TestTypes:
    def test_config_defaults(self):
        """IntegratorConfig carries the documented defaults."""
        config = IntegratorConfig()
        assert config.step_size == 0.1
        assert config.tolerance == 1e-5
        assert config.max_iterations == 2048
        assert config.safety_factor == 0.84
        assert config.max_scale_factor == 4.0

    def test_config_custom(self):
        config = IntegratorConfig(tolerance=1e-8, max_iterations=10)
        assert config.tolerance == 1e-8
        assert config.max_iterations == 10
        assert config.step_size == 0.1

    def test_config_immutable(self):
        config = IntegratorConfig()
        with pytest.raises(AttributeError):
            config.tolerance = 1.0

    def test_status_defaults(self):
        status = Status()
        assert status.success is False
        assert status.state is SolverState.INITIAL
        assert status.message is None
        assert status.error is None

    def test_solver_state_values(self):
        assert [s.value for s in SolverState] == ["initial", "solving", "complete", "error"]

    def test_solve_result_ok(self):
        done = Status(True, SolverState.COMPLETE, "integration completed successfully")
        failed = Status(False, SolverState.ERROR, "boom", ErrorKind.MAX_ITERATIONS)
        assert SolveResult(jnp.array([1.0]), 1.0, 3, 0.1, done).ok
        assert not SolveResult(jnp.array([1.0]), 0.5, 3, 0.1, failed).ok


# ──────────────────────────────────────────────
# Stage computation
# ──────────────────────────────────────────────

class TestStages:
    def test_evaluate_derivatives(self):
        fns = [lambda t, x: x[1], lambda t, x: -x[0] + t]
        dx = evaluate_derivatives(fns, 2.0, [1.0, 3.0])
        assert jnp.allclose(dx, jnp.array([3.0, 1.0]))

    def test_shape(self):
        fns = [lambda t, x: x[1], lambda t, x: -x[0]]
        k = rkf45_stages(fns, 0.0, [1.0, 0.0], 0.1)
        assert k.shape == (6, 2)

    def test_nodes(self):
        """Each stage is evaluated at t + c_j h and scaled by h."""
        t, h = 1.0, 0.2
        k = rkf45_stages([_time], t, [0.0], h)
        expected = jnp.array([[h * (t + c * h)] for c in _NODES])
        assert jnp.allclose(k, expected, atol=1e-14)

    def test_first_two_stages(self):
        """k1 = h f(t, x); k2 = h f(t + h/4, x + k1/4)."""
        h = 0.1
        k = rkf45_stages([_decay], 0.0, [1.0], h)
        assert float(k[0, 0]) == pytest.approx(-0.1, abs=1e-15)
        assert float(k[1, 0]) == pytest.approx(-h * (1.0 - 0.1 / 4.0), abs=1e-15)

    def test_one_call_per_stage(self):
        """Every derivative function is called exactly six times."""
        fx = _CountingFn(lambda t, x: x[1])
        fy = _CountingFn(lambda t, x: -x[0])
        rkf45_stages([fx, fy], 0.0, [1.0, 0.5], 0.1)
        assert len(fx.calls) == 6
        assert len(fy.calls) == 6

    def test_full_trial_state(self):
        """Both components of a stage see the same fully formed trial state."""
        fx = _CountingFn(lambda t, x: x[1])
        fy = _CountingFn(lambda t, x: -x[0])
        rkf45_stages([fx, fy], 0.0, [1.0, 0.5], 0.1)
        assert fx.calls == fy.calls

    def test_state_not_modified(self):
        state = jnp.array([1.0, 0.5])
        rkf45_stages([lambda t, x: x[1], lambda t, x: -x[0]], 0.0, state, 0.1)
        assert jnp.array_equal(state, jnp.array([1.0, 0.5]))

    def test_math_module_derivatives(self):
        """Derivative functions may use scalar math on state elements."""
        k = rkf45_stages([lambda t, x: math.sin(x[0])], 0.0, [math.pi / 2], 0.1)
        assert float(k[0, 0]) == pytest.approx(0.1, abs=1e-15)


# ──────────────────────────────────────────────
# Increment
# ──────────────────────────────────────────────

class TestIncrement:
    def test_linear_exactness(self):
        k = rkf45_stages([lambda t, x: 1.0], 0.0, [5.0], 0.5)
        assert float(rkf45_increment(k)[0]) == pytest.approx(0.5, abs=1e-14)

    def test_quadratic_exactness(self):
        """Integrates dx/dt = t exactly: x(1.5) - x(1) = 1.25 / 2."""
        k = rkf45_stages([_time], 1.0, [0.0], 0.5)
        assert float(rkf45_increment(k)[0]) == pytest.approx(0.625, abs=1e-14)

    def test_cubic_exactness(self):
        k = rkf45_stages([_cubic], 0.0, [0.0], 1.0)
        assert float(rkf45_increment(k)[0]) == pytest.approx(1.0, abs=1e-13)

    def test_exponential_decay(self):
        h = 0.1
        k = rkf45_stages([_decay], 0.0, [1.0], h)
        x1 = 1.0 + float(rkf45_increment(k)[0])
        assert x1 == pytest.approx(math.exp(-h), abs=1e-7)


# ──────────────────────────────────────────────
# Error estimate and step scale
# ──────────────────────────────────────────────

class TestStepControl:
    def test_error_zero_for_polynomial(self):
        """Both embedded solutions are exact for low-degree polynomials."""
        h = 0.5
        k = rkf45_stages([_time], 0.0, [0.0], h)
        error = compute_error_estimate(k, h)
        assert error.shape == (1,)
        assert float(error[0]) == pytest.approx(0.0, abs=1e-14)

    def test_error_positive_for_decay(self):
        h = 0.5
        k = rkf45_stages([_decay], 0.0, [1.0], h)
        assert float(compute_error_estimate(k, h)[0]) > 0.0

    def test_error_shrinks_with_step(self):
        """The per-unit-step error of a 4th-order pair scales like h^4."""
        k_big = rkf45_stages([_decay], 0.0, [1.0], 0.4)
        k_small = rkf45_stages([_decay], 0.0, [1.0], 0.2)
        e_big = float(compute_error_estimate(k_big, 0.4)[0])
        e_small = float(compute_error_estimate(k_small, 0.2)[0])
        assert e_big / e_small == pytest.approx(16.0, rel=0.2)

    def test_error_formula(self):
        k = jnp.array([[360.0], [7.0], [0.0], [0.0], [0.0], [0.0]])
        assert float(compute_error_estimate(k, 2.0)[0]) == pytest.approx(0.5)

    def test_scale_at_tolerance(self):
        scale = compute_step_scale(jnp.array([1e-5]), 1e-5, 0.84, 4.0)
        assert float(scale[0]) == pytest.approx(0.84)

    def test_scale_growth(self):
        scale = compute_step_scale(jnp.array([1e-5 / 16.0]), 1e-5, 0.84, 4.0)
        assert float(scale[0]) == pytest.approx(1.68)

    def test_scale_shrink(self):
        scale = compute_step_scale(jnp.array([1e-5 * 16.0]), 1e-5, 0.84, 4.0)
        assert float(scale[0]) == pytest.approx(0.42)

    def test_zero_error_uses_max_scale(self):
        scale = compute_step_scale(jnp.array([0.0, 1e-5]), 1e-5, 0.84, 4.0)
        assert jnp.all(jnp.isfinite(scale))
        assert float(scale[0]) == pytest.approx(4.0)
        assert float(scale[1]) == pytest.approx(0.84)
