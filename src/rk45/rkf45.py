"""Runge-Kutta-Fehlberg 4(5) stage computation.

Implements the six-stage Fehlberg embedded pair for a system of first-order
equations given as one derivative function per component, ``f_i(t, x)``.
Every stage builds the full trial state before any derivative function is
called, so all components of a stage see the same ``(t, x)``.

The Butcher tableau coefficients are the standard Fehlberg formulation:

- Nodes (c): [0, 1/4, 3/8, 12/13, 1, 1/2]
- 5th-order weights (b_high): [16/135, 0, 6656/12825, 28561/56430, -9/50, 2/55]
- 4th-order weights (b_low): [25/216, 0, 1408/2565, 2197/4104, -1/5, 0]

As in Fehlberg's scheme the solution is advanced with the 4th-order
weights; the 5th-order solution only enters through the error estimate in
:mod:`rk45._adaptive`.

The derivative functions are arbitrary Python callables (they may use
``math`` on scalar elements), so these routines run eagerly and are not
meant to be wrapped in ``jax.jit``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from rk45.config import get_dtype

# Nodes
_C = (0.0, 1.0 / 4.0, 3.0 / 8.0, 12.0 / 13.0, 1.0, 1.0 / 2.0)

# Coupling coefficients (lower-triangular rows)
_A1 = (1.0 / 4.0,)
_A2 = (3.0 / 32.0, 9.0 / 32.0)
_A3 = (1932.0 / 2197.0, -7200.0 / 2197.0, 7296.0 / 2197.0)
_A4 = (439.0 / 216.0, -8.0, 3680.0 / 513.0, -845.0 / 4104.0)
_A5 = (-8.0 / 27.0, 2.0, -3544.0 / 2565.0, 1859.0 / 4104.0, -11.0 / 40.0)

# 4th-order weights (propagated solution)
_B_LOW = (25.0 / 216.0, 0.0, 1408.0 / 2565.0, 2197.0 / 4104.0, -1.0 / 5.0, 0.0)

DerivativeFn = Callable[[float, Array], ArrayLike]


def evaluate_derivatives(
    derivatives: Sequence[DerivativeFn],
    t: float,
    state: ArrayLike,
) -> Array:
    """Evaluate each component's derivative function once at ``(t, state)``.

    Args:
        derivatives: One function ``f_i(t, x) -> float`` per component.
        t: Independent variable.
        state: Full state vector passed to every function.

    Returns:
        jax.Array: Derivative vector of shape ``(len(derivatives),)``.
    """
    dtype = get_dtype()
    state = jnp.asarray(state, dtype=dtype)
    return jnp.asarray([f(t, state) for f in derivatives], dtype=dtype)


def rkf45_stages(
    derivatives: Sequence[DerivativeFn],
    t: float,
    state: ArrayLike,
    h: float,
) -> Array:
    """Compute the six Fehlberg stage coefficients ``k1..k6``.

    Each stage is scaled by the step, ``k_j = h * f(t + c_j h, x_j)``, where
    ``x_j`` is the state plus the tableau combination of earlier stages.
    Every derivative function is called exactly once per stage.

    Args:
        derivatives: One function ``f_i(t, x) -> float`` per component.
        t: Time at the start of the step.
        state: State vector at ``t``. Not modified.
        h: Step size.

    Returns:
        jax.Array: Stage coefficients of shape ``(6, dimension)``.

    Examples:
        ```python
        from rk45.rkf45 import rkf45_stages
        k = rkf45_stages([lambda t, x: -x[0]], 0.0, [1.0], 0.1)
        k.shape  # (6, 1)
        ```
    """
    state = jnp.asarray(state, dtype=get_dtype())

    def f(ti, xi):
        return h * evaluate_derivatives(derivatives, ti, xi)

    k0 = f(t, state)
    k1 = f(t + _C[1] * h, state + _A1[0] * k0)
    k2 = f(t + _C[2] * h, state + _A2[0] * k0 + _A2[1] * k1)
    k3 = f(t + _C[3] * h, state + _A3[0] * k0 + _A3[1] * k1 + _A3[2] * k2)
    k4 = f(
        t + _C[4] * h,
        state + _A4[0] * k0 + _A4[1] * k1 + _A4[2] * k2 + _A4[3] * k3,
    )
    k5 = f(
        t + _C[5] * h,
        state + _A5[0] * k0 + _A5[1] * k1 + _A5[2] * k2 + _A5[3] * k3 + _A5[4] * k4,
    )
    return jnp.stack([k0, k1, k2, k3, k4, k5])


def rkf45_increment(k: ArrayLike) -> Array:
    """Combine stage coefficients into the state increment of an accepted step.

    Args:
        k: Stage coefficients of shape ``(6, dimension)`` from
            :func:`rkf45_stages`.

    Returns:
        jax.Array: Increment to add to the state, shape ``(dimension,)``.
    """
    k = jnp.asarray(k, dtype=get_dtype())
    return _B_LOW[0] * k[0] + _B_LOW[2] * k[2] + _B_LOW[3] * k[3] + _B_LOW[4] * k[4]
