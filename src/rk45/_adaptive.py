"""Adaptive step-size control utilities for the Fehlberg 4(5) pair.

Provides the per-component error estimate and step-scale factor that drive
the accept/reject decision in :func:`~rk45.solve.rkf45_solve`:

1. Estimate the local truncation error of each component per unit step.
2. Accept the step if every component's estimate is <= the tolerance.
3. Rescale the step by the smallest per-component scale factor.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from rk45.config import get_dtype

# Difference between the 5th- and 4th-order Fehlberg weights
_E = (1.0 / 360.0, 0.0, -128.0 / 4275.0, -2197.0 / 75240.0, 1.0 / 50.0, 2.0 / 55.0)


def compute_error_estimate(k: ArrayLike, h: float) -> Array:
    """Compute the per-component local truncation error estimate.

    .. math::

        R_i = \\frac{1}{h} \\left| \\frac{k_{1,i}}{360}
            - \\frac{128 k_{3,i}}{4275} - \\frac{2197 k_{4,i}}{75240}
            + \\frac{k_{5,i}}{50} + \\frac{2 k_{6,i}}{55} \\right|

    Args:
        k: Stage coefficients of shape ``(6, dimension)``, already scaled
            by ``h``.
        h: Step size the stages were computed with.

    Returns:
        jax.Array: Error estimate per component, shape ``(dimension,)``.
    """
    k = jnp.asarray(k, dtype=get_dtype())
    diff = _E[0] * k[0] + _E[2] * k[2] + _E[3] * k[3] + _E[4] * k[4] + _E[5] * k[5]
    return jnp.abs(diff) / h


def compute_step_scale(
    error: ArrayLike,
    tolerance: float,
    safety_factor: float,
    max_scale_factor: float,
) -> Array:
    """Compute the per-component step-scale factor.

    .. math::

        \\delta_i = S \\left(\\frac{\\text{tol}}{R_i}\\right)^{1/4}

    where *S* is the safety factor. A component with zero error estimate
    places no constraint on the step and gets ``max_scale_factor``.

    Args:
        error: Per-component error estimate from
            :func:`compute_error_estimate`. Must be finite.
        tolerance: Target bound on the error estimate.
        safety_factor: Multiplicative safety factor (typically 0.84).
        max_scale_factor: Factor used for zero-error components.

    Returns:
        jax.Array: Scale factor per component.
    """
    error = jnp.asarray(error, dtype=get_dtype())
    safe_error = jnp.where(error > 0.0, error, 1.0)
    scale = safety_factor * jnp.power(tolerance / safe_error, 0.25)
    return jnp.where(error > 0.0, scale, max_scale_factor)
