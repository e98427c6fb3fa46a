"""Adaptive RK45 driver.

Integrates a system of first-order equations ``dx_i/dt = f_i(t, x)`` from
``start`` to ``stop`` with the Runge-Kutta-Fehlberg 4(5) method, adjusting
the step so that each component's local error estimate stays within the
tolerance. Each loop iteration:

1. Computes the six stage coefficients at the current ``t``.
2. Estimates the per-component error ``R`` and scale factors ``delta``.
3. Accepts the step (advancing ``t`` and the state) if ``max(R) <= tol``,
   otherwise rejects it. Either way ``h *= min(delta)``.
4. Clamps ``h`` so the last step lands exactly on ``stop``.

Expected failures (bad setup, watchdog exhaustion, non-finite error
estimates) never raise; they are reported through the returned
:class:`~rk45._types.Status`.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Optional

import jax.numpy as jnp
from jax.typing import ArrayLike

from rk45._adaptive import compute_error_estimate, compute_step_scale
from rk45._types import ErrorKind, IntegratorConfig, SolveResult, SolverState, Status
from rk45.config import get_dtype
from rk45.rkf45 import DerivativeFn, rkf45_increment, rkf45_stages

logger = logging.getLogger(__name__)


def _error(kind: ErrorKind, message: str) -> Status:
    return Status(success=False, state=SolverState.ERROR, message=message, error=kind)


def validate_setup(
    derivatives: Optional[Sequence[DerivativeFn]],
    initial_state: Optional[ArrayLike],
    start: float,
    stop: float,
    config: IntegratorConfig,
) -> Status:
    """Check a problem setup for inconsistencies before solving.

    Checks run in order and stop at the first failure:

    1. ``start < stop``, reporting equal, reversed and NaN bounds separately.
    2. Initial state and derivative functions are set, non-empty, and of
       the same length.
    3. ``step_size > 0``, reporting zero, negative and NaN steps separately.
    4. ``tolerance > 0`` and ``max_iterations >= 0``.

    Args:
        derivatives: One function ``f_i(t, x) -> float`` per component.
        initial_state: State vector at ``start``.
        start: Start of the integration interval.
        stop: End of the integration interval.
        config: Solver parameters.

    Returns:
        Status: :attr:`SolverState.INITIAL` with no message if the setup
        is valid, otherwise an :attr:`SolverState.ERROR` status naming the
        first violated check.
    """
    if not start < stop:
        if start == stop:
            return _error(ErrorKind.EMPTY_INTERVAL, "stop time same as start time")
        if start > stop:
            return _error(ErrorKind.REVERSED_INTERVAL, "stop time is less than start time")
        return _error(ErrorKind.INVALID_INTERVAL, "interval bounds are not comparable")

    if initial_state is None or derivatives is None:
        missing = "initial conditions" if initial_state is None else "derivative functions"
        return _error(ErrorKind.NOT_CONFIGURED, f"{missing} not set")
    dimension = len(initial_state)
    if dimension != len(derivatives):
        return _error(
            ErrorKind.DIMENSION_MISMATCH,
            "dimension of initial conditions not the same as dimension of "
            f"functions ({dimension} != {len(derivatives)})",
        )
    if dimension == 0:
        return _error(ErrorKind.DIMENSION_MISMATCH, "system has no equations")

    if not config.step_size > 0:
        if config.step_size == 0.0:
            return _error(ErrorKind.ZERO_STEP, "h is zero but must be a positive number")
        if config.step_size < 0:
            return _error(
                ErrorKind.NEGATIVE_STEP, "h is less than zero but must be a positive number"
            )
        return _error(ErrorKind.INVALID_STEP, "h is not a number")

    if not config.tolerance > 0:
        return _error(ErrorKind.INVALID_TOLERANCE, "tolerance must be a positive number")
    if config.max_iterations < 0:
        return _error(
            ErrorKind.INVALID_MAX_ITERATIONS,
            "maximum iteration count must not be negative",
        )

    return Status()


def rkf45_solve(
    derivatives: Sequence[DerivativeFn],
    initial_state: ArrayLike,
    start: float,
    stop: float,
    config: Optional[IntegratorConfig] = None,
) -> SolveResult:
    """Integrate a system of first-order ODEs from ``start`` to ``stop``.

    The caller's initial state is copied, so repeated solves with the same
    arguments are identical. At most ``config.max_iterations`` iterations
    (accepted and rejected) are run.

    Args:
        derivatives: One function ``f_i(t, x) -> float`` per component.
            Must be pure and deterministic; each is called six times per
            iteration.
        initial_state: State vector at ``start``.
        start: Start of the integration interval.
        stop: End of the integration interval. Must exceed ``start``.
        config: Solver parameters. Uses default :class:`IntegratorConfig`
            if ``None``.

    Returns:
        SolveResult: Named tuple with fields:
            - ``state``: State at ``t`` (``None`` if the setup was invalid).
            - ``t``: Time of the last accepted step (``stop`` on success).
            - ``iterations``: Iterations run.
            - ``step_size``: Next trial step.
            - ``status``: Outcome; ``status.success`` is True only when the
              interval was fully traversed.

    Examples:
        ```python
        from rk45 import rkf45_solve
        result = rkf45_solve([lambda t, x: x[0] - t**2 + 1], [0.5], 0.0, 2.0)
        result.ok  # True
        result.state  # ~[5.305472]
        ```
    """
    if config is None:
        config = IntegratorConfig()

    status = validate_setup(derivatives, initial_state, start, stop, config)
    if status.state is SolverState.ERROR:
        logger.warning("Invalid setup: %s", status.message)
        return SolveResult(
            state=None, t=start, iterations=0, step_size=config.step_size, status=status
        )

    state = jnp.array(initial_state, dtype=get_dtype())
    t = start
    h = min(config.step_size, stop - start)
    count = 0
    status = None

    while t < stop:
        if count >= config.max_iterations:
            status = _error(
                ErrorKind.MAX_ITERATIONS,
                f"iteration count exceeded max ({config.max_iterations})",
            )
            logger.warning("Watchdog fired: %s, stopped at t=%s", status.message, t)
            break

        logger.debug("t: %s, state: %s", t, state)

        k = rkf45_stages(derivatives, t, state, h)
        error = compute_error_estimate(k, h)
        max_error = float(jnp.max(error))
        count += 1

        if not math.isfinite(max_error):
            status = _error(
                ErrorKind.NON_FINITE_ERROR,
                f"non-finite error estimate at t={t} with h={h}",
            )
            logger.warning("%s", status.message)
            break

        scale = float(
            jnp.min(
                compute_step_scale(
                    error, config.tolerance, config.safety_factor, config.max_scale_factor
                )
            )
        )

        if max_error <= config.tolerance:
            logger.debug("Step accepted, max R: %s, scale: %s", max_error, scale)
            state = state + rkf45_increment(k)
            # The clamped final step lands exactly on stop
            t = stop if h >= stop - t else t + h
        else:
            logger.debug("Step rejected, max R: %s, scale: %s", max_error, scale)
        h = h * scale

        if t < stop and h >= stop - t:
            h = stop - t

    if status is None:
        status = Status(
            success=True,
            state=SolverState.COMPLETE,
            message="integration completed successfully",
        )
        logger.info("Integration completed in %d iterations", count)

    return SolveResult(state=state, t=t, iterations=count, step_size=h, status=status)
