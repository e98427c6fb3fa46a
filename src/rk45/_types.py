"""Type definitions for the RK45 integrator.

Provides the value types shared by the functional solver and the stateful
:class:`~rk45.integrator.Integrator`:

- :class:`IntegratorConfig`: Immutable solver parameters (initial step,
  tolerance, watchdog limit, step-control constants).
- :class:`SolverState` and :class:`ErrorKind`: Lifecycle label and tagged
  failure reason of a solve.
- :class:`Status`: The status record reported after validation and after
  a solve.
- :class:`SolveResult`: Final state, time, iteration count and status of a
  solve.

All records are :class:`~typing.NamedTuple` instances, so they are
immutable and compare by value.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple, Optional

from jax import Array


class IntegratorConfig(NamedTuple):
    """Configuration for an adaptive RK45 solve.

    Attributes:
        step_size: Initial trial step in the independent variable. Must be
            positive.
        tolerance: Bound on the per-unit-step local error estimate of every
            component. Must be positive.
        max_iterations: Watchdog limit on loop iterations, counting both
            accepted and rejected steps.
        safety_factor: Multiplier applied to the optimal step-scale
            prediction.
        max_scale_factor: Step-scale factor used for a component whose
            error estimate is exactly zero.
    """

    step_size: float = 0.1
    tolerance: float = 1.0e-5
    max_iterations: int = 2048
    safety_factor: float = 0.84
    max_scale_factor: float = 4.0


class SolverState(Enum):
    """Lifecycle label of a solve."""

    INITIAL = "initial"
    SOLVING = "solving"
    COMPLETE = "complete"
    ERROR = "error"


class ErrorKind(Enum):
    """Reason a validation or a solve ended in :attr:`SolverState.ERROR`."""

    EMPTY_INTERVAL = "empty_interval"
    REVERSED_INTERVAL = "reversed_interval"
    INVALID_INTERVAL = "invalid_interval"
    NOT_CONFIGURED = "not_configured"
    DIMENSION_MISMATCH = "dimension_mismatch"
    ZERO_STEP = "zero_step"
    NEGATIVE_STEP = "negative_step"
    INVALID_STEP = "invalid_step"
    INVALID_TOLERANCE = "invalid_tolerance"
    INVALID_MAX_ITERATIONS = "invalid_max_iterations"
    MAX_ITERATIONS = "max_iterations"
    NON_FINITE_ERROR = "non_finite_error"


class Status(NamedTuple):
    """Outcome record of validation or of a solve.

    Attributes:
        success: True only once the interval has been fully traversed.
        state: Lifecycle label.
        message: Human-readable description, ``None`` before anything ran.
        error: Tagged failure reason when ``state`` is
            :attr:`SolverState.ERROR`, otherwise ``None``.
    """

    success: bool = False
    state: SolverState = SolverState.INITIAL
    message: Optional[str] = None
    error: Optional[ErrorKind] = None


class SolveResult(NamedTuple):
    """Result of :func:`~rk45.solve.rkf45_solve`.

    On failure the fields still describe the last accepted step, so a
    partially advanced trajectory can be inspected.

    Attributes:
        state: State vector at time ``t``.
        t: Independent variable reached by the last accepted step.
        iterations: Loop iterations run, accepted and rejected.
        step_size: Trial step the loop would have used next.
        status: Final :class:`Status`.
    """

    state: Optional[Array]
    t: float
    iterations: int
    step_size: float
    status: Status

    @property
    def ok(self) -> bool:
        """True if the solve completed the interval."""
        return self.status.success
