"""Stateful front end to the RK45 solver.

:class:`Integrator` holds a problem setup that is built up with setters,
checked with :meth:`Integrator.validate`, and solved with
:meth:`Integrator.solve`.  After a solve the final state, iteration count
and status are available as attributes::

    from rk45 import Integrator
    solver = Integrator()
    solver.set_start(0.0)
    solver.set_stop(2.0)
    solver.set_initial_state([0.5])
    solver.set_derivatives([lambda t, x: x[0] - t * t + 1])
    solver.solve()
    solver.status.success  # True
    solver.state  # ~[5.305472]
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from jax import Array
from jax.typing import ArrayLike

from rk45._types import IntegratorConfig, SolveResult, SolverState, Status
from rk45.rkf45 import DerivativeFn
from rk45.solve import rkf45_solve, validate_setup

OK = "ok"
ERROR = "error"


class Integrator:
    """Adaptive Runge-Kutta-Fehlberg integrator for a first-order system.

    A default-constructed integrator has no initial state, no derivative
    functions and no solution; solving it reports a setup error.

    Args:
        config: Initial solver parameters. Uses default
            :class:`IntegratorConfig` if ``None``.
        start: Start of the integration interval.
        stop: End of the integration interval.

    Attributes:
        initial_state: State vector at ``start``, or ``None``.
        derivatives: One function ``f_i(t, x) -> float`` per component, or
            ``None``.
        state: Solution reached by the last solve, or ``None``.
        iteration_count: Iterations run by the last solve.
        status: Outcome of the last validation or solve.
    """

    def __init__(
        self,
        config: Optional[IntegratorConfig] = None,
        start: float = 0.0,
        stop: float = 1.0,
    ):
        if config is None:
            config = IntegratorConfig()
        self.initial_state: Optional[ArrayLike] = None
        self.derivatives: Optional[Sequence[DerivativeFn]] = None
        self.state: Optional[Array] = None
        self.start = start
        self.stop = stop
        self.step_size = config.step_size
        self.tolerance = config.tolerance
        self.max_iterations = config.max_iterations
        self.safety_factor = config.safety_factor
        self.max_scale_factor = config.max_scale_factor
        self.iteration_count = 0
        self.status = Status()

    def set_initial_state(self, initial_state: ArrayLike) -> None:
        self.initial_state = initial_state

    def set_derivatives(self, derivatives: Sequence[DerivativeFn]) -> None:
        self.derivatives = derivatives

    def set_start(self, start: float) -> None:
        self.start = start

    def set_stop(self, stop: float) -> None:
        self.stop = stop

    def set_step_size(self, step_size: float) -> None:
        self.step_size = step_size

    def set_tolerance(self, tolerance: float) -> None:
        self.tolerance = tolerance

    def set_max_iterations(self, max_iterations: int) -> None:
        self.max_iterations = max_iterations

    def get_status(self) -> Status:
        return self.status

    @property
    def config(self) -> IntegratorConfig:
        """Snapshot of the current solver parameters."""
        return IntegratorConfig(
            step_size=self.step_size,
            tolerance=self.tolerance,
            max_iterations=self.max_iterations,
            safety_factor=self.safety_factor,
            max_scale_factor=self.max_scale_factor,
        )

    def validate(self) -> str:
        """Check the setup for inconsistencies.

        Resets :attr:`status` to its initial value when the setup is valid,
        and records the failed check otherwise.

        Returns:
            str: ``"ok"`` if the setup is valid, ``"error"`` otherwise, with
            the reason in ``status.message``.
        """
        status = validate_setup(
            self.derivatives, self.initial_state, self.start, self.stop, self.config
        )
        if status.state is SolverState.ERROR:
            self.status = status
            return ERROR
        self.status = Status()
        return OK

    def solve(self) -> SolveResult:
        """Integrate from ``start`` to ``stop``.

        Updates :attr:`state`, :attr:`iteration_count` and :attr:`status`.
        The configured initial state and step size are left untouched, so
        solving twice gives the same answer.

        Returns:
            SolveResult: The full outcome of the solve.
        """
        if self.validate() != OK:
            self.iteration_count = 0
            return SolveResult(
                state=self.state,
                t=self.start,
                iterations=0,
                step_size=self.step_size,
                status=self.status,
            )

        self.status = Status(state=SolverState.SOLVING, message="integration in progress")
        result = rkf45_solve(
            self.derivatives, self.initial_state, self.start, self.stop, self.config
        )
        self.state = result.state
        self.iteration_count = result.iterations
        self.status = result.status
        return result
