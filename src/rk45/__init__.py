"""
rk45 is a small adaptive Runge-Kutta-Fehlberg 4(5) integrator for systems of first-order ODEs, implemented in JAX.

Two entry points share one implementation:

- :func:`rkf45_solve` -- functional solve returning a :class:`SolveResult`
- :class:`Integrator` -- stateful solver configured with setters

Failures (invalid setup, iteration watchdog, non-finite error estimate) are
reported through :class:`Status` rather than raised.
"""

from .config import set_dtype, get_dtype

from ._types import (
    IntegratorConfig,
    SolverState,
    ErrorKind,
    Status,
    SolveResult,
)

from .rkf45 import (
    evaluate_derivatives,
    rkf45_stages,
    rkf45_increment,
)

from ._adaptive import (
    compute_error_estimate,
    compute_step_scale,
)

from .solve import validate_setup, rkf45_solve
from .integrator import Integrator

__all__ = [
    # Config
    "set_dtype",
    "get_dtype",
    # Types
    "IntegratorConfig",
    "SolverState",
    "ErrorKind",
    "Status",
    "SolveResult",
    # Stages
    "evaluate_derivatives",
    "rkf45_stages",
    "rkf45_increment",
    # Step control
    "compute_error_estimate",
    "compute_step_scale",
    # Solvers
    "validate_setup",
    "rkf45_solve",
    "Integrator",
]
