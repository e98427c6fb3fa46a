# /// script
# requires-python = ">=3.10"
# dependencies = ["typer>=0.9.0", "rk45"]
#
# [tool.uv.sources]
# rk45 = { path = ".." }
# ///
"""Solve a sample ODE problem with the adaptive RK45 integrator.

Two problems are available:

- ``polynomial``: ``dx/dt = x - t^2 + 1`` with ``x(0) = 0.5``. The exact
  value at ``t = 2`` is ``9 - e^2 / 2 = 5.3054719...``.
- ``pendulum``: the nonlinear pendulum ``x'' + g/l sin(x) = 0`` written as
  ``dx/dt = y``, ``dy/dt = -g/l sin(x)`` with ``x(0) = 0.33 pi``,
  ``y(0) = 0``, ``g = 9.81``, ``l = 1``.

Requires rk45 to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/sample.py [OPTIONS]

Examples:
    # Polynomial ODE to t = 2 with the default step and tolerance
    uv run examples/sample.py

    # Pendulum to t = 9 at a tighter tolerance, tracing every step
    uv run examples/sample.py --problem pendulum --stop 9 --tolerance 1e-6 --verbose
"""

import enum
import logging
import math
import time
from typing import Annotated

import typer

from rk45 import Integrator


class Problem(str, enum.Enum):
    polynomial = "polynomial"
    pendulum = "pendulum"


_PROBLEMS = {
    Problem.polynomial: ([lambda t, x: x[0] - t * t + 1.0], [0.5]),
    Problem.pendulum: (
        [lambda t, x: x[1], lambda t, x: -9.81 / 1.0 * math.sin(x[0])],
        [0.33 * math.pi, 0.0],
    ),
}


def main(
    problem: Annotated[Problem, typer.Option(help="Sample problem to solve")] = Problem.polynomial,
    start: Annotated[float, typer.Option(help="Start of the integration interval")] = 0.0,
    stop: Annotated[float, typer.Option(help="Time at which the solution is wanted")] = 2.0,
    step: Annotated[float, typer.Option(help="Initial step size")] = 0.1,
    tolerance: Annotated[float, typer.Option(help="Local error tolerance")] = 1.0e-5,
    max_iterations: Annotated[int, typer.Option(help="Iteration watchdog limit")] = 2048,
    verbose: Annotated[bool, typer.Option(help="Log every integration step")] = False,
) -> None:
    """Solve the selected problem and print status, result and timing."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    derivatives, initial_state = _PROBLEMS[problem]

    solver = Integrator()
    solver.set_start(start)
    solver.set_stop(stop)
    solver.set_initial_state(initial_state)
    solver.set_derivatives(derivatives)
    solver.set_step_size(step)
    solver.set_tolerance(tolerance)
    solver.set_max_iterations(max_iterations)

    t0 = time.perf_counter()
    solver.solve()
    elapsed = time.perf_counter() - t0

    status = solver.get_status()
    print("status:")
    print(f"\tsuccess: {status.success}")
    print(f"\tstate: {status.state.value}")
    print(f"\tmessage: {status.message}")

    if solver.state is not None:
        print(f"result: {[float(v) for v in solver.state]}")
    print(f"Computed in {solver.iteration_count} iterations taking {elapsed * 1e3:.1f} ms")

    if not status.success:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    typer.run(main)
