"""Module-wide floating-point precision configuration.

Provides ``set_dtype`` and ``get_dtype`` to control the float dtype used
for state vectors and stage coefficients throughout rk45.  The default is
``jnp.float64``: adaptive step control at tolerances around ``1e-5`` needs
double precision to resolve the embedded error estimate.  ``jnp.float32``
can be selected for loose tolerances; half-precision types cannot resolve
the error estimate and are rejected.

Importing rk45 does not touch JAX's global configuration.  JAX's 64-bit
mode (``jax_enable_x64``) is switched on the first time a float64 dtype is
handed out by ``get_dtype``, i.e. when rk45 first builds an array.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_VALID_DTYPES = (jnp.float32, jnp.float64)

_dtype = jnp.float64
_x64_enabled = False


def _ensure_x64() -> None:
    global _x64_enabled
    if not _x64_enabled:
        jax.config.update("jax_enable_x64", True)
        _x64_enabled = True


def set_dtype(dtype) -> None:
    """Set the module-wide float dtype for rk45.

    Args:
        dtype: ``jnp.float32`` or ``jnp.float64``.

    Raises:
        ValueError: If *dtype* is not a supported float type.
    """
    global _dtype
    if dtype not in _VALID_DTYPES:
        raise ValueError(
            f"Unsupported dtype {dtype}. Must be one of: jnp.float32, jnp.float64"
        )
    _dtype = dtype


def get_dtype():
    """Return the current module-wide float dtype.

    If the dtype is ``jnp.float64``, JAX's 64-bit mode is enabled first via
    ``jax.config.update("jax_enable_x64", True)``.

    Returns:
        The active float dtype (default ``jnp.float64``).
    """
    if _dtype == jnp.float64:
        _ensure_x64()
    return _dtype
