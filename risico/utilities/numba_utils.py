"""Numba JIT compilation utilities for RISICO.

The per-cell formulas and the partition kernels of the update engine are
compiled with Numba in nopython mode and release the GIL, so a thread pool
can evaluate disjoint cell ranges concurrently.

Environment Variables:
    RISICO_DISABLE_JIT: Set to '1' to run every kernel as plain Python.
                        Useful for debugging and for quick test runs.
    NUMBA_DISABLE_JIT: Numba's built-in flag, also respected.

Usage:
    from risico.utilities.numba_utils import njit_if_enabled

    @njit_if_enabled(cache=True)
    def my_hot_function(x, y):
        return x + y
"""

import os
from typing import Callable, Any

import numba
from numba import njit
from numba import config as numba_config

DISABLE_JIT = os.environ.get('RISICO_DISABLE_JIT', '0') == '1'

if DISABLE_JIT:
    numba_config.DISABLE_JIT = True

NUMBA_VERSION = numba.__version__


def jit_enabled() -> bool:
    """Whether kernels are compiled (False when either disable flag is set)."""
    return not DISABLE_JIT and not numba_config.DISABLE_JIT


def njit_if_enabled(**jit_kwargs: Any) -> Callable:
    """Decorator that applies numba.njit unless JIT is disabled.

    Args:
        **jit_kwargs: Keyword arguments to pass to numba.njit.
                      Common options:
                      - cache=True: Cache compiled functions to disk
                      - nogil=True: Release the GIL while running

    Returns:
        Callable: Decorated function (JIT-compiled if enabled, else unchanged).
    """
    def decorator(func: Callable) -> Callable:
        if jit_enabled():
            return njit(**jit_kwargs)(func)
        return func
    return decorator


def get_numba_status() -> dict:
    """Get information about the Numba configuration.

    Returns:
        dict: Dictionary containing:
            - version: str, installed Numba version
            - jit_enabled: bool, whether JIT compilation is enabled
            - disable_jit_env: bool, whether RISICO_DISABLE_JIT is set
    """
    return {
        'version': NUMBA_VERSION,
        'jit_enabled': jit_enabled(),
        'disable_jit_env': DISABLE_JIT,
    }
