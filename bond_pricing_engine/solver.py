from __future__ import annotations

import logging
import math
from typing import Callable

from .config import DEFAULT_SOLVER_CONFIG

logger = logging.getLogger(__name__)


def solve(
    f: Callable[[float], float],
    x0: float,
    x1: float,
    tol: float = DEFAULT_SOLVER_CONFIG.tolerance,
    max_iter: int = DEFAULT_SOLVER_CONFIG.max_iterations,
) -> float:
    """
    Secant search for a zero of `f` starting from (x0, x1).

    The starting points need not bracket the root. Stops when two successive
    iterates are within `tol`. Returns nan (never the last iterate) when the
    iteration cap is hit, the secant is flat (f(x1) == f(x0)) or an iterate
    stops being finite.
    """
    f0 = f(x0)
    f1 = f(x1)

    for i in range(max_iter):
        denom = f1 - f0
        if denom == 0.0 or math.isnan(denom):
            logger.debug("secant step undefined at iteration %d (x0=%r, x1=%r)", i, x0, x1)
            return math.nan

        x2 = x1 - f1 * (x1 - x0) / denom
        if not math.isfinite(x2):
            logger.debug("secant iterate diverged at iteration %d", i)
            return math.nan

        x0, x1 = x1, x2
        if abs(x0 - x2) <= tol:
            return x2

        f0, f1 = f1, f(x1)

    logger.debug("secant search did not converge in %d iterations", max_iter)
    return math.nan
