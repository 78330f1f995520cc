# config.py
# Purpose: Numerical constants, solver settings and data-quality thresholds

from __future__ import annotations

from dataclasses import dataclass

# Day count: Actual/365 throughout
DAYS_IN_YEAR = 365.0
BPS = 10_000.0

# Secant starting points used by the pricing orchestrator
YTM_BRACKET = (-0.25, 0.25)
ZSPREAD_BRACKET = (-400.0, 500.0)
COUPON_BRACKET = (-0.25, 0.25)

# Secant starting points used by the standalone pricing utilities
STATIC_YTM_BRACKET = (-0.75, 0.25)
STATIC_ZSPREAD_BRACKET = (-7500.0, 500.0)

# Comparables data-quality thresholds
MIN_TRADE_VOLUME = 300_000.0
MAX_PLAUSIBLE_YIELD = 1.0

DEFAULT_CURVE_PROVIDER = "MOEX"


@dataclass(frozen=True)
class SolverConfig:
    """
    Secant solver settings.

    `tolerance` applies to yields and coupon rates, `spread_tolerance` to
    z-spread searches in basis points by the standalone utilities.
    """
    max_iterations: int = 250
    tolerance: float = 1e-10
    spread_tolerance: float = 0.1

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        if self.tolerance <= 0 or self.spread_tolerance <= 0:
            raise ValueError("tolerances must be positive")


DEFAULT_SOLVER_CONFIG = SolverConfig()
