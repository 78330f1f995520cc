from __future__ import annotations

import sys

import numpy as np
import pandas as pd

from .config import DAYS_IN_YEAR


def yearfrac(start: pd.Timestamp, end: pd.Timestamp) -> float:
    """
    ACT/365 year fraction between two dates.

    Negative when end precedes start; callers filter past flows themselves.
    """
    start = pd.Timestamp(start)
    end = pd.Timestamp(end)
    return (end - start).days / DAYS_IN_YEAR


def days_between(start: pd.Timestamp, end: pd.Timestamp) -> int:
    return int((pd.Timestamp(end) - pd.Timestamp(start)).days)


def add_days(date: pd.Timestamp, days: int) -> pd.Timestamp:
    return pd.Timestamp(date) + pd.Timedelta(days=int(days))


def discount_factor(rate: float, t: float) -> float:
    """
    Annually compounded discount factor 1 / (1 + rate)^t.

    A non-positive base yields nan/inf instead of raising, so a diverging
    root search shows up as a bad number rather than an exception.
    """
    with np.errstate(all="ignore"):
        return float(1.0 / np.power(np.float64(1.0 + rate), t))


def is_normal(x: float) -> bool:
    """
    Finite and not subnormal. Exact zero counts as normal (a zero spread is a valid quote).
    """
    try:
        x = float(x)
    except (TypeError, ValueError):
        return False
    if not np.isfinite(x):
        return False
    return x == 0.0 or abs(x) >= sys.float_info.min


def snap_to_grid(tenor_days: int, grid: list[int]) -> int:
    """
    Round a tenor down onto the coupon payment grid.

    `grid` holds cumulative coupon end offsets (days from start). Tenors not
    longer than the first coupon period are returned unchanged.
    """
    tenor_days = int(tenor_days)
    if not grid or tenor_days <= grid[0]:
        return tenor_days

    snapped = grid[0]
    for offset in grid:
        if offset > tenor_days:
            break
        snapped = offset
    return snapped
