"""
Standalone pricing utilities working straight off a flow schedule.

These skip the discounting table and the known-inputs dispatch of
`engine.VanillaBondPricer`; they are what the comparables scan uses.

Conventions:
- time to flow is ACT/365 from the pricing date,
- discounting is annual compounding, 1 / (1 + r)^t,
- flows dated after the earliest put are not priced (bond priced to the put),
- z-spreads are in basis points.
"""
from __future__ import annotations

import math
from typing import List, Optional

import pandas as pd

from .cashflows import CashFlow, FlowType, ScheduleLike, require_flows
from .config import (
    BPS,
    DEFAULT_SOLVER_CONFIG,
    STATIC_YTM_BRACKET,
    STATIC_ZSPREAD_BRACKET,
    SolverConfig,
)
from .curves import YieldCurve
from .solver import solve
from .utils import discount_factor, yearfrac


def priced_flows(schedule: ScheduleLike, as_of: pd.Timestamp) -> List[CashFlow]:
    """
    Flows that contribute to price on `as_of`.

    Filter: drop calls and flows paid before `as_of`. Truncate: keep nothing
    dated after the earliest remaining put (flows on the put date stay).
    """
    as_of = pd.Timestamp(as_of)
    flows = require_flows(schedule)

    live = [f for f in flows if f.end_date >= as_of and f.kind != FlowType.CALL]
    live.sort(key=lambda f: f.sort_key)

    puts = [f.end_date for f in live if f.kind == FlowType.PUT]
    if puts:
        offer_date = min(puts)
        live = [f for f in live if f.end_date <= offer_date]
    return live


def price_at_yield(schedule: ScheduleLike, as_of: pd.Timestamp, ytm: float) -> float:
    as_of = pd.Timestamp(as_of)
    pv = 0.0
    for f in priced_flows(schedule, as_of):
        ttm = yearfrac(as_of, f.end_date)
        pv += f.payment * discount_factor(ytm, ttm)
    return pv


def price_at_spread(schedule: ScheduleLike, curve: YieldCurve, zspread_bps: float = 0.0) -> float:
    as_of = pd.Timestamp(curve.as_of)
    pv = 0.0
    for f in priced_flows(schedule, as_of):
        ttm = yearfrac(as_of, f.end_date)
        r = curve.rate_for_tenor(ttm) + zspread_bps / BPS
        pv += f.payment * discount_factor(r, ttm)
    return pv


def price(
    schedule: ScheduleLike,
    as_of: Optional[pd.Timestamp] = None,
    *,
    ytm: Optional[float] = None,
    curve: Optional[YieldCurve] = None,
    zspread_bps: float = 0.0,
) -> float:
    """
    Bond price either at a flat yield (`as_of` + `ytm`) or off a curve plus
    z-spread (`curve` [+ `zspread_bps`]).
    """
    if ytm is not None:
        if as_of is None:
            if curve is None:
                raise ValueError("Pricing at a yield needs a pricing date.")
            as_of = curve.as_of
        return price_at_yield(schedule, as_of, ytm)

    if curve is None:
        raise ValueError("Either ytm or curve must be given.")
    return price_at_spread(schedule, curve, zspread_bps)


def implied_yield(
    schedule: ScheduleLike,
    as_of: pd.Timestamp,
    target_price: float,
    config: SolverConfig = DEFAULT_SOLVER_CONFIG,
) -> float:
    """Yield to maturity (to put) reproducing `target_price`; nan if the search fails."""
    flows = require_flows(schedule)

    def f(ytm: float) -> float:
        return price_at_yield(flows, as_of, ytm) - target_price

    x0, x1 = STATIC_YTM_BRACKET
    return solve(f, x0, x1, tol=config.tolerance, max_iter=config.max_iterations)


def implied_zspread(
    schedule: ScheduleLike,
    curve: YieldCurve,
    target_price: float,
    config: SolverConfig = DEFAULT_SOLVER_CONFIG,
) -> float:
    """Z-spread in bps over `curve` reproducing `target_price`; nan if the search fails."""
    flows = require_flows(schedule)

    def f(zspread_bps: float) -> float:
        return price_at_spread(flows, curve, zspread_bps) - target_price

    x0, x1 = STATIC_ZSPREAD_BRACKET
    return solve(f, x0, x1, tol=config.spread_tolerance, max_iter=config.max_iterations)


def duration(schedule: ScheduleLike, curve: YieldCurve, price: float) -> float:
    """Curve-discounted, time-weighted flows divided by `price`."""
    as_of = pd.Timestamp(curve.as_of)
    weighted = 0.0
    for f in priced_flows(schedule, as_of):
        ttm = yearfrac(as_of, f.end_date)
        weighted += f.payment * discount_factor(curve.rate_for_tenor(ttm), ttm) * ttm
    if price == 0:
        return math.nan
    return weighted / price


def g_spread(schedule: ScheduleLike, curve: YieldCurve, ytm: float, price: float) -> float:
    """(ytm - curve rate at the bond's duration) in bps."""
    dur = duration(schedule, curve, price)
    return (ytm - curve.rate_for_tenor(dur)) * BPS
