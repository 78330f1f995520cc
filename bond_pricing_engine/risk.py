from __future__ import annotations

from typing import Iterable

import pandas as pd

from .cashflows import ScheduleLike, require_flows
from .curves import YieldCurve, shocked_curve_parallel
from .pricing import price_at_spread


def curve_dv01(schedule: ScheduleLike, curve: YieldCurve, zspread_bps: float = 0.0, bp: float = 1.0) -> float:
    """Price change for a +bp parallel curve shift (negative for a long bond)."""
    flows = require_flows(schedule)
    base = price_at_spread(flows, curve, zspread_bps)
    shocked = price_at_spread(flows, shocked_curve_parallel(curve, bp), zspread_bps)
    return shocked - base


def spread_dv01(schedule: ScheduleLike, curve: YieldCurve, zspread_bps: float = 0.0) -> float:
    flows = require_flows(schedule)
    base = price_at_spread(flows, curve, zspread_bps)
    shocked = price_at_spread(flows, curve, zspread_bps + 1.0)
    return shocked - base


def run_rate_scenarios(
    schedule: ScheduleLike,
    curve: YieldCurve,
    shifts_bp: Iterable[float] = (-50, -25, 25, 50),
    zspread_bps: float = 0.0,
) -> pd.DataFrame:
    flows = require_flows(schedule)
    base = price_at_spread(flows, curve, zspread_bps)

    rows = []
    for shift in shifts_bp:
        px = price_at_spread(flows, shocked_curve_parallel(curve, shift), zspread_bps)
        rows.append({"shift_bp": float(shift), "price": px, "pnl": px - base})

    out = pd.DataFrame(rows, columns=["shift_bp", "price", "pnl"])
    return out.sort_values("shift_bp").reset_index(drop=True)
