from __future__ import annotations

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, runtime_checkable

from scipy.interpolate import CubicSpline

from .config import BPS
from .utils import discount_factor


@runtime_checkable
class YieldCurve(Protocol):
    """
    Snapshot of a zero curve for one date, as supplied by the market-data collaborator.

    Rates are annually compounded decimals indexed by tenor in ACT/365 years.
    """
    as_of: pd.Timestamp

    def rate_for_tenor(self, years: float) -> float:
        ...


@dataclass(frozen=True)
class FlatCurve:
    as_of: pd.Timestamp
    rate: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "as_of", pd.Timestamp(self.as_of))

    def rate_for_tenor(self, years: float) -> float:
        if np.isnan(years):
            return float("nan")
        return float(self.rate)

    def shifted(self, shift_bp: float) -> "FlatCurve":
        return FlatCurve(self.as_of, self.rate + shift_bp / BPS)


@dataclass(frozen=True)
class TenorCurve:
    """
    Zero curve given by knot tenors (years) and rates.

    - "linear": linear in rates between knots.
    - "cubic": natural cubic spline through the knots.
    - Both extrapolate flat beyond the first and last knot.
    """
    as_of: pd.Timestamp
    tenors: np.ndarray
    rates: np.ndarray
    interpolation: str = "linear"

    def __post_init__(self) -> None:
        tenors = np.asarray(self.tenors, dtype=float)
        rates = np.asarray(self.rates, dtype=float)

        if tenors.ndim != 1 or tenors.shape != rates.shape:
            raise ValueError("tenors and rates must be 1-D arrays of the same length")
        if len(tenors) == 0:
            raise ValueError("curve has no knots")
        if np.any(np.diff(tenors) <= 0):
            raise ValueError("tenors must be strictly increasing")
        if self.interpolation not in ("linear", "cubic"):
            raise ValueError(f"Unsupported interpolation: {self.interpolation}")
        if self.interpolation == "cubic" and len(tenors) < 3:
            raise ValueError("cubic interpolation needs at least three knots")

        object.__setattr__(self, "as_of", pd.Timestamp(self.as_of))
        object.__setattr__(self, "tenors", tenors)
        object.__setattr__(self, "rates", rates)
        spline = CubicSpline(tenors, rates, bc_type="natural") if self.interpolation == "cubic" else None
        object.__setattr__(self, "_spline", spline)

    def rate_for_tenor(self, years: float) -> float:
        if np.isnan(years):
            return float("nan")

        if self.interpolation == "linear":
            return float(np.interp(years, self.tenors, self.rates))

        t = min(max(float(years), self.tenors[0]), self.tenors[-1])
        return float(self._spline(t))

    def shifted(self, shift_bp: float) -> "TenorCurve":
        """Parallel shift of all knot rates by shift_bp."""
        return TenorCurve(self.as_of, self.tenors.copy(), self.rates + shift_bp / BPS, self.interpolation)


def shocked_curve_parallel(curve: YieldCurve, shift_bp: float) -> YieldCurve:
    """
    Parallel shift for any curve. Curves without their own `shifted` are wrapped.
    """
    if hasattr(curve, "shifted"):
        return curve.shifted(shift_bp)
    return _ShiftedCurve(curve, shift_bp)


@dataclass(frozen=True)
class _ShiftedCurve:
    base: YieldCurve
    shift_bp: float

    @property
    def as_of(self) -> pd.Timestamp:
        return self.base.as_of

    def rate_for_tenor(self, years: float) -> float:
        return self.base.rate_for_tenor(years) + self.shift_bp / BPS

    def shifted(self, shift_bp: float) -> "_ShiftedCurve":
        return _ShiftedCurve(self.base, self.shift_bp + shift_bp)


def curve_qc_report(curve: YieldCurve, tenors: Optional[Iterable[float]] = None) -> pd.DataFrame:
    if tenors is None:
        tenors = getattr(curve, "tenors", [0.25, 0.5, 1.0, 2.0, 3.0, 5.0, 7.0, 10.0])
    taus = np.array(list(tenors), dtype=float)

    rates = np.array([curve.rate_for_tenor(t) for t in taus], dtype=float)
    dfs = np.array([discount_factor(r, t) for r, t in zip(rates, taus)], dtype=float)

    return pd.DataFrame(
        {
            "tenor": taus,
            "rate": rates,
            "df": dfs,
            "df_positive": dfs > 0,
            "df_monotone": np.r_[True, np.diff(dfs) <= 1e-10],
        }
    )
