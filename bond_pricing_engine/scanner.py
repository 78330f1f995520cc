from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .cashflows import InstrumentSchedule
from .config import (
    DEFAULT_CURVE_PROVIDER,
    DEFAULT_SOLVER_CONFIG,
    MAX_PLAUSIBLE_YIELD,
    MIN_TRADE_VOLUME,
    SolverConfig,
)
from .curves import YieldCurve
from .errors import CurveNotFoundError, InstrumentNotFoundError
from .marketdata import MarketDataProvider
from .pricing import duration, g_spread, implied_yield, implied_zspread

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketQuote:
    """Last observed trade for a bond: clean price in % of face plus accrued interest."""
    close_pct: float
    face_value: float
    accrued_interest: float = 0.0
    average_volume: float = math.nan

    @property
    def clean_price(self) -> float:
        return self.close_pct / 100.0 * self.face_value

    @property
    def dirty_price(self) -> float:
        return self.clean_price + self.accrued_interest


def qc_flags_for_quote(quote: MarketQuote, ytm_init: float, ytm_curr: float, metrics: Iterable[float]) -> List[str]:
    flags: List[str] = []

    clean = quote.clean_price
    if not np.isfinite(clean) or clean <= 0:
        flags.append("BAD_PRICE")

    if not quote.average_volume >= MIN_TRADE_VOLUME:
        flags.append("THIN_VOLUME")

    if ytm_init > MAX_PLAUSIBLE_YIELD or ytm_curr > MAX_PLAUSIBLE_YIELD:
        flags.append("IMPLAUSIBLE_YIELD")

    if not all(np.isfinite(m) for m in metrics):
        flags.append("BAD_RESULT")

    return flags


class ComparablesScanner:
    """
    Prices a set of bonds at placement and today, and flags those whose
    numbers should not be trusted as comparables.

    Bad data is flagged per bond; one bad bond never aborts the scan.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        curve_provider: str = DEFAULT_CURVE_PROVIDER,
        config: SolverConfig = DEFAULT_SOLVER_CONFIG,
        max_workers: int = 4,
    ):
        self.provider = provider
        self.curve_provider = curve_provider
        self.config = config
        self.max_workers = max_workers

    def fetch_curves(self, dates: Iterable[pd.Timestamp]) -> Dict[pd.Timestamp, YieldCurve]:
        """One curve per distinct date, fetched concurrently. Dates without a curve are left out."""
        unique = sorted({pd.Timestamp(d).normalize() for d in dates})
        if not unique:
            return {}

        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(unique)))) as pool:
            curves = list(pool.map(self._fetch_curve_or_none, unique))
        return {d: c for d, c in zip(unique, curves) if c is not None}

    def _fetch_curve_or_none(self, date: pd.Timestamp) -> Optional[YieldCurve]:
        try:
            return self.provider.fetch_curve(date, self.curve_provider)
        except CurveNotFoundError as e:
            logger.warning("%s", e)
            return None

    def _metrics(
        self, bond: InstrumentSchedule, as_of: pd.Timestamp, price: float, curve: Optional[YieldCurve]
    ) -> Tuple[float, float, float, float]:
        """(ytm, duration, G-spread, z-spread); curve metrics are nan without a curve."""
        ytm = implied_yield(bond, as_of, price, self.config)
        if curve is None:
            return ytm, math.nan, math.nan, math.nan
        return (
            ytm,
            duration(bond, curve, price),
            g_spread(bond, curve, ytm, price),
            implied_zspread(bond, curve, price, self.config),
        )

    def scan(self, quotes: Mapping[str, MarketQuote], as_of: pd.Timestamp) -> pd.DataFrame:
        as_of = pd.Timestamp(as_of).normalize()

        bonds: Dict[str, InstrumentSchedule] = {}
        for identifier in quotes:
            try:
                bond = self.provider.fetch_instrument(identifier)
            except InstrumentNotFoundError:
                logger.warning("%s: unknown instrument, skipped", identifier)
                continue
            if bond.flows is None or len(bond.flows) == 0:
                logger.warning("%s: no cash-flow schedule, skipped", identifier)
                continue
            bonds[identifier] = bond

        curves = self.fetch_curves([b.placement_date for b in bonds.values()] + [as_of])
        logger.info("scanning %d bonds against %d curves", len(bonds), len(curves))

        rows = []
        for identifier, bond in bonds.items():
            quote = quotes[identifier]
            curve_init = curves.get(pd.Timestamp(bond.placement_date).normalize())
            curve_curr = curves.get(as_of)

            price_init = bond.initial_face_value
            price_curr = quote.dirty_price

            ytm_init, dur_init, gsprd_init, zsprd_init = self._metrics(bond, bond.placement_date, price_init, curve_init)
            ytm_curr, dur_curr, gsprd_curr, zsprd_curr = self._metrics(bond, as_of, price_curr, curve_curr)

            flags = qc_flags_for_quote(
                quote,
                ytm_init,
                ytm_curr,
                [ytm_init, dur_init, gsprd_init, zsprd_init, ytm_curr, dur_curr, gsprd_curr, zsprd_curr],
            )
            if flags:
                logger.info("%s flagged: %s", identifier, "|".join(flags))

            rows.append(
                {
                    "identifier": identifier,
                    "price_init": price_init,
                    "price_current": price_curr,
                    "price_pct_current": quote.close_pct,
                    "trade_volume": quote.average_volume,
                    "ytm_init": ytm_init,
                    "ytm_current": ytm_curr,
                    "duration_init": dur_init,
                    "duration_current": dur_curr,
                    "gspread_init": gsprd_init,
                    "gspread_current": gsprd_curr,
                    "zspread_init": zsprd_init,
                    "zspread_current": zsprd_curr,
                    "flags": "|".join(flags),
                    "bad_quality": bool(flags),
                }
            )

        columns = [
            "identifier", "price_init", "price_current", "price_pct_current", "trade_volume",
            "ytm_init", "ytm_current", "duration_init", "duration_current",
            "gspread_init", "gspread_current", "zspread_init", "zspread_current",
            "flags", "bad_quality",
        ]
        return pd.DataFrame(rows, columns=columns)
