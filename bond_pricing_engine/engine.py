from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import pandas as pd

from .config import (
    BPS,
    COUPON_BRACKET,
    DEFAULT_SOLVER_CONFIG,
    YTM_BRACKET,
    ZSPREAD_BRACKET,
    SolverConfig,
)
from .curves import YieldCurve
from .discounting import DiscountingTable
from .errors import InsufficientInputsError
from .solver import solve
from .utils import is_normal

logger = logging.getLogger(__name__)


class PricingCase(Enum):
    CALIBRATION = "price+coupon+rate"
    PRICE_AND_COUPON = "price+coupon"
    PRICE_AND_RATE = "price+rate"
    COUPON_AND_RATE = "coupon+rate"


# (price_known, coupon_known, rate_known) -> case
_PRICING_CASES: Dict[Tuple[bool, bool, bool], PricingCase] = {
    (True, True, True): PricingCase.CALIBRATION,
    (True, True, False): PricingCase.PRICE_AND_COUPON,
    (True, False, True): PricingCase.PRICE_AND_RATE,
    (False, True, True): PricingCase.COUPON_AND_RATE,
}


def classify(price_known: bool, coupon_known: bool, rate_known: bool) -> PricingCase:
    key = (bool(price_known), bool(coupon_known), bool(rate_known))
    try:
        return _PRICING_CASES[key]
    except KeyError:
        raise InsufficientInputsError(*key) from None


@dataclass(frozen=True)
class PricingResult:
    pricing_date: pd.Timestamp
    price: float
    price_adjustment: float
    duration: float
    modified_duration: float
    dv01: float
    ytm: float
    gspread: float
    zspread: float
    coupon_rate: Optional[float]
    curve: YieldCurve = field(repr=False, compare=False)
    discounting: pd.DataFrame = field(repr=False, compare=False, default=None)

    @property
    def has_bad_result(self) -> bool:
        """Any headline metric is nan/inf/subnormal: the result must not be used."""
        return not all(is_normal(x) for x in (self.duration, self.gspread, self.zspread, self.ytm))


class VanillaBondPricer:
    """
    Resolves price, yield, z-spread and coupon rate of a bond from whichever
    two of {price, coupon structure, rate} are known, then derives duration,
    modified duration, DV01 and G-spread.

    The discounting table is mutated in place while solving.
    """

    def __init__(
        self,
        discounting: DiscountingTable,
        price: Optional[float] = None,
        ytm: Optional[float] = None,
        zspread_bps: Optional[float] = None,
        coupon_rate: Optional[float] = None,
        config: SolverConfig = DEFAULT_SOLVER_CONFIG,
    ):
        self.discounting = discounting
        self.config = config

        self._price = price
        self._ytm = ytm
        self._zspread = zspread_bps
        self._coupon_rate = coupon_rate
        self._price_adjustment = 0.0
        self._results: Optional[PricingResult] = None

        self.case = classify(
            price_known=price is not None,
            coupon_known=coupon_rate is not None or discounting.coupons_known,
            rate_known=ytm is not None or zspread_bps is not None,
        )

    @property
    def results(self) -> Optional[PricingResult]:
        return self._results

    def price(self) -> "VanillaBondPricer":
        logger.debug("pricing case %s", self.case.value)

        if self.case is PricingCase.CALIBRATION:
            theoretical = self._theoretical_price()
            self._price_adjustment = theoretical - self._price
            self._price = theoretical
        elif self.case is PricingCase.PRICE_AND_RATE:
            self._coupon_rate = self.calc_coupon_rate_vs_price(self._price)
        elif self.case is PricingCase.COUPON_AND_RATE:
            self._price = self._theoretical_price()

        if self._ytm is None:
            self._ytm = self.calc_ytm_vs_price(self._price)
        if self._zspread is None:
            self._zspread = self.calc_zspread_vs_price(self._price)

        self._results = self._derive_results()
        if self._results.has_bad_result:
            logger.warning("bad pricing result: %r", self._results)
        return self

    # ---- price as a function of one unknown ----

    def calc_price_vs_ytm(self, ytm: float) -> float:
        return self.discounting.reprice(ytm=ytm, zspread_bps=0.0, coupon_rate=self._coupon_rate).price

    def calc_price_vs_zspread(self, zspread_bps: float) -> float:
        return self.discounting.reprice(zspread_bps=zspread_bps, coupon_rate=self._coupon_rate).price

    def calc_price_vs_coupon_rate(self, coupon_rate: float) -> float:
        if self._ytm is not None:
            return self.discounting.reprice(ytm=self._ytm, zspread_bps=0.0, coupon_rate=coupon_rate).price
        return self.discounting.reprice(zspread_bps=self._zspread, coupon_rate=coupon_rate).price

    # ---- inversions ----

    def calc_ytm_vs_price(self, price: float) -> float:
        return self._solve(lambda y: self.calc_price_vs_ytm(y) - price, YTM_BRACKET)

    def calc_zspread_vs_price(self, price: float) -> float:
        return self._solve(lambda z: self.calc_price_vs_zspread(z) - price, ZSPREAD_BRACKET)

    def calc_coupon_rate_vs_price(self, price: float) -> float:
        return self._solve(lambda c: self.calc_price_vs_coupon_rate(c) - price, COUPON_BRACKET)

    def _solve(self, f, bracket: Tuple[float, float]) -> float:
        x0, x1 = bracket
        return solve(f, x0, x1, tol=self.config.tolerance, max_iter=self.config.max_iterations)

    def _theoretical_price(self) -> float:
        if self._ytm is not None:
            return self.calc_price_vs_ytm(self._ytm)
        return self.calc_price_vs_zspread(self._zspread)

    def _derive_results(self) -> PricingResult:
        # leave the table discounted at the resolved yield; duration is read off it
        self.discounting.reprice(ytm=self._ytm, zspread_bps=0.0, coupon_rate=self._coupon_rate)

        macd = self.discounting.duration()
        modd = macd / (1.0 + self._ytm) if self._ytm != -1.0 else math.nan
        dv01 = modd * self._price * 0.0001
        gsprd = (self._ytm - self.discounting.curve.rate_for_tenor(macd)) * BPS

        return PricingResult(
            pricing_date=self.discounting.as_of,
            price=self._price,
            price_adjustment=self._price_adjustment,
            duration=macd,
            modified_duration=modd,
            dv01=dv01,
            ytm=self._ytm,
            gspread=gsprd,
            zspread=self._zspread,
            coupon_rate=self._coupon_rate,
            curve=self.discounting.curve,
            discounting=self.discounting.to_frame(),
        )


def price_vanilla_bond(
    discounting: DiscountingTable,
    *,
    price: Optional[float] = None,
    ytm: Optional[float] = None,
    zspread_bps: Optional[float] = None,
    coupon_rate: Optional[float] = None,
    config: SolverConfig = DEFAULT_SOLVER_CONFIG,
) -> PricingResult:
    """Functional entry point: build a VanillaBondPricer, price, return the result."""
    pricer = VanillaBondPricer(discounting, price, ytm, zspread_bps, coupon_rate, config)
    return pricer.price().results
