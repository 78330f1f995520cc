from __future__ import annotations

import logging
from itertools import accumulate
from typing import List, Optional

import pandas as pd

from .cashflows import CashFlow, FlowSchedule, FlowType, InstrumentSchedule
from .config import DAYS_IN_YEAR
from .utils import add_days, days_between, snap_to_grid

logger = logging.getLogger(__name__)


class ScheduleBuilder:
    """
    Builds synthetic bond schedules (coupons, put offer, amortizations,
    redemption) from tenors given in days.

    Put and amortization tenors longer than the first coupon are snapped down
    onto the coupon payment grid; shorter ones are kept as given.

        bond = (ScheduleBuilder()
                .with_start_date("2024-01-10")
                .with_coupon_length(182)
                .with_number_of_coupons(4)
                .with_coupon_rate(0.10)
                .build())
    """

    def __init__(self):
        self._identifier = "SYNTHETIC"
        self._start = pd.Timestamp.today().normalize() - pd.Timedelta(days=1)
        self._maturity: Optional[pd.Timestamp] = None
        self._coupon_length = 182
        self._coupon_lengths: List[int] = []
        self._n_coupons: Optional[int] = None
        self._put = 0
        self._amortizations: List[int] = []
        self._face = 1000.0
        self._coupon_rate: Optional[float] = None
        self._coupon_type = "constant"
        self._currency = "RUB"
        self._ratings: List[str] = []

    @classmethod
    def new(cls) -> "ScheduleBuilder":
        return cls()

    def with_identifier(self, identifier: str) -> "ScheduleBuilder":
        self._identifier = identifier
        return self

    def with_start_date(self, date) -> "ScheduleBuilder":
        self._start = pd.Timestamp(date).normalize()
        return self

    def with_maturity_date(self, date) -> "ScheduleBuilder":
        self._maturity = pd.Timestamp(date).normalize()
        return self

    def with_coupon_length(self, days: int) -> "ScheduleBuilder":
        if days <= 0:
            raise ValueError("coupon length must be positive")
        self._coupon_length = int(days)
        return self

    def with_coupon_lengths(self, *days: int) -> "ScheduleBuilder":
        if any(d <= 0 for d in days):
            raise ValueError("coupon lengths must be positive")
        self._coupon_lengths = [int(d) for d in days]
        return self

    def with_number_of_coupons(self, n: int) -> "ScheduleBuilder":
        if n <= 0:
            raise ValueError("number of coupons must be positive")
        self._n_coupons = int(n)
        return self

    def with_put_offer(self, days: int) -> "ScheduleBuilder":
        """`days` is the put tenor from start; 0 means no put."""
        if days < 0:
            raise ValueError("put tenor must not be negative")
        self._put = int(days)
        return self

    def with_amortizations(self, *days: int) -> "ScheduleBuilder":
        if any(d <= 0 for d in days):
            raise ValueError("amortization tenors must be positive")
        self._amortizations = [int(d) for d in days]
        return self

    def with_face_value(self, face: float) -> "ScheduleBuilder":
        self._face = float(face)
        return self

    def with_coupon_rate(self, rate: Optional[float]) -> "ScheduleBuilder":
        self._coupon_rate = rate
        return self

    def with_coupon_type(self, coupon_type: str) -> "ScheduleBuilder":
        self._coupon_type = coupon_type
        return self

    def with_currency(self, currency: str) -> "ScheduleBuilder":
        self._currency = currency
        return self

    def with_rating(self, rating: str) -> "ScheduleBuilder":
        self._ratings.append(rating)
        return self

    def with_ratings(self, *ratings: str) -> "ScheduleBuilder":
        self._ratings.extend(ratings)
        return self

    def build(self) -> InstrumentSchedule:
        lengths = self._coupon_lengths or [self._coupon_length] * self._number_of_coupons()
        grid = list(accumulate(lengths))  # coupon end offsets from start, in days
        maturity = add_days(self._start, grid[-1])

        if self._maturity is not None and self._maturity != maturity:
            logger.debug("maturity %s moved to coupon grid end %s", self._maturity.date(), maturity.date())

        redemptions = self._generate_redemption(grid, maturity)
        coupons = self._generate_coupons(lengths, redemptions)
        offers = self._generate_put_offer(grid, redemptions)

        return InstrumentSchedule(
            identifier=self._identifier,
            flows=FlowSchedule(coupons + offers + redemptions),
            initial_face_value=self._face,
            placement_date=self._start,
            maturity_date=maturity,
            currency=self._currency,
            coupon_type=self._coupon_type,
            ratings=tuple(self._ratings),
        )

    def _number_of_coupons(self) -> int:
        if self._n_coupons is not None:
            return self._n_coupons
        if self._maturity is not None:
            days = days_between(self._start, self._maturity)
            return max(1, round(days / self._coupon_length))
        return 2

    def _generate_coupons(self, lengths: List[int], redemptions: List[CashFlow]) -> List[CashFlow]:
        flows: List[CashFlow] = []
        start = self._start
        for days in lengths:
            end = add_days(start, days)

            if self._coupon_rate is None:
                payment = 0.0
            else:
                repaid = sum(r.payment for r in redemptions if r.end_date <= start)
                payment = (self._face - repaid) * self._coupon_rate / DAYS_IN_YEAR * days

            flows.append(CashFlow(FlowType.COUPON, start, end, days, self._coupon_rate, payment))
            start = end
        return flows

    def _generate_put_offer(self, grid: List[int], redemptions: List[CashFlow]) -> List[CashFlow]:
        if self._put == 0:
            return []

        days = snap_to_grid(self._put, grid)
        end = add_days(self._start, days)
        # holders put back whatever face is still outstanding on the offer date
        repaid = sum(r.payment for r in redemptions if r.end_date <= end)
        return [CashFlow(FlowType.PUT, self._start, end, days, 1.0, self._face - repaid)]

    def _generate_redemption(self, grid: List[int], maturity: pd.Timestamp) -> List[CashFlow]:
        if not self._amortizations:
            return [CashFlow(FlowType.MATURITY, self._start, maturity, grid[-1], 1.0, self._face)]

        payment = self._face / len(self._amortizations)
        rate = 1.0 / len(self._amortizations)

        flows: List[CashFlow] = []
        for tenor in self._amortizations:
            days = snap_to_grid(tenor, grid)
            flows.append(CashFlow(FlowType.AMORTIZATION, self._start, add_days(self._start, days), days, rate, payment))
        return flows
