from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from itertools import groupby
from typing import Iterator, List, Optional

import pandas as pd

from .cashflows import FlowType, REDEMPTION_KINDS, ScheduleLike, require_flows
from .config import BPS, DAYS_IN_YEAR
from .curves import YieldCurve
from .utils import add_days, discount_factor, yearfrac


@dataclass
class DiscountingEntry:
    """One payment date of a bond, rewritten in place on every reprice."""
    date: pd.Timestamp
    outstanding_face: float
    tenor_days: int
    time_to_flow: float
    interest_rate: Optional[float]
    interest_amount: float
    amortization_amount: float
    total_amount: float
    discount_rate: float = math.nan
    spread_bps: float = 0.0
    discount_factor: float = math.nan
    present_value: float = math.nan


class DiscountingTable:
    """
    Per-date discounting of a bond's remaining flows against a yield curve.

    The table is built once per pricing request and mutated by `reprice` on
    every root-finding iteration.
    """

    def __init__(self, curve: YieldCurve, entries: Optional[List[DiscountingEntry]] = None, face: float = 0.0):
        self.curve = curve
        self._entries: List[DiscountingEntry] = list(entries or [])
        # running state used by add_entry
        self._face = face
        self._date = pd.Timestamp(curve.as_of) if not self._entries else self._entries[-1].date

    def __iter__(self) -> Iterator[DiscountingEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, i: int) -> DiscountingEntry:
        return self._entries[i]

    @property
    def as_of(self) -> pd.Timestamp:
        return pd.Timestamp(self.curve.as_of)

    @classmethod
    def from_flows(cls, schedule: ScheduleLike, curve: YieldCurve) -> "DiscountingTable":
        flows = require_flows(schedule)
        as_of = pd.Timestamp(curve.as_of)

        incoming = [f for f in flows if f.end_date > as_of and f.kind != FlowType.CALL]
        incoming.sort(key=lambda f: f.sort_key)

        face = sum(f.payment for f in incoming if f.kind in REDEMPTION_KINDS)

        # priced to the earliest put: nothing after it is discounted
        puts = [f.end_date for f in incoming if f.kind == FlowType.PUT]
        if puts:
            nearest_put = min(puts)
            incoming = [f for f in incoming if f.end_date <= nearest_put]

        entries: List[DiscountingEntry] = []
        for date, group in groupby(incoming, key=lambda f: f.end_date):
            group = list(group)
            coupons = [f for f in group if f.kind == FlowType.COUPON]

            tenor = coupons[0].period_length_days if coupons else 0
            if not coupons:
                rate: Optional[float] = 0.0
            elif any(f.rate is None for f in coupons):
                rate = None
            else:
                rate = float(sum(f.rate for f in coupons))

            interest = float(sum(f.payment for f in coupons))
            amort = float(sum(f.payment for f in group if f.kind != FlowType.COUPON))

            entries.append(
                DiscountingEntry(
                    date=date,
                    outstanding_face=face,
                    tenor_days=tenor,
                    time_to_flow=yearfrac(as_of, date),
                    interest_rate=rate,
                    interest_amount=interest,
                    amortization_amount=amort,
                    total_amount=interest + amort,
                )
            )
            face -= amort

        return cls(curve, entries, face)

    @classmethod
    def synthetic(
        cls,
        curve: YieldCurve,
        n_coupons: int,
        tenor_days: int,
        initial_face: float,
        coupon_rate: Optional[float] = 0.0,
    ) -> "DiscountingTable":
        """Level-coupon bullet starting at the curve date, without a flow schedule."""
        if n_coupons <= 0:
            raise ValueError("n_coupons must be positive")

        table = cls(curve, face=initial_face)
        for _ in range(n_coupons - 1):
            table.add_entry(tenor_days, coupon_rate, 0.0)
        table.add_entry(tenor_days, coupon_rate, initial_face)
        return table

    def add_entry(self, tenor_days: int, rate: Optional[float], face_payment: float) -> "DiscountingTable":
        self._date = add_days(self._date, tenor_days)
        interest = self._face * (rate or 0.0) / DAYS_IN_YEAR * tenor_days
        self._entries.append(
            DiscountingEntry(
                date=self._date,
                outstanding_face=self._face,
                tenor_days=int(tenor_days),
                time_to_flow=yearfrac(self.as_of, self._date),
                interest_rate=rate,
                interest_amount=interest,
                amortization_amount=face_payment,
                total_amount=interest + face_payment,
            )
        )
        self._face -= face_payment
        return self

    @property
    def coupons_known(self) -> bool:
        """True when every coupon-bearing date carries an observed coupon rate."""
        return all(e.interest_rate is not None for e in self._entries)

    def reprice(
        self,
        ytm: Optional[float] = None,
        zspread_bps: Optional[float] = None,
        coupon_rate: Optional[float] = None,
    ) -> "DiscountingTable":
        """
        Rediscount every entry in place.

        Without `ytm` each date is discounted at the curve rate for its tenor;
        without `zspread_bps` or `coupon_rate` the entry's current values are reused.
        """
        as_of = self.as_of
        for e in self._entries:
            t = yearfrac(as_of, e.date)
            r = ytm if ytm is not None else self.curve.rate_for_tenor(t)
            z = zspread_bps if zspread_bps is not None else e.spread_bps
            c = coupon_rate if coupon_rate is not None else e.interest_rate

            e.interest_rate = c
            e.interest_amount = e.outstanding_face * (c or 0.0) / DAYS_IN_YEAR * e.tenor_days
            e.total_amount = e.interest_amount + e.amortization_amount
            e.time_to_flow = t
            e.discount_rate = r
            e.spread_bps = z
            e.discount_factor = discount_factor(r + z / BPS, t)
            e.present_value = e.total_amount * e.discount_factor
        return self

    @property
    def price(self) -> float:
        return float(sum(e.present_value for e in self._entries))

    def duration(self) -> float:
        """Macaulay duration of the current present values."""
        pv = self.price
        if pv == 0.0:
            return math.nan
        return float(sum(e.present_value * e.time_to_flow for e in self._entries)) / pv

    def to_frame(self) -> pd.DataFrame:
        columns = list(DiscountingEntry.__dataclass_fields__)
        return pd.DataFrame([asdict(e) for e in self._entries], columns=columns)
