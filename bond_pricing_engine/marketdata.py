"""
Market-data collaborator contract.

The pricing core never talks to a data vendor itself: callers hand it an
object satisfying `MarketDataProvider` (structural typing, no inheritance
needed). `InMemoryMarketData` is the offline implementation used in tests
and notebooks.
"""
from __future__ import annotations

from typing import Dict, Iterable, Optional, Protocol, Tuple, runtime_checkable

import pandas as pd

from .cashflows import InstrumentSchedule
from .config import DEFAULT_CURVE_PROVIDER
from .curves import YieldCurve
from .errors import CurveNotFoundError, InstrumentNotFoundError


@runtime_checkable
class MarketDataProvider(Protocol):
    def fetch_instrument(self, identifier: str) -> InstrumentSchedule:
        """Raise InstrumentNotFoundError for unknown identifiers."""
        ...

    def fetch_curve(self, date: pd.Timestamp, provider: str) -> YieldCurve:
        """Raise CurveNotFoundError when no curve exists for (date, provider)."""
        ...


class InMemoryMarketData:
    """Dictionary-backed provider: instruments by identifier, curves by (date, provider)."""

    def __init__(
        self,
        instruments: Optional[Iterable[InstrumentSchedule]] = None,
        curves: Optional[Iterable[YieldCurve]] = None,
        provider: str = DEFAULT_CURVE_PROVIDER,
    ) -> None:
        self.instruments: Dict[str, InstrumentSchedule] = {i.identifier: i for i in instruments or ()}
        self.curves: Dict[Tuple[pd.Timestamp, str], YieldCurve] = {}
        for c in curves or ():
            self.add_curve(c, provider)

    def add_instrument(self, instrument: InstrumentSchedule) -> None:
        self.instruments[instrument.identifier] = instrument

    def add_curve(self, curve: YieldCurve, provider: str = DEFAULT_CURVE_PROVIDER) -> None:
        self.curves[(pd.Timestamp(curve.as_of).normalize(), provider)] = curve

    def fetch_instrument(self, identifier: str) -> InstrumentSchedule:
        try:
            return self.instruments[identifier]
        except KeyError:
            raise InstrumentNotFoundError(identifier) from None

    def fetch_curve(self, date: pd.Timestamp, provider: str = DEFAULT_CURVE_PROVIDER) -> YieldCurve:
        key = (pd.Timestamp(date).normalize(), provider)
        try:
            return self.curves[key]
        except KeyError:
            raise CurveNotFoundError(key[0].date(), provider) from None
