from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Iterator, Optional, Tuple, Union

import pandas as pd

from .errors import MissingScheduleError


class FlowType(IntEnum):
    # Ordinal order is the tie-break when flows share a payment date.
    COUPON = 0
    AMORTIZATION = 1
    MATURITY = 2
    PUT = 3
    CALL = 4


REDEMPTION_KINDS = (FlowType.AMORTIZATION, FlowType.MATURITY)


@dataclass(frozen=True)
class CashFlow:
    kind: FlowType
    start_date: pd.Timestamp
    end_date: pd.Timestamp
    period_length_days: int
    rate: Optional[float]  # None: coupon rate not observed
    payment: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", FlowType(self.kind))
        object.__setattr__(self, "start_date", pd.Timestamp(self.start_date))
        object.__setattr__(self, "end_date", pd.Timestamp(self.end_date))

    @property
    def sort_key(self) -> Tuple[pd.Timestamp, int]:
        return self.end_date, int(self.kind)


class FlowSchedule:
    """Immutable sequence of cash flows ordered by (end_date, kind)."""

    def __init__(self, flows: Iterable[CashFlow] = ()):
        self._flows: Tuple[CashFlow, ...] = tuple(sorted(flows, key=lambda f: f.sort_key))

    def __iter__(self) -> Iterator[CashFlow]:
        return iter(self._flows)

    def __len__(self) -> int:
        return len(self._flows)

    def __getitem__(self, i: int) -> CashFlow:
        return self._flows[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlowSchedule):
            return NotImplemented
        return self._flows == other._flows

    def __repr__(self) -> str:
        return f"FlowSchedule({len(self._flows)} flows)"

    def of_kind(self, *kinds: FlowType) -> Tuple[CashFlow, ...]:
        return tuple(f for f in self._flows if f.kind in kinds)

    def redemption_total(self) -> float:
        return float(sum(f.payment for f in self.of_kind(*REDEMPTION_KINDS)))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                (f.kind.name, f.start_date, f.end_date, f.period_length_days, f.rate, f.payment)
                for f in self._flows
            ],
            columns=["kind", "start_date", "end_date", "period_length_days", "rate", "payment"],
        )


@dataclass(frozen=True)
class InstrumentSchedule:
    """
    A bond as delivered by the market-data collaborator or the schedule builder.

    `flows` may be None for securities the data source knows nothing about;
    every pricing entry point rejects those.
    """
    identifier: str
    flows: Optional[FlowSchedule]
    initial_face_value: float
    placement_date: pd.Timestamp
    maturity_date: pd.Timestamp
    currency: str = "RUB"
    coupon_type: str = "constant"
    ratings: Tuple[str, ...] = field(default_factory=tuple)


ScheduleLike = Union[InstrumentSchedule, FlowSchedule, Iterable[CashFlow], None]


def require_flows(schedule: ScheduleLike) -> FlowSchedule:
    """Normalize any schedule-like input to a FlowSchedule, failing fast when empty."""
    identifier = None
    if isinstance(schedule, InstrumentSchedule):
        identifier = schedule.identifier
        schedule = schedule.flows

    if schedule is None:
        raise MissingScheduleError(identifier)
    if not isinstance(schedule, FlowSchedule):
        schedule = FlowSchedule(schedule)
    if len(schedule) == 0:
        raise MissingScheduleError(identifier)
    return schedule
