"""
Bond Pricing Engine

Modules:
- solver: capped secant root search (nan on failure)
- cashflows: flow types, cash flows, schedules
- curves: yield curve protocol + flat / tenor curves
- discounting: per-date discounting table, repriced in place
- engine: known-inputs pricing orchestrator (price / ytm / z-spread / coupon)
- pricing: standalone price, yield, z-spread, duration, G-spread
- schedule: synthetic schedule builder
- scanner: comparables scan with data-quality flags
- marketdata: data collaborator contract + in-memory provider
- risk: curve/spread DV01 and parallel-shift scenarios
"""
from .cashflows import CashFlow, FlowSchedule, FlowType, InstrumentSchedule
from .config import DEFAULT_SOLVER_CONFIG, SolverConfig
from .curves import FlatCurve, TenorCurve, YieldCurve
from .discounting import DiscountingEntry, DiscountingTable
from .engine import PricingCase, PricingResult, VanillaBondPricer, price_vanilla_bond
from .errors import (
    BondPricingError,
    CurveNotFoundError,
    InstrumentNotFoundError,
    InsufficientInputsError,
    MissingScheduleError,
)
from .marketdata import InMemoryMarketData, MarketDataProvider
from .pricing import duration, g_spread, implied_yield, implied_zspread, price
from .scanner import ComparablesScanner, MarketQuote
from .schedule import ScheduleBuilder
from .solver import solve

__all__ = [
    "CashFlow",
    "FlowSchedule",
    "FlowType",
    "InstrumentSchedule",
    "DEFAULT_SOLVER_CONFIG",
    "SolverConfig",
    "FlatCurve",
    "TenorCurve",
    "YieldCurve",
    "DiscountingEntry",
    "DiscountingTable",
    "PricingCase",
    "PricingResult",
    "VanillaBondPricer",
    "price_vanilla_bond",
    "BondPricingError",
    "CurveNotFoundError",
    "InstrumentNotFoundError",
    "InsufficientInputsError",
    "MissingScheduleError",
    "InMemoryMarketData",
    "MarketDataProvider",
    "duration",
    "g_spread",
    "implied_yield",
    "implied_zspread",
    "price",
    "ComparablesScanner",
    "MarketQuote",
    "ScheduleBuilder",
    "solve",
]
