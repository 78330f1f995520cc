from __future__ import annotations


class BondPricingError(ValueError):
    """Base class for pricing failures that must not be silently ignored."""


class MissingScheduleError(BondPricingError):
    def __init__(self, identifier: str | None = None):
        what = f"Bond {identifier}" if identifier else "Bond"
        super().__init__(f"{what} has no cash-flow schedule.")
        self.identifier = identifier


class InsufficientInputsError(BondPricingError):
    def __init__(self, price_known: bool, coupon_known: bool, rate_known: bool):
        super().__init__(
            "Insufficient inputs for pricing: need two of price, coupon structure, "
            f"rate (got price={price_known}, coupon={coupon_known}, rate={rate_known})."
        )
        self.price_known = price_known
        self.coupon_known = coupon_known
        self.rate_known = rate_known


class InstrumentNotFoundError(BondPricingError, LookupError):
    def __init__(self, identifier: str):
        super().__init__(f"Instrument not found: {identifier}")
        self.identifier = identifier


class CurveNotFoundError(BondPricingError, LookupError):
    def __init__(self, date, provider: str):
        super().__init__(f"No yield curve for {provider} on {date}")
        self.date = date
        self.provider = provider
