import numpy as np
import pandas as pd
import pytest

from bond_pricing_engine.curves import FlatCurve, TenorCurve
from bond_pricing_engine.pricing import duration, price_at_spread
from bond_pricing_engine.risk import curve_dv01, run_rate_scenarios, spread_dv01
from bond_pricing_engine.schedule import ScheduleBuilder


@pytest.fixture(scope="module")
def val_date():
    return pd.Timestamp("2024-01-10")


@pytest.fixture(scope="module")
def bond(val_date):
    return (
        ScheduleBuilder()
        .with_start_date(val_date)
        .with_coupon_length(182)
        .with_number_of_coupons(6)
        .with_coupon_rate(0.10)
        .build()
    )


@pytest.fixture(scope="module")
def flat(val_date):
    return FlatCurve(val_date, 0.10)


def test_rate_dv01_sign_and_size(bond, flat):
    """
    +1bp curve shock => price down. On a flat curve the bump is first-order
    modified duration x price.
    """
    dv01 = curve_dv01(bond, flat)
    px = price_at_spread(bond, flat)
    mod_duration = duration(bond, flat, px) / 1.10

    assert dv01 < 0.0, "DV01 should be negative for a long bond"
    assert dv01 == pytest.approx(-mod_duration * px * 1e-4, rel=0.02)


def test_spread_dv01_matches_rate_dv01_on_flat_curve(bond, flat):
    assert spread_dv01(bond, flat) == pytest.approx(curve_dv01(bond, flat), rel=1e-9)


def test_spread_dv01_negative_on_sloped_curve(bond, val_date):
    curve = TenorCurve(val_date, np.array([0.5, 1.0, 3.0]), np.array([0.08, 0.09, 0.11]))
    assert spread_dv01(bond, curve, zspread_bps=150.0) < 0.0


def test_rate_scenarios_monotone(bond, flat):
    out = run_rate_scenarios(bond, flat, shifts_bp=(50, -50, 25, -25))

    assert list(out.columns) == ["shift_bp", "price", "pnl"]
    assert list(out["shift_bp"]) == [-50.0, -25.0, 25.0, 50.0]
    assert (out.loc[out["shift_bp"] < 0, "pnl"] > 0).all(), "rates down should make money"
    assert (out.loc[out["shift_bp"] > 0, "pnl"] < 0).all()
    assert np.all(np.diff(out["price"].values) < 0), "price should fall as rates rise"
