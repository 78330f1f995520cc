import math

import numpy as np
import pandas as pd
import pytest

from bond_pricing_engine.cashflows import CashFlow, FlowType
from bond_pricing_engine.curves import FlatCurve, TenorCurve
from bond_pricing_engine.discounting import DiscountingTable
from bond_pricing_engine.errors import MissingScheduleError
from bond_pricing_engine.pricing import price_at_spread, price_at_yield
from bond_pricing_engine.schedule import ScheduleBuilder


@pytest.fixture(scope="module")
def start():
    return pd.Timestamp("2024-01-10")


@pytest.fixture(scope="module")
def bullet(start):
    return (
        ScheduleBuilder()
        .with_start_date(start)
        .with_coupon_length(182)
        .with_number_of_coupons(4)
        .with_coupon_rate(0.10)
        .build()
    )


@pytest.fixture(scope="module")
def curve(start):
    return TenorCurve(start, np.array([0.5, 1.0, 2.0, 5.0]), np.array([0.08, 0.085, 0.09, 0.095]))


def test_one_entry_per_payment_date(bullet, start):
    table = DiscountingTable.from_flows(bullet, FlatCurve(start, 0.10))

    assert len(table) == 4
    assert [e.date for e in table] == [start + pd.Timedelta(days=182 * i) for i in range(1, 5)]
    assert all(e.outstanding_face == 1000.0 for e in table)
    assert [e.amortization_amount for e in table] == [0.0, 0.0, 0.0, 1000.0]

    last = table[3]
    assert last.total_amount == pytest.approx(last.interest_amount + 1000.0)
    assert last.tenor_days == 182


def test_outstanding_face_decreases_with_amortization(start):
    bond = (
        ScheduleBuilder()
        .with_start_date(start)
        .with_number_of_coupons(4)
        .with_amortizations(364, 728)
        .with_coupon_rate(0.10)
        .build()
    )
    table = DiscountingTable.from_flows(bond, FlatCurve(start, 0.10))
    faces = [e.outstanding_face for e in table]

    assert faces == [1000.0, 1000.0, 500.0, 500.0]
    assert all(a >= b for a, b in zip(faces, faces[1:])), "face must not increase"
    assert sum(e.amortization_amount for e in table) == pytest.approx(1000.0)


def test_past_flows_are_dropped(bullet, start):
    table = DiscountingTable.from_flows(bullet, FlatCurve(start + pd.Timedelta(days=200), 0.10))
    assert len(table) == 3
    assert table[0].outstanding_face == 1000.0


def test_priced_to_nearest_put(start):
    bond = (
        ScheduleBuilder()
        .with_start_date(start)
        .with_number_of_coupons(4)
        .with_put_offer(364)
        .with_coupon_rate(0.10)
        .build()
    )
    table = DiscountingTable.from_flows(bond, FlatCurve(start, 0.10))

    assert len(table) == 2, "nothing after the put is discounted"
    assert table[1].date == start + pd.Timedelta(days=364)
    assert table[1].amortization_amount == 1000.0


def test_call_flows_are_ignored(bullet, start):
    call = CashFlow(FlowType.CALL, start, start + pd.Timedelta(days=182), 182, 1.0, 1000.0)
    table = DiscountingTable.from_flows(list(bullet.flows) + [call], FlatCurve(start, 0.10))
    assert len(table) == 4
    assert table[0].amortization_amount == 0.0


def test_unsorted_flows_are_sorted_before_grouping(bullet, start):
    shuffled = list(reversed(list(bullet.flows)))
    a = DiscountingTable.from_flows(shuffled, FlatCurve(start, 0.10)).to_frame()
    b = DiscountingTable.from_flows(bullet, FlatCurve(start, 0.10)).to_frame()
    pd.testing.assert_frame_equal(a, b)


def test_no_surviving_flows_prices_at_zero(bullet, start):
    table = DiscountingTable.from_flows(bullet, FlatCurve(start + pd.Timedelta(days=5000), 0.10))
    assert len(table) == 0
    assert table.reprice().price == 0.0


def test_missing_schedule_fails_fast(start):
    with pytest.raises(MissingScheduleError):
        DiscountingTable.from_flows([], FlatCurve(start, 0.10))
    with pytest.raises(MissingScheduleError):
        DiscountingTable.from_flows(None, FlatCurve(start, 0.10))


def test_reprice_at_yield_matches_flat_yield_pricing(bullet, curve, start):
    table = DiscountingTable.from_flows(bullet, curve)
    px = table.reprice(ytm=0.08, zspread_bps=0.0).price
    assert px == pytest.approx(price_at_yield(bullet, start, 0.08), rel=1e-12)


def test_reprice_off_curve_matches_spread_pricing(bullet, curve):
    table = DiscountingTable.from_flows(bullet, curve)
    px = table.reprice(zspread_bps=75.0).price
    assert px == pytest.approx(price_at_spread(bullet, curve, 75.0), rel=1e-12)
    assert all(e.spread_bps == 75.0 for e in table)


def test_reprice_reuses_entry_spread_when_not_given(bullet, curve):
    table = DiscountingTable.from_flows(bullet, curve)
    with_spread = table.reprice(zspread_bps=75.0).price
    assert table.reprice().price == pytest.approx(with_spread, rel=1e-14)


def test_reprice_coupon_rate_rewrites_interest(bullet, start):
    table = DiscountingTable.from_flows(bullet, FlatCurve(start, 0.10))
    table.reprice(coupon_rate=0.05)
    assert table[0].interest_rate == 0.05
    assert table[0].interest_amount == pytest.approx(1000.0 * 0.05 / 365.0 * 182)


def test_nan_and_negative_base_propagate(bullet, start):
    table = DiscountingTable.from_flows(bullet, FlatCurve(start, 0.10))
    assert math.isnan(table.reprice(ytm=math.nan).price)
    assert math.isnan(table.reprice(ytm=-1.5, zspread_bps=0.0).price)


def test_coupons_known_reflects_observed_rates(start):
    unpriced = ScheduleBuilder().with_start_date(start).build()
    priced = ScheduleBuilder().with_start_date(start).with_coupon_rate(0.07).build()
    assert not DiscountingTable.from_flows(unpriced, FlatCurve(start, 0.1)).coupons_known
    assert DiscountingTable.from_flows(priced, FlatCurve(start, 0.1)).coupons_known


def test_synthetic_one_year_bullet_at_par(start):
    table = DiscountingTable.synthetic(FlatCurve(start, 0.10), 1, 365, 1000.0, 0.10)
    assert table.reprice().price == pytest.approx(1000.0, abs=1e-6)


def test_synthetic_table_amortizes_at_last_entry(start):
    table = DiscountingTable.synthetic(FlatCurve(start, 0.10), 3, 91, 1000.0, 0.08)
    assert [e.amortization_amount for e in table] == [0.0, 0.0, 1000.0]
    assert table[2].date == start + pd.Timedelta(days=273)


def test_to_frame_columns(bullet, curve):
    frame = DiscountingTable.from_flows(bullet, curve).reprice().to_frame()
    assert list(frame.columns) == [
        "date", "outstanding_face", "tenor_days", "time_to_flow", "interest_rate",
        "interest_amount", "amortization_amount", "total_amount", "discount_rate",
        "spread_bps", "discount_factor", "present_value",
    ]
    assert len(frame) == 4
    assert np.isfinite(frame["present_value"]).all()


def test_put_after_amortization_keeps_face_non_negative(start):
    bond = (
        ScheduleBuilder()
        .with_start_date(start)
        .with_number_of_coupons(4)
        .with_amortizations(364, 728)
        .with_put_offer(546)
        .with_coupon_rate(0.10)
        .build()
    )
    table = DiscountingTable.from_flows(bond, FlatCurve(start, 0.10))

    assert [e.amortization_amount for e in table] == [0.0, 500.0, 500.0]
    assert [e.outstanding_face for e in table] == [1000.0, 1000.0, 500.0]
    assert sum(e.amortization_amount for e in table) == pytest.approx(1000.0)
