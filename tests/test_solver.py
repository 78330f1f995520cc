import math

import pytest

from bond_pricing_engine.config import SolverConfig
from bond_pricing_engine.solver import solve


def test_secant_finds_simple_root():
    root = solve(lambda x: x * x - 2.0, 1.0, 2.0)
    assert abs(root - math.sqrt(2.0)) < 1e-10


def test_secant_does_not_need_a_sign_bracket():
    # both starting points on the same side of the root
    root = solve(lambda x: x ** 3 - 8.0, 3.0, 4.0)
    assert abs(root - 2.0) < 1e-9


def test_linear_function_converges_in_two_steps():
    assert solve(lambda x: x - 1.0, 0.0, 10.0) == pytest.approx(1.0, abs=1e-12)


def test_constant_function_returns_nan():
    assert math.isnan(solve(lambda x: 5.0, -1.0, 1.0)), "flat secant must surface as nan"


def test_iteration_cap_returns_nan_not_last_iterate():
    # one iteration lands on the root but cannot confirm convergence
    assert math.isnan(solve(lambda x: x - 1.0, 0.0, 10.0, max_iter=1))


def test_no_real_root_returns_nan():
    assert math.isnan(solve(lambda x: x * x + 1.0, 0.0, 1.0))


def test_nan_objective_returns_nan():
    assert math.isnan(solve(lambda x: math.nan, 0.0, 1.0))


def test_solver_config_rejects_bad_settings():
    with pytest.raises(ValueError):
        SolverConfig(max_iterations=0)
    with pytest.raises(ValueError):
        SolverConfig(tolerance=0.0)
