"""Tests for the short-circuit norms."""

from __future__ import annotations

import pytest

from python_shortcircuit import Q_
from python_shortcircuit.short_circuit import ShortCircuitNorm, ShortCircuitNormIec


class TestNoNorm:
    def test_factors_are_one(self):
        norm = ShortCircuitNorm()
        assert norm.get_cmax(Q_(400, 'V')) == 1.0
        assert norm.get_cmin(Q_(400, 'V')) == 1.0
        assert norm.get_kt(0.1) == 1.0
        assert norm.get_kg(Q_(20, 'kV'), Q_(21, 'kV'), 0.2, 0.6) == 1.0


class TestIec:
    @pytest.fixture
    def norm(self) -> ShortCircuitNormIec:
        return ShortCircuitNormIec()

    @pytest.mark.parametrize("U_n, c_max, c_min", [
        (Q_(400, 'V'), 1.05, 0.95),
        (Q_(1.0, 'kV'), 1.05, 0.95),
        (Q_(20, 'kV'), 1.10, 1.00),
        (Q_(380, 'kV'), 1.10, 1.00),
    ])
    def test_voltage_factors(self, norm, U_n, c_max, c_min):
        assert norm.get_cmax(U_n) == c_max
        assert norm.get_cmin(U_n) == c_min

    def test_voltage_factor_by_case(self, norm):
        assert norm.get_c(Q_(20, 'kV'), "MAX") == 1.10
        assert norm.get_c(Q_(20, 'kV'), "min") == 1.00

    def test_unknown_case(self, norm):
        with pytest.raises(ValueError):
            norm.get_c(Q_(20, 'kV'), "AVG")

    def test_transformer_factor(self, norm):
        k_t = norm.get_kt(0.1, Q_(20, 'kV'))
        assert k_t == pytest.approx(0.95 * 1.10 / 1.06)

    def test_transformer_factor_low_voltage(self, norm):
        k_t = norm.get_kt(0.06, Q_(400, 'V'))
        assert k_t == pytest.approx(0.95 * 1.05 / 1.036)

    def test_generator_factor(self, norm):
        k_g = norm.get_kg(Q_(20, 'kV'), Q_(21, 'kV'), 0.2, 0.6)
        assert k_g == pytest.approx((20 / 21) * 1.10 / 1.12)
