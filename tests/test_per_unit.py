"""Tests for the per-unit system."""

from __future__ import annotations

import math

import pytest

from python_shortcircuit import Q_
from python_shortcircuit.short_circuit.network import PerUnitSystem


@pytest.fixture
def pu_20kv() -> PerUnitSystem:
    return PerUnitSystem(Q_(100.0, 'MVA'), Q_(20.0, 'kV'))


class TestBaseValues:
    def test_impedance_base(self, pu_20kv):
        assert pu_20kv.Z_base.to('ohm').m == pytest.approx(4.0)

    def test_admittance_base(self, pu_20kv):
        assert pu_20kv.Y_base.to('S').m == pytest.approx(0.25)

    def test_current_base(self, pu_20kv):
        expected = 100e6 / (math.sqrt(3) * 20e3)
        assert pu_20kv.I_base.to('A').m == pytest.approx(expected)


class TestConversion:
    def test_complex_impedance(self, pu_20kv):
        z = pu_20kv.get_per_unit_impedance(Q_(0.4 + 2j, 'ohm'))
        assert z == pytest.approx(0.1 + 0.5j)

    def test_admittance(self, pu_20kv):
        y = pu_20kv.get_per_unit_admittance(Q_(0.5, 'S'))
        assert y == pytest.approx(2.0)

    def test_actual_current_in_kA(self, pu_20kv):
        I = pu_20kv.get_actual_current(2.0)
        assert str(I.units) == "kiloampere"
        assert I.m == pytest.approx(2 * 100e3 / (math.sqrt(3) * 20e3))

    def test_actual_current_keeps_phase(self, pu_20kv):
        I = pu_20kv.get_actual_current(1j)
        assert I.m.real == pytest.approx(0.0)
        assert I.m.imag > 0
