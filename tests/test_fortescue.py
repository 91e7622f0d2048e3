"""Tests for the symmetrical components helpers."""

from __future__ import annotations

import cmath

import numpy as np
import pytest

from python_shortcircuit.calc import (
    A,
    A2,
    Sequence,
    FortescueValue,
    to_sequence,
    to_phase,
    phasor,
    polar,
)


class TestOperator:
    def test_rotation(self):
        assert A == pytest.approx(cmath.exp(2j * cmath.pi / 3))

    def test_sum_is_zero(self):
        assert 1 + A + A2 == pytest.approx(0j, abs=1e-12)


class TestTransform:
    def test_balanced_set_is_direct_only(self):
        abc = [1.0, A2, A]
        seq = to_sequence(abc)
        assert seq[Sequence.ZERO] == pytest.approx(0j, abs=1e-12)
        assert seq[Sequence.DIRECT] == pytest.approx(1.0)
        assert seq[Sequence.INVERSE] == pytest.approx(0j, abs=1e-12)

    def test_phase_of_zero_sequence(self):
        abc = to_phase([1.0, 0.0, 0.0])
        assert np.allclose(abc, [1.0, 1.0, 1.0])

    def test_value_to_phase(self):
        value = FortescueValue(zero=0j, direct=1 + 0j, inverse=0j)
        a, b, c = value.to_phase()
        assert b == pytest.approx(A2)
        assert c == pytest.approx(A)

    def test_value_indexing(self):
        value = FortescueValue(1j, 2j, 3j)
        assert value[Sequence.ZERO] == 1j
        assert value[Sequence.INVERSE] == 3j


class TestPhasor:
    def test_polar(self):
        magnitude, angle = polar(phasor(2.0, 30.0))
        assert magnitude == pytest.approx(2.0)
        assert angle == pytest.approx(30.0)

    def test_value_polar(self):
        value = FortescueValue(direct=phasor(1.5, -90.0))
        assert value.polar()[Sequence.DIRECT] == pytest.approx((1.5, -90.0))
