"""Tests for the fault calculators: every result is checked against the
phase-domain boundary conditions of its fault."""

from __future__ import annotations

import math
from dataclasses import replace

import pytest

from python_shortcircuit.calc import A, A2, FortescueValue, phasor
from python_shortcircuit.short_circuit import RequestError
from python_shortcircuit.short_circuit.faults import (
    FaultType,
    BiphasedType,
    FaultImpedance,
    TheveninParams,
    CommonSupportParams,
    calculate,
    three_phase,
    single_phase,
    biphased,
    biphased_ground,
    biphased_ground_simplified,
    biphased_common_support,
)


@pytest.fixture
def params() -> TheveninParams:
    return TheveninParams(v=phasor(1.02, 5.0), zd=0.05 + 0.6j, zo=0.1 + 1.1j)


@pytest.fixture
def cs_params() -> CommonSupportParams:
    return CommonSupportParams(
        v1=1.0 + 0j,
        v2=phasor(0.98, -3.0),
        zd11=0.05 + 0.6j, zd12=0.02 + 0.3j, zd21=0.02 + 0.3j, zd22=0.04 + 0.5j,
        zo11=0.1 + 1.2j, zo12=0.03 + 0.4j, zo21=0.03 + 0.4j, zo22=0.08 + 1.0j,
    )


def phases(value: FortescueValue) -> tuple[complex, complex, complex]:
    return value.to_phase()


class TestThreePhase:
    def test_current(self, params):
        zf = FaultImpedance(Z_g=0.01 + 0.02j)
        result = three_phase(params, zf)
        assert result.current.direct == pytest.approx(params.v / (params.zd + zf.Z_g))

    def test_only_direct_sequence(self, params):
        result = three_phase(params, FaultImpedance())
        assert result.current.zero == 0
        assert result.current.inverse == 0
        assert result.voltage.zero == 0
        assert result.voltage.inverse == 0

    def test_solid_fault_collapses_voltage(self, params):
        result = three_phase(params, FaultImpedance())
        assert result.voltage.direct == pytest.approx(0j, abs=1e-12)


class TestSinglePhase:
    @pytest.mark.parametrize("Z_g", [0j, 0.05 + 0.1j])
    def test_boundary_conditions(self, params, Z_g):
        result = single_phase(params, FaultImpedance(Z_g=Z_g))
        ia, ib, ic = phases(result.current)
        va, vb, vc = phases(result.voltage)
        assert ia == pytest.approx(0j, abs=1e-12)
        assert ib == pytest.approx(0j, abs=1e-12)
        assert vc == pytest.approx(Z_g * ic, abs=1e-12)

    def test_equal_sequence_magnitudes(self, params):
        result = single_phase(params, FaultImpedance())
        io, id_, ii = result.current.zero, result.current.direct, result.current.inverse
        assert abs(io) == pytest.approx(abs(id_))
        assert abs(io) == pytest.approx(abs(ii))
        assert id_ == pytest.approx(A2 * io)
        assert ii == pytest.approx(A * io)

    def test_fault_current(self, params):
        zf = FaultImpedance(Z_g=0.02j)
        result = single_phase(params, zf)
        zt = zf.Z_g + (2 * params.zd + params.zo) / 3
        assert 3 * result.current.zero == pytest.approx(A * params.v / zt)

    def test_inverse_impedance(self, params):
        p = TheveninParams(v=1.0, zd=0.6j, zo=1.0j, zi=0.4j)
        result = single_phase(p, FaultImpedance())
        assert result.current.zero == pytest.approx(A / (2.0j))
        assert result.voltage.inverse == pytest.approx(-0.4j * result.current.inverse)


class TestBiphased:
    @pytest.mark.parametrize("Z_b", [0j, 0.1 + 0.2j])
    def test_boundary_conditions(self, params, Z_b):
        result = biphased(params, FaultImpedance(Z_b=Z_b))
        ia, ib, ic = phases(result.current)
        va, vb, vc = phases(result.voltage)
        assert ia == pytest.approx(0j, abs=1e-12)
        assert ib == pytest.approx(-ic)
        assert vb - vc == pytest.approx(Z_b * ib, abs=1e-12)

    def test_no_zero_sequence(self, params):
        result = biphased(params, FaultImpedance())
        assert result.current.zero == 0
        assert result.current.inverse == pytest.approx(-result.current.direct)

    def test_ground_impedance_is_ignored(self, params):
        r1 = biphased(params, FaultImpedance(Z_b=0.1j))
        r2 = biphased(params, FaultImpedance(Z_g=5.0, Z_b=0.1j, Z_c=3.0))
        assert r1 == r2

    def test_fault_current(self, params):
        result = biphased(params, FaultImpedance())
        ia, ib, ic = phases(result.current)
        assert ib == pytest.approx(-1j * math.sqrt(3) * params.v / (2 * params.zd))


class TestBiphasedGround:
    @pytest.mark.parametrize("zf", [
        FaultImpedance(),
        FaultImpedance(Z_g=0.05j),
        FaultImpedance(Z_g=0.05 + 0.1j, Z_b=0.01j, Z_c=0.02 + 0.01j),
    ])
    def test_boundary_conditions(self, params, zf):
        result = biphased_ground(params, zf)
        ia, ib, ic = phases(result.current)
        va, vb, vc = phases(result.voltage)
        vg = zf.Z_g * (ib + ic)
        assert ia == pytest.approx(0j, abs=1e-12)
        assert vb == pytest.approx(vg + zf.Z_b * ib, abs=1e-12)
        assert vc == pytest.approx(vg + zf.Z_c * ic, abs=1e-12)

    def test_general_form_matches_closed_form(self, params):
        general = biphased_ground(params, FaultImpedance())
        simplified = biphased_ground_simplified(params, FaultImpedance())
        for a, b in zip(general.current.to_phase(), simplified.current.to_phase()):
            assert a == pytest.approx(b, abs=1e-10)
        assert general.current.zero == pytest.approx(simplified.current.zero)
        assert general.current.direct == pytest.approx(simplified.current.direct)
        assert general.current.inverse == pytest.approx(simplified.current.inverse)

    def test_closed_form(self, params):
        result = biphased_ground_simplified(params, FaultImpedance())
        zd, zo, v = params.zd, params.zo, params.v
        assert result.current.zero == pytest.approx(-v / (zd + 2 * zo))
        assert sum(result.current[s] for s in range(3)) == pytest.approx(0j, abs=1e-12)
        # solid fault: phases b and c at ground potential
        va, vb, vc = phases(result.voltage)
        assert vb == pytest.approx(0j, abs=1e-12)
        assert vc == pytest.approx(0j, abs=1e-12)

    def test_fault_impedance_reduces_earth_current(self, params):
        earth = []
        for Z_g in (0j, 0.05j, 0.2j):
            result = biphased_ground(params, FaultImpedance(Z_g=Z_g))
            earth.append(abs(3 * result.current.zero))
        assert earth[0] > earth[1] > earth[2]


PHASE_OF = {BiphasedType.C1_A2: 0, BiphasedType.C1_B2: 1, BiphasedType.C1_C2: 2}


class TestCommonSupport:
    @pytest.mark.parametrize("biphased_type", list(BiphasedType))
    @pytest.mark.parametrize("Z_g", [0j, 0.03 + 0.04j])
    def test_boundary_conditions(self, cs_params, biphased_type, Z_g):
        result = biphased_common_support(cs_params, FaultImpedance(Z_g=Z_g), biphased_type)
        i1 = phases(result.current)
        i2 = phases(result.current2)
        v1 = phases(result.voltage)
        v2 = phases(result.voltage2)
        k = PHASE_OF[biphased_type]

        assert i1[0] == pytest.approx(0j, abs=1e-12)
        assert i1[1] == pytest.approx(0j, abs=1e-12)
        assert i2[k] == pytest.approx(-i1[2])
        for m in range(3):
            if m != k:
                assert i2[m] == pytest.approx(0j, abs=1e-12)
        assert v1[2] - v2[k] == pytest.approx(Z_g * i1[2], abs=1e-12)

    def test_second_bus_currents(self, cs_params):
        zf = FaultImpedance()
        io = biphased_common_support(cs_params, zf, BiphasedType.C1_B2).current.zero
        result = biphased_common_support(cs_params, zf, BiphasedType.C1_B2)
        assert result.current2.zero == pytest.approx(-io)
        assert result.current2.direct == pytest.approx(-A * io)
        assert result.current2.inverse == pytest.approx(-A2 * io)

    def test_c1_c2_negates_first_bus(self, cs_params):
        result = biphased_common_support(cs_params, FaultImpedance(), BiphasedType.C1_C2)
        for s in range(3):
            assert result.current2[s] == pytest.approx(-result.current[s])

    def test_same_voltage_gives_no_current_c1_c2(self, cs_params):
        p = replace(cs_params, v2=cs_params.v1)
        result = biphased_common_support(p, FaultImpedance(), BiphasedType.C1_C2)
        assert result.current.zero == pytest.approx(0j, abs=1e-12)

    def test_unknown_phase_pair(self, cs_params):
        with pytest.raises(RequestError):
            biphased_common_support(cs_params, FaultImpedance(), None)


class TestDispatch:
    @pytest.mark.parametrize("fault_type, calculator", [
        (FaultType.THREE_PHASE, three_phase),
        (FaultType.SINGLE_PHASE, single_phase),
        (FaultType.BIPHASED, biphased),
        (FaultType.BIPHASED_GROUND, biphased_ground),
    ])
    def test_selects_calculator(self, params, fault_type, calculator):
        zf = FaultImpedance(Z_g=0.01j, Z_b=0.02j, Z_c=0.03j)
        assert calculate(fault_type, params, zf) == calculator(params, zf)

    def test_simplified_form(self, params):
        zf = FaultImpedance(Z_g=0.1j)
        result = calculate(FaultType.BIPHASED_GROUND, params, zf, general_form=False)
        assert result == biphased_ground_simplified(params, zf)

    def test_common_support(self, cs_params):
        result = calculate(
            FaultType.BIPHASED_COMMON_SUPPORT,
            cs_params,
            FaultImpedance(),
            biphased_type=BiphasedType.C1_A2,
        )
        assert result.current2 is not None

    def test_common_support_needs_mutual_data(self, params):
        with pytest.raises(TypeError):
            calculate(FaultType.BIPHASED_COMMON_SUPPORT, params, FaultImpedance(),
                      biphased_type=BiphasedType.C1_A2)
