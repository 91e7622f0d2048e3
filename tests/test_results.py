"""Tests for the post-processing of fault results."""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from python_shortcircuit import Q_
from python_shortcircuit.calc import A, A2, FortescueValue, Sequence
from python_shortcircuit.short_circuit import (
    Fault,
    FaultType,
    FaultResult,
    BusFeedersResult,
    get_fault_current_pu,
    get_voltage_deltas,
    compute_feeder_contributions,
)
from python_shortcircuit.short_circuit.network import (
    BranchData,
    InjectionData,
    FeederType,
    LinearFaultResolver,
    build_admittance_model,
)


# G1 (j0.5) + G2 (j1.0) -- A --(0.1 + j0.5)-- B
BUSSES = ["A", "B"]
BRANCHES = [BranchData("L", "A", "B", z=0.1 + 0.5j)]
INJECTIONS = [
    InjectionData("G1", "A", FeederType.GENERATOR, 1 / 0.5j),
    InjectionData("G2", "A", FeederType.GENERATOR, 1 / 1.0j),
]


@pytest.fixture
def model_and_feeders():
    return build_admittance_model(BUSSES, BRANCHES, INJECTIONS)


class TestFaultCurrent:
    def test_three_phase(self):
        current = FortescueValue(direct=2 - 3j)
        assert get_fault_current_pu(FaultType.THREE_PHASE, current) == 2 - 3j

    def test_single_phase(self):
        io = 1 - 2j
        current = FortescueValue(io, A2 * io, A * io)
        i = get_fault_current_pu(FaultType.SINGLE_PHASE, current)
        assert abs(i) == pytest.approx(abs(current.to_phase()[2]))

    def test_biphased(self):
        current = FortescueValue(0j, 1 - 1j, -1 + 1j)
        i = get_fault_current_pu(FaultType.BIPHASED, current)
        assert abs(i) == pytest.approx(abs(current.to_phase()[1]))
        assert i == pytest.approx(math.sqrt(3) * (1 - 1j))

    def test_biphased_ground_is_earth_current(self):
        current = FortescueValue(0.5 - 1j, 1 + 2j, -1.5 - 1j)
        ia, ib, ic = current.to_phase()
        i = get_fault_current_pu(FaultType.BIPHASED_GROUND, current)
        assert i == pytest.approx(ib + ic)
        assert i == pytest.approx(3 * current.zero)

    def test_common_support(self):
        current = FortescueValue(1j, 2j, 3j)
        assert get_fault_current_pu(FaultType.BIPHASED_COMMON_SUPPORT, current) == 2j


class TestVoltageDeltas:
    def test_superposition(self, model_and_feeders):
        model, _ = model_and_feeders
        resolver = LinearFaultResolver(model, voltage_update=True)
        results = resolver.run(["A", "B"])
        dv = get_voltage_deltas([(results["A"], 1.0), (results["B"], 2.0j)])
        expected = results["A"].get_voltage_deltas(1.0) + results["B"].get_voltage_deltas(2.0j)
        assert dv == pytest.approx(expected)

    def test_nothing_to_superpose(self):
        with pytest.raises(ValueError):
            get_voltage_deltas([])


class TestFeederContributions:
    def test_split_over_impedances(self, model_and_feeders):
        model, feeders = model_and_feeders
        dv = np.array([-0.2 + 0.1j, -0.6 - 0.05j])
        results = compute_feeder_contributions(model, feeders, dv)

        assert list(results) == ["A"]
        bus_result = results["A"]
        i_sum = (dv[0] - dv[1]) / (0.1 + 0.5j)
        assert bus_result.i_feeders_sum == pytest.approx(i_sum)
        currents = {f.name: f.current for f in bus_result.feeders}
        assert currents["G1"] == pytest.approx(i_sum * 0.5 / 1.5)
        assert currents["G2"] == pytest.approx(i_sum * 1.0 / 1.5)

    def test_contributions_add_up(self, model_and_feeders):
        model, feeders = model_and_feeders
        dv = np.array([0.3j, -0.1 + 0.2j])
        bus_result = compute_feeder_contributions(model, feeders, dv)["A"]
        assert bus_result.i_contributions_sum == pytest.approx(bus_result.i_feeders_sum)

    def test_fault_current_closes_at_source(self, model_and_feeders):
        model, feeders = model_and_feeders
        resolver = LinearFaultResolver(model, voltage_update=True)
        i_fault = 1.0 / resolver.run(["B"])["B"].zth
        dv = get_voltage_deltas([(resolver.results["B"], i_fault)])
        bus_result = compute_feeder_contributions(model, feeders, dv)["A"]
        # the sources at A supply the whole fault current at B
        assert bus_result.i_feeders_sum == pytest.approx(i_fault)
        y_feeders = sum(f.y for f in feeders.feeders_at("A"))
        assert bus_result.i_feeders_sum == pytest.approx(-y_feeders * dv[0])

    def test_zero_impedance_sum(self, caplog):
        injections = [
            InjectionData("X1", "A", FeederType.SHUNT, 1 / 1.0j),
            InjectionData("X2", "A", FeederType.SHUNT, 1 / -1.0j),
        ]
        model, feeders = build_admittance_model(BUSSES, BRANCHES, injections)
        with caplog.at_level(logging.WARNING):
            results = compute_feeder_contributions(model, feeders, np.array([0.1j, 0.2j]))
        assert all(f.current == 0 for f in results["A"].feeders)
        assert results["A"].i_feeders_sum != 0
        assert "zero" in caplog.text


class TestFaultResult:
    def test_failure(self):
        result = FaultResult.failure(Fault("F", "X"), "bus 'X' not found")
        assert result.failed
        assert result.Ik is None
        assert result.Ik_abs is None
        assert "failed" in str(result)

    def test_magnitude(self):
        result = FaultResult(Fault("F", "B"), Ik=Q_(3 + 4j, 'kA'))
        assert result.Ik_abs.to('kA').m == pytest.approx(5.0)

    def test_get_feeder_current(self, model_and_feeders):
        model, feeders = model_and_feeders
        contributions = compute_feeder_contributions(model, feeders, np.array([0.1j, 0.3j]))
        result = FaultResult(
            Fault("F", "B"),
            feeder_results={Sequence.DIRECT: contributions}
        )
        expected = contributions["A"].feeders[1].current
        assert result.get_feeder_current("A", "G2") == expected
        with pytest.raises(KeyError):
            result.get_feeder_current("A", "G3")
        with pytest.raises(KeyError):
            result.get_feeder_current("B", "G1")
        with pytest.raises(KeyError):
            result.get_feeder_current("A", "G1", Sequence.ZERO)

    def test_empty_bus_result(self):
        assert BusFeedersResult("A", 1j).i_contributions_sum == 0
