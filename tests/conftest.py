"""Shared network fixtures for the short-circuit tests."""

from __future__ import annotations

import pytest

from python_shortcircuit import Q_
from python_shortcircuit.network import (
    NetworkGraph,
    SCCalcConfig,
    PeriodType,
    VoltageProfileType,
    Line,
    Transformer,
    Transformer3W,
    Generator,
    Load,
)
from python_shortcircuit.short_circuit import ShortCircuitNorm, WindingConn


# ---------------------------------------------------------------------------
# Giard network (380 kV)
# ---------------------------------------------------------------------------
#
#   GA           BA      BP        BB          GB
#  (~)--X'd=65--|--30--|--15--|--X'd=130--(~)
#                                             |
#                                        grounded, Z0 = j130
#
# GA has an isolated neutral. Pre-fault voltages come from a load flow
# without load: 420 kV at BA, 410 kV at BB, linear in between.

U_GIARD = Q_(380.0, 'kV')
V_BA = 420.0 / 380.0
V_BP = (420.0 - 10.0 * 30.0 / 45.0) / 380.0
V_BB = 410.0 / 380.0


@pytest.fixture
def giard_network() -> NetworkGraph:
    nw = NetworkGraph("Giard")
    nw.add_bus("BA", U_GIARD, v=V_BA)
    nw.add_bus("BP", U_GIARD, v=V_BP)
    nw.add_bus("BB", U_GIARD, v=V_BB)
    nw.add_branch(Line("L1", Z=Q_(30j, 'ohm')), "BA", "BP")
    nw.add_branch(Line("L2", Z=Q_(15j, 'ohm')), "BP", "BB")
    nw.add_feeder(
        Generator("GA", X_d_sub=Q_(65.0, 'ohm'), X_d_trans=Q_(65.0, 'ohm')),
        "BA"
    )
    nw.add_feeder(
        Generator(
            "GB",
            X_d_sub=Q_(130.0, 'ohm'),
            X_d_trans=Q_(130.0, 'ohm'),
            grounded=True,
            Z0=Q_(130j, 'ohm'),
        ),
        "BB"
    )
    return nw


@pytest.fixture
def giard_config() -> SCCalcConfig:
    return SCCalcConfig(
        period=PeriodType.TRANSIENT,
        voltage_profile=VoltageProfileType.CALCULATED,
        norm=ShortCircuitNorm(),
    )


# ---------------------------------------------------------------------------
# Two-bus network (20 kV, Z_base = 4 ohm at 100 MVA)
# ---------------------------------------------------------------------------
#
#  G (j0.5 pu, grounded, Z0 = j0.25 pu) -- A --(0.1 + j0.5 pu)-- B

@pytest.fixture
def two_bus_network() -> NetworkGraph:
    nw = NetworkGraph("two-bus")
    nw.add_bus("A", Q_(20.0, 'kV'))
    nw.add_bus("B", Q_(20.0, 'kV'))
    nw.add_branch(Line("L", Z=Q_(0.4 + 2j, 'ohm')), "A", "B")
    nw.add_feeder(
        Generator("G", X_d_sub=Q_(2.0, 'ohm'), grounded=True, Z0=Q_(1j, 'ohm')),
        "A"
    )
    return nw


@pytest.fixture
def two_bus_with_load(two_bus_network: NetworkGraph) -> NetworkGraph:
    # 10 MW + j5 Mvar at 20 kV: y = 0.1 - j0.05 pu
    two_bus_network.add_feeder(Load("LD", P=Q_(10.0, 'MW'), Q=Q_(5.0, 'Mvar')), "B")
    return two_bus_network


@pytest.fixture
def no_norm_config() -> SCCalcConfig:
    return SCCalcConfig(norm=ShortCircuitNorm())


# ---------------------------------------------------------------------------
# Transformer network (110 kV / 20 kV, Dyn)
# ---------------------------------------------------------------------------
#
#  grid (j0.1 pu) -- HV ==T (D-YN, j0.25 pu)== MV --(0.1 + j0.2 pu)-- C

@pytest.fixture
def transformer_network() -> NetworkGraph:
    nw = NetworkGraph("transformer")
    nw.add_bus("HV", Q_(110.0, 'kV'))
    nw.add_bus("MV", Q_(20.0, 'kV'))
    nw.add_bus("C", Q_(20.0, 'kV'))
    nw.add_branch(
        Transformer(
            "T",
            S_n=Q_(40.0, 'MVA'),
            U_r1=Q_(110.0, 'kV'),
            U_r2=Q_(20.0, 'kV'),
            u_cc=Q_(10.0, 'pct'),
            conn1=WindingConn.D,
            conn2=WindingConn.YN,
        ),
        "HV", "MV"
    )
    nw.add_branch(Line("LC", Z=Q_(0.4 + 0.8j, 'ohm')), "MV", "C")
    nw.add_feeder(Generator("GRID", X_d_sub=Q_(12.1, 'ohm')), "HV")
    return nw


# ---------------------------------------------------------------------------
# Three-winding transformer network (110 kV / 20 kV / 10 kV, YN-YN-D)
# ---------------------------------------------------------------------------
#
#                             star -- j0.04 -- MV
#  grid (j0.1 pu) -- HV -- j0.08 --|
#                             star -- j0.02 -- LV (delta)
#
# Pair reactances on 100 MVA: 0.12 (HV-MV), 0.10 (HV-LV), 0.06 (MV-LV).
# The grid is grounded with Z0 = j0.1 pu.

@pytest.fixture
def three_winding_network() -> NetworkGraph:
    nw = NetworkGraph("three-winding")
    nw.add_bus("HV", Q_(110.0, 'kV'))
    nw.add_bus("MV", Q_(20.0, 'kV'))
    nw.add_bus("LV", Q_(10.0, 'kV'))
    nw.add_transformer_3w(
        Transformer3W(
            "T3",
            S_n=Q_(100.0, 'MVA'),
            U_r1=Q_(110.0, 'kV'),
            U_r2=Q_(20.0, 'kV'),
            U_r3=Q_(10.0, 'kV'),
            u_cc12=Q_(12.0, 'pct'),
            u_cc13=Q_(10.0, 'pct'),
            u_cc23=Q_(6.0, 'pct'),
            conn3=WindingConn.D,
        ),
        "HV", "MV", "LV"
    )
    nw.add_feeder(
        Generator("GRID", X_d_sub=Q_(12.1, 'ohm'), grounded=True, Z0=Q_(12.1j, 'ohm')),
        "HV"
    )
    return nw
