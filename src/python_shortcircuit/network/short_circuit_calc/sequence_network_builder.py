"""
Build the per-unit sequence admittance models from the python-shortcircuit
`NetworkGraph` (busses + connections + components).

Key design choices
------------------
1)  Components return sequence impedances in Ohm (Quantity) via
    get_impedance(...). Components do NOT know any per-unit system.

2)  The builder determines the per-unit system and converts Ohm -> pu per
    component: the base voltage is the nominal voltage of the bus the
    impedance is referred to (side 2 for transformers).

3)  Components on a connection between two busses become branches; all
    components on a connection from ground become feeders of the end bus.
    The correction factors of the short-circuit norm are applied here.

4)  A three-winding transformer is a star of three legs. Each leg is a
    two-winding transformer from its terminal bus to the internal star bus,
    whose star-side winding is a grounded wye.
"""
from __future__ import annotations

import logging

from ...pint_setup import Q_
from ...calc.fortescue import Sequence
from ...short_circuit.network.per_unit import PerUnitSystem
from ...short_circuit.network.branch import (
    BranchData,
    BranchKind,
    InjectionData,
    FeederType,
    WindingConn
)
from ...short_circuit.network.admittance import (
    AdmittanceMatrix,
    FeederRegistry,
    build_admittance_model
)
from ..graph import NetworkGraph, Bus, Component
from ..config import SCCalcConfig, VoltageProfileType
from ..components import Line, Transformer, Transformer3WLeg, Generator, Load, Shunt

__all__ = [
    "build_sequence_network",
    "get_branch_data",
    "get_injections",
    "get_bus_voltages"
]


logger = logging.getLogger(__name__)


# generators with a smaller per-unit impedance are left out
GENERATOR_EPSILON = 1e-7

# shunts with a smaller per-unit susceptance are left out
SHUNT_EPSILON = 1e-8


def get_bus_voltages(graph: NetworkGraph, cfg: SCCalcConfig) -> dict[str, complex]:
    """
    Returns the pre-fault voltage (per-unit) of each bus: 1 under the
    nominal voltage profile, the bus voltage otherwise.
    """
    if cfg.voltage_profile == VoltageProfileType.NOMINAL:
        return {bus.name: 1 + 0j for bus in graph.network_busses}
    return {bus.name: bus.voltage for bus in graph.network_busses}


def _get_voltage_magnitude(bus: Bus, cfg: SCCalcConfig) -> float:
    if cfg.voltage_profile == VoltageProfileType.NOMINAL:
        return 1.0
    return bus.v


def _line_to_branch(line: Line, bus1: Bus, bus2: Bus, cfg: SCCalcConfig) -> BranchData:
    pu_1 = PerUnitSystem(cfg.S_base, bus1.U_n)
    pu_2 = PerUnitSystem(cfg.S_base, bus2.U_n)
    Z = line.get_impedance()
    z0 = pu_2.get_per_unit_impedance(Z[0]) if Z[0] is not None else None
    return BranchData(
        name=line.name,
        bus1=bus1.name,
        bus2=bus2.name,
        z=complex(pu_2.get_per_unit_impedance(Z[1])),
        kind=BranchKind.LINE,
        y1=complex(pu_1.get_per_unit_admittance(line.Y_half)),
        y2=complex(pu_2.get_per_unit_admittance(line.Y_half)),
        z0=complex(z0) if z0 is not None else None
    )


def _transformer_to_branch(
    transfo: Transformer,
    bus1: Bus,
    bus2: Bus,
    cfg: SCCalcConfig
) -> BranchData:
    pu_1 = PerUnitSystem(cfg.S_base, bus1.U_n)
    pu_2 = PerUnitSystem(cfg.S_base, bus2.U_n)
    Z = transfo.get_impedance()
    z0 = pu_2.get_per_unit_impedance(Z[0]) if Z[0] is not None else None
    U_lv = min(bus1.U_n, bus2.U_n, key=lambda U: U.to('V').m)
    k_t = cfg.norm.get_kt(transfo.x_T, U_lv)
    return BranchData(
        name=transfo.name,
        bus1=bus1.name,
        bus2=bus2.name,
        z=complex(pu_2.get_per_unit_impedance(Z[1])),
        kind=BranchKind.TRANSFORMER,
        y1=complex(pu_2.get_per_unit_admittance(transfo.Y_m)),
        rho=transfo.get_ratio(bus1.U_n, bus2.U_n),
        alpha=transfo.phase_shift.to('rad').m,
        z0=complex(z0) if z0 is not None else None,
        conn1=transfo.conn1,
        conn2=transfo.conn2,
        free_fluxes=transfo.free_fluxes,
        zg1=complex(pu_1.get_per_unit_impedance(transfo.Zn_1)),
        zg2=complex(pu_2.get_per_unit_impedance(transfo.Zn_2)),
        k_t=k_t
    )


def _get_factor_ratio(corrected: float, uncorrected: float) -> float:
    if uncorrected == 0.0:
        return 1.0
    return corrected / uncorrected


def _transformer_leg_to_branch(
    leg: Transformer3WLeg,
    bus1: Bus,
    star: Bus,
    cfg: SCCalcConfig
) -> BranchData:
    transfo = leg.transformer
    terminals = {other.winding: other.connection.start for other in transfo.legs}
    # the norm corrects each winding pair, before the star conversion
    k_t = {}
    for (i, j), x_T in transfo.get_pair_reactances().items():
        U_lv = min(terminals[i].U_n, terminals[j].U_n, key=lambda U: U.to('V').m)
        k_t[(i, j)] = cfg.norm.get_kt(x_T, U_lv)
    Z = transfo.get_leg_impedances()[leg.winding]
    Z_k = transfo.get_leg_impedances(k_t)[leg.winding]
    k_r = _get_factor_ratio(Z_k.real, Z.real)
    k_x = _get_factor_ratio(Z_k.imag, Z.imag)

    pu_1 = PerUnitSystem(cfg.S_base, bus1.U_n)
    pu_2 = PerUnitSystem(cfg.S_base, star.U_n)
    Z0 = leg.get_impedance()[0]
    z0 = None
    if Z0 is not None:
        z0 = complex(pu_2.get_per_unit_impedance(Z0))
        z0 = complex(z0.real * k_r, z0.imag * k_x)
    y_m = pu_2.get_per_unit_admittance(transfo.Y_m) if leg.winding == 1 else 0.0
    logger.debug(
        f"Leg '{leg.name}': star impedance correction (R: {k_r:.4f}, X: {k_x:.4f})"
    )
    return BranchData(
        name=leg.name,
        bus1=bus1.name,
        bus2=star.name,
        z=complex(pu_2.get_per_unit_impedance(Q_(Z_k, 'ohm'))),
        kind=BranchKind.TRANSFORMER,
        y1=complex(y_m),
        rho=transfo.get_ratio(leg.winding, bus1.U_n, star.U_n),
        z0=z0,
        conn1=transfo.get_connection_type(leg.winding),
        conn2=WindingConn.YN,
        free_fluxes=transfo.free_fluxes[leg.winding - 1],
        zg1=complex(pu_1.get_per_unit_impedance(transfo.get_neutral_impedance(leg.winding)))
    )


def get_branch_data(graph: NetworkGraph, cfg: SCCalcConfig) -> list[BranchData]:
    """
    Converts the lines, transformers and three-winding transformer legs of
    `graph` to per-unit branch data.
    """
    branches: list[BranchData] = []
    for conn in graph.connections.values():
        if conn.start.name == graph.GROUND_ID:
            continue
        for comp in conn.components.values():
            if isinstance(comp, Transformer):
                branches.append(_transformer_to_branch(comp, conn.start, conn.end, cfg))
            elif isinstance(comp, Line):
                branches.append(_line_to_branch(comp, conn.start, conn.end, cfg))
            elif isinstance(comp, Transformer3WLeg):
                branches.append(_transformer_leg_to_branch(comp, conn.start, conn.end, cfg))
            else:
                raise TypeError(
                    f"Component '{comp.name}' on connection '{conn.name}' "
                    f"cannot be used as a branch."
                )
    return branches


def _generator_injection(
    gen: Generator,
    bus: Bus,
    sequence: Sequence,
    cfg: SCCalcConfig
) -> InjectionData | None:
    pu_sys = PerUnitSystem(cfg.S_base, bus.U_n)
    Z = gen.get_impedance(cfg.period)
    Z_seq = Z[0] if sequence == Sequence.ZERO else Z[1]
    if Z_seq is None:
        return None
    k_g = 1.0
    if gen.x_d_sub is not None:
        k_g = cfg.norm.get_kg(bus.U_n, gen.U_r, gen.x_d_sub, gen.sin_phi)
    z = complex(pu_sys.get_per_unit_impedance(Z_seq)) * k_g
    if abs(z) <= GENERATOR_EPSILON:
        logger.debug(f"Generator '{gen.name}' at bus '{bus.name}' has no impedance; left out")
        return None
    return InjectionData(gen.name, bus.name, FeederType.GENERATOR, 1 / z)


def _load_injection(load: Load, bus: Bus, cfg: SCCalcConfig) -> InjectionData | None:
    Z = load.get_impedance(bus.U_n, _get_voltage_magnitude(bus, cfg))
    if Z[1] is None:
        return None
    pu_sys = PerUnitSystem(cfg.S_base, bus.U_n)
    z = complex(pu_sys.get_per_unit_impedance(Z[1]))
    return InjectionData(load.name, bus.name, FeederType.LOAD, 1 / z)


def _shunt_injection(shunt: Shunt, bus: Bus, cfg: SCCalcConfig) -> InjectionData | None:
    pu_sys = PerUnitSystem(cfg.S_base, bus.U_n)
    b = pu_sys.get_per_unit_admittance(shunt.B)
    if abs(b) <= SHUNT_EPSILON:
        return None
    feeder_type = FeederType.CONTROLLED_SHUNT if shunt.controlled else FeederType.SHUNT
    return InjectionData(shunt.name, bus.name, feeder_type, complex(0.0, b))


def _get_injection(
    comp: Component,
    bus: Bus,
    sequence: Sequence,
    cfg: SCCalcConfig
) -> InjectionData | None:
    if isinstance(comp, Generator):
        return _generator_injection(comp, bus, sequence, cfg)
    if sequence == Sequence.ZERO:
        # loads and shunts have no zero-sequence path
        return None
    if isinstance(comp, Load):
        return _load_injection(comp, bus, cfg)
    if isinstance(comp, Shunt):
        if cfg.ignore_shunts:
            return None
        return _shunt_injection(comp, bus, cfg)
    raise TypeError(f"Component '{comp.name}' at bus '{bus.name}' cannot be used as a feeder.")


def get_injections(
    graph: NetworkGraph,
    sequence: Sequence,
    cfg: SCCalcConfig
) -> list[InjectionData]:
    """
    Returns the equivalent admittances of the generators, loads and shunts
    of `graph` in sequence network `sequence`.
    """
    injections: list[InjectionData] = []
    for conn in graph.connections.values():
        if conn.start.name != graph.GROUND_ID:
            continue
        for comp in conn.components.values():
            inj = _get_injection(comp, conn.end, sequence, cfg)
            if inj is not None:
                injections.append(inj)
    return injections


def build_sequence_network(
    graph: NetworkGraph,
    sequence: Sequence,
    cfg: SCCalcConfig
) -> tuple[AdmittanceMatrix, FeederRegistry]:
    """
    Builds the admittance model and the feeder registry of sequence network
    `sequence` of `graph`.

    Raises
    ------
    ModelError
        If a branch can't be modeled (see `build_admittance_model`).
    """
    busses = [bus.name for bus in graph.network_busses]
    branches = get_branch_data(graph, cfg)
    injections = get_injections(graph, sequence, cfg)
    model, feeders = build_admittance_model(
        busses,
        branches,
        injections,
        sequence=sequence,
        coef_xo_xd=cfg.coef_xo_xd
    )
    logger.debug(
        f"{sequence.name} network of {graph}: {len(busses)} busses, "
        f"{len(branches)} branches, {len(feeders)} feeders"
    )
    return model, feeders
