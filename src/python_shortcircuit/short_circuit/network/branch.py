"""
Per-unit description of the two-terminal elements and current sources that
make up a sequence admittance model.

Everything in this module is expressed in per-unit on the system base power
and on the nominal voltage of the bus the quantity is referred to (side 2 for
branches).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

__all__ = [
    "WindingConn",
    "BranchKind",
    "BranchData",
    "FeederType",
    "InjectionData"
]


class WindingConn(StrEnum):
    Y = "Y"
    YN = "YN"
    D = "D"


class BranchKind(StrEnum):
    LINE = "LINE"
    TRANSFORMER = "TRANSFORMER"


@dataclass(frozen=True)
class BranchData:
    """
    Pi-model of a branch with an ideal transformer on side 1.

    The internal voltage on side 1 is `rho * exp(j * alpha) * V1`.

    Attributes
    ----------
    name:
        Identifies the branch.
    bus1, bus2:
        Names of the terminal busses.
    kind:
        Line or two-winding transformer.
    z:
        Series impedance.
    y1, y2:
        Shunt admittances at side 1 and side 2. For a transformer `y1` is its
        magnetizing admittance.
    rho:
        Turns ratio magnitude.
    alpha:
        Phase shift (radians).
    z0:
        Explicit zero-sequence series impedance, or None to derive it from
        `z`.
    conn1, conn2:
        Winding connection of the transformer legs.
    free_fluxes:
        If True, the zero-sequence magnetizing impedance is infinite.
    zg1, zg2:
        Neutral-to-earth impedances of the transformer windings.
    k_t:
        Correction factor of the short-circuit norm applied to the series
        impedances of a transformer.
    """
    name: str
    bus1: str
    bus2: str
    z: complex
    kind: BranchKind = BranchKind.LINE
    y1: complex = 0j
    y2: complex = 0j
    rho: float = 1.0
    alpha: float = 0.0
    z0: complex | None = None
    conn1: WindingConn = WindingConn.YN
    conn2: WindingConn = WindingConn.YN
    free_fluxes: bool = False
    zg1: complex = 0j
    zg2: complex = 0j
    k_t: float = 1.0

    @property
    def is_transformer(self) -> bool:
        return self.kind is BranchKind.TRANSFORMER


class FeederType(StrEnum):
    GENERATOR = "GENERATOR"
    LOAD = "LOAD"
    SHUNT = "SHUNT"
    CONTROLLED_SHUNT = "CONTROLLED_SHUNT"


@dataclass(frozen=True)
class InjectionData:
    """
    Equivalent shunt admittance of a current source in one sequence network.
    """
    name: str
    bus: str
    feeder_type: FeederType
    y: complex
