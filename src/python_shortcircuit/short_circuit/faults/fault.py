from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

__all__ = [
    "FaultType",
    "BiphasedType",
    "FaultImpedance",
    "Fault"
]


class FaultType(StrEnum):
    THREE_PHASE = "THREE_PHASE"
    SINGLE_PHASE = "SINGLE_PHASE"
    BIPHASED = "BIPHASED"
    BIPHASED_GROUND = "BIPHASED_GROUND"
    BIPHASED_COMMON_SUPPORT = "BIPHASED_COMMON_SUPPORT"

    @property
    def is_balanced(self) -> bool:
        return self is FaultType.THREE_PHASE


class BiphasedType(StrEnum):
    """
    Phases short-circuited by a common-support fault: phase c of bus 1 with
    phase a, b or c of bus 2.
    """
    C1_A2 = "C1_A2"
    C1_B2 = "C1_B2"
    C1_C2 = "C1_C2"


@dataclass(frozen=True)
class FaultImpedance:
    """
    Per-unit impedances of a fault.

    Attributes
    ----------
    Z_g:
        Impedance between the fault point and ground.
    Z_b:
        Impedance in series with the second faulted phase.
    Z_c:
        Impedance in series with the third faulted phase.
    """
    Z_g: complex = 0j
    Z_b: complex = 0j
    Z_c: complex = 0j


@dataclass(frozen=True)
class Fault:
    """
    Request for a short-circuit calculation.

    Attributes
    ----------
    name:
        Identifies the fault in the results.
    bus:
        Name of the faulted bus.
    fault_type:
        Fault topology. See enum `FaultType`.
    impedance:
        Fault impedances. See `FaultImpedance`.
    bus2:
        Second bus of a common-support fault.
    biphased_type:
        Faulted phase pair of a common-support fault.
    """
    name: str
    bus: str
    fault_type: FaultType = FaultType.THREE_PHASE
    impedance: FaultImpedance = field(default_factory=FaultImpedance)
    bus2: str | None = None
    biphased_type: BiphasedType | None = None

    @classmethod
    def common_support(
        cls,
        name: str,
        bus: str,
        bus2: str,
        biphased_type: BiphasedType,
        impedance: FaultImpedance | None = None
    ) -> Fault:
        return cls(
            name=name,
            bus=bus,
            fault_type=FaultType.BIPHASED_COMMON_SUPPORT,
            impedance=impedance or FaultImpedance(),
            bus2=bus2,
            biphased_type=biphased_type
        )

    @property
    def busses(self) -> tuple[str, ...]:
        if self.bus2 is None:
            return (self.bus,)
        return self.bus, self.bus2
