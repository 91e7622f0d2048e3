from dataclasses import dataclass, field
from enum import StrEnum

from ..pint_setup import Quantity, Q_
from ..short_circuit.norm import ShortCircuitNorm, ShortCircuitNormIec
from ..short_circuit.network.homopolar import DEFAULT_COEF_XO_XD


__all__ = ["SCCalcConfig", "PeriodType", "VoltageProfileType"]


class PeriodType(StrEnum):
    """Which generator reactance is used in the direct-sequence network."""
    SUB_TRANSIENT = "SUB_TRANSIENT"
    TRANSIENT = "TRANSIENT"
    STEADY_STATE = "STEADY_STATE"


class VoltageProfileType(StrEnum):
    """Source of the pre-fault voltages."""
    NOMINAL = "NOMINAL"        # 1 pu, angle 0 at every bus
    CALCULATED = "CALCULATED"  # bus voltages of a prior load flow


@dataclass
class SCCalcConfig:
    """
    Configuration for building sequence short-circuit networks and resolving
    faults on them.
    """
    # Global base apparent power for PU conversion.
    S_base: Quantity = Q_(100.0, "MVA")

    # Generator reactance used in the direct-sequence network.
    period: PeriodType = PeriodType.SUB_TRANSIENT

    voltage_profile: VoltageProfileType = VoltageProfileType.NOMINAL

    # Which short-circuit case the voltage factor is taken for: "MAX" or "MIN".
    sc_case: str = "MAX"

    # If True: physical shunts are left out of the sequence networks.
    ignore_shunts: bool = False

    # If True: compute the voltage change at every bus and the current
    # contribution of every feeder.
    voltage_update: bool = False

    norm: ShortCircuitNorm = field(default_factory=ShortCircuitNormIec)

    # Zero-sequence to direct-sequence impedance ratio of branches without
    # explicit zero-sequence data.
    coef_xo_xd: float = DEFAULT_COEF_XO_XD

    # If False: phase-to-phase-to-ground faults use the simplified closed
    # form, which ignores the fault impedances.
    biphased_ground_general: bool = True

    # If True: a fault that cannot be resolved gives a failed result instead
    # of aborting the whole run.
    isolate_request_errors: bool = True
