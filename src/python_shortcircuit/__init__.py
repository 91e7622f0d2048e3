"""
python_shortcircuit

Short-circuit calculation on three-phase power networks with symmetrical
components and Thevenin equivalents.
"""
from .pint_setup import UNITS, Quantity, Q_

from . import calc
from . import short_circuit
from . import network

from .short_circuit import (
    Fault,
    FaultType,
    BiphasedType,
    FaultImpedance,
    FaultResult,
    ShortCircuitNorm,
    ShortCircuitNormIec
)
from .network import (
    NetworkGraph,
    SCCalcConfig,
    PeriodType,
    VoltageProfileType,
    ShortCircuitCalc
)


__all__ = [
    "UNITS",
    "Quantity",
    "Q_",
    "calc",
    "short_circuit",
    "network",
    "Fault",
    "FaultType",
    "BiphasedType",
    "FaultImpedance",
    "FaultResult",
    "ShortCircuitNorm",
    "ShortCircuitNormIec",
    "NetworkGraph",
    "SCCalcConfig",
    "PeriodType",
    "VoltageProfileType",
    "ShortCircuitCalc"
]


__version__ = "0.1.0"
