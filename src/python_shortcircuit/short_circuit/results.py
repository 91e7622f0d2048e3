"""
Results of a short-circuit calculation: the physical short-circuit current,
the post-fault voltage changes and the contribution of each feeder.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
import logging
import math

import numpy as np
import numpy.typing as npt

from ..pint_setup import Quantity, Q_
from ..calc.fortescue import A, A2, Sequence, FortescueValue
from .faults.fault import Fault, FaultType
from .network.admittance import AdmittanceMatrix, Feeder, FeederRegistry
from .network.resolver import TheveninResult

__all__ = [
    "FeederResult",
    "BusFeedersResult",
    "FaultResult",
    "get_fault_current_pu",
    "get_voltage_deltas",
    "compute_feeder_contributions"
]


logger = logging.getLogger(__name__)


# feeder impedance sums below this value are not divided
FEEDER_DIVIDER_EPSILON = 1e-6


@dataclass(frozen=True)
class FeederResult:
    """Current contribution of one feeder (per-unit)."""
    feeder: Feeder
    current: complex

    @property
    def name(self) -> str:
        return self.feeder.name

    @property
    def bus(self) -> str:
        return self.feeder.bus


@dataclass(frozen=True)
class BusFeedersResult:
    """
    Feeder contributions at one bus.

    Attributes
    ----------
    bus:
        Name of the bus.
    i_feeders_sum:
        Net current flowing from the bus into its branches, which is also the
        current supplied by the feeders at the bus.
    feeders:
        Contribution of each feeder. All zero when the sum of the feeder
        impedances at the bus vanishes.
    """
    bus: str
    i_feeders_sum: complex
    feeders: tuple[FeederResult, ...] = ()

    @property
    def i_contributions_sum(self) -> complex:
        return sum((f.current for f in self.feeders), 0j)


@dataclass(frozen=True)
class FaultResult:
    """
    Result of one fault calculation.

    Currents are drawn from the network at the fault point. All complex
    values are per-unit, except `Ik`.

    Attributes
    ----------
    fault:
        The fault request.
    failed:
        True if the request could not be resolved; `error` holds the reason
        and all other fields keep their defaults.
    Ik:
        Physical short-circuit current (complex, kA), voltage factor of the
        norm included.
    current, voltage:
        Sequence currents and voltages at the fault point.
    current2, voltage2:
        Same at the second bus of a common-support fault.
    zd, zo, zi:
        Thevenin impedances of the direct, zero and inverse sequence networks
        at the faulted bus.
    eth:
        Pre-fault voltage at the faulted bus.
    voltage_deltas:
        Per sequence: voltage change at each bus, keyed by bus name. Only
        filled when the voltage profile is updated.
    feeder_results:
        Per sequence: feeder contributions at each bus with feeders. Only
        filled when the voltage profile is updated.
    """
    fault: Fault
    failed: bool = False
    error: str = ""
    Ik: Quantity | None = None
    current: FortescueValue | None = None
    voltage: FortescueValue | None = None
    current2: FortescueValue | None = None
    voltage2: FortescueValue | None = None
    zd: complex = 0j
    zo: complex = 0j
    zi: complex = 0j
    eth: complex = 0j
    voltage_deltas: dict[Sequence, dict[str, complex]] = field(default_factory=dict, repr=False)
    feeder_results: dict[Sequence, dict[str, BusFeedersResult]] = field(default_factory=dict, repr=False)

    @classmethod
    def failure(cls, fault: Fault, error: str) -> FaultResult:
        return cls(fault=fault, failed=True, error=error)

    @property
    def Ik_abs(self) -> Quantity | None:
        if self.Ik is None:
            return None
        return Q_(abs(self.Ik.m), self.Ik.u)

    def get_feeder_current(
        self,
        bus: str,
        feeder_id: str,
        sequence: Sequence = Sequence.DIRECT
    ) -> complex:
        """
        Returns the current contribution of feeder `feeder_id` at bus `bus`
        in sequence network `sequence`.

        Raises
        ------
        KeyError
            If no contribution of this feeder was computed.
        """
        try:
            bus_result = self.feeder_results[sequence][bus]
        except KeyError:
            raise KeyError(
                f"No feeder results for bus '{bus}' in the {sequence.name} sequence."
            ) from None
        for feeder_result in bus_result.feeders:
            if feeder_result.name == feeder_id:
                return feeder_result.current
        raise KeyError(f"Feeder '{feeder_id}' not found at bus '{bus}'.")

    def __str__(self) -> str:
        if self.failed:
            return f"FaultResult<{self.fault.name}: failed ({self.error})>"
        return f"FaultResult<{self.fault.name}: Ik = {self.Ik_abs:~P.3f}>"


def get_fault_current_pu(fault_type: FaultType, current: FortescueValue) -> complex:
    """
    Returns the per-unit short-circuit current of a fault from its sequence
    currents, before the voltage factor is applied:

    * three-phase and common-support: `Id`
    * single phase-to-ground: `3 * Id`
    * phase-to-phase: `sqrt(3) * Id`
    * phase-to-phase-to-ground: the earth current `Ib + Ic`
    """
    if fault_type in (FaultType.THREE_PHASE, FaultType.BIPHASED_COMMON_SUPPORT):
        return current.direct
    if fault_type == FaultType.SINGLE_PHASE:
        return 3 * current.direct
    if fault_type == FaultType.BIPHASED:
        return math.sqrt(3) * current.direct
    if fault_type == FaultType.BIPHASED_GROUND:
        ib = current.zero + A2 * current.direct + A * current.inverse
        ic = current.zero + A * current.direct + A2 * current.inverse
        return ib + ic
    raise ValueError(f"Unknown fault type: {fault_type!r}")


def get_voltage_deltas(
    contributions: Iterable[tuple[TheveninResult, complex]]
) -> npt.NDArray[np.complex128]:
    """
    Superposes the voltage changes at every bus caused by the currents drawn
    at one or more faulted busses.

    Parameters
    ----------
    contributions:
        Pairs of the Thevenin result of a faulted bus (with its voltage
        sensitivities) and the sequence current drawn at that bus.
    """
    dv: npt.NDArray[np.complex128] | None = None
    for thevenin, i_fault in contributions:
        delta = thevenin.get_voltage_deltas(i_fault)
        dv = delta if dv is None else dv + delta
    if dv is None:
        raise ValueError("No fault current to superpose.")
    return dv


def compute_feeder_contributions(
    admittance_matrix: AdmittanceMatrix,
    feeders: FeederRegistry,
    dv: npt.NDArray[np.complex128]
) -> dict[str, BusFeedersResult]:
    """
    Distributes the current balance of each bus among its feeders.

    For every branch, the currents `dI = Y_branch . dV` flowing from its
    terminal busses into the branch are accumulated per bus. At a bus with
    feeders, this sum is split as::

        Ik = zk * sum(dI) / sum(z)

    where `zk` is the impedance of feeder `k`.

    Parameters
    ----------
    admittance_matrix:
        The sequence model the voltage changes were computed with.
    feeders:
        Feeder registry of the same model.
    dv:
        Voltage change at every bus, indexed like the model.
    """
    bus_index = admittance_matrix.bus_index
    i_sums: dict[str, complex] = {}
    for name, branch in admittance_matrix.branches.items():
        di1, di2 = admittance_matrix.get_branch_currents(
            name,
            complex(dv[bus_index[branch.bus1]]),
            complex(dv[bus_index[branch.bus2]])
        )
        i_sums[branch.bus1] = i_sums.get(branch.bus1, 0j) + di1
        i_sums[branch.bus2] = i_sums.get(branch.bus2, 0j) + di2

    results: dict[str, BusFeedersResult] = {}
    for bus in feeders.busses:
        i_sum = i_sums.get(bus, 0j)
        bus_feeders = feeders.feeders_at(bus)
        z_sum = sum((f.z for f in bus_feeders), 0j)
        if abs(z_sum) > FEEDER_DIVIDER_EPSILON:
            feeder_results = tuple(
                FeederResult(f, f.z * i_sum / z_sum)
                for f in bus_feeders
            )
        else:
            logger.warning(
                f"Sum of feeder impedances at bus '{bus}' is zero; "
                f"contributions set to zero"
            )
            feeder_results = tuple(FeederResult(f, 0j) for f in bus_feeders)
        results[bus] = BusFeedersResult(bus, i_sum, feeder_results)
    return results
