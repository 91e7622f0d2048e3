from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable
import logging

from ...pint_setup import Quantity
from ...calc.fortescue import Sequence
from ...short_circuit.exceptions import RequestError
from ...short_circuit.network import (
    PerUnitSystem,
    AdmittanceMatrix,
    FeederRegistry,
    LinearFaultResolver,
    TheveninResult
)
from ...short_circuit.faults import (
    Fault,
    FaultType,
    TheveninParams,
    CommonSupportParams,
    SequenceResult,
    calculate
)
from ...short_circuit.results import (
    FaultResult,
    get_fault_current_pu,
    get_voltage_deltas,
    compute_feeder_contributions
)
from ..config import SCCalcConfig
from ..graph import NetworkGraph
from .sequence_network_builder import build_sequence_network, get_bus_voltages


__all__ = ["ShortCircuitCalc"]


logger = logging.getLogger(__name__)


@dataclass
class _SequenceSolution:
    model: AdmittanceMatrix
    feeders: FeederRegistry
    resolver: LinearFaultResolver

    def get_thevenin(self, bus: str) -> TheveninResult:
        try:
            return self.resolver.results[bus]
        except KeyError:
            raise RequestError(
                f"Bus '{bus}' not found in the extraction matrix of the "
                f"{self.model.sequence.name} network."
            ) from None


class ShortCircuitCalc:
    """
    Calculates short-circuit currents on a network.

    Parameters
    ----------
    network:
        The network model.
    cfg:
        Calculation settings. See `SCCalcConfig`.

    Examples
    --------
    >>> calc = ShortCircuitCalc(network, SCCalcConfig())
    >>> results = calc.run([Fault("F1", "B1", FaultType.SINGLE_PHASE)])
    >>> for fault, result in results:
    ...     print(fault.name, result.Ik_abs)
    """

    def __init__(
        self,
        network: NetworkGraph,
        cfg: SCCalcConfig | None = None
    ) -> None:
        self.nw = network
        self.config = cfg if isinstance(cfg, SCCalcConfig) else SCCalcConfig()

    def _check_fault(self, fault: Fault) -> None:
        for bus_id in fault.busses:
            if bus_id == self.nw.GROUND_ID or bus_id not in self.nw.busses:
                raise RequestError(f"Fault '{fault.name}': bus '{bus_id}' not found in the network.")
        if fault.fault_type == FaultType.BIPHASED_COMMON_SUPPORT:
            if fault.bus2 is None:
                raise RequestError(f"Fault '{fault.name}': a common-support fault needs a second bus.")
            if fault.biphased_type is None:
                raise RequestError(f"Fault '{fault.name}': unknown common-support phase pair.")

    def _solve_sequence(
        self,
        sequence: Sequence,
        busses: list[str],
        bus_pairs: list[tuple[str, str]]
    ) -> _SequenceSolution:
        model, feeders = build_sequence_network(self.nw, sequence, self.config)
        resolver = LinearFaultResolver(
            model,
            voltages=get_bus_voltages(self.nw, self.config),
            voltage_update=self.config.voltage_update
        )
        resolver.run(busses, bus_pairs)
        return _SequenceSolution(model, feeders, resolver)

    def run(self, faults: Iterable[Fault]) -> list[tuple[Fault, FaultResult]]:
        """
        Resolves a list of faults.

        The direct-sequence network is built and factorized once for all
        faults; the zero-sequence network likewise, if any fault is
        unbalanced.

        Returns
        -------
        list[tuple[Fault, FaultResult]]
            The faults paired with their results, in request order.

        Raises
        ------
        ModelError
            If the network can't be turned into an admittance model.
        ConsistencyError
            If an extracted impedance is not consistent.
        RequestError
            If a fault can't be resolved and `isolate_request_errors` is
            False in the configuration.
        """
        faults = list(faults)
        results: dict[int, FaultResult] = {}

        valid: list[Fault] = []
        for k, fault in enumerate(faults):
            try:
                self._check_fault(fault)
            except RequestError as err:
                results[k] = self._handle_request_error(fault, err)
            else:
                valid.append(fault)

        busses: list[str] = []
        bus_pairs: list[tuple[str, str]] = []
        for fault in valid:
            for bus_id in fault.busses:
                if bus_id not in busses:
                    busses.append(bus_id)
            if fault.fault_type == FaultType.BIPHASED_COMMON_SUPPORT:
                pair = (fault.bus, fault.bus2)
                if pair not in bus_pairs:
                    bus_pairs.append(pair)

        direct = zero = None
        if valid:
            direct = self._solve_sequence(Sequence.DIRECT, busses, bus_pairs)
            if any(not f.fault_type.is_balanced for f in valid):
                zero = self._solve_sequence(Sequence.ZERO, busses, bus_pairs)

        for k, fault in enumerate(faults):
            if k in results:
                continue
            try:
                results[k] = self._resolve(fault, direct, zero)
            except RequestError as err:
                results[k] = self._handle_request_error(fault, err)

        n_failed = sum(1 for r in results.values() if r.failed)
        logger.info(
            f"Short-circuit calculation on {self.nw}: {len(faults)} faults "
            f"at {len(busses)} busses, {n_failed} failed"
        )
        return [(fault, results[k]) for k, fault in enumerate(faults)]

    def _handle_request_error(self, fault: Fault, err: RequestError) -> FaultResult:
        if not self.config.isolate_request_errors:
            raise err
        logger.warning(f"Fault '{fault.name}' skipped: {err}")
        return FaultResult.failure(fault, str(err))

    def _resolve(
        self,
        fault: Fault,
        direct: _SequenceSolution,
        zero: _SequenceSolution | None
    ) -> FaultResult:
        th_d = direct.get_thevenin(fault.bus)
        th_o = zero.get_thevenin(fault.bus) if zero is not None and not fault.fault_type.is_balanced else None
        zd = th_d.zth
        zo = th_o.zth if th_o is not None else 0j

        if fault.fault_type == FaultType.BIPHASED_COMMON_SUPPORT:
            th_d2 = direct.get_thevenin(fault.bus2)
            th_o2 = zero.get_thevenin(fault.bus2)
            m_d = direct.resolver.get_mutual(fault.bus, fault.bus2)
            m_o = zero.resolver.get_mutual(fault.bus, fault.bus2)
            params = CommonSupportParams(
                v1=th_d.eth,
                v2=th_d2.eth,
                zd11=zd, zd12=m_d.z12, zd21=m_d.z21, zd22=th_d2.zth,
                zo11=zo, zo12=m_o.z12, zo21=m_o.z21, zo22=th_o2.zth
            )
        else:
            params = TheveninParams(v=th_d.eth, zd=zd, zo=zo)

        seq = calculate(
            fault.fault_type,
            params,
            fault.impedance,
            biphased_type=fault.biphased_type,
            general_form=self.config.biphased_ground_general
        )

        bus = self.nw.busses[fault.bus]
        c = self.config.norm.get_c(bus.U_n, self.config.sc_case)
        pu_sys = PerUnitSystem(self.config.S_base, bus.U_n)
        Ik = pu_sys.get_actual_current(c * get_fault_current_pu(fault.fault_type, seq.current))

        voltage_deltas: dict[Sequence, dict[str, complex]] = {}
        feeder_results = {}
        if self.config.voltage_update:
            sequences = [(Sequence.DIRECT, direct)]
            if not fault.fault_type.is_balanced:
                sequences += [(Sequence.ZERO, zero), (Sequence.INVERSE, direct)]
            for sequence, solution in sequences:
                dv = get_voltage_deltas(self._get_fault_currents(fault, seq, sequence, solution))
                voltage_deltas[sequence] = {
                    bus_id: complex(dv[n]) for bus_id, n in solution.model.bus_index.items()
                }
                feeder_results[sequence] = compute_feeder_contributions(
                    solution.model, solution.feeders, dv
                )

        return FaultResult(
            fault=fault,
            Ik=Ik,
            current=seq.current,
            voltage=seq.voltage,
            current2=seq.current2,
            voltage2=seq.voltage2,
            zd=zd,
            zo=zo,
            zi=zd,
            eth=th_d.eth,
            voltage_deltas=voltage_deltas,
            feeder_results=feeder_results
        )

    @staticmethod
    def _get_fault_currents(
        fault: Fault,
        seq: SequenceResult,
        sequence: Sequence,
        solution: _SequenceSolution
    ) -> list[tuple[TheveninResult, complex]]:
        currents = [(solution.get_thevenin(fault.bus), seq.current[sequence])]
        if seq.current2 is not None:
            currents.append((solution.get_thevenin(fault.bus2), seq.current2[sequence]))
        return currents

    def _run_case(self, sc_case: str, bus_ids: Iterable[str] | None) -> dict[str, Quantity]:
        if bus_ids is None:
            bus_ids = [bus.name for bus in self.nw.network_busses if not bus.internal]
        faults = [Fault(f"{sc_case}_{bus_id}", bus_id, FaultType.THREE_PHASE) for bus_id in bus_ids]
        calc = ShortCircuitCalc(self.nw, replace(self.config, sc_case=sc_case))
        return {
            fault.bus: result.Ik_abs
            for fault, result in calc.run(faults)
            if not result.failed
        }

    def max(self, bus_ids: Iterable[str] | None = None) -> dict[str, Quantity]:
        """
        Returns the maximum three-phase short-circuit current at the given
        busses (all but internal busses by default), using the maximum voltage
        factor of the norm.
        """
        return self._run_case("MAX", bus_ids)

    def min(self, bus_ids: Iterable[str] | None = None) -> dict[str, Quantity]:
        """
        Returns the minimum three-phase short-circuit current at the given
        busses (all but internal busses by default), using the minimum voltage
        factor of the norm.
        """
        return self._run_case("MIN", bus_ids)
