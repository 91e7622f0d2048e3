"""
Extraction of Thevenin equivalents from a single LU factorization of an
admittance model.

For a list of `k` candidate busses, an excitation matrix `E` with two unit
columns per bus (real and imaginary part) is built and the transposed system
`Y^T.X = E` is solved once for all `2k` columns. Column `2c` of `X` (bus `n`
being candidate `c`) holds row `2n` of `Y^-1`, so for any bus `i`::

    Z(n, i) = X[2i, 2c] - j * X[2i+1, 2c]

This gives the Thevenin impedance at `n` (`i = n`) and the mutual impedances
with the other candidate busses, without ever computing the full inverse.
When the voltage profile is to be updated, the same factorization also
solves `Y.X = E`, whose columns hold the voltage change of every bus per
unit of current drawn at a candidate bus.

Each extracted 2x2 real block is checked to be of the form `[[r, -x], [x, r]]`,
i.e. to represent a single complex impedance.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
import logging

import numpy as np
import numpy.typing as npt
from scipy.sparse.linalg import splu, SuperLU

from ..exceptions import ConsistencyError, ModelError, RequestError
from .admittance import AdmittanceMatrix

__all__ = [
    "TheveninResult",
    "MutualResult",
    "LinearFaultResolver",
    "CONSISTENCY_TOLERANCE"
]


logger = logging.getLogger(__name__)


CONSISTENCY_TOLERANCE = 1e-5


@dataclass(frozen=True)
class MutualResult:
    """
    Mutual Thevenin block between two candidate busses.

    `z12` is the voltage change at bus 1 per unit of current injected at
    bus 2; `z21` is the reverse.
    """
    bus1: str
    bus2: str
    z12: complex
    z21: complex


@dataclass(frozen=True)
class TheveninResult:
    """
    Thevenin equivalent of the network seen from one bus.

    Attributes
    ----------
    bus:
        Name of the bus.
    zth:
        Thevenin impedance (per-unit).
    eth:
        Pre-fault voltage (per-unit).
    sensitivities:
        If the voltage profile is to be updated: the impedances `Z(i, bus)`
        for every bus `i` of the network, indexed like the admittance model.
        The voltage change at `i` caused by a current `If` drawn at `bus` is
        `-Z(i, bus) * If`.
    """
    bus: str
    zth: complex
    eth: complex
    sensitivities: npt.NDArray[np.complex128] | None = field(default=None, repr=False)

    def get_voltage_deltas(self, i_fault: complex) -> npt.NDArray[np.complex128]:
        """Returns the voltage change at every bus when `i_fault` is drawn at the bus."""
        if self.sensitivities is None:
            raise ValueError(f"No voltage sensitivities were extracted for bus '{self.bus}'.")
        return -self.sensitivities * i_fault


def _check_block(a: float, b: float, c: float, d: float, what: str) -> None:
    # block [[a, b], [c, d]] must be [[r, -x], [x, r]]
    if abs(a - d) > CONSISTENCY_TOLERANCE or abs(b + c) > CONSISTENCY_TOLERANCE:
        raise ConsistencyError(
            f"Impedance block of {what} is not consistent: "
            f"[[{a}, {b}], [{c}, {d}]]."
        )


class LinearFaultResolver:
    """
    Computes Thevenin equivalents for a batch of busses from one factorization
    of an admittance model.

    Parameters
    ----------
    admittance_matrix:
        The admittance model to resolve.
    voltages:
        Pre-fault voltage of every bus, keyed by bus name (per-unit, complex).
        Busses that are not in the mapping get a voltage of 1.
    voltage_update:
        If True, also keep the voltage sensitivities of all busses with respect
        to each candidate bus.
    """

    def __init__(
        self,
        admittance_matrix: AdmittanceMatrix,
        voltages: dict[str, complex] | None = None,
        voltage_update: bool = False
    ) -> None:
        self.admittance_matrix = admittance_matrix
        self.voltages = voltages or {}
        self.voltage_update = voltage_update

        self.results: dict[str, TheveninResult] = {}
        self.mutuals: dict[tuple[str, str], MutualResult] = {}

    def _factorize(self) -> SuperLU:
        try:
            return splu(self.admittance_matrix.matrix.tocsc())
        except RuntimeError as err:
            raise ModelError(
                f"The {self.admittance_matrix.sequence.name} admittance matrix "
                f"is singular: {err}"
            ) from err

    def _get_index(self, bus: str) -> int:
        try:
            return self.admittance_matrix.bus_index[bus]
        except KeyError:
            raise RequestError(f"Bus '{bus}' not found in the network.") from None

    def run(
        self,
        busses: Iterable[str],
        bus_pairs: Iterable[tuple[str, str]] = ()
    ) -> dict[str, TheveninResult]:
        """
        Extracts the Thevenin equivalent at each bus in `busses` and the
        mutual impedance block of each pair in `bus_pairs`.

        Both busses of a pair are added to the candidate list. Returns the
        Thevenin results keyed by bus name; mutual blocks are available in
        `mutuals` afterwards.

        Raises
        ------
        RequestError
            If a bus is not part of the admittance model.
        ModelError
            If the admittance matrix is singular.
        ConsistencyError
            If an extracted block is not a single complex impedance.
        """
        bus_pairs = list(bus_pairs)
        candidates: list[str] = []
        for bus in [*busses, *(b for pair in bus_pairs for b in pair)]:
            if bus not in candidates:
                self._get_index(bus)
                candidates.append(bus)
        if not candidates:
            return {}

        n_rows = 2 * self.admittance_matrix.size
        E = np.zeros((n_rows, 2 * len(candidates)))
        for c, bus in enumerate(candidates):
            n = self._get_index(bus)
            E[2 * n, 2 * c] = 1.0
            E[2 * n + 1, 2 * c + 1] = 1.0

        lu = self._factorize()
        logger.debug(
            f"Solve {self.admittance_matrix.sequence.name} model: "
            f"{n_rows} unknowns, {len(candidates)} candidate busses"
        )
        X = lu.solve(E, trans='T')
        # columns of Y^-1; Y is not symmetric with phase shifters
        X_dv = lu.solve(E) if self.voltage_update else None

        column_of = {bus: c for c, bus in enumerate(candidates)}

        for c, bus in enumerate(candidates):
            n = self._get_index(bus)
            zth = self._extract(X, n, c, what=f"bus '{bus}'")
            sensitivities = None
            if self.voltage_update:
                sensitivities = X_dv[0::2, 2 * c] + 1j * X_dv[1::2, 2 * c]
            self.results[bus] = TheveninResult(
                bus=bus,
                zth=zth,
                eth=complex(self.voltages.get(bus, 1.0)),
                sensitivities=sensitivities
            )

        for bus1, bus2 in bus_pairs:
            n1, n2 = self._get_index(bus1), self._get_index(bus2)
            c1, c2 = column_of[bus1], column_of[bus2]
            z12 = self._extract(X, n2, c1, what=f"busses '{bus2}' -> '{bus1}'")
            z21 = self._extract(X, n1, c2, what=f"busses '{bus1}' -> '{bus2}'")
            self.mutuals[(bus1, bus2)] = MutualResult(bus1, bus2, z12, z21)

        return self.results

    @staticmethod
    def _extract(X: npt.NDArray[np.float64], i: int, c: int, what: str) -> complex:
        # Z(m, i) where m is the bus of candidate c
        a, b = X[2 * i, 2 * c], X[2 * i, 2 * c + 1]
        cc, d = X[2 * i + 1, 2 * c], X[2 * i + 1, 2 * c + 1]
        # the solve returns the transposed block
        _check_block(a, cc, b, d, what)
        return complex(a, -cc)

    def get_mutual(self, bus1: str, bus2: str) -> MutualResult:
        try:
            return self.mutuals[(bus1, bus2)]
        except KeyError:
            raise RequestError(
                f"Bus pair ('{bus1}', '{bus2}') not found in the extraction matrix."
            ) from None
