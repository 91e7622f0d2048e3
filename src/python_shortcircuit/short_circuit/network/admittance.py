"""
Build the linear admittance model `Y.V = I` of one sequence network.

Every bus `n` owns two consecutive unknowns in the model: the real part
(row/column `2n`) and the imaginary part (row/column `2n+1`) of its voltage.
A complex admittance `g + jb` between bus `i` and bus `j` is therefore stamped
as the real 2x2 block::

    [[g, -b],
     [b,  g]]

at rows `(2i, 2i+1)` and columns `(2j, 2j+1)`.

Next to the matrix, the build step also returns the registry of feeders
(generators, load equivalents and shunts) attached to each bus. Feeders are
registered with exactly the admittance that is stamped on the diagonal of the
matrix, so that the current redistribution in post-processing sees the same
electrical values as the solver.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence as SequenceT
import logging

import numpy as np
import numpy.typing as npt
import scipy.sparse as sp

from ...calc.fortescue import Sequence
from ..exceptions import ModelError
from .branch import BranchData, InjectionData, FeederType
from .homopolar import HomopolarModel, DEFAULT_COEF_XO_XD

__all__ = [
    "Feeder",
    "FeederRegistry",
    "AdmittanceMatrix",
    "build_admittance_model",
    "get_branch_admittance"
]


logger = logging.getLogger(__name__)


# branches with a smaller series reactance are rejected
LOW_REACTANCE_THRESHOLD = 1e-8

# shunt to ground added at every bus of the zero-sequence network, keeps
# the matrix regular when a part of the network has no zero-sequence path
ZERO_SEQUENCE_GROUND_LEAK = 1e-9


@dataclass(frozen=True)
class Feeder:
    """
    Current source attached to a bus, with the admittance it adds to the
    diagonal of the admittance matrix.
    """
    name: str
    bus: str
    feeder_type: FeederType
    y: complex

    @property
    def z(self) -> complex:
        """Impedance of the feeder, used as its dispatch key."""
        return 1 / self.y


class FeederRegistry:
    """
    Read-only map of bus names to the feeders connected to them.
    """
    def __init__(self, feeders: Iterable[Feeder] = ()) -> None:
        self._feeders: dict[str, list[Feeder]] = {}
        for feeder in feeders:
            self._feeders.setdefault(feeder.bus, []).append(feeder)

    def __iter__(self) -> Iterator[Feeder]:
        for feeders in self._feeders.values():
            yield from feeders

    def __len__(self) -> int:
        return sum(len(feeders) for feeders in self._feeders.values())

    def __contains__(self, bus: str) -> bool:
        return bus in self._feeders

    @property
    def busses(self) -> list[str]:
        return list(self._feeders.keys())

    def feeders_at(self, bus: str) -> tuple[Feeder, ...]:
        return tuple(self._feeders.get(bus, ()))

    def get_feeder(self, bus: str, name: str) -> Feeder:
        for feeder in self._feeders.get(bus, ()):
            if feeder.name == name:
                return feeder
        raise KeyError(f"Feeder '{name}' not found at bus '{bus}'.")


@dataclass(frozen=True)
class AdmittanceMatrix:
    """
    Admittance model of one sequence network.

    Attributes
    ----------
    sequence:
        Sequence network the model represents. The negative-sequence network
        is represented by the direct-sequence model.
    bus_index:
        Maps bus names to their index `n` in the model.
    matrix:
        Real sparse matrix of size `2N x 2N` (CSC format).
    branch_admittances:
        The complex 2x2 admittance matrix of each branch, as stamped into
        `matrix`, keyed by branch name.
    branches:
        The branches of the model, keyed by name.
    """
    sequence: Sequence
    bus_index: dict[str, int]
    matrix: sp.csc_matrix
    branch_admittances: dict[str, npt.NDArray[np.complex128]] = field(default_factory=dict)
    branches: dict[str, BranchData] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.bus_index)

    def get_branch_currents(
        self,
        branch_name: str,
        dv1: complex,
        dv2: complex
    ) -> tuple[complex, complex]:
        """
        Returns the currents `(di1, di2)` flowing from bus 1 and from bus 2
        into branch `branch_name` when the voltages of its terminal busses
        change by `dv1` and `dv2`.
        """
        y = self.branch_admittances[branch_name]
        di1 = y[0, 0] * dv1 + y[0, 1] * dv2
        di2 = y[1, 0] * dv1 + y[1, 1] * dv2
        return complex(di1), complex(di2)


def get_branch_admittance(branch: BranchData) -> npt.NDArray[np.complex128]:
    """
    Returns the direct-sequence 2x2 admittance matrix of a branch.

    The pi-model with an ideal transformer `k = rho * exp(j*alpha)` on side 1
    gives::

        y11 = (y + y1) * rho^2      y12 = -conj(k) * y
        y21 = -k * y                y22 = y + y2

    with `y = 1 / z`.

    Raises
    ------
    ModelError
        If the series reactance of the branch is (close to) zero.
    """
    if abs(branch.z.imag) < LOW_REACTANCE_THRESHOLD:
        logger.error(f"Branch '{branch.name}' has a zero reactance: z = {branch.z}")
        raise ModelError(
            f"Branch '{branch.name}' has a zero series reactance; its admittance "
            f"would be infinite."
        )
    z = branch.z * branch.k_t if branch.is_transformer else branch.z
    y = 1 / z
    k = branch.rho * np.exp(1j * branch.alpha)
    return np.array([
        [(y + branch.y1) * branch.rho ** 2, -np.conj(k) * y],
        [-k * y, y + branch.y2]
    ], dtype=complex)


class _Stamper:

    def __init__(self, size: int) -> None:
        self.size = size
        self.rows: list[int] = []
        self.cols: list[int] = []
        self.vals: list[float] = []

    def add(self, i: int, j: int, y: complex) -> None:
        if y == 0:
            return
        g, b = y.real, y.imag
        self.rows += [2 * i, 2 * i, 2 * i + 1, 2 * i + 1]
        self.cols += [2 * j, 2 * j + 1, 2 * j, 2 * j + 1]
        self.vals += [g, -b, b, g]

    def to_csc(self) -> sp.csc_matrix:
        # duplicate entries are summed on conversion
        n = 2 * self.size
        coo = sp.coo_matrix((self.vals, (self.rows, self.cols)), shape=(n, n))
        return coo.tocsc()


def build_admittance_model(
    busses: SequenceT[str],
    branches: Iterable[BranchData],
    injections: Iterable[InjectionData],
    sequence: Sequence = Sequence.DIRECT,
    coef_xo_xd: float = DEFAULT_COEF_XO_XD
) -> tuple[AdmittanceMatrix, FeederRegistry]:
    """
    Builds the admittance model of a sequence network.

    Parameters
    ----------
    busses:
        Names of the network busses. Their order sets the bus indices.
    branches:
        Per-unit data of the network branches (direct sequence).
    injections:
        Equivalent admittances of the current sources for `sequence`. Each
        one becomes a feeder of its bus.
    sequence:
        `Sequence.DIRECT` or `Sequence.INVERSE` builds the direct-sequence
        model, `Sequence.ZERO` the zero-sequence model.
    coef_xo_xd:
        Ratio of zero-sequence to direct-sequence series impedance used for
        branches without explicit zero-sequence data.

    Returns
    -------
    admittance_matrix: AdmittanceMatrix
    feeders: FeederRegistry

    Raises
    ------
    ModelError
        If a branch has a zero series reactance, refers to an unknown bus, or
        has a winding connection pair the homopolar model does not support.
    """
    bus_index = {name: n for n, name in enumerate(busses)}
    stamper = _Stamper(len(bus_index))
    branch_admittances: dict[str, npt.NDArray[np.complex128]] = {}
    branch_map: dict[str, BranchData] = {}

    for branch in branches:
        try:
            i, j = bus_index[branch.bus1], bus_index[branch.bus2]
        except KeyError as err:
            raise ModelError(f"Branch '{branch.name}' refers to unknown bus {err}.") from err

        y_dir = get_branch_admittance(branch)
        if sequence == Sequence.ZERO:
            y_br = HomopolarModel.build(branch, coef_xo_xd).get_admittance_matrix()
        else:
            y_br = y_dir

        stamper.add(i, i, y_br[0, 0])
        stamper.add(i, j, y_br[0, 1])
        stamper.add(j, i, y_br[1, 0])
        stamper.add(j, j, y_br[1, 1])
        branch_admittances[branch.name] = y_br
        branch_map[branch.name] = branch
        logger.debug(
            f"Add branch '{branch.name}' ({branch.bus1} -> {branch.bus2}) "
            f"to {sequence.name} model"
        )

    feeders: list[Feeder] = []
    for inj in injections:
        if inj.bus not in bus_index:
            raise ModelError(f"Feeder '{inj.name}' refers to unknown bus '{inj.bus}'.")
        if inj.y == 0:
            continue
        n = bus_index[inj.bus]
        stamper.add(n, n, inj.y)
        feeders.append(Feeder(inj.name, inj.bus, inj.feeder_type, inj.y))
        logger.debug(f"Add feeder '{inj.name}' ({inj.feeder_type}) at bus '{inj.bus}': y = {inj.y}")

    if sequence == Sequence.ZERO:
        for n in bus_index.values():
            stamper.add(n, n, complex(ZERO_SEQUENCE_GROUND_LEAK))

    matrix = AdmittanceMatrix(
        sequence=Sequence.ZERO if sequence == Sequence.ZERO else Sequence.DIRECT,
        bus_index=bus_index,
        matrix=stamper.to_csc(),
        branch_admittances=branch_admittances,
        branches=branch_map
    )
    return matrix, FeederRegistry(feeders)
