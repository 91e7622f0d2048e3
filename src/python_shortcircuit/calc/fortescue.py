"""
Symmetrical components (Fortescue transform).

Sequence triplets are ordered (zero, positive, negative), which is also the
order of the `Sequence` enum. Phase triplets are ordered (a, b, c).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
import math

import numpy as np
import numpy.typing as npt

from .phasor import polar

__all__ = [
    "A",
    "A2",
    "Sequence",
    "FortescueValue",
    "to_sequence",
    "to_phase"
]


# rotation operator a = e^(j*2*pi/3)
A = complex(-0.5, math.sqrt(3.0) / 2.0)
A2 = A * A


class Sequence(IntEnum):
    ZERO = 0
    DIRECT = 1
    INVERSE = 2


_T = np.array([
    [1.0, 1.0, 1.0],
    [1.0, A2, A],
    [1.0, A, A2]
], dtype=complex)

_T_inv = np.array([
    [1.0, 1.0, 1.0],
    [1.0, A, A2],
    [1.0, A2, A]
], dtype=complex) / 3.0


def to_sequence(abc: npt.ArrayLike) -> npt.NDArray[np.complex128]:
    """Return the (zero, positive, negative) components of phasors (a, b, c)."""
    return _T_inv @ np.asarray(abc, dtype=complex)


def to_phase(seq: npt.ArrayLike) -> npt.NDArray[np.complex128]:
    """Return the phasors (a, b, c) of sequence components (zero, positive, negative)."""
    return _T @ np.asarray(seq, dtype=complex)


@dataclass(frozen=True)
class FortescueValue:
    """
    Triplet of sequence quantities at one location.
    """
    zero: complex = 0j
    direct: complex = 0j
    inverse: complex = 0j

    def __getitem__(self, seq: Sequence) -> complex:
        return (self.zero, self.direct, self.inverse)[seq]

    def to_phase(self) -> tuple[complex, complex, complex]:
        a, b, c = to_phase([self.zero, self.direct, self.inverse])
        return complex(a), complex(b), complex(c)

    def polar(self) -> dict[Sequence, tuple[float, float]]:
        """Return magnitude and angle (degrees) of each sequence component."""
        return {seq: polar(self[seq]) for seq in Sequence}
