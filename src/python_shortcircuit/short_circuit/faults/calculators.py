"""
Sequence currents and voltages at the fault point, one pure function per
fault topology.

Every calculator follows the same pipeline::

    (Thevenin parameters, fault impedance) -> sequence currents -> sequence voltages

Currents are the currents drawn from the network at the fault point. With
the Thevenin impedances `Zo`, `Zd` and `Zi` of the zero, direct and inverse
sequence networks and the pre-fault voltage `V`, the sequence voltages at
the fault point are::

    Vo = -Zo * Io        Vd = V - Zd * Id        Vi = -Zi * Ii

The inverse-sequence network is taken equal to the direct-sequence network
(`Zi = Zd`) unless given explicitly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
import math

import numpy as np

from ...calc.fortescue import A, A2, FortescueValue
from ..exceptions import RequestError
from .fault import FaultType, BiphasedType, FaultImpedance

__all__ = [
    "TheveninParams",
    "CommonSupportParams",
    "SequenceResult",
    "three_phase",
    "single_phase",
    "biphased",
    "biphased_ground",
    "biphased_ground_simplified",
    "biphased_common_support",
    "fault_voltages",
    "calculate"
]


SQRT3 = math.sqrt(3.0)


@dataclass(frozen=True)
class TheveninParams:
    """
    Thevenin equivalent at the faulted bus in the three sequence networks.
    """
    v: complex
    zd: complex
    zo: complex = 0j
    zi: complex | None = None

    @property
    def z_inverse(self) -> complex:
        return self.zd if self.zi is None else self.zi


@dataclass(frozen=True)
class CommonSupportParams:
    """
    Thevenin equivalent of two busses, including their mutual impedances.

    `zd12` is the direct-sequence voltage change at bus 1 per unit of current
    drawn at bus 2, etc. The inverse-sequence network equals the direct one.
    """
    v1: complex
    v2: complex
    zd11: complex
    zd12: complex
    zd21: complex
    zd22: complex
    zo11: complex
    zo12: complex
    zo21: complex
    zo22: complex


@dataclass(frozen=True)
class SequenceResult:
    """
    Sequence currents and voltages at the fault point. For a common-support
    fault `current2` and `voltage2` hold the values at the second bus.
    """
    current: FortescueValue
    voltage: FortescueValue
    current2: FortescueValue | None = None
    voltage2: FortescueValue | None = None


def fault_voltages(p: TheveninParams, current: FortescueValue) -> FortescueValue:
    """Returns the sequence voltages at the fault point for the given currents."""
    return FortescueValue(
        zero=-p.zo * current.zero,
        direct=p.v - p.zd * current.direct,
        inverse=-p.z_inverse * current.inverse
    )


def _result(p: TheveninParams, io: complex, id_: complex, ii: complex) -> SequenceResult:
    current = FortescueValue(complex(io), complex(id_), complex(ii))
    return SequenceResult(current, fault_voltages(p, current))


def three_phase(p: TheveninParams, zf: FaultImpedance) -> SequenceResult:
    """
    Balanced fault: only the direct sequence carries current.

        Id = V / (Zd + Zg)
    """
    id_ = p.v / (p.zd + zf.Z_g)
    return _result(p, 0j, id_, 0j)


def single_phase(p: TheveninParams, zf: FaultImpedance) -> SequenceResult:
    """
    Phase c to ground through `Z_g`::

        Ia = Ib = 0, Vc = Z_g * Ic

        Ic = a * V / Zt,  Zt = Z_g + (Zo + Zd + Zi) / 3
        Io = Ic / 3,  Id = a² * Io,  Ii = a * Io
    """
    zt = (p.zo + p.zd + p.z_inverse) / 3 + zf.Z_g
    ic = A * p.v / zt
    io = ic / 3
    return _result(p, io, A2 * io, A * io)


def biphased(p: TheveninParams, zf: FaultImpedance) -> SequenceResult:
    """
    Phase b to phase c through `Z_b`, no ground::

        Ia = 0, Ib = -Ic, Vb - Vc = Z_b * Ib

        Ib = -j * sqrt(3) * V / (Zd + Zi + Z_b)
        Io = 0,  Id = Ib * (a - a²) / 3,  Ii = -Id
    """
    zt = p.zd + p.z_inverse + zf.Z_b
    ib = -1j * SQRT3 * p.v / zt
    id_ = ib / 3 * (A - A2)
    return _result(p, 0j, id_, -id_)


def biphased_ground_simplified(p: TheveninParams, zf: FaultImpedance) -> SequenceResult:
    """
    Phases b and c solidly connected to ground (the fault impedances are
    ignored)::

        Ia = 0, Vb = Vc = 0  =>  Vo = Vd = Vi, Io + Id + Ii = 0

        Io = -V / (Zd + 2 Zo)
        Id = V (Zd + Zo) / (Zd (Zd + 2 Zo))
        Ii = -V Zo / (Zd (Zd + 2 Zo))
    """
    d = p.zd + 2 * p.zo
    io = -p.v / d
    id_ = p.v * (p.zo + p.zd) / (p.zd * d)
    ii = -p.v * p.zo / (p.zd * d)
    return _result(p, io, id_, ii)


def biphased_ground(p: TheveninParams, zf: FaultImpedance) -> SequenceResult:
    """
    Phases b and c connected to a common point through `Z_b` and `Z_c`,
    the common point connected to ground through `Z_g`.

    The fault is described by 13 linear equations in the unknowns
    `Io, Id, Ii, Vo, Vd, Vi, Vg, Ig, Va, Vb, Vc, Ib, Ic`::

        Io + Id + Ii = 0                     (Ia = 0)
        Vg - Z_g Ig = 0
        Vb - Vg - Z_b Ib = 0
        Vc - Vg - Z_c Ic = 0
        Ib + Ic - Ig = 0
        Vo + Vd + Vi - Va = 0
        Vo + a² Vd + a Vi - Vb = 0
        Vo + a Vd + a² Vi - Vc = 0
        (Ib + Ic) / 3 - Io = 0
        (a Ib + a² Ic) / 3 - Id = 0
        Vo + Zo Io = 0
        Vd + Zd Id = V
        Vi + Zi Ii = 0

    which are solved at once. With zero fault impedances the result equals
    the one of `biphased_ground_simplified`.
    """
    zi = p.z_inverse
    M = np.zeros((13, 13), dtype=complex)
    M[0, [0, 1, 2]] = 1.0
    M[1, 6], M[1, 7] = 1.0, -zf.Z_g
    M[2, 6], M[2, 9], M[2, 11] = -1.0, 1.0, -zf.Z_b
    M[3, 6], M[3, 10], M[3, 12] = -1.0, 1.0, -zf.Z_c
    M[4, 7], M[4, 11], M[4, 12] = -1.0, 1.0, 1.0
    M[5, [3, 4, 5, 8]] = [1.0, 1.0, 1.0, -1.0]
    M[6, [3, 4, 5, 9]] = [1.0, A2, A, -1.0]
    M[7, [3, 4, 5, 10]] = [1.0, A, A2, -1.0]
    M[8, [0, 11, 12]] = [-1.0, 1 / 3, 1 / 3]
    M[9, [1, 11, 12]] = [-1.0, A / 3, A2 / 3]
    M[10, 0], M[10, 3] = p.zo, 1.0
    M[11, 1], M[11, 4] = p.zd, 1.0
    M[12, 2], M[12, 5] = zi, 1.0

    rhs = np.zeros(13, dtype=complex)
    rhs[11] = p.v

    x = np.linalg.solve(M, rhs)
    return _result(p, x[0], x[1], x[2])


def biphased_common_support(
    p: CommonSupportParams,
    zf: FaultImpedance,
    biphased_type: BiphasedType
) -> SequenceResult:
    """
    Phase c of bus 1 connected to one phase of bus 2 through `Z_g`.

    With `Ic` the current flowing from bus 1 to bus 2 and `Io = Ic / 3`, the
    sequence currents at bus 1 are `(Io, a² Io, a Io)` and those at bus 2 are

    * C1_A2: `(-Io, -Io, -Io)`,
      `Ic = (a V1 - V2) / Zt`
    * C1_B2: `(-Io, -a Io, -a² Io)`,
      `Ic = (a V1 - a² V2) / Zt`
    * C1_C2: `(-Io, -a² Io, -a Io)`,
      `Ic = a (V1 - V2) / Zt`

    where `Zt` is `Z_g` plus a third of the self and mutual sequence
    impedances of both busses, weighted by the rotation operator of the
    faulted phases.
    """
    zd11, zd12, zd21, zd22 = p.zd11, p.zd12, p.zd21, p.zd22
    zo11, zo12, zo21, zo22 = p.zo11, p.zo12, p.zo21, p.zo22
    # inverse sequence equals direct sequence
    zi11, zi12, zi21, zi22 = zd11, zd12, zd21, zd22
    zo_sum = zo11 - zo21 + zo22 - zo12

    if biphased_type == BiphasedType.C1_A2:
        num = A * p.v1 - p.v2
        ztmp = (
            zd11 - A * zd12 + zd22 - A2 * zd21 + zo_sum
            + zi22 - A2 * zi12 + zi11 - A * zi21
        )
        r2 = (1.0, 1.0, 1.0)
    elif biphased_type == BiphasedType.C1_B2:
        num = A * p.v1 - A2 * p.v2
        ztmp = (
            zd11 - A2 * zd12 + zd22 - A * zd21 + zo_sum
            + zi22 - A * zi12 + zi11 - A2 * zi21
        )
        r2 = (1.0, A, A2)
    elif biphased_type == BiphasedType.C1_C2:
        num = A * (p.v1 - p.v2)
        ztmp = (
            zd11 - zd12 + zd22 - zd21 + zo_sum
            + zi22 - zi12 + zi11 - zi21
        )
        r2 = (1.0, A2, A)
    else:
        raise RequestError(f"Unknown common-support fault type: {biphased_type!r}.")

    zt = zf.Z_g + ztmp / 3
    ic = num / zt
    io = ic / 3
    i1 = FortescueValue(complex(io), complex(A2 * io), complex(A * io))
    i2 = FortescueValue(*(complex(-r * io) for r in r2))

    v1 = FortescueValue(
        zero=-(zo11 * i1.zero + zo12 * i2.zero),
        direct=p.v1 - (zd11 * i1.direct + zd12 * i2.direct),
        inverse=-(zi11 * i1.inverse + zi12 * i2.inverse)
    )
    v2 = FortescueValue(
        zero=-(zo21 * i1.zero + zo22 * i2.zero),
        direct=p.v2 - (zd21 * i1.direct + zd22 * i2.direct),
        inverse=-(zi21 * i1.inverse + zi22 * i2.inverse)
    )
    return SequenceResult(i1, v1, i2, v2)


_CALCULATORS: dict[FaultType, Callable[[TheveninParams, FaultImpedance], SequenceResult]] = {
    FaultType.THREE_PHASE: three_phase,
    FaultType.SINGLE_PHASE: single_phase,
    FaultType.BIPHASED: biphased,
    FaultType.BIPHASED_GROUND: biphased_ground
}


def calculate(
    fault_type: FaultType,
    params: TheveninParams | CommonSupportParams,
    impedance: FaultImpedance,
    *,
    biphased_type: BiphasedType | None = None,
    general_form: bool = True
) -> SequenceResult:
    """
    Selects the calculator of `fault_type` and returns its result.

    Parameters
    ----------
    fault_type:
        Fault topology.
    params:
        `CommonSupportParams` for a common-support fault, `TheveninParams`
        otherwise.
    impedance:
        Fault impedances.
    biphased_type:
        Faulted phase pair of a common-support fault.
    general_form:
        If False, a phase-to-phase-to-ground fault is computed with the
        simplified closed form instead of the 13-equation system.

    Raises
    ------
    RequestError
        If the fault type or the common-support phase pair is unknown.
    """
    if fault_type == FaultType.BIPHASED_COMMON_SUPPORT:
        if not isinstance(params, CommonSupportParams):
            raise TypeError("A common-support fault needs CommonSupportParams.")
        return biphased_common_support(params, impedance, biphased_type)
    if fault_type == FaultType.BIPHASED_GROUND and not general_form:
        return biphased_ground_simplified(params, impedance)
    try:
        calculator = _CALCULATORS[fault_type]
    except KeyError:
        raise RequestError(f"Unknown fault type: {fault_type!r}.") from None
    return calculator(params, impedance)
