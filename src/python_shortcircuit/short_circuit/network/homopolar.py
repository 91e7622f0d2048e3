"""
Zero-sequence (homopolar) model of lines and two-winding transformers.

Transformer model (all values per-unit, referred to side 2)::

     I1       YN   A'  k               B'   YN       I2
    1-->-3*Zga--+   +--()--+--Zoa--+--Zob--+   +--3*Zgb--<--2
                Y +        |       |       | + Y
                  + D      |      Zm       | + D
                  |        |       |       |
                 ///            free flux ///

Depending on the winding connection on each side, point A' (B') is grounded
(YN), floating (Y) or closed on itself through a delta winding (D).
"""
from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy as np
import numpy.typing as npt

from ..exceptions import ModelError
from .branch import BranchData, WindingConn

__all__ = [
    "HomopolarModel",
    "DEFAULT_COEF_XO_XD"
]


logger = logging.getLogger(__name__)


DEFAULT_COEF_XO_XD = 3.0

EPSILON = 1e-6

# admittance used in place of an infinite impedance
INFINITE_IMPEDANCE_ADMITTANCE = 0.0


def _scale_shunt(y: complex, z: complex, zo: complex) -> complex:
    # g and b follow r / ro and x / xo
    g_coeff = z.real / zo.real if abs(zo.real) > EPSILON else 1.0
    b_coeff = z.imag / zo.imag if abs(zo.imag) > EPSILON else 1.0
    return complex(y.real * g_coeff, y.imag * b_coeff)


@dataclass(frozen=True)
class HomopolarModel:
    """
    Zero-sequence parameters of a branch.

    Attributes
    ----------
    branch:
        The direct-sequence branch data the model is derived from.
    zo:
        Zero-sequence series impedance (leakage impedance of a transformer,
        already multiplied by the norm correction factor).
    yom:
        Shunt admittance. For a line it is the side 1 shunt of the pi-model;
        for a transformer it is the magnetizing admittance.
    yo2:
        Side 2 shunt admittance of a line.
    """
    branch: BranchData
    zo: complex
    yom: complex
    yo2: complex = 0j

    @classmethod
    def build(cls, branch: BranchData, coef_xo_xd: float = DEFAULT_COEF_XO_XD) -> HomopolarModel:
        """
        Derive the zero-sequence parameters of `branch`. When the branch has
        no explicit zero-sequence impedance, the series impedance is taken
        `coef_xo_xd` times the direct one and the shunt admittances are
        divided by the same factor.
        """
        if branch.z0 is None:
            zo = branch.z * coef_xo_xd
            yom = branch.y1 / coef_xo_xd
            yo2 = branch.y2 / coef_xo_xd
        else:
            zo = branch.z0
            yom = _scale_shunt(branch.y1, branch.z, branch.z0)
            yo2 = _scale_shunt(branch.y2, branch.z, branch.z0)
        if branch.is_transformer:
            zo *= branch.k_t
            yom /= branch.k_t
        return cls(branch, zo, yom, yo2)

    def get_admittance_matrix(self) -> npt.NDArray[np.complex128]:
        """
        Returns the 2x2 complex admittance matrix that relates the
        zero-sequence currents injected into the branch at side 1 and side 2 to
        the zero-sequence voltages of its terminal busses.

        Raises
        ------
        ModelError
            If the series impedance is zero or the winding connection pair is
            not supported.
        """
        if self.branch.is_transformer:
            return self._transformer_matrix()
        return self._line_matrix()

    def _line_matrix(self) -> npt.NDArray[np.complex128]:
        if self.zo == 0:
            raise ModelError(f"Branch '{self.branch.name}' has a zero homopolar impedance.")
        y = 1 / self.zo
        rho = self.branch.rho
        return np.array([
            [(self.yom + y) * rho ** 2, -rho * y],
            [-rho * y, self.yo2 + y]
        ], dtype=complex)

    def _transformer_matrix(self) -> npt.NDArray[np.complex128]:
        br = self.branch
        conn1, conn2 = br.conn1, br.conn2
        Y, YN, D = WindingConn.Y, WindingConn.YN, WindingConn.D

        mY = np.zeros((2, 2), dtype=complex)
        mY[0, 0] = mY[1, 1] = INFINITE_IMPEDANCE_ADMITTANCE

        # zero-sequence transfer is on the real ratio
        k = br.rho
        k2 = k * k
        # yom == 0 means a magnetizing branch shorted to ground, unless the
        # fluxes are free, in which case zm is infinite and never used
        zm = 1 / self.yom if self.yom != 0 else 0j
        zoa = self.zo / 2
        zob = self.zo / 2
        zga, zgb = br.zg1, br.zg2

        try:
            if (
                (conn1 in (Y, D) and conn2 in (Y, D))
                or (conn1 == YN and conn2 == Y and br.free_fluxes)
                or (conn1 == Y and conn2 == YN and br.free_fluxes)
            ):
                pass
            elif conn1 == YN and conn2 == Y:
                mY[0, 0] = 1 / (3 * zga + (self.zo + zm) / k2)
            elif conn1 == Y and conn2 == YN:
                mY[1, 1] = 1 / (3 * zgb + self.zo + zm)
            elif conn1 == YN and conn2 == D:
                if br.free_fluxes:
                    ztmp = zoa + zob
                else:
                    ztmp = zoa + 1 / (self.yom + 1 / zob)
                mY[0, 0] = 1 / (ztmp / k2 + 3 * zga)
            elif conn1 == D and conn2 == YN:
                if br.free_fluxes:
                    mY[1, 1] = 1 / (3 * zgb + zob + zoa)
                else:
                    mY[1, 1] = 1 / (3 * zgb + zob + 1 / (1 / zoa + self.yom))
            elif conn1 == YN and conn2 == YN:
                if br.free_fluxes:
                    yc = 1 / (3 * zga + (zoa + zob + 3 * zgb) / k2)
                    y11, y12, y22 = yc, -yc / k, yc / k2
                else:
                    zc = 3 * zga + (zm + zoa) / k2
                    zd = zm + zob + 3 * zgb
                    ze = zm / k
                    ycde = 1 / (zc * zd - ze * ze)
                    y11, y12, y22 = ycde * zd, -ycde * ze, ycde * zc
                mY[0, 0] = y11
                mY[0, 1] = mY[1, 0] = y12
                mY[1, 1] = y22
            else:
                raise ModelError(
                    f"Branch '{br.name}': winding connection {conn1}-{conn2} "
                    f"is not supported by the homopolar model."
                )
        except ZeroDivisionError as err:
            raise ModelError(
                f"Branch '{br.name}': degenerate homopolar impedances for "
                f"connection {conn1}-{conn2}."
            ) from err

        logger.debug(f"Homopolar matrix of '{br.name}' ({conn1}-{conn2}): {mY.tolist()}")
        return mY
