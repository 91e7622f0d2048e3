"""
Short-circuit norms: the voltage factor `c` and the impedance correction
factors of transformers and generators.
"""
from __future__ import annotations

from ..pint_setup import Quantity, Q_

__all__ = [
    "ShortCircuitNorm",
    "ShortCircuitNormIec"
]


class ShortCircuitNorm:
    """
    No norm: the voltage factor and all correction factors are 1.
    """
    name = "NONE"

    def get_cmax(self, U_n: Quantity) -> float:
        return 1.0

    def get_cmin(self, U_n: Quantity) -> float:
        return 1.0

    def get_c(self, U_n: Quantity, sc_case: str = "MAX") -> float:
        """
        Returns the voltage factor of the short-circuit case `sc_case` ("MAX"
        or "MIN") at nominal voltage `U_n`.
        """
        case = sc_case.upper().strip()
        if case == "MAX":
            return self.get_cmax(U_n)
        if case == "MIN":
            return self.get_cmin(U_n)
        raise ValueError(f"sc_case must be 'MAX' or 'MIN', got {sc_case!r}")

    def get_kt(self, x_T: float, U_n: Quantity | None = None) -> float:
        return 1.0

    def get_kg(
        self,
        U_n: Quantity,
        U_rG: Quantity,
        x_d_sub: float,
        sin_phi: float
    ) -> float:
        return 1.0

    def __str__(self) -> str:
        return f"ShortCircuitNorm<{self.name}>"


class ShortCircuitNormIec(ShortCircuitNorm):
    """
    IEC 60909 correction factors.

    Low-voltage networks (`U_n <= 1 kV`) have `c_max = 1.05` and
    `c_min = 0.95`; above, `c_max = 1.10` and `c_min = 1.00`.
    """
    name = "IEC"

    U_lv_limit: Quantity = Q_(1.0, 'kV')

    def _is_low_voltage(self, U_n: Quantity) -> bool:
        return U_n.to('kV').m <= self.U_lv_limit.to('kV').m

    def get_cmax(self, U_n: Quantity) -> float:
        return 1.05 if self._is_low_voltage(U_n) else 1.10

    def get_cmin(self, U_n: Quantity) -> float:
        return 0.95 if self._is_low_voltage(U_n) else 1.00

    def get_kt(self, x_T: float, U_n: Quantity | None = None) -> float:
        """
        Returns the transformer correction factor::

            K_T = 0.95 * c_max / (1 + 0.6 * x_T)

        Parameters
        ----------
        x_T:
            Relative reactance of the transformer (per-unit on its rating).
        U_n:
            Nominal voltage of the network on the low-voltage side. If None,
            the high-voltage factor `c_max = 1.10` is used.
        """
        c_max = self.get_cmax(U_n) if U_n is not None else 1.10
        return 0.95 * c_max / (1.0 + 0.6 * x_T)

    def get_kg(
        self,
        U_n: Quantity,
        U_rG: Quantity,
        x_d_sub: float,
        sin_phi: float
    ) -> float:
        """
        Returns the generator correction factor::

            K_G = (U_n / U_rG) * c_max / (1 + x''d * sin(phi_rG))

        Parameters
        ----------
        U_n:
            Nominal voltage of the network at the generator bus.
        U_rG:
            Rated voltage of the generator.
        x_d_sub:
            Relative sub-transient reactance of the generator (per-unit on
            its rating).
        sin_phi:
            Sine of the rated power factor angle of the generator.
        """
        u_ratio = (U_n / U_rG).to('V / V').m
        return u_ratio * self.get_cmax(U_n) / (1.0 + x_d_sub * sin_phi)
