from typing import Union
import math
import numpy.typing as npt

from ...pint_setup import Quantity

__all__ = ["PerUnitSystem"]


class PerUnitSystem:

    def __init__(self, S_base: Quantity, U_base: Quantity):
        """
        Creates a `PerUnitSystem` object.

        Parameters
        ----------
        S_base:
            Base power of the per-unit system (three-phase).
        U_base:
            Base voltage of the per-unit system (line-to-line voltage). In
            the short-circuit model this is the nominal voltage of the bus
            the quantity is referred to.
        """
        self.S_base = S_base
        self.U_base = U_base
        self.I_base: Quantity = S_base / (math.sqrt(3) * U_base)
        self.Z_base: Quantity = U_base ** 2 / S_base
        self.Y_base: Quantity = 1 / self.Z_base

    def get_per_unit_impedance(self, Z_act: Quantity) -> Union[float, complex]:
        """Returns the per-unit value of the actual impedance `Z_act`."""
        Z_pu: Quantity = Z_act / self.Z_base
        return Z_pu.to('ohm / ohm').magnitude

    def get_per_unit_admittance(self, Y_act: Quantity) -> Union[float, complex]:
        """Returns the per-unit value of the actual admittance `Y_act`."""
        Y_pu: Quantity = Y_act / self.Y_base
        return Y_pu.to('S / S').magnitude

    # noinspection PyTypeHints
    def get_actual_current(self, I_pu: complex | npt.ArrayLike) -> Quantity:
        I_act = I_pu * self.I_base
        return I_act.to('kA')
