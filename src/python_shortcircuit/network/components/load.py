from __future__ import annotations
from dataclasses import dataclass

from ...pint_setup import Quantity, Q_
from ..graph import Component

__all__ = ["Load", "Shunt"]


@dataclass
class Load(Component):
    """
    Represents a load. In the sequence networks it becomes a constant
    admittance drawing its power at the pre-fault voltage of its bus.

    Parameters
    ----------
    name: str
        Uniquely identifies the load in the network.
    P: Quantity
        Active power.
    Q: Quantity, optional
        Reactive power.
    """
    name: str
    P: Quantity
    Q: Quantity = Q_(0.0, 'var')

    def __post_init__(self):
        super().__init__(self.name)

    @property
    def S(self) -> complex:
        """Complex power in VA."""
        return complex(self.P.to('W').m, self.Q.to('var').m)

    def get_impedance(self, U_n: Quantity, v: float = 1.0) -> dict[int, Quantity | None]:
        """
        Returns the equivalent impedance of the load at voltage `v * U_n`::

            Z = |U|² / conj(S)

        Loads are absent from the zero-sequence network. A load without
        power is absent from all sequence networks.
        """
        if self.S == 0:
            return {1: None, 2: None, 0: None}
        U = v * U_n.to('V').m
        Z = Q_(U ** 2 / self.S.conjugate(), 'ohm')
        return {1: Z, 2: Z, 0: None}


@dataclass
class Shunt(Component):
    """
    Represents a capacitor bank or reactor connected to a bus.

    Parameters
    ----------
    name: str
        Uniquely identifies the shunt in the network.
    B: Quantity
        Susceptance (positive for a capacitor bank).
    controlled: bool, default False
        True if the shunt is switched by a voltage controller.
    """
    name: str
    B: Quantity
    controlled: bool = False

    def __post_init__(self):
        super().__init__(self.name)

    def get_impedance(self) -> dict[int, Quantity | None]:
        """
        Returns the impedance `1 / (jB)` of the shunt. Shunts are absent from
        the zero-sequence network.
        """
        B = self.B.to('S').m
        if B == 0:
            return {1: None, 2: None, 0: None}
        Z = Q_(1 / complex(0.0, B), 'ohm')
        return {1: Z, 2: Z, 0: None}
