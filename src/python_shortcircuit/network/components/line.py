from dataclasses import dataclass, field

from ...pint_setup import Quantity, Q_
from ..graph import Component

__all__ = ["Line"]


@dataclass
class Line(Component):
    """
    Represents an overhead line or cable between two busses with the same
    nominal voltage (pi-model).

    Parameters
    ----------
    name: str
        Uniquely identifies the line in the network.
    Z: Quantity
        Series impedance of the line.
    Y: Quantity, optional
        Total shunt admittance of the line. Half of it is placed at each end.
    Z0: Quantity, optional
        Zero-sequence series impedance. If None, it is derived from `Z` with
        the zero-to-direct ratio of the calculation configuration.

    Attributes
    ----------
    Z_dict: dict[int, Quantity]
        Zero-sequence (key: 0), positive sequence (key: 1), and negative
        sequence (key: 2) series impedances of the line.
    """
    name: str
    Z: Quantity
    Y: Quantity = Q_(0.0, 'S')
    Z0: Quantity | None = None

    Z_dict: dict[int, Quantity | None] = field(init=False, default_factory=dict)

    def __post_init__(self):
        super().__init__(self.name)
        self.Z_dict = self.get_impedance()

    def get_impedance(self) -> dict[int, Quantity | None]:
        Z = self.Z.to('ohm')
        Z0 = self.Z0.to('ohm') if self.Z0 is not None else None
        return {1: Z, 2: Z, 0: Z0}

    @property
    def Y_half(self) -> Quantity:
        return (self.Y / 2).to('S')
