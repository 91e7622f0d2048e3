import math
from dataclasses import dataclass, field

from ...pint_setup import Quantity, Q_
from ...short_circuit.network.branch import WindingConn
from ..graph import Component

__all__ = ["Transformer"]


@dataclass
class Transformer(Component):
    """
    Represents a two-winding three-phase transformer.

    Side 1 is the side of the bus the transformer connection starts from,
    side 2 the side of the bus it ends at.

    Parameters
    ----------
    name: str
        Uniquely identifies the transformer in the network.
    S_n: Quantity
        Rated apparent power of the transformer.
    U_r1: Quantity
        Rated line-to-line voltage of side 1.
    U_r2: Quantity
        Rated line-to-line voltage of side 2.
    u_cc: Quantity
        Relative short-circuit voltage of the transformer.
    P_Cu: Quantity, optional
        Rated copper loss of the transformer.
    Y_m: Quantity, optional
        Magnetizing admittance, referred to side 2.
    phase_shift: Quantity, optional
        Phase shift of side 1 with respect to side 2.
    conn1: WindingConn, default YN
        Winding connection of side 1. See enum WindingConn.
    conn2: WindingConn, default YN
        Winding connection of side 2.
    free_fluxes: bool, default False
        If True, the zero-sequence magnetizing impedance is infinite (e.g.
        shell-type core).
    Zn_1: Quantity, optional
        Neutral-to-earth impedance of the side 1 windings.
    Zn_2: Quantity, optional
        Neutral-to-earth impedance of the side 2 windings.
    Z0: Quantity, optional
        Zero-sequence leakage impedance, referred to side 2. If None, it is
        derived from the positive-sequence impedance with the
        zero-to-direct ratio of the calculation configuration.

    Attributes
    ----------
    I_r1: Quantity
        Rated current of side 1.
    I_r2: Quantity
        Rated current of side 2.
    x_T: float
        Relative reactance of the transformer.
    Z_dict: dict[int, Quantity]
        Zero-sequence (key: 0), positive sequence (key: 1), and negative
        sequence (key: 2) impedances of the transformer referred to side 2.

    Methods
    -------
    get_impedance:
        Returns the impedance of the transformer referred to side 2.
    """
    name: str
    S_n: Quantity
    U_r1: Quantity
    U_r2: Quantity
    u_cc: Quantity
    P_Cu: Quantity = Q_(0.0, 'W')
    Y_m: Quantity = Q_(0.0, 'S')
    phase_shift: Quantity = Q_(0.0, 'deg')

    conn1: WindingConn = WindingConn.YN
    conn2: WindingConn = WindingConn.YN
    free_fluxes: bool = False
    Zn_1: Quantity = Q_(0, 'ohm')
    Zn_2: Quantity = Q_(0, 'ohm')
    Z0: Quantity | None = None

    I_r1: Quantity = field(init=False)
    I_r2: Quantity = field(init=False)
    x_T: float = field(init=False)

    Z_dict: dict[int, Quantity | None] = field(init=False, default_factory=dict)

    def __post_init__(self):
        super().__init__(self.name)
        self.I_r1 = self._get_rated_current(self.U_r1)
        self.I_r2 = self._get_rated_current(self.U_r2)
        self.Z_dict = self.get_impedance()
        Z_nom = (self.U_r2 ** 2 / self.S_n).to('ohm').m
        self.x_T = self.Z_dict[1].m.imag / Z_nom

    def _get_rated_current(self, U_r: Quantity) -> Quantity:
        I_r = self.S_n / (math.sqrt(3) * U_r)
        return I_r.to('A')

    def get_impedance(self) -> dict[int, Quantity | None]:
        """
        Returns the positive, negative, and zero-sequence impedance of the
        transformer referred to side 2. The correction factor of the
        short-circuit norm is not included.

        Returns
        -------
        dict[int, Quantity]
            A dictionary of which the keys 1, 2, 0 map to the positive,
            negative, and zero-sequence impedance respectively. The
            zero-sequence impedance is None if it wasn't specified.
        """
        U_r = self.U_r2.to('V').m
        S_n = self.S_n.to('VA').m
        u_cc = self.u_cc.to('frac').m
        P_Cu = self.P_Cu.to('W').m
        R = P_Cu * (U_r / S_n) ** 2
        Z_mag = u_cc * U_r ** 2 / S_n
        if R > Z_mag:
            raise ValueError(
                f"Transformer '{self.name}': copper loss is inconsistent "
                f"with the short-circuit voltage."
            )
        X = math.sqrt(Z_mag ** 2 - R ** 2)
        Z1 = Q_(complex(R, X), 'ohm')
        Z0 = self.Z0.to('ohm') if self.Z0 is not None else None
        return {1: Z1, 2: Z1, 0: Z0}

    def get_ratio(self, U_n1: Quantity, U_n2: Quantity) -> float:
        """
        Returns the per-unit turns ratio of the transformer between busses
        with nominal voltages `U_n1` and `U_n2`.
        """
        ratio = (self.U_r2 / self.U_r1) * (U_n1 / U_n2)
        return ratio.to('V / V').m
