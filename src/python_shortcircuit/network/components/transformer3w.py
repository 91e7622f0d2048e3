import math
from dataclasses import dataclass, field

from ...pint_setup import Quantity, Q_
from ...short_circuit.network.branch import WindingConn
from ..graph import Component

__all__ = ["Transformer3W", "Transformer3WLeg"]


# winding pairs in the order of the short-circuit voltages
PAIRS = ((1, 2), (1, 3), (2, 3))


@dataclass
class Transformer3W(Component):
    """
    Represents a three-winding three-phase transformer.

    The transformer is modeled as three legs meeting at an internal star
    bus (see `NetworkGraph.add_transformer_3w`). The star bus is rated at
    the voltage of winding 1; all leg impedances are referred to it.

    Parameters
    ----------
    name: str
        Uniquely identifies the transformer in the network.
    S_n: Quantity
        Reference power of the short-circuit voltages and copper losses.
    U_r1, U_r2, U_r3: Quantity
        Rated line-to-line voltages of the windings.
    u_cc12, u_cc13, u_cc23: Quantity
        Relative short-circuit voltages between two windings, the third one
        being open.
    P_Cu12, P_Cu13, P_Cu23: Quantity, optional
        Copper losses of the short-circuit tests.
    Y_m: Quantity, optional
        Magnetizing admittance, referred to the star bus.
    conn1, conn2, conn3: WindingConn, default YN
        Winding connections.
    free_fluxes: tuple[bool, bool, bool], default all True
        Per leg; if True, the zero-sequence magnetizing impedance of the leg
        is infinite.
    Zn_1, Zn_2, Zn_3: Quantity, optional
        Neutral-to-earth impedances of the windings.
    Z0_1, Z0_2, Z0_3: Quantity, optional
        Zero-sequence leg impedances, referred to the star bus. If None,
        derived from the positive-sequence leg impedance with the
        zero-to-direct ratio of the calculation configuration.

    Attributes
    ----------
    legs: tuple[Transformer3WLeg, ...]
        The components placed on the three leg connections.
    """
    name: str
    S_n: Quantity
    U_r1: Quantity
    U_r2: Quantity
    U_r3: Quantity
    u_cc12: Quantity
    u_cc13: Quantity
    u_cc23: Quantity
    P_Cu12: Quantity = Q_(0.0, 'W')
    P_Cu13: Quantity = Q_(0.0, 'W')
    P_Cu23: Quantity = Q_(0.0, 'W')
    Y_m: Quantity = Q_(0.0, 'S')

    conn1: WindingConn = WindingConn.YN
    conn2: WindingConn = WindingConn.YN
    conn3: WindingConn = WindingConn.YN
    free_fluxes: tuple[bool, bool, bool] = (True, True, True)
    Zn_1: Quantity = Q_(0, 'ohm')
    Zn_2: Quantity = Q_(0, 'ohm')
    Zn_3: Quantity = Q_(0, 'ohm')
    Z0_1: Quantity | None = None
    Z0_2: Quantity | None = None
    Z0_3: Quantity | None = None

    legs: tuple = field(init=False)

    def __post_init__(self):
        super().__init__(self.name)
        self.legs = tuple(Transformer3WLeg(self, k) for k in (1, 2, 3))

    def get_rated_voltage(self, winding: int) -> Quantity:
        return (self.U_r1, self.U_r2, self.U_r3)[winding - 1]

    def get_connection_type(self, winding: int) -> WindingConn:
        return (self.conn1, self.conn2, self.conn3)[winding - 1]

    def get_neutral_impedance(self, winding: int) -> Quantity:
        return (self.Zn_1, self.Zn_2, self.Zn_3)[winding - 1]

    def get_pair_impedances(self) -> dict[tuple[int, int], complex]:
        """
        Returns the short-circuit impedance (ohm, referred to the star bus)
        between each pair of windings.
        """
        U_r = self.U_r1.to('V').m
        S_n = self.S_n.to('VA').m
        tests = zip(
            PAIRS,
            (self.u_cc12, self.u_cc13, self.u_cc23),
            (self.P_Cu12, self.P_Cu13, self.P_Cu23)
        )
        Z_pairs = {}
        for pair, u_cc, P_Cu in tests:
            R = P_Cu.to('W').m * (U_r / S_n) ** 2
            Z_mag = u_cc.to('frac').m * U_r ** 2 / S_n
            if R > Z_mag:
                raise ValueError(
                    f"Transformer '{self.name}': copper loss of windings {pair} "
                    f"is inconsistent with the short-circuit voltage."
                )
            Z_pairs[pair] = complex(R, math.sqrt(Z_mag ** 2 - R ** 2))
        return Z_pairs

    def get_pair_reactances(self) -> dict[tuple[int, int], float]:
        """Returns the relative reactance between each pair of windings."""
        Z_nom = (self.U_r1 ** 2 / self.S_n).to('ohm').m
        return {pair: Z.imag / Z_nom for pair, Z in self.get_pair_impedances().items()}

    def get_leg_impedances(
        self,
        k_t: dict[tuple[int, int], float] | None = None
    ) -> dict[int, complex]:
        """
        Returns the star-equivalent impedance (ohm, referred to the star bus)
        of each leg. If given, the correction factors `k_t` of the winding
        pairs are applied to the pair impedances first.
        """
        Z = self.get_pair_impedances()
        if k_t is not None:
            Z = {pair: Z_pair * k_t[pair] for pair, Z_pair in Z.items()}
        return {
            1: (Z[(1, 2)] + Z[(1, 3)] - Z[(2, 3)]) / 2,
            2: (Z[(1, 2)] + Z[(2, 3)] - Z[(1, 3)]) / 2,
            3: (Z[(1, 3)] + Z[(2, 3)] - Z[(1, 2)]) / 2
        }

    def get_impedance(self) -> dict[int, Quantity | None]:
        """
        Returns the sequence impedances of leg 1. Use `get_leg_impedances`
        for all legs.
        """
        return self.legs[0].get_impedance()

    def get_ratio(self, winding: int, U_n: Quantity, U_n_star: Quantity) -> float:
        """
        Returns the per-unit turns ratio of a leg between its terminal bus
        with nominal voltage `U_n` and the star bus.
        """
        ratio = (self.U_r1 / self.get_rated_voltage(winding)) * (U_n / U_n_star)
        return ratio.to('V / V').m


class Transformer3WLeg(Component):
    """
    One leg of a three-winding transformer, placed on the connection from
    the terminal bus of the winding to the star bus.
    """
    def __init__(self, transformer: Transformer3W, winding: int) -> None:
        super().__init__(f"{transformer.name}.{winding}")
        self.transformer = transformer
        self.winding = winding

    def get_impedance(self) -> dict[int, Quantity | None]:
        Z1 = Q_(self.transformer.get_leg_impedances()[self.winding], 'ohm')
        Z0 = (self.transformer.Z0_1, self.transformer.Z0_2, self.transformer.Z0_3)[self.winding - 1]
        return {1: Z1, 2: Z1, 0: Z0.to('ohm') if Z0 is not None else None}
