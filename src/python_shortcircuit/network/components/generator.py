from dataclasses import dataclass
import math

from ...pint_setup import Quantity, Q_
from ..config import PeriodType
from ..graph import Component

__all__ = ["Generator"]


@dataclass
class Generator(Component):
    """
    Represents a synchronous generator (with its optional step-up
    transformer) feeding a bus.

    Parameters
    ----------
    name: str
        Uniquely identifies the generator in the network.
    X_d_sub: Quantity
        Direct-axis sub-transient reactance.
    X_d_trans: Quantity, optional
        Direct-axis transient reactance. Defaults to `X_d_sub`.
    X_d_sync: Quantity, optional
        Direct-axis synchronous reactance. Defaults to `X_d_trans`.
    R: Quantity, optional
        Stator resistance.
    Z_step_up: Quantity, optional
        Impedance of the step-up transformer, referred to the bus.
    U_r: Quantity, optional
        Rated voltage of the generator. Needed for the correction factor of
        the short-circuit norm.
    S_r: Quantity, optional
        Rated apparent power of the generator. Needed for the correction
        factor of the short-circuit norm.
    cos_phi: float, default 0.8
        Rated power factor.
    grounded: bool, default False
        True if the star point of the generator is grounded. An ungrounded
        generator is absent from the zero-sequence network.
    Z0: Quantity, optional
        Zero-sequence impedance. Defaults to `j * X_d_sub`.
    Zn: Quantity, optional
        Neutral-to-earth impedance.
    """
    name: str
    X_d_sub: Quantity
    X_d_trans: Quantity | None = None
    X_d_sync: Quantity | None = None
    R: Quantity = Q_(0.0, 'ohm')
    Z_step_up: Quantity = Q_(0.0, 'ohm')
    U_r: Quantity | None = None
    S_r: Quantity | None = None
    cos_phi: float = 0.8
    grounded: bool = False
    Z0: Quantity | None = None
    Zn: Quantity = Q_(0.0, 'ohm')

    def __post_init__(self):
        super().__init__(self.name)
        if self.X_d_trans is None:
            self.X_d_trans = self.X_d_sub
        if self.X_d_sync is None:
            self.X_d_sync = self.X_d_trans

    def get_reactance(self, period: PeriodType) -> Quantity:
        if period == PeriodType.SUB_TRANSIENT:
            return self.X_d_sub
        if period == PeriodType.TRANSIENT:
            return self.X_d_trans
        if period == PeriodType.STEADY_STATE:
            return self.X_d_sync
        raise ValueError(f"Unknown period: {period!r}")

    def get_impedance(self, period: PeriodType = PeriodType.SUB_TRANSIENT) -> dict[int, Quantity | None]:
        """
        Returns the positive, negative, and zero-sequence impedance of the
        generator for the given period. The correction factor of the
        short-circuit norm is not included.

        Returns
        -------
        dict[int, Quantity]
            A dictionary of which the keys 1, 2, 0 map to the positive,
            negative, and zero-sequence impedance respectively. The
            zero-sequence impedance is None if the generator is not grounded.
        """
        R = self.R.to('ohm').m
        X = self.get_reactance(period).to('ohm').m
        Z1 = Q_(complex(R, X), 'ohm') + self.Z_step_up.to('ohm')
        if not self.grounded:
            Z0 = None
        else:
            if self.Z0 is not None:
                Z0 = self.Z0.to('ohm')
            else:
                Z0 = Q_(complex(0.0, self.X_d_sub.to('ohm').m), 'ohm')
            Z0 = Z0 + 3 * self.Zn.to('ohm')
        return {1: Z1, 2: Z1, 0: Z0}

    @property
    def sin_phi(self) -> float:
        return math.sqrt(1 - self.cos_phi ** 2)

    @property
    def x_d_sub(self) -> float | None:
        """Relative sub-transient reactance, or None without a rating."""
        if self.U_r is None or self.S_r is None:
            return None
        Z_nom = (self.U_r ** 2 / self.S_r).to('ohm').m
        return self.X_d_sub.to('ohm').m / Z_nom
