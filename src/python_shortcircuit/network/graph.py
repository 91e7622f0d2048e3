from __future__ import annotations

from dataclasses import dataclass, field
from abc import ABC, abstractmethod

from ..pint_setup import Quantity
from ..calc.phasor import phasor

__all__ = ["Bus", "Connection", "Component", "NetworkGraph"]


@dataclass(slots=True)
class Bus:
    """
    A node in the network graph.

    Attributes
    ----------
    name:
        Identifies the bus.
    U_n:
        Nominal line-to-line voltage. None for the ground bus.
    v:
        Pre-fault voltage magnitude (per-unit on `U_n`).
    angle:
        Pre-fault voltage angle (degrees).
    internal:
        True for the star bus of a three-winding transformer. Internal
        busses are part of the sequence networks but are not faulted by
        default.
    """
    name: str
    U_n: Quantity | None = None
    v: float = 1.0
    angle: float = 0.0
    internal: bool = False

    @property
    def voltage(self) -> complex:
        """Pre-fault voltage phasor (per-unit)."""
        return phasor(self.v, self.angle)


@dataclass(slots=True)
class Connection:
    """
    A directed connection in the network graph (start -> end).
    """
    name: str
    start: Bus
    end: Bus
    components: dict[str, Component] = field(default_factory=dict)

    def add_component(self, comp: Component) -> None:
        if not comp.name:
            raise ValueError("Component.name must be set before adding it to a Connection.")

        if comp.name in self.components:
            raise KeyError(f"A component with id '{comp.name}' is already present on connection '{self.name}'.")

        self.components[comp.name] = comp
        comp.connection = self  # back-reference

    def get_component(self, comp_id: str) -> Component:
        comp = self.components.get(comp_id)
        if comp is None:
            raise KeyError(f"Component with id '{comp_id}' is not found on connection '{self.name}'.")
        return comp


class Component(ABC):
    """
    Base class for physical/electrical assets placed on a Connection.

    Branch components (lines, transformers) sit on a connection between two
    busses. Feeder components (generators, loads, shunts) sit on a
    connection that starts from ground.
    @DynamicAttrs
    """
    def __init__(self, name: str = "") -> None:
        self.name: str = name
        self.connection: Connection | None = None  # set when added to a Connection

    def __str__(self) -> str:
        return f"Component<{self.name}>"

    @abstractmethod
    def get_impedance(self, *args, **kwargs) -> dict[int, Quantity | None]:
        """
        Returns the zero (key 0), direct (key 1) and inverse (key 2) sequence
        impedances of the component in ohm. A value of None means that the
        component is absent from that sequence network.
        """
        ...


class NetworkGraph:
    """
    Aggregate root. This class owns:
    - all busses
    - all connections

    Users should construct the model via NetworkGraph methods. Bus indices
    in the sequence networks follow the order in which busses are added.
    """
    GROUND_ID = "ground"

    def __init__(self, name: str = "") -> None:
        self.name: str = name
        self._busses: dict[str, Bus] = {self.GROUND_ID: Bus(self.GROUND_ID)}
        self._connections: dict[str, Connection] = {}

    @classmethod
    def create(cls, name: str) -> NetworkGraph:
        return cls(name=name)

    @property
    def busses(self) -> dict[str, Bus]:
        return self._busses

    @property
    def network_busses(self) -> list[Bus]:
        """All busses except ground, in insertion order."""
        return [bus for bus in self._busses.values() if bus.name != self.GROUND_ID]

    @property
    def connections(self) -> dict[str, Connection]:
        return self._connections

    def add_bus(
        self,
        bus_id: str,
        U_n: Quantity,
        v: float = 1.0,
        angle: float = 0.0
    ) -> Bus:
        """
        Create and register a bus.

        Parameters
        ----------
        bus_id:
            Name of the bus.
        U_n:
            Nominal line-to-line voltage.
        v:
            Pre-fault voltage magnitude (per-unit), e.g. from a load flow.
        angle:
            Pre-fault voltage angle (degrees).
        """
        if not bus_id:
            raise ValueError("bus_id must be a non-empty string.")
        if bus_id in self._busses:
            raise ValueError(f"Network already contains a bus '{bus_id}'.")
        if U_n.to('V').m <= 0:
            raise ValueError(f"Nominal voltage of bus '{bus_id}' must be positive.")
        bus = Bus(bus_id, U_n, v, angle)
        self._busses[bus_id] = bus
        return bus

    def get_bus(self, bus_id: str) -> Bus:
        bus = self._busses.get(bus_id)
        if bus is None:
            raise KeyError(f"Bus '{bus_id}' not found.")
        return bus

    def set_voltage(self, bus_id: str, v: float, angle: float = 0.0) -> None:
        """Set the pre-fault voltage of a bus (per-unit magnitude, degrees)."""
        bus = self.get_bus(bus_id)
        bus.v = v
        bus.angle = angle

    def add_connection(self, conn_id: str, start_id: str, end_id: str) -> Connection:
        """
        Create and register a connection. Returns the created connection so
        users can chain operations if they want.
        """
        if not conn_id:
            raise ValueError("conn_id must be a non-empty string.")
        if conn_id in self._connections:
            raise ValueError(f"Network already contains a connection '{conn_id}'.")
        if start_id == end_id:
            raise ValueError(f"Connection '{conn_id}' starts and ends at bus '{start_id}'.")

        start = self.get_bus(start_id)
        end = self.get_bus(end_id)

        conn = Connection(name=conn_id, start=start, end=end)
        self._connections[conn_id] = conn
        return conn

    def get_connection(self, conn_id: str) -> Connection:
        conn = self._connections.get(conn_id)
        if conn is None:
            raise KeyError(f"Connection '{conn_id}' not found.")
        return conn

    def add_component(self, conn_id: str, comp: Component) -> None:
        """
        Centralized way to place components (preferred over calling
        conn.add_component directly).
        """
        self.get_connection(conn_id).add_component(comp)

    def add_branch(self, comp: Component, bus1_id: str, bus2_id: str) -> Connection:
        """
        Place a branch component between two busses, on a connection named
        after the component.
        """
        if bus1_id == self.GROUND_ID or bus2_id == self.GROUND_ID:
            raise ValueError(f"Branch '{comp.name}' cannot be connected to ground.")
        conn = self.add_connection(comp.name, bus1_id, bus2_id)
        conn.add_component(comp)
        return conn

    def add_transformer_3w(self, comp: Component, bus1_id: str, bus2_id: str, bus3_id: str) -> Bus:
        """
        Place a three-winding transformer between three busses. An internal
        star bus named "<name>.star", rated at the voltage of winding 1, is
        created, and each leg of the transformer is placed on a connection
        from its terminal bus to the star bus. Returns the star bus.
        """
        bus_ids = (bus1_id, bus2_id, bus3_id)
        if self.GROUND_ID in bus_ids:
            raise ValueError(f"Transformer '{comp.name}' cannot be connected to ground.")
        if len(set(bus_ids)) < 3:
            raise ValueError(f"Transformer '{comp.name}' must connect three different busses.")
        for bus_id in bus_ids:
            self.get_bus(bus_id)
        star = self.add_bus(f"{comp.name}.star", comp.U_r1)
        star.internal = True
        for bus_id, leg in zip(bus_ids, comp.legs):
            self.add_connection(leg.name, bus_id, star.name).add_component(leg)
        return star

    def add_feeder(self, comp: Component, bus_id: str) -> Connection:
        """
        Place a feeder component (generator, load, shunt) at a bus. All
        feeders of a bus share one connection from ground to the bus.
        """
        conn_id = f"{self.GROUND_ID}->{bus_id}"
        conn = self._connections.get(conn_id)
        if conn is None:
            conn = self.add_connection(conn_id, self.GROUND_ID, bus_id)
        conn.add_component(comp)
        return conn

    def get_component(self, conn_id: str, comp_id: str) -> Component:
        return self.get_connection(conn_id).get_component(comp_id)

    @property
    def ground(self) -> Bus:
        return self._busses[self.GROUND_ID]

    def __str__(self) -> str:
        return f"Network<{self.name}>"
