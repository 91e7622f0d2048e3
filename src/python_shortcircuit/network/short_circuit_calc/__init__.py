"""
Implements the user-interface for calculating short-circuit currents at the
busses of a network.
"""
from .sequence_network_builder import *
from .short_circuit_calc import *
