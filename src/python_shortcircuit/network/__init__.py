"""
Network model of python-shortcircuit and the user-facing calculation engine.
"""
from .graph import *
from .components import *
from .config import *
from .short_circuit_calc import *
