"""
Miscellaneous collection of functions and tools for electrical calculations.
"""
from .phasor import *
from .fortescue import *
