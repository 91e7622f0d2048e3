"""
Fault requests and the sequence calculators of each fault topology.
"""
from .fault import *
from .calculators import *
