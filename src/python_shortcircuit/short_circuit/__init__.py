"""
Numerical core of the short-circuit calculation: sequence admittance models,
Thevenin extraction, fault calculators and result post-processing.
"""
from .exceptions import *
from .network import *
from .faults import *
from .norm import *
from .results import *
