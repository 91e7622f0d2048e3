"""
Per-unit sequence admittance models and the extraction of Thevenin
equivalents from them.
"""
from .per_unit import *
from .branch import *
from .homopolar import *
from .admittance import *
from .resolver import *
