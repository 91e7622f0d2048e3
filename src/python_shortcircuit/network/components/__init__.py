"""
Implements the components of electrical networks.
"""
from .line import *
from .transformer import *
from .generator import *
from .load import *
from .transformer3w import *
