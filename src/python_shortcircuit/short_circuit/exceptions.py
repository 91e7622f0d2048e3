__all__ = [
    "ShortCircuitError",
    "ModelError",
    "ConsistencyError",
    "RequestError"
]


class ShortCircuitError(Exception):
    """Base class of the errors raised by the short-circuit calculation."""
    pass


class ModelError(ShortCircuitError):
    """The network cannot be turned into a sequence admittance model."""
    pass


class ConsistencyError(ShortCircuitError):
    """An extracted impedance block does not represent a single complex value."""
    pass


class RequestError(ShortCircuitError):
    """A fault request refers to something the resolved model doesn't know."""
    pass
