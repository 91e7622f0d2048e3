import math

__all__ = [
    "phasor",
    "phasor_rad",
    "polar",
    "polar_rad"
]


def phasor(magnitude: float, angle_deg: float) -> complex:
    """Return a complex number for a phasor (angle in degrees)."""
    rad = math.radians(angle_deg)
    return magnitude * (math.cos(rad) + 1j * math.sin(rad))


def phasor_rad(magnitude: float, angle_rad: float) -> complex:
    """Return a complex number for a phasor (angle in radians)."""
    return magnitude * (math.cos(angle_rad) + 1j * math.sin(angle_rad))


def polar(z: complex) -> tuple[float, float]:
    """Return (magnitude, angle_deg)."""
    magnitude = abs(z)
    angle_deg = math.degrees(math.atan2(z.imag, z.real))
    return magnitude, angle_deg


def polar_rad(z: complex) -> tuple[float, float]:
    """Return (magnitude, angle_rad)."""
    return abs(z), math.atan2(z.imag, z.real)
