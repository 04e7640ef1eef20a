"""
Numeric helpers shared by every simulation component.
"""

import uuid
from typing import Optional

import numpy as np


def clamp(value: float, lo: float, hi: float) -> float:
    """Constrain value to the closed interval [lo, hi]."""
    return max(lo, min(hi, value))


def lerp(start: float, end: float, t: float) -> float:
    """Linear interpolation between start and end."""
    return start + (end - start) * t


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` instead of raising or producing NaN for a zero divisor."""
    if denominator == 0:
        return default
    return numerator / denominator


def generate_uuid(rng: Optional[np.random.Generator] = None) -> str:
    """RFC 4122 version-4 identifier, reproducible when a generator is supplied."""
    if rng is None:
        return str(uuid.uuid4())
    return str(uuid.UUID(bytes=rng.bytes(16), version=4))
