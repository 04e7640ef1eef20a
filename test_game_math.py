import uuid

import numpy as np

from game_math import clamp, generate_uuid, lerp, safe_divide


def test_clamp_bounds():
    assert clamp(1.5, 0.0, 1.0) == 1.0
    assert clamp(-0.2, 0.0, 1.0) == 0.0
    assert clamp(0.3, 0.0, 1.0) == 0.3


def test_lerp():
    assert lerp(0.0, 10.0, 0.25) == 2.5
    assert lerp(4.0, 4.0, 0.7) == 4.0


def test_safe_divide_zero_divisor():
    """A zero divisor yields the default instead of raising or producing NaN."""
    assert safe_divide(5.0, 0.0) == 0.0
    assert safe_divide(5.0, 0, default=-1.0) == -1.0
    assert safe_divide(6.0, 3.0) == 2.0


def test_generate_uuid_reproducible_with_seed():
    a = generate_uuid(np.random.default_rng(3))
    b = generate_uuid(np.random.default_rng(3))
    assert a == b
    assert uuid.UUID(a).version == 4


def test_generate_uuid_without_rng_is_unique():
    assert generate_uuid() != generate_uuid()
