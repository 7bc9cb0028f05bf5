"""Isotropic direction sampling from two uniform draws."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

# Uniform slots consumed by one direction draw.
DIRECTION_NDF = 2


def random_direction(
    rnd: NDArray[np.float64] | None = None,
    rng: np.random.Generator | None = None,
) -> NDArray[np.float64]:
    """
    Return an isotropic unit vector.

    cos(theta) = 2*u0 - 1 and phi = 2*pi*u1, with (u0, u1) read from rnd[0:2]
    when a buffer is supplied, else drawn from rng (required then).
    """
    if rnd is None:
        if rng is None:
            raise ValueError("random_direction needs either a uniform buffer or a generator")
        u0, u1 = rng.uniform(0.0, 1.0, size=2)
    else:
        u0, u1 = float(rnd[0]), float(rnd[1])
    phi = 2.0 * np.pi * u1
    costheta = 2.0 * u0 - 1.0
    sintheta = np.sqrt(max(0.0, 1.0 - costheta * costheta))
    return np.array([np.cos(phi) * sintheta, np.sin(phi) * sintheta, costheta], dtype=float)
