"""Decay vertex generators for simple source volumes."""

from __future__ import annotations

from typing import Tuple

import numpy as np
from numpy.typing import NDArray


def square_to_circle(x: float, y: float, r: float) -> Tuple[float, float]:
    """Map a unit-square point onto a uniform point in a disc of radius r."""
    th = 2.0 * np.pi * x
    rr = r * np.sqrt(y)
    return float(rr * np.cos(th)), float(rr * np.sin(th))


class CubePosGen:
    """Uniform vertices in the unit cube (3 uniform slots)."""

    ndf = 3

    def gen_pos(
        self,
        rnd: NDArray[np.float64] | None = None,
        rng: np.random.Generator | None = None,
    ) -> NDArray[np.float64]:
        if rnd is None:
            if rng is None:
                raise ValueError("gen_pos needs either a uniform buffer or a generator")
            return rng.uniform(0.0, 1.0, size=3)
        return np.array(rnd[:3], dtype=float)


class CylPosGen(CubePosGen):
    """Uniform vertices in a z-centred cylinder of radius r and length dz."""

    def __init__(self, r: float, dz: float) -> None:
        if r <= 0.0 or dz < 0.0:
            raise ValueError("Cylinder needs r > 0 and dz >= 0")
        self.r = float(r)
        self.dz = float(dz)

    def gen_pos(
        self,
        rnd: NDArray[np.float64] | None = None,
        rng: np.random.Generator | None = None,
    ) -> NDArray[np.float64]:
        u = super().gen_pos(rnd=rnd, rng=rng)
        x, y = square_to_circle(u[0], u[1], self.r)
        return np.array([x, y, (u[2] - 0.5) * self.dz], dtype=float)
