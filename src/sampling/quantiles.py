"""Tabulated inverse-CDF sampling for continuous densities."""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import NDArray
from scipy.integrate import cumulative_trapezoid, trapezoid


class QuantileTable:
    """
    Inverse CDF of a tabulated density.

    The density is integrated with the trapezoid rule on the given grid and the
    quantile function is evaluated by linear interpolation, so one uniform value
    maps to exactly one sample.
    """

    def __init__(self, x: NDArray[np.float64], pdf: NDArray[np.float64]) -> None:
        x = np.asarray(x, dtype=float)
        pdf = np.clip(np.asarray(pdf, dtype=float), a_min=0.0, a_max=None)
        if x.ndim != 1 or x.shape != pdf.shape or x.size < 2:
            raise ValueError("x and pdf must be 1-D arrays of equal length >= 2")
        if np.any(np.diff(x) <= 0.0):
            raise ValueError("x grid must be strictly increasing")
        cdf = cumulative_trapezoid(pdf, x, initial=0.0)
        total = cdf[-1]
        if not total > 0.0:
            raise ValueError("Density integrates to zero; no quantiles defined")
        self.x = x
        self.pdf = pdf / total
        self.cdf = cdf / total
        # Drop interior points of flat CDF stretches (zero density) so that no
        # quantile falls inside a region the density excludes.
        d = np.diff(self.cdf)
        keep = np.ones(self.cdf.size, dtype=bool)
        keep[1:-1] = (d[:-1] > 0.0) | (d[1:] > 0.0)
        self._cdf_knots = self.cdf[keep]
        self._x_knots = self.x[keep]

    @classmethod
    def from_function(
        cls,
        fn: Callable[[NDArray[np.float64]], NDArray[np.float64]],
        lo: float,
        hi: float,
        npx: int = 1000,
    ) -> "QuantileTable":
        """Tabulate fn on npx evenly spaced points over [lo, hi]."""
        x = np.linspace(lo, hi, int(npx))
        return cls(x, fn(x))

    def eval(self, u: float) -> float:
        """Return the u-quantile, u in [0, 1]."""
        return float(np.interp(u, self._cdf_knots, self._x_knots))

    def mean(self) -> float:
        """Mean of the tabulated distribution."""
        return float(trapezoid(self.x * self.pdf, self.x))
