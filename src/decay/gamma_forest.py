"""Flat list of weighted gamma lines, sampled without a level scheme."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import numpy as np
from numpy.typing import NDArray

from decay.errors import DecayDataError
from decay.events import DecayEvent, ParticleType
from sampling.directions import random_direction
from sampling.selector import WeightedSelector

logger = logging.getLogger(__name__)


class GammaForest:
    """Gamma lines (energy, relative weight) emitted independently of each other."""

    def __init__(self, energies_keV: NDArray[np.float64], weights: NDArray[np.float64]) -> None:
        energies_keV = np.asarray(energies_keV, dtype=float)
        weights = np.asarray(weights, dtype=float)
        if energies_keV.shape != weights.shape or energies_keV.ndim != 1:
            raise ValueError("energies_keV and weights must be 1-D arrays of equal length")
        self.energies_keV = energies_keV
        self.selector = WeightedSelector()
        for w in weights:
            self.selector.add_prob(w)

    @classmethod
    def from_file(cls, path: str | Path, e_to_keV: float = 1.0) -> "GammaForest":
        """Read two columns (energy, weight) from a text file; '#' starts a comment."""
        path = Path(path)
        if not path.is_file():
            raise DecayDataError("fileUnreadable", field="filename", value=str(path))
        data = np.loadtxt(path, comments="#", delimiter=None, ndmin=2)
        if data.shape[1] != 2:
            raise DecayDataError("BadGammaTable", field="filename", value=str(path), detail="expected 2 columns")
        forest = cls(data[:, 0] * e_to_keV, data[:, 1])
        logger.info(
            "Located %d gammas with total cross section %g", len(forest.energies_keV), forest.selector.cum_prob
        )
        return forest

    def gen_decays(self, events: List[DecayEvent], n: float, rng: np.random.Generator) -> int:
        """
        Append floor(n) gammas plus one more with probability frac(n).

        Returns the number of gammas generated.
        """
        count = 0
        while n >= 1.0 or rng.uniform(0.0, 1.0) < n:
            e = self.energies_keV[self.selector.select(rng=rng)]
            events.append(DecayEvent(particle=ParticleType.GAMMA, energy_keV=float(e), direction=random_direction(rng=rng)))
            n -= 1.0
            count += 1
        return count
