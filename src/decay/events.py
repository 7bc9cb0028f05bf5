"""Emitted-particle records produced by decay-chain generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from numpy.typing import NDArray


class ParticleType(Enum):
    """Particle species emitted by a decay step."""

    GAMMA = "gamma"
    ELECTRON = "e-"
    POSITRON = "e+"
    NEUTRINO = "neutrino"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "ParticleType":
        """Look up a particle type by its label ("gamma", "e-", "e+", "neutrino")."""
        for p in cls:
            if p.value == name:
                return p
        raise ValueError(f"Unknown particle name: {name}")


@dataclass
class DecayEvent:
    """One emitted particle: species, kinetic energy, direction, time and weight."""

    particle: ParticleType
    energy_keV: float
    direction: NDArray[np.float64] = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))
    time_s: float = 0.0
    weight: float = 1.0

    def same_as(self, other: "DecayEvent") -> bool:
        """Exact equality including direction components."""
        return (
            self.particle is other.particle
            and self.energy_keV == other.energy_keV
            and np.array_equal(self.direction, other.direction)
            and self.time_s == other.time_s
            and self.weight == other.weight
        )
