"""Keyed cache of decay systems, built on demand from a record loader."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Set

import numpy as np

from decay.binding import BindingEnergyLibrary
from decay.config import DecayConfig
from decay.errors import DecayDataError
from decay.system import DecayRecords, NucDecaySystem

logger = logging.getLogger(__name__)


class NucDecayLibrary:
    """
    Map nuclide name -> NucDecaySystem, constructing each system once.

    The loader turns a nuclide name into parsed records and signals unknown
    names with KeyError or FileNotFoundError.
    """

    def __init__(
        self,
        loader: Callable[[str], DecayRecords],
        binding: BindingEnergyLibrary,
        config: DecayConfig | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.loader = loader
        self.binding = binding
        self.config = config or DecayConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.systems: Dict[str, NucDecaySystem] = {}
        self._unavailable: Set[str] = set()

    def get_generator(self, name: str) -> NucDecaySystem:
        """Return the cached system for name, building it on first request."""
        system = self.systems.get(name)
        if system is not None:
            return system
        try:
            records = self.loader(name)
        except (KeyError, FileNotFoundError):
            raise DecayDataError("MissingDecayData", field="name", value=name) from None
        system = NucDecaySystem(records, self.binding, config=self.config, rng=self.rng)
        self.systems[name] = system
        logger.info("Loaded decay system %s (%d levels)", name, len(system.levels))
        return system

    def has_generator(self, name: str) -> bool:
        """True if a system for name can be built; failures are remembered."""
        if name in self._unavailable:
            return False
        try:
            self.get_generator(name)
        except ValueError as e:
            logger.warning("No decay generator for %s: %s", name, e)
            self._unavailable.add(name)
            return False
        return True
