"""Atomic K-vacancy relaxation: Auger electron versus characteristic X-ray."""

from __future__ import annotations

import logging
from typing import List, Mapping

import numpy as np
from numpy.typing import NDArray

from decay.binding import BindingEnergyTable
from decay.errors import DecayDataError
from decay.events import DecayEvent, ParticleType
from sampling.directions import DIRECTION_NDF, random_direction

logger = logging.getLogger(__name__)

# Uniform slots used to relax one K vacancy: Auger-or-X-ray draw, then direction.
AUGER_NDF = 1 + DIRECTION_NDF


def _percent(raw: str, field: str) -> float:
    try:
        return float(raw) / 100.0
    except (TypeError, ValueError):
        raise DecayDataError("BadAugerField", field=field, value=raw) from None


class DecayAtom:
    """
    Relaxation model of one element's K-shell vacancies.

    Intensities are per parent decay (fractions, not percent):
        - i_auger: K Auger electron intensity
        - i_kxr: K X-ray intensity
        - i_cek: K conversion-electron flux landing in this atom
        - i_missing: K vacancies not explained by conversion, attributed to capture
    p_auger is the probability a K vacancy relaxes via Auger emission.
    """

    def __init__(self, table: BindingEnergyTable) -> None:
        self.table = table
        self.i_auger = 0.0
        self.i_kxr = 0.0
        self.i_cek = 0.0
        self.i_missing = 0.0
        self.p_auger = 0.0
        if table.Z > 2:
            # KLL: K vacancy filled from L1, L2 electron ejected
            self.e_auger = (
                table.get_subshell_binding(0, 0)
                - table.get_subshell_binding(1, 0)
                - table.get_subshell_binding(1, 1)
            )
        else:
            self.e_auger = 0.0

    @property
    def Z(self) -> int:
        return self.table.Z

    def load(self, rec: Mapping[str, str]) -> None:
        """
        Load measured K Auger / X-ray intensities (percent).

        Fields starting with 'a' sum into the Auger intensity and fields starting
        with 'k' into the X-ray intensity; an explicit `Iauger` field replaces
        the Auger sum.
        """
        i_auger = 0.0
        i_kxr = 0.0
        for key, raw in rec.items():
            if not key:
                continue
            if key[0] == "a":
                i_auger += _percent(raw, key)
            elif key[0] == "k":
                i_kxr += _percent(raw, key)
        if "Iauger" in rec:
            i_auger = _percent(rec["Iauger"], "Iauger")
        self.i_auger = i_auger
        self.i_kxr = i_kxr
        if self.i_auger > 0.0:
            self.p_auger = self.i_auger / (self.i_auger + self.i_kxr)
            self.i_missing = self.i_auger + self.i_kxr - self.i_cek
        else:
            self.p_auger = 0.0
            self.i_missing = 0.0
        if self.i_missing < 0.0:
            logger.warning(
                "%s: K conversion flux %.3g exceeds measured K vacancies %.3g",
                self.table.name,
                self.i_cek,
                self.i_auger + self.i_kxr,
            )
        logger.debug("Loaded Auger data for Z=%d: %s", self.Z, self.describe())

    def gen_auger(
        self,
        events: List[DecayEvent],
        rnd: NDArray[np.float64] | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        """
        Resolve one K vacancy; append an Auger electron when that branch is taken.

        With a buffer, rnd[0] decides the branch and rnd[1:3] the direction
        (AUGER_NDF slots, read whether or not an electron is emitted).
        """
        if rnd is None:
            if rng is None:
                raise ValueError("gen_auger needs either a uniform buffer or a generator")
            u = float(rng.uniform(0.0, 1.0))
        else:
            u = float(rnd[0])
        if not u < self.p_auger:
            return
        events.append(
            DecayEvent(
                particle=ParticleType.ELECTRON,
                energy_keV=self.e_auger,
                direction=random_direction(None if rnd is None else rnd[1:], rng),
            )
        )

    def describe(self) -> str:
        return (
            f"{self.table.name} {self.Z}: pAuger = {self.p_auger:.3f}, "
            f"Eauger = {self.e_auger:.2f}, initCapt = {self.i_missing:.3f}"
        )
