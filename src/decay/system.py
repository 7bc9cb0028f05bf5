"""
Level/transition graph of one nuclide and the decay-chain sampler (event generator core).

A system is built once from parsed records:
    levels  -> sorted by energy, densely indexed
    gamma   -> ConversionGamma edges (optionally ground-state normalized)
    AugerK  -> atomic relaxation data per daughter element
    beta    -> BetaDecayTransition edges
    ecapt   -> ElectronCapture edges (explicit or AUTO-resolved)
and is read-only afterwards apart from the lazily filled atom cache.

Chains are generated by walking the graph from a sampled start level until a
level with no outgoing flux, or a long-lived level (half-life above the cutoff)
reached from above, is hit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from decay.atom import DecayAtom
from decay.binding import BindingEnergyLibrary
from decay.config import NORM_GROUNDSTATE, DecayConfig
from decay.errors import DecayDataError
from decay.events import DecayEvent
from decay.levels import NucLevel
from decay.transitions import (
    BetaDecayTransition,
    ConversionGamma,
    ElectronCapture,
    TransitionBase,
    record_float,
)
from sampling.selector import WeightedSelector

logger = logging.getLogger(__name__)

Record = Mapping[str, str]


@dataclass
class DecayRecords:
    """Parsed input for one nuclide (each record maps field name -> string value)."""

    levels: List[Record] = field(default_factory=list)
    gammas: List[Record] = field(default_factory=list)
    betas: List[Record] = field(default_factory=list)
    ecapts: List[Record] = field(default_factory=list)
    augers: List[Record] = field(default_factory=list)
    norm: str = ""
    fancyname: str = ""


def _record_flag(rec: Record, key: str) -> bool:
    raw = str(rec.get(key, "0")).strip().lower()
    if raw in ("", "0", "false", "no"):
        return False
    if raw in ("1", "true", "yes"):
        return True
    raise DecayDataError("BadFlagField", field=key, value=rec.get(key))


class NucDecaySystem:
    """
    Decay graph for one nuclide with stochastic chain generation.

    Levels and transitions live in flat lists; transitions refer to levels by
    index, and `trans_in` / `trans_out` hold transition indices per level.
    `level_decays[n]` chooses among `trans_out[n]` by intensity and
    `start_selector` chooses the level a chain starts from.
    """

    def __init__(
        self,
        records: DecayRecords,
        binding: BindingEnergyLibrary,
        cutoff_s: float | None = None,
        config: DecayConfig | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.config = config or DecayConfig()
        self.binding = binding
        self.rng = rng if rng is not None else np.random.default_rng()
        self.fancyname = records.fancyname
        self.atoms: Dict[int, DecayAtom] = {}
        self.transitions: List[TransitionBase] = []
        self._level_ndf: List[int] | None = None

        self.levels: List[NucLevel] = sorted(
            (NucLevel.from_record(r) for r in records.levels), key=lambda lv: lv.E
        )
        self.level_index: Dict[str, int] = {}
        for n, lv in enumerate(self.levels):
            if lv.name in self.level_index:
                raise DecayDataError("DuplicateLevel", field="nm", value=lv.name)
            lv.index = n
            self.level_index[lv.name] = n
        self.trans_in: List[List[int]] = [[] for _ in self.levels]
        self.trans_out: List[List[int]] = [[] for _ in self.levels]
        self.level_decays: List[WeightedSelector] = [WeightedSelector() for _ in self.levels]
        self.start_selector = WeightedSelector()
        self.cutoff_s = self.config.cutoff_s

        for g in records.gammas:
            origin, dest = self._endpoints(g)
            self._add_transition(ConversionGamma(origin, dest, self.get_atom(dest.Z), g))

        if records.norm == NORM_GROUNDSTATE:
            self._normalize_to_ground_state()

        # K conversion flux per daughter atom, needed before Auger data is loaded
        for t in self.transitions:
            t.to_atom.i_cek += t.get_p_vacant(0) * t.i_total
        for a in records.augers:
            try:
                Z = int(a.get("Z", "0"))
            except ValueError:
                raise DecayDataError("BadAugerZ", field="Z", value=a.get("Z")) from None
            if Z <= 0:
                raise DecayDataError("BadAugerZ", field="Z", value=a.get("Z"))
            self.get_atom(Z).load(a)

        for b in records.betas:
            origin, dest = self._endpoints(b)
            bt = BetaDecayTransition(
                origin,
                dest,
                self.get_atom(dest.Z),
                positron=_record_flag(b, "positron"),
                forbidden=int(record_float(b, "forbidden", 0.0)),
                config=self.config,
            )
            bt.i_total = record_float(b, "I", 0.0) / 100.0
            if "M2_F" in b or "M2_GT" in b:
                bt.set_matrix_elements(record_float(b, "M2_F", 0.0), record_float(b, "M2_GT", 0.0))
            self._add_transition(bt)

        for ec in records.ecapts:
            self._add_electron_captures(ec)

        self.set_cutoff(self.config.cutoff_s if cutoff_s is None else cutoff_s)
        logger.debug(
            "Built decay system %s: %d levels, %d transitions, %d atoms",
            self.fancyname or "?",
            len(self.levels),
            len(self.transitions),
            len(self.atoms),
        )

    # ------------------------------------------------------------------
    # construction helpers

    def level_by_name(self, name: str, field: str = "name") -> NucLevel:
        """Return the level with this name; unknown names are data errors."""
        try:
            return self.levels[self.level_index[name]]
        except KeyError:
            raise DecayDataError("UnknownLevel", field=field, value=name) from None

    def _endpoints(self, rec: Record) -> tuple[NucLevel, NucLevel]:
        return (
            self.level_by_name(rec.get("from", ""), field="from"),
            self.level_by_name(rec.get("to", ""), field="to"),
        )

    def get_atom(self, Z: int) -> DecayAtom:
        """Atomic relaxation model for Z, created on first use."""
        atom = self.atoms.get(Z)
        if atom is None:
            atom = DecayAtom(self.binding.get_binding_table(Z))
            self.atoms[Z] = atom
        return atom

    def _add_transition(self, t: TransitionBase) -> None:
        idx = len(self.transitions)
        self.transitions.append(t)
        self.trans_in[t.dest].append(idx)
        self.trans_out[t.origin].append(idx)
        self.level_decays[t.origin].add_prob(t.i_total)
        self.levels[t.origin].flux_out += t.i_total
        self.levels[t.dest].flux_in += t.i_total
        self._level_ndf = None
        logger.debug(
            "Added %s transition (%d): [%d]->[%d] I = %.3g", t.kind.value, idx, t.origin, t.dest, t.i_total
        )

    def _normalize_to_ground_state(self) -> None:
        """Rescale so the flux ending in levels without outgoing transitions sums to 1."""
        gsflux = sum(lv.flux_in for lv in self.levels if not lv.flux_out > 0.0)
        if not gsflux > 0.0:
            raise DecayDataError("ZeroGroundStateFlux", field="norm", value=NORM_GROUNDSTATE)
        for t in self.transitions:
            t.scale(1.0 / gsflux)
        for n, lv in enumerate(self.levels):
            lv.scale(1.0 / gsflux)
            self.level_decays[n].scale(1.0 / gsflux)

    def _add_electron_captures(self, ec: Record) -> None:
        origin = self.level_by_name(ec.get("from", ""), field="from")
        target = ec.get("to", "AUTO")
        if target == "AUTO":
            added = 0
            for dest in self.levels:
                if dest.A != origin.A or dest.Z + 1 != origin.Z or not dest.E < origin.E:
                    continue
                missing = dest.flux_out - dest.flux_in
                if not missing > 0.0:
                    continue
                t = ElectronCapture(origin, dest, self.get_atom(dest.Z))
                t.i_total = missing
                self._add_transition(t)
                added += 1
            if not added:
                logger.warning("AUTO electron capture from %s found no daughter with missing flux", origin.name)
            return
        dest = self.level_by_name(target, field="to")
        if dest.A != origin.A or dest.Z + 1 != origin.Z or not dest.E < origin.E:
            raise DecayDataError(
                "BadECaptureTarget",
                field="to",
                value=target,
                detail=f"not an allowed capture daughter of {origin.name}",
            )
        t = ElectronCapture(origin, dest, self.get_atom(dest.Z))
        t.i_total = record_float(ec, "I", 0.0)
        self._add_transition(t)

    # ------------------------------------------------------------------
    # sampling setup

    def set_cutoff(self, t: float) -> None:
        """
        Rebuild per-level branching and chain-start weights for half-life cutoff t.

        The highest level always starts with weight 1. Another level is an
        independent start point, weighted by its total influx, only if its
        half-life exceeds t and it has outgoing transitions.
        """
        self.cutoff_s = float(t)
        self.start_selector = WeightedSelector()
        last = len(self.levels) - 1
        for n, lv in enumerate(self.levels):
            sel = WeightedSelector()
            for ti in self.trans_out[n]:
                sel.add_prob(self.transitions[ti].i_total)
            self.level_decays[n] = sel
            p_start = 1.0 if n == last else 0.0
            if n != last and lv.hl > self.cutoff_s and self.trans_out[n]:
                p_start = sum(self.transitions[ti].i_total for ti in self.trans_in[n])
            self.start_selector.add_prob(p_start)

    def scale(self, s: float) -> None:
        """Multiply every intensity, flux and selector weight by s."""
        self.start_selector.scale(s)
        for t in self.transitions:
            t.scale(s)
        for n, lv in enumerate(self.levels):
            lv.scale(s)
            self.level_decays[n].scale(s)

    def _resolve_level(self, level: int | NucLevel | str) -> int:
        if isinstance(level, NucLevel):
            return level.index
        if isinstance(level, str):
            return self.level_by_name(level).index
        n = int(level)
        if not 0 <= n < len(self.levels):
            raise ValueError(f"Level index {n} out of range")
        return n

    # ------------------------------------------------------------------
    # generation

    def gen_decay_chain(
        self,
        events: List[DecayEvent],
        rnd: Sequence[float] | NDArray[np.float64] | None = None,
        start: int | NucLevel | str | None = None,
        rng: np.random.Generator | None = None,
    ) -> int:
        """
        Append the particles of one decay chain to events.

        Args:
            events: Output list, appended in emission order.
            rnd: Optional block of uniforms in [0, 1) holding all of the chain's
                randomness, Auger relaxation included, so the same block always
                yields the same events. At least max(1, get_ndf(start)) long;
                copied, never modified or retained.
            start: Start level (index, level or name); sampled from the
                chain-start distribution when omitted.
            rng: Generator used when rnd is omitted; defaults to the system's.

        Returns:
            Number of transitions fired.
        """
        gen = rng if rng is not None else self.rng
        buf: NDArray[np.float64] | None = None
        if rnd is not None:
            buf = np.array(rnd, dtype=float, copy=True).ravel()
            need = max(1, self.get_ndf(start))
            if buf.size < need:
                raise ValueError(f"Random buffer holds {buf.size} values; chain may need {need}")
        if start is None:
            n = self.start_selector.select(buf, gen)
        else:
            n = self._resolve_level(start)
        initiating = True
        fired = 0
        while True:
            lv = self.levels[n]
            if not lv.flux_out > 0.0 or (not initiating and lv.hl > self.cutoff_s):
                break
            t = self.transitions[self.trans_out[n][self.level_decays[n].select(buf, gen)]]
            t.fire(events, buf, gen)
            # at most one K vacancy per firing, relaxed from the slots after the emission's
            if t.n_vacant(0):
                t.to_atom.gen_auger(events, None if buf is None else buf[t.emission_ndf():], gen)
            if buf is not None:
                buf = buf[t.get_ndf():]
            fired += 1
            n = t.dest
            initiating = False
        return fired

    def _compute_level_ndf(self) -> List[int]:
        ndf: List[int | None] = [None] * len(self.levels)
        visiting = set()

        def level_ndf(n: int) -> int:
            cached = ndf[n]
            if cached is not None:
                return cached
            if n in visiting:
                raise DecayDataError("CyclicDecayGraph", field="level", value=self.levels[n].name)
            visiting.add(n)
            best = 0
            for ti in self.trans_out[n]:
                t = self.transitions[ti]
                best = max(best, t.get_ndf() + level_ndf(t.dest))
            visiting.discard(n)
            ndf[n] = best
            return best

        # ascending energy: daughters are usually resolved before their parents
        return [level_ndf(n) for n in range(len(self.levels))]

    def get_ndf(self, level: int | NucLevel | str | None = None) -> int:
        """
        Upper bound on uniform slots a chain consumes.

        For a given level: max over its transitions of that transition's NDF plus
        the destination's. Without a level: max over all possible start levels.
        """
        if self._level_ndf is None:
            self._level_ndf = self._compute_level_ndf()
        if level is not None:
            return self._level_ndf[self._resolve_level(level)]
        best = 0
        for n in range(len(self.levels)):
            if self.start_selector.cum_prob > 0.0 and self.start_selector.get_prob(n) > 0.0:
                best = max(best, self._level_ndf[n])
        return best

    # ------------------------------------------------------------------
    # reporting

    def describe(self, verbose: bool = False) -> str:
        lines = ["---- Nuclear Level System ----", f"---- {self.get_ndf()} DF"]
        lines.append("---- Energy Levels ----")
        for lv in self.levels:
            lines.append(f"[{self.get_ndf(lv.index)} DF] {lv.describe()}")
        lines.append("---- Atoms ----")
        for Z in sorted(self.atoms):
            lines.append(self.atoms[Z].describe())
        lines.append("---- Transitions ----")
        for i, t in enumerate(self.transitions):
            lines.append(f"({i}) {t.describe(verbose)}")
        lines.append("------------------------------")
        return "\n".join(lines)
