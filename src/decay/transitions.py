"""
Decay-graph edges and their particle emission.

Three variants share `TransitionBase`:
    - ConversionGamma: photon or internal-conversion electron
    - BetaDecayTransition: electron/positron with a Fermi-theory spectrum
    - ElectronCapture: no particle, may leave a K-shell vacancy

`fire` appends emitted particles to an event list. When a buffer of uniforms is
supplied, `get_ndf()` is the fixed number of slots the transition reads from it:
`emission_ndf()` slots for `fire`, followed by AUGER_NDF slots for relaxing a K
vacancy when the transition can leave one. The caller advances its cursor by
`get_ndf()` after each firing.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Mapping, Tuple

import numpy as np
from numpy.typing import NDArray

from decay.atom import AUGER_NDF, DecayAtom
from decay.beta_spectrum import BetaSpectrumShape
from decay.config import SHELL_NAMES, DecayConfig
from decay.errors import DecayDataError
from decay.events import DecayEvent, ParticleType
from decay.levels import NucLevel
from sampling.directions import DIRECTION_NDF, random_direction
from sampling.quantiles import QuantileTable
from sampling.selector import WeightedSelector


class TransitionKind(Enum):
    GAMMA = "gamma"
    BETA = "beta"
    ECAPTURE = "ecapt"


def record_float(rec: Mapping[str, str], key: str, default: float = 0.0) -> float:
    """Read a float field, treating missing/blank as default."""
    raw = rec.get(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise DecayDataError("BadNumericField", field=key, value=raw) from None


def parse_value_error(raw: str, field: str) -> Tuple[float, float]:
    """Parse "x" or "x~err" into (x, err)."""
    parts = raw.split("~")
    try:
        x = float(parts[0])
        err = float(parts[1]) if len(parts) > 1 and parts[1].strip() else 0.0
    except ValueError:
        raise DecayDataError("BadNumericField", field=field, value=raw) from None
    if len(parts) > 2:
        raise DecayDataError("BadNumericField", field=field, value=raw)
    return x, err


class TransitionBase:
    """Directed edge origin -> dest carrying total branching intensity i_total."""

    kind: TransitionKind

    def __init__(self, origin: NucLevel, dest: NucLevel, to_atom: DecayAtom) -> None:
        self.origin = origin.index
        self.dest = dest.index
        self.to_Z = dest.Z
        self.to_atom = to_atom
        self.i_total = 0.0

    def fire(
        self,
        events: List[DecayEvent],
        rnd: NDArray[np.float64] | None,
        rng: np.random.Generator,
    ) -> None:
        raise NotImplementedError

    def emission_ndf(self) -> int:
        """Uniform slots read by `fire` itself."""
        return 0

    def can_leave_k_vacancy(self) -> bool:
        return False

    def get_ndf(self) -> int:
        return self.emission_ndf() + (AUGER_NDF if self.can_leave_k_vacancy() else 0)

    def n_vacant(self, shell: int) -> int:
        """Vacancies left in the given shell by the most recent firing."""
        return 0

    def get_p_vacant(self, shell: int) -> float:
        """Probability that a firing leaves a vacancy in the given shell."""
        return 0.0

    def scale(self, s: float) -> None:
        self.i_total *= s

    def describe(self, verbose: bool = False) -> str:
        return f"[{self.origin}]->[{self.dest}] {self.i_total:.3g} ({self.get_ndf()} DF)"


class ConversionGamma(TransitionBase):
    """
    Gamma transition competing with internal conversion.

    `shells` holds one bin per conversion shell (K, L, ...) followed by the photon
    bin, all scaled by the photon intensity so the total is the transition
    intensity. `subshells[n]` splits shell n among its subshells.
    """

    kind = TransitionKind.GAMMA

    def __init__(self, origin: NucLevel, dest: NucLevel, to_atom: DecayAtom, rec: Mapping[str, str]) -> None:
        super().__init__(origin, dest, to_atom)
        self.e_gamma = origin.E - dest.E
        self.i_gamma = record_float(rec, "Igamma", 0.0) / 100.0
        self.shells = WeightedSelector()
        self.subshells: List[WeightedSelector] = []
        self.shell_uncert: List[float] = []
        self.ce_energies: List[List[float]] = []
        for n, shell_name in enumerate(SHELL_NAMES):
            field = f"CE_{shell_name}"
            raw = str(rec.get(field, "")).strip()
            if not raw:
                break
            prob_part, _, ratio_part = raw.partition("@")
            prob, err = parse_value_error(prob_part, field)
            self.shells.add_prob(prob)
            self.shell_uncert.append(err * self.i_gamma)
            if ratio_part:
                try:
                    ratios = [float(v) for v in ratio_part.split(":")]
                except ValueError:
                    raise DecayDataError("BadSubshellRatio", field=field, value=raw) from None
            else:
                ratios = [1.0]
            sub = WeightedSelector()
            for r in ratios:
                sub.add_prob(r)
            self.subshells.append(sub)
            # Resolve binding energies now so lookup misses surface at build time.
            energies = [self.e_gamma - to_atom.table.get_subshell_binding(n, i) for i in range(len(ratios))]
            for i, e in enumerate(energies):
                if e < 0.0 and prob > 0.0 and ratios[i] > 0.0:
                    raise DecayDataError(
                        "ConversionBelowBinding",
                        field=field,
                        value=raw,
                        detail=f"{self.e_gamma:.3f} keV gamma cannot eject subshell {i}",
                    )
            self.ce_energies.append(energies)
        # remaining weight goes to the photon
        self.shells.add_prob(1.0)
        self.shells.scale(self.i_gamma)
        self.i_total = self.shells.cum_prob
        self.shell = -1
        self.subshell = -1

    def fire(
        self,
        events: List[DecayEvent],
        rnd: NDArray[np.float64] | None,
        rng: np.random.Generator,
    ) -> None:
        self.shell = self.shells.select(rnd, rng)
        if self.shell < len(self.subshells):
            self.subshell = self.subshells[self.shell].select(rnd, rng)
            particle = ParticleType.ELECTRON
            energy = self.ce_energies[self.shell][self.subshell]
        else:
            self.shell = self.subshell = -1
            particle = ParticleType.GAMMA
            energy = self.e_gamma
        events.append(DecayEvent(particle=particle, energy_keV=energy, direction=random_direction(rnd, rng)))

    def emission_ndf(self) -> int:
        return DIRECTION_NDF

    def can_leave_k_vacancy(self) -> bool:
        return bool(self.subshells)

    def n_vacant(self, shell: int) -> int:
        return int(self.shell == shell)

    def get_p_vacant(self, shell: int) -> float:
        if not (0 <= shell < len(self.subshells)) or not self.shells.cum_prob > 0.0:
            return 0.0
        return self.shells.get_prob(shell)

    def conversion_efficiency(self) -> float:
        """Fraction of firings that emit a conversion electron."""
        return sum(self.get_p_vacant(n) for n in range(len(self.subshells)))

    def shell_average_energy(self, n: int) -> float:
        """Subshell-weighted mean conversion-electron energy for shell n."""
        sub = self.subshells[n]
        probs = np.array([sub.get_prob(i) for i in range(sub.n_bins)])
        return float(np.dot(probs, self.ce_energies[n]) / probs.sum())

    def average_ce_energy(self) -> Tuple[float, float]:
        """Mean conversion-electron energy over shells and its uncertainty."""
        if not self.subshells:
            return 0.0, 0.0
        probs = np.array([self.get_p_vacant(n) for n in range(len(self.subshells))])
        e_shell = np.array([self.shell_average_energy(n) for n in range(len(self.subshells))])
        w = probs.sum()
        if not w > 0.0:
            return float(e_shell.mean()), 0.0
        e = float(np.dot(probs, e_shell) / w)
        u = (e_shell - e) * np.array(self.shell_uncert)
        return e, float(np.sqrt(np.sum(u * u)) / w)

    def scale(self, s: float) -> None:
        super().scale(s)
        self.i_gamma *= s
        self.shell_uncert = [u * s for u in self.shell_uncert]
        self.shells.scale(s)

    def describe(self, verbose: bool = False) -> str:
        ceff = 100.0 * self.conversion_efficiency()
        line = f"Gamma {self.e_gamma:.1f} ({(100.0 - ceff) * self.i_total:.3g}%)"
        if self.subshells:
            eavg, eerr = self.average_ce_energy()
            line += f", CE {eavg:.2f}~{eerr:.2f} ({ceff * self.i_total:.3g}%)"
        line += "\t" + super().describe(verbose)
        if verbose:
            for n, sub in enumerate(self.subshells):
                line += (
                    f"\n\t[{SHELL_NAMES[n]}] {self.shell_average_energy(n):.2f}keV\t"
                    f"{100.0 * self.shells.get_prob(n):.3g}%\t"
                    f"{100.0 * self.shells.get_prob(n) * self.i_total:.3g}%"
                )
                if sub.n_bins > 1:
                    line += "\t" + ":".join(f"{sub.get_prob(i):.3g}" for i in range(sub.n_bins))
        return line


class BetaDecayTransition(TransitionBase):
    """
    Beta-minus or beta-plus branch with inverse-CDF energy sampling.

    The Fermi / Gamow-Teller matrix elements (`spectrum.M2_F`, `spectrum.M2_GT`,
    including `set_matrix_elements` overrides) are reporting-only: allowed and
    unique-forbidden shapes do not depend on them, so the tabulated quantiles
    are unaffected. They feed `spectrum.matrix_element_weight()`.
    """

    kind = TransitionKind.BETA

    def __init__(
        self,
        origin: NucLevel,
        dest: NucLevel,
        to_atom: DecayAtom,
        positron: bool = False,
        forbidden: int = 0,
        config: DecayConfig | None = None,
    ) -> None:
        super().__init__(origin, dest, to_atom)
        cfg = config or DecayConfig()
        self.positron = bool(positron)
        self.endpoint_keV = origin.E - dest.E
        if not self.endpoint_keV > 0.0:
            raise DecayDataError(
                "BadBetaEndpoint", field="to", value=dest.name, detail=f"Q = {self.endpoint_keV} keV"
            )
        self.spectrum = BetaSpectrumShape(
            A=dest.A,
            Z=-dest.Z if self.positron else dest.Z,
            endpoint_keV=self.endpoint_keV,
            forbidden=int(forbidden),
            r0_fm=cfg.nuclear_radius_fm,
            ga_over_gv=cfg.ga_over_gv,
        )
        # TODO: equal jpi tags only approximate a pure Fermi transition; take selection rules from parsed spins.
        if origin.jpi == dest.jpi:
            self.spectrum.M2_F, self.spectrum.M2_GT = 1.0, 0.0
        else:
            self.spectrum.M2_F, self.spectrum.M2_GT = 0.0, 1.0
        self.npx = cfg.beta_npx
        self.quantiles = QuantileTable(*self.spectrum.tabulate(self.npx))

    def set_matrix_elements(self, M2_F: float, M2_GT: float) -> None:
        """Override the matrix elements; the sampled spectrum does not change."""
        self.spectrum.M2_F = float(M2_F)
        self.spectrum.M2_GT = float(M2_GT)

    def fire(
        self,
        events: List[DecayEvent],
        rnd: NDArray[np.float64] | None,
        rng: np.random.Generator,
    ) -> None:
        direction = random_direction(rnd, rng)
        u = float(rnd[2]) if rnd is not None else float(rng.uniform(0.0, 1.0))
        events.append(
            DecayEvent(
                particle=ParticleType.POSITRON if self.positron else ParticleType.ELECTRON,
                energy_keV=self.quantiles.eval(u),
                direction=direction,
            )
        )

    def emission_ndf(self) -> int:
        return DIRECTION_NDF + 1

    def describe(self, verbose: bool = False) -> str:
        label = "Beta+" if self.positron else "Beta-"
        return f"{label} {self.endpoint_keV:.1f} (mean {self.quantiles.mean():.1f})\t" + super().describe(verbose)


class ElectronCapture(TransitionBase):
    """
    Electron capture; only effect is a possible K vacancy in the daughter atom.

    With a uniform buffer, the K-capture draw reuses the residual left in slot 0
    by the branch selection, so `fire` consumes exactly that one slot; the
    following AUGER_NDF slots are reserved for relaxing the vacancy.
    """

    kind = TransitionKind.ECAPTURE

    def __init__(self, origin: NucLevel, dest: NucLevel, to_atom: DecayAtom) -> None:
        super().__init__(origin, dest, to_atom)
        self.is_k_capture = False

    def fire(
        self,
        events: List[DecayEvent],
        rnd: NDArray[np.float64] | None,
        rng: np.random.Generator,
    ) -> None:
        u = float(rnd[0]) if rnd is not None else float(rng.uniform(0.0, 1.0))
        self.is_k_capture = u < self.to_atom.i_missing

    def emission_ndf(self) -> int:
        return 1

    def can_leave_k_vacancy(self) -> bool:
        return True

    def n_vacant(self, shell: int) -> int:
        return int(shell == 0 and self.is_k_capture)

    def describe(self, verbose: bool = False) -> str:
        return "EC\t" + super().describe(verbose)
