"""Physical constants and generator settings for decay-chain sampling."""

from __future__ import annotations

from dataclasses import dataclass

# Electron rest energy (CODATA 2018).
M_E_KEV = 510.99895  # keV
# Fine-structure constant (CODATA 2018).
ALPHA = 0.0072973525693
# Reduced Compton wavelength of the electron, hbar/(m_e c).
LAMBDA_E_FM = 386.15926796  # fm
# Atomic shell labels in binding-energy table order.
SHELL_NAMES = ("K", "L", "M", "N", "O", "P", "Q")
# Normalization keyword for ground-state-relative gamma intensities.
NORM_GROUNDSTATE = "groundstate"


@dataclass
class DecayConfig:
    """
    Settings shared by every decay system built from one library.

    - cutoff_s: half-life above which an intermediate level ends a prompt chain
      and becomes an independently sampled start point
    - beta_npx: grid points for tabulating beta spectra
    - nuclear_radius_fm: r0 in R = r0 * A^(1/3) for the Fermi function
    - ga_over_gv: axial/vector coupling ratio weighting Gamow-Teller strength
    """

    cutoff_s: float = float("inf")
    beta_npx: int = 1000
    nuclear_radius_fm: float = 1.2
    ga_over_gv: float = 1.2754
