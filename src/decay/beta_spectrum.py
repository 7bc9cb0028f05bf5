"""
Beta-decay kinetic-energy spectrum from Fermi theory.

The allowed spectrum is

    dN/dW ∝ p W (W0 - W)^2 F(Z, W)

with W the total electron energy and p its momentum, both in electron-mass units,
and F the relativistic Fermi function evaluated at the nuclear radius
R = r0 A^(1/3). Unique n-th forbidden transitions multiply by the shape factor

    C(W) = sum_k p^(2k) q^(2(n-k)) / ((2k+1)! (2(n-k)+1)!),   q = W0 - W.

Positron emission uses a negative daughter charge in F.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.special import factorial, gammaln, loggamma

from decay.config import ALPHA, LAMBDA_E_FM, M_E_KEV


def log_fermi_function(Z: int, W: NDArray[np.float64], R: float) -> NDArray[np.float64]:
    """
    Natural log of the relativistic Fermi function F(Z, W).

    Args:
        Z: Daughter charge (negative for positron emission).
        W: Total electron energy in units of m_e c^2 (W > 1).
        R: Nuclear radius in units of hbar/(m_e c).
    """
    W = np.asarray(W, dtype=float)
    p = np.sqrt(np.clip(W * W - 1.0, a_min=1e-300, a_max=None))
    az = ALPHA * Z
    gamma = np.sqrt(1.0 - az * az)
    eta = az * W / p
    return (
        np.log(2.0 * (1.0 + gamma))
        + (2.0 * gamma - 2.0) * np.log(2.0 * p * R)
        + np.pi * eta
        + 2.0 * np.real(loggamma(gamma + 1j * eta))
        - 2.0 * gammaln(2.0 * gamma + 1.0)
    )


def forbidden_shape_factor(order: int, p: NDArray[np.float64], q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Unique-forbidden shape factor of the given order (1 for allowed)."""
    if order <= 0:
        return np.ones_like(p, dtype=float)
    c = np.zeros_like(p, dtype=float)
    for k in range(order + 1):
        c += p ** (2 * k) * q ** (2 * (order - k)) / (
            factorial(2 * k + 1, exact=True) * factorial(2 * (order - k) + 1, exact=True)
        )
    return c


@dataclass
class BetaSpectrumShape:
    """Unnormalized beta kinetic-energy density for one transition."""

    A: int
    Z: int  # daughter charge, negated for positrons
    endpoint_keV: float
    forbidden: int = 0
    M2_F: float = 0.0
    M2_GT: float = 1.0
    r0_fm: float = 1.2
    ga_over_gv: float = 1.2754

    @property
    def radius(self) -> float:
        """Nuclear radius in units of the reduced electron Compton wavelength."""
        return self.r0_fm * max(self.A, 1) ** (1.0 / 3.0) / LAMBDA_E_FM

    def decay_prob(self, ke_keV: NDArray[np.float64] | float) -> NDArray[np.float64]:
        """Spectrum density at kinetic energy ke_keV; zero outside (0, endpoint)."""
        ke = np.atleast_1d(np.asarray(ke_keV, dtype=float))
        out = np.zeros_like(ke)
        inside = (ke > 0.0) & (ke < self.endpoint_keV)
        if not np.any(inside):
            return out
        W = 1.0 + ke[inside] / M_E_KEV
        W0 = 1.0 + self.endpoint_keV / M_E_KEV
        p = np.sqrt(W * W - 1.0)
        q = W0 - W
        log_f = log_fermi_function(self.Z, W, self.radius)
        out[inside] = p * W * q * q * np.exp(log_f) * forbidden_shape_factor(self.forbidden, p, q)
        return out

    def matrix_element_weight(self) -> float:
        """Relative transition strength |M_F|^2 + (gA/gV)^2 |M_GT|^2."""
        return self.M2_F + self.ga_over_gv**2 * self.M2_GT

    def tabulate(self, npx: int = 1000) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Return (energy grid, density) on npx points spanning [0, endpoint]."""
        x = np.linspace(0.0, self.endpoint_keV, int(npx))
        return x, self.decay_prob(x)
