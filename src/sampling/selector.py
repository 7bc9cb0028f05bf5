"""Discrete weighted selection over cumulative bins, with residual reuse for nested draws."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

# Largest double below 1.0; residuals are clipped here to stay in [0, 1).
_ONE_MINUS = float(np.nextafter(1.0, 0.0))


class WeightedSelector:
    """
    Cumulative-probability selector used for every branching decision.

    Bins are appended with `add_prob`; `select` maps a uniform value onto a bin
    by upper-bound search over the cumulative sums. When the uniform is passed in
    a caller-owned buffer, it is rewritten in place to its position inside the
    chosen bin so that a finer selector can reuse the same slot.
    """

    def __init__(self) -> None:
        self._cumprob: NDArray[np.float64] = np.zeros(1, dtype=float)

    def add_prob(self, w: float) -> None:
        """Append a bin of weight w (zero-width bins are never selected)."""
        w = float(w)
        if w < 0.0:
            raise ValueError(f"Bin weight must be non-negative, got {w}")
        self._cumprob = np.append(self._cumprob, self._cumprob[-1] + w)

    @property
    def cum_prob(self) -> float:
        """Total weight over all bins."""
        return float(self._cumprob[-1])

    @property
    def n_bins(self) -> int:
        return int(self._cumprob.size - 1)

    def __len__(self) -> int:
        return self.n_bins

    def cumulative(self) -> NDArray[np.float64]:
        """Return a copy of the cumulative weights (leading 0 included)."""
        return self._cumprob.copy()

    def get_prob(self, n: int) -> float:
        """Normalized probability mass of bin n."""
        if not 0 <= n < self.n_bins:
            raise IndexError(f"Bin {n} out of range for {self.n_bins} bins")
        return float((self._cumprob[n + 1] - self._cumprob[n]) / self._cumprob[-1])

    def scale(self, s: float) -> None:
        """Multiply every cumulative weight by s."""
        self._cumprob = self._cumprob * float(s)

    def select(
        self,
        rnd: NDArray[np.float64] | None = None,
        rng: np.random.Generator | None = None,
    ) -> int:
        """
        Select a bin index.

        Args:
            rnd: Optional buffer whose first slot holds a uniform in [0, 1).
                The slot is overwritten with the residual position inside the
                selected bin.
            rng: Generator used when no buffer is supplied; required then.

        Returns:
            0-based index of the selected bin.
        """
        total = self._cumprob[-1]
        if self.n_bins == 0 or not total > 0.0:
            raise ValueError("Cannot select from a selector with zero total weight")
        if rnd is None:
            if rng is None:
                raise ValueError("select needs either a uniform buffer or a generator")
            x = float(rng.uniform(0.0, 1.0)) * total
        else:
            u = float(rnd[0])
            assert 0.0 <= u <= 1.0, f"uniform input {u} outside [0, 1]"
            x = u * total
        if x >= total:
            # u == 1 lands on the last edge; take the last bin with nonzero width
            selected = int(np.searchsorted(self._cumprob, total, side="left")) - 1
        else:
            selected = int(np.searchsorted(self._cumprob, x, side="right")) - 1
        lo = self._cumprob[selected]
        hi = self._cumprob[selected + 1]
        if rnd is not None:
            residual = (x - lo) / (hi - lo) if hi > lo else 0.0
            rnd[0] = min(max(residual, 0.0), _ONE_MINUS)
        return selected
