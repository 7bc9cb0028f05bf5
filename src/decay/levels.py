"""Nuclear energy levels: the nodes of a decay graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

from decay.errors import DecayDataError


def parse_level_name(name: str) -> Tuple[int, int, int]:
    """Split an "A.Z.n" level name into integers."""
    parts = name.split(".")
    if len(parts) != 3:
        raise DecayDataError("BadLevelName", field="nm", value=name, detail="expected A.Z.n")
    try:
        return int(parts[0]), int(parts[1]), int(parts[2])
    except ValueError:
        raise DecayDataError("BadLevelName", field="nm", value=name, detail="expected A.Z.n") from None


def _float_field(rec: Mapping[str, str], key: str, default: float) -> float:
    raw = rec.get(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise DecayDataError("BadLevelField", field=key, value=raw) from None


@dataclass
class NucLevel:
    """
    One excited (or ground) state.

    index is the dense position after the ascending-energy sort and is only
    meaningful once the owning decay system has been built.
    """

    name: str
    A: int
    Z: int
    n: int
    E: float  # keV
    hl: float  # s; inf for stable
    jpi: str = ""
    flux_in: float = 0.0
    flux_out: float = 0.0
    index: int = -1

    @classmethod
    def from_record(cls, rec: Mapping[str, str]) -> "NucLevel":
        name = rec.get("nm", "0.0.0")
        A, Z, n = parse_level_name(name)
        hl = _float_field(rec, "hl", 0.0)
        if hl < 0.0:
            hl = float("inf")
        return cls(name=name, A=A, Z=Z, n=n, E=_float_field(rec, "E", 0.0), hl=hl, jpi=rec.get("jpi", ""))

    def scale(self, s: float) -> None:
        self.flux_in *= s
        self.flux_out *= s

    def describe(self) -> str:
        return (
            f"[{self.index}] A={self.A} Z={self.Z} jpi={self.jpi}\t E = {self.E:.2f} keV\t "
            f"HL = {self.hl:.3g} s\t Flux in = {self.flux_in:.3g}, out = {self.flux_out:.3g}"
        )
