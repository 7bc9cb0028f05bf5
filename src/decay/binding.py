"""Atomic electron binding-energy provider consulted by the decay graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence

from decay.config import SHELL_NAMES
from decay.errors import DecayDataError


@dataclass
class BindingEnergyTable:
    """Binding energies (keV) of one element, indexed by shell then subshell."""

    Z: int
    name: str
    shells: List[List[float]] = field(default_factory=list)

    @property
    def n_shells(self) -> int:
        return len(self.shells)

    def n_subshells(self, shell: int) -> int:
        return len(self.shells[shell]) if 0 <= shell < len(self.shells) else 0

    def get_subshell_binding(self, shell: int, subshell: int) -> float:
        """Binding energy of (shell, subshell); a missing entry is a data error."""
        if not (0 <= shell < len(self.shells) and 0 <= subshell < len(self.shells[shell])):
            label = SHELL_NAMES[shell] if 0 <= shell < len(SHELL_NAMES) else str(shell)
            raise DecayDataError(
                "MissingBindingEnergy",
                field=f"{label}{subshell + 1}",
                value=self.Z,
                detail=f"no binding energy for {self.name}",
            )
        return float(self.shells[shell][subshell])

    @classmethod
    def from_record(cls, rec: Mapping[str, str]) -> "BindingEnergyTable":
        """
        Build a table from one record: `Z`, optional `nm`, and one field per shell
        letter listing subshell energies separated by ':' or ','.
        """
        try:
            Z = int(rec["Z"])
        except (KeyError, ValueError):
            raise DecayDataError("BadBindingZ", field="Z", value=rec.get("Z")) from None
        shells: List[List[float]] = []
        for s in SHELL_NAMES:
            raw = rec.get(s)
            if raw is None or not str(raw).strip():
                break
            try:
                shells.append([float(v) for v in str(raw).replace(",", ":").split(":") if v.strip()])
            except ValueError:
                raise DecayDataError("BadBindingEnergy", field=s, value=raw) from None
        return cls(Z=Z, name=rec.get("nm", f"Z{Z}"), shells=shells)


class BindingEnergyLibrary:
    """Lookup of binding-energy tables by atomic number."""

    def __init__(self, tables: Iterable[BindingEnergyTable] = ()) -> None:
        self.tables: Dict[int, BindingEnergyTable] = {}
        for t in tables:
            self.add_table(t)

    def add_table(self, table: BindingEnergyTable) -> None:
        self.tables[int(table.Z)] = table

    def get_binding_table(self, Z: int) -> BindingEnergyTable:
        try:
            return self.tables[int(Z)]
        except KeyError:
            raise DecayDataError("MissingBindingTable", field="Z", value=Z) from None

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, str]]) -> "BindingEnergyLibrary":
        return cls(BindingEnergyTable.from_record(r) for r in records)
