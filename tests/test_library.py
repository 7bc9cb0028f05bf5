"""Decay library caching, binding-energy records and the gamma forest generator."""

import numpy as np
import pytest

from decay.binding import BindingEnergyLibrary, BindingEnergyTable
from decay.config import DecayConfig
from decay.errors import DecayDataError
from decay.events import ParticleType
from decay.gamma_forest import GammaForest
from decay.library import NucDecayLibrary
from decay.system import DecayRecords


def _records() -> DecayRecords:
    return DecayRecords(
        levels=[{"nm": "10.5.0", "E": "0", "hl": "-1"}, {"nm": "10.5.1", "E": "80"}],
        gammas=[{"from": "10.5.1", "to": "10.5.0", "Igamma": "100"}],
    )


def test_library_builds_each_system_once(binding) -> None:
    calls = []

    def loader(name: str) -> DecayRecords:
        calls.append(name)
        if name != "Toy-10":
            raise KeyError(name)
        return _records()

    lib = NucDecayLibrary(loader, binding)
    first = lib.get_generator("Toy-10")
    assert lib.get_generator("Toy-10") is first
    assert calls == ["Toy-10"]
    with pytest.raises(DecayDataError, match="MissingDecayData"):
        lib.get_generator("Nope-1")
    assert not lib.has_generator("Nope-2")
    assert not lib.has_generator("Nope-2")
    assert calls.count("Nope-2") == 1
    assert lib.has_generator("Toy-10")


def test_library_remembers_any_build_failure(binding) -> None:
    calls = []

    def loader(name: str) -> DecayRecords:
        calls.append(name)
        return DecayRecords(
            levels=[{"nm": "10.6.0", "E": "900", "hl": "1e6"}, {"nm": "10.5.0", "E": "0", "hl": "-1"}],
            betas=[{"from": "10.6.0", "to": "10.5.0", "I": "100"}],
        )

    # a one-point beta grid is rejected by the quantile table with a plain ValueError
    lib = NucDecayLibrary(loader, binding, config=DecayConfig(beta_npx=1))
    assert not lib.has_generator("Toy-10")
    assert not lib.has_generator("Toy-10")
    assert calls == ["Toy-10"]


def test_binding_records() -> None:
    lib = BindingEnergyLibrary.from_records([{"Z": "26", "nm": "Fe", "K": "7.112", "L": "0.845:0.72:0.708"}])
    table = lib.get_binding_table(26)
    assert table.n_shells == 2 and table.n_subshells(1) == 3
    assert table.get_subshell_binding(1, 2) == pytest.approx(0.708)
    with pytest.raises(DecayDataError):
        table.get_subshell_binding(2, 0)
    with pytest.raises(DecayDataError):
        BindingEnergyTable.from_record({"nm": "X"})


def test_particle_names() -> None:
    assert ParticleType.from_name("e+") is ParticleType.POSITRON
    assert ParticleType.GAMMA.label == "gamma"
    with pytest.raises(ValueError):
        ParticleType.from_name("muon")


def test_gamma_forest_counts_and_energies(tmp_path) -> None:
    path = tmp_path / "gammas.txt"
    path.write_text("# energy weight\n1.0 1\n2.0 3\n")
    forest = GammaForest.from_file(path, e_to_keV=1000.0)
    np.testing.assert_allclose(forest.energies_keV, [1000.0, 2000.0])
    rng = np.random.default_rng(0)
    events = []
    assert forest.gen_decays(events, 3.0, rng) == 3
    assert forest.gen_decays(events, 0.0, rng) == 0
    assert len(events) == 3
    assert all(e.particle is ParticleType.GAMMA and e.energy_keV in (1000.0, 2000.0) for e in events)
    n = sum(forest.gen_decays([], 0.25, rng) for _ in range(4000))
    assert n == pytest.approx(1000, rel=0.1)


def test_gamma_forest_missing_file(tmp_path) -> None:
    with pytest.raises(DecayDataError, match="fileUnreadable"):
        GammaForest.from_file(tmp_path / "absent.txt")
