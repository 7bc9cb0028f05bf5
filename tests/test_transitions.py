"""Gamma/conversion and electron-capture transition behaviour."""

import numpy as np
import pytest

from decay.atom import AUGER_NDF, DecayAtom
from decay.binding import BindingEnergyTable
from decay.errors import DecayDataError
from decay.events import ParticleType
from decay.levels import NucLevel, parse_level_name
from decay.transitions import ConversionGamma, ElectronCapture, TransitionKind, parse_value_error


def _levels():
    upper = NucLevel(name="137.56.1", A=137, Z=56, n=1, E=661.657, hl=153.0, jpi="11/2-", index=1)
    ground = NucLevel(name="137.56.0", A=137, Z=56, n=0, E=0.0, hl=float("inf"), jpi="3/2+", index=0)
    return upper, ground


def _barium() -> DecayAtom:
    return DecayAtom(BindingEnergyTable(Z=56, name="Ba", shells=[[37.441], [5.989, 5.624, 5.247], [1.293]]))


def test_level_record_parsing() -> None:
    lv = NucLevel.from_record({"nm": "137.56.1", "E": "661.657", "hl": "-1", "jpi": "11/2-"})
    assert (lv.A, lv.Z, lv.n) == (137, 56, 1)
    assert lv.hl == float("inf")
    with pytest.raises(DecayDataError) as exc:
        parse_level_name("137.56")
    assert exc.value.field == "nm" and exc.value.value == "137.56"


def test_value_error_parsing() -> None:
    assert parse_value_error("0.09~0.002", "CE_K") == (0.09, 0.002)
    assert parse_value_error("0.5", "CE_K") == (0.5, 0.0)
    with pytest.raises(DecayDataError):
        parse_value_error("x~1", "CE_K")


def test_conversion_gamma_intensities() -> None:
    upper, ground = _levels()
    g = ConversionGamma(
        upper, ground, _barium(), {"Igamma": "85.1", "CE_K": "0.0915~0.001", "CE_L": "0.0165@0.6:0.3:0.1"}
    )
    assert g.kind is TransitionKind.GAMMA
    assert g.e_gamma == pytest.approx(661.657)
    assert g.i_total == pytest.approx(0.851 * (1.0 + 0.0915 + 0.0165))
    assert g.get_p_vacant(0) == pytest.approx(0.0915 / 1.108)
    assert g.conversion_efficiency() == pytest.approx(0.108 / 1.108)
    assert g.ce_energies[0] == [pytest.approx(661.657 - 37.441)]
    assert g.shell_average_energy(1) == pytest.approx(661.657 - (0.6 * 5.989 + 0.3 * 5.624 + 0.1 * 5.247))
    e, err = g.average_ce_energy()
    assert g.ce_energies[0][0] < e < g.ce_energies[1][2]
    assert err >= 0.0
    assert "Gamma 661.7" in g.describe(verbose=True)


def test_conversion_gamma_fire_uses_selected_shell() -> None:
    upper, ground = _levels()
    g = ConversionGamma(upper, ground, _barium(), {"Igamma": "100", "CE_K": "1.0", "CE_L": "1.0@1:1:2"})
    # bins K:[0, 1/3), L:[1/3, 2/3), gamma:[2/3, 1)
    events = []
    rng = np.random.default_rng(0)
    g.fire(events, np.array([0.1, 0.5]), rng)
    assert events[-1].particle is ParticleType.ELECTRON
    assert events[-1].energy_keV == pytest.approx(661.657 - 37.441)
    assert g.n_vacant(0) == 1
    g.fire(events, np.array([0.6, 0.5]), rng)  # L, residual 0.8 -> L3
    assert events[-1].energy_keV == pytest.approx(661.657 - 5.247)
    assert g.n_vacant(0) == 0
    g.fire(events, np.array([0.9, 0.5]), rng)
    assert events[-1].particle is ParticleType.GAMMA
    assert events[-1].energy_keV == pytest.approx(661.657)
    assert g.emission_ndf() == 2
    assert g.get_ndf() == 2 + AUGER_NDF


def test_missing_conversion_binding_is_build_error() -> None:
    upper, ground = _levels()
    with pytest.raises(DecayDataError) as exc:
        ConversionGamma(upper, ground, _barium(), {"Igamma": "100", "CE_K": "0.1", "CE_L": "0.1", "CE_M": "0.1@1:1"})
    assert exc.value.code == "MissingBindingEnergy"


def test_electron_capture_k_vacancy_draw() -> None:
    parent = NucLevel(name="137.57.0", A=137, Z=57, n=0, E=700.0, hl=1e12, index=2)
    _, ground = _levels()
    atom = _barium()
    atom.i_missing = 0.7
    ec = ElectronCapture(parent, ground, atom)
    assert ec.emission_ndf() == 1
    assert ec.get_ndf() == 1 + AUGER_NDF
    events = []
    ec.fire(events, np.array([0.2]), np.random.default_rng(0))
    assert ec.n_vacant(0) == 1 and ec.n_vacant(1) == 0
    ec.fire(events, np.array([0.9]), np.random.default_rng(0))
    assert ec.n_vacant(0) == 0
    assert events == []


def test_photon_only_gamma_reserves_no_auger_slots() -> None:
    upper, ground = _levels()
    g = ConversionGamma(upper, ground, _barium(), {"Igamma": "100"})
    assert not g.can_leave_k_vacancy()
    assert g.get_ndf() == 2


def test_conversion_below_binding_is_build_error() -> None:
    upper = NucLevel(name="137.56.2", A=137, Z=56, n=2, E=30.0, hl=1e-9, index=1)
    _, ground = _levels()
    with pytest.raises(DecayDataError) as exc:
        ConversionGamma(upper, ground, _barium(), {"Igamma": "100", "CE_K": "0.5"})
    assert exc.value.code == "ConversionBelowBinding" and exc.value.field == "CE_K"
    # an unreachable shell is fine while its probability is zero
    g = ConversionGamma(upper, ground, _barium(), {"Igamma": "100", "CE_K": "0", "CE_L": "0.5"})
    assert g.ce_energies[1][0] == pytest.approx(30.0 - 5.989)
