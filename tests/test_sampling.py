"""Direction, quantile-table and vertex sampling helpers."""

import numpy as np
import pytest

from sampling.directions import random_direction
from sampling.positions import CubePosGen, CylPosGen
from sampling.quantiles import QuantileTable


def test_random_direction_is_unit_and_follows_slots() -> None:
    d = random_direction(np.array([1.0, 0.25]))
    np.testing.assert_allclose(d, [0.0, 0.0, 1.0], atol=1e-12)
    d = random_direction(np.array([0.5, 0.25]))
    np.testing.assert_allclose(d, [0.0, 1.0, 0.0], atol=1e-12)
    rng = np.random.default_rng(3)
    for _ in range(20):
        assert np.linalg.norm(random_direction(rng=rng)) == pytest.approx(1.0)


def test_isotropic_mean_direction_vanishes() -> None:
    rng = np.random.default_rng(5)
    dirs = np.array([random_direction(rng=rng) for _ in range(5000)])
    np.testing.assert_allclose(dirs.mean(axis=0), 0.0, atol=0.05)


def test_quantile_table_inverts_linear_density() -> None:
    """pdf(x) = 2x on [0, 1] has quantile sqrt(u)."""
    q = QuantileTable.from_function(lambda x: 2.0 * x, 0.0, 1.0, npx=1001)
    for u in (0.0, 0.04, 0.25, 0.81, 1.0):
        assert q.eval(u) == pytest.approx(np.sqrt(u), abs=2e-3)
    assert q.mean() == pytest.approx(2.0 / 3.0, abs=1e-3)


def test_quantile_table_skips_empty_regions() -> None:
    x = np.array([0.0, 1.0, 2.0, 3.0])
    pdf = np.array([0.0, 0.0, 1.0, 1.0])
    q = QuantileTable(x, pdf)
    assert 1.0 <= q.eval(0.1) <= 2.0
    assert q.eval(0.5) == pytest.approx(2.25)
    assert q.eval(1.0) == pytest.approx(3.0)


def test_quantile_table_rejects_zero_density() -> None:
    with pytest.raises(ValueError):
        QuantileTable(np.array([0.0, 1.0]), np.array([0.0, 0.0]))


def test_vertex_generators() -> None:
    np.testing.assert_allclose(CubePosGen().gen_pos(np.array([0.1, 0.2, 0.3, 0.9])), [0.1, 0.2, 0.3])
    pos = CylPosGen(r=2.0, dz=4.0).gen_pos(np.array([0.25, 1.0, 0.75]))
    np.testing.assert_allclose(pos, [0.0, 2.0, 1.0], atol=1e-12)
    rng = np.random.default_rng(0)
    pts = np.array([CylPosGen(r=1.0, dz=2.0).gen_pos(rng=rng) for _ in range(200)])
    assert np.all(np.hypot(pts[:, 0], pts[:, 1]) <= 1.0 + 1e-12)
    assert np.all(np.abs(pts[:, 2]) <= 1.0)


def test_samplers_need_a_random_source() -> None:
    with pytest.raises(ValueError):
        random_direction()
    with pytest.raises(ValueError):
        CubePosGen().gen_pos()
    with pytest.raises(ValueError):
        CylPosGen(r=1.0, dz=1.0).gen_pos()
