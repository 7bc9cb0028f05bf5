"""Tests for cumulative-weight selection and residual reuse."""

import numpy as np
import pytest

from sampling.selector import WeightedSelector


def _selector(weights) -> WeightedSelector:
    sel = WeightedSelector()
    for w in weights:
        sel.add_prob(w)
    return sel


def test_uniform_sweep_visits_bins_in_order() -> None:
    """A sweep of u over [0, 1) walks through every positive bin once, in order."""
    sel = _selector([1.0, 2.0, 3.0, 0.5])
    visited = []
    for u in np.linspace(0.0, 1.0, 2001, endpoint=False):
        buf = np.array([u])
        idx = sel.select(buf)
        assert 0.0 <= buf[0] < 1.0
        if not visited or visited[-1] != idx:
            visited.append(idx)
    assert visited == [0, 1, 2, 3]


def test_residual_is_position_within_bin() -> None:
    sel = _selector([1.0, 3.0])
    buf = np.array([0.625])  # 2.5 of 4 -> halfway through bin 1
    assert sel.select(buf) == 1
    assert buf[0] == pytest.approx(0.5)


def test_zero_width_bins_are_never_selected() -> None:
    sel = _selector([0.0, 1.0, 0.0, 1.0, 0.0])
    hits = {sel.select(np.array([u])) for u in np.linspace(0.0, 1.0, 101)}
    assert hits == {1, 3}


def test_get_prob_and_scale() -> None:
    sel = _selector([1.0, 1.0, 2.0])
    assert [sel.get_prob(i) for i in range(3)] == pytest.approx([0.25, 0.25, 0.5])
    sel.scale(10.0)
    assert sel.cum_prob == pytest.approx(40.0)
    assert sel.get_prob(2) == pytest.approx(0.5)
    assert len(sel) == 3


def test_zero_total_weight_is_rejected() -> None:
    sel = _selector([0.0, 0.0])
    with pytest.raises(ValueError):
        sel.select(np.array([0.3]))
    with pytest.raises(ValueError):
        WeightedSelector().select(rng=np.random.default_rng(0))


def test_negative_weight_is_rejected() -> None:
    with pytest.raises(ValueError):
        _selector([1.0, -0.1])


def test_draws_from_generator_without_buffer() -> None:
    """Without a buffer the generator supplies the uniform; frequencies follow weights."""
    sel = _selector([1.0, 3.0])
    rng = np.random.default_rng(1)
    picks = np.array([sel.select(rng=rng) for _ in range(4000)])
    assert np.mean(picks == 1) == pytest.approx(0.75, abs=0.03)


def test_select_needs_a_random_source() -> None:
    with pytest.raises(ValueError):
        _selector([1.0, 2.0]).select()
