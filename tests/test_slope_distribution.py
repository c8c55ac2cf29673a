"""Tests for slope distributions."""

import numpy as np
import pytest

from trajectory_sampler.errors import ConfigurationError
from trajectory_sampler.trajectory.slope_distribution import (
    BetaSlopeDistribution,
    EmpiricalSlopeDistribution,
    beta_slope_factory,
    empirical_slope_factory,
    load_slope_table,
)


def test_beta_draws_in_unit_range_by_default():
    dist = BetaSlopeDistribution(rng=np.random.default_rng(1))
    draws = np.array([dist.draw() for _ in range(500)])
    assert draws.shape == (500, 2)
    assert np.all((draws >= 0.0) & (draws <= 1.0))
    # Beta(3, 2) has mean 0.6
    assert draws.mean() == pytest.approx(0.6, abs=0.05)


def test_beta_remaps_to_slope_range():
    dist = BetaSlopeDistribution(slope_min=-2.0, slope_max=2.0, rng=np.random.default_rng(2))
    draws = np.array([dist() for _ in range(200)])
    assert np.all((draws >= -2.0) & (draws <= 2.0))
    assert draws.min() < 0.0


def test_beta_is_deterministic_for_a_seed():
    a = BetaSlopeDistribution(rng=np.random.default_rng(123))
    b = BetaSlopeDistribution(rng=np.random.default_rng(123))
    assert [a.draw() for _ in range(10)] == [b.draw() for _ in range(10)]


@pytest.mark.parametrize("kwargs", [
    {"alpha": 0.0}, {"beta": -1.0}, {"slope_min": 1.0, "slope_max": 0.0},
])
def test_beta_rejects_bad_parameters(kwargs):
    with pytest.raises(ValueError):
        BetaSlopeDistribution(**kwargs)
    with pytest.raises(ValueError):
        beta_slope_factory(**kwargs)


def test_empirical_raw_samples(tmp_path):
    path = tmp_path / "slopes.txt"
    path.write_text("# x y\n0.1 0.2\n0.3, 0.4\n")
    dist = EmpiricalSlopeDistribution.from_file(path, rng=np.random.default_rng(0))
    assert len(dist) == 2
    assert not dist.weighted
    draws = {dist.draw() for _ in range(100)}
    assert draws == {(0.1, 0.2), (0.3, 0.4)}


def test_empirical_weighted_rows_follow_weights(tmp_path):
    path = tmp_path / "slopes_pdf.txt"
    path.write_text("0.1 0.1 0\n0.2 0.2 3\n0.3 0.3 1\n")
    dist = EmpiricalSlopeDistribution.from_file(path, rng=np.random.default_rng(5))
    assert dist.weighted
    draws = [dist.draw() for _ in range(4000)]
    assert (0.1, 0.1) not in draws
    share = draws.count((0.2, 0.2)) / len(draws)
    assert share == pytest.approx(0.75, abs=0.03)


def test_missing_slope_file_is_fatal(tmp_path):
    with pytest.raises(ConfigurationError, match="Cannot open"):
        empirical_slope_factory(tmp_path / "missing.txt")


@pytest.mark.parametrize("content", ["", "# only a comment\n", "0.1\n", "0.1 0.2\n0.1 0.2 0.3\n", "a b\n"])
def test_malformed_slope_file_is_fatal(tmp_path, content):
    path = tmp_path / "slopes.txt"
    path.write_text(content)
    with pytest.raises(ConfigurationError):
        load_slope_table(path)


def test_zero_total_weight_is_fatal(tmp_path):
    path = tmp_path / "slopes.txt"
    path.write_text("0.1 0.1 0\n0.2 0.2 0\n")
    with pytest.raises(ConfigurationError):
        load_slope_table(path)


def test_factories_build_independent_instances(tmp_path):
    path = tmp_path / "slopes.txt"
    path.write_text("\n".join(f"{i} {i}" for i in range(50)))
    factory = empirical_slope_factory(path)
    a = factory(np.random.default_rng(10))
    b = factory(np.random.default_rng(11))
    assert a is not b
    assert [a.draw() for _ in range(20)] != [b.draw() for _ in range(20)]

    beta = beta_slope_factory()
    c, d = beta(np.random.default_rng(1)), beta(np.random.default_rng(1))
    assert c.draw() == d.draw()


def test_empirical_rejects_bad_table():
    with pytest.raises(ValueError):
        EmpiricalSlopeDistribution(np.zeros((3, 3)))
    with pytest.raises(ValueError):
        EmpiricalSlopeDistribution(np.zeros((2, 2)), weights=[1.0])
