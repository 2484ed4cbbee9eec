from collections import Counter

import pytest

from fountainstore.rng import MT19937
from fountainstore.soliton import RobustSolitonDistribution


def test_pdf_shape():
    dist = RobustSolitonDistribution(MT19937(1), 10)
    pdf = dist.pdf()
    assert len(pdf) == 11
    assert pdf[0] == 0.0
    assert all(w > 0 for w in pdf[1:])


def test_ideal_soliton_part():
    dist = RobustSolitonDistribution(MT19937(1), 10)
    assert dist.p(1, 10) == 1 / 10
    assert dist.p(4, 10) == 1 / 12


def test_spike_then_zero_for_large_max():
    dist = RobustSolitonDistribution(MT19937(1), 100)
    assert dist.t(97, 100) > dist.t(96, 100)
    assert dist.t(98, 100) == 0.0
    assert dist.t(100, 100) == 0.0


def test_degrees_within_range():
    dist = RobustSolitonDistribution(MT19937(42), 10)
    degrees = [dist.next_degree() for _ in range(3000)]
    assert min(degrees) >= 1
    assert max(degrees) <= 10


def test_single_fragment_always_degree_one():
    dist = RobustSolitonDistribution(MT19937(8), 1)
    assert {dist.next_degree() for _ in range(200)} == {1}


def test_same_seed_same_degrees():
    gen = MT19937()
    dist = RobustSolitonDistribution(gen, 100)
    gen.seed(2024)
    first = [dist.next_degree() for _ in range(50)]
    gen.seed(2024)
    assert [dist.next_degree() for _ in range(50)] == first


def test_sampling_follows_pdf():
    dist = RobustSolitonDistribution(MT19937(7), 10)
    samples = 20000
    counts = Counter(dist.next_degree() for _ in range(samples))
    pdf = dist.pdf()
    total = sum(pdf)
    for degree in range(1, 11):
        expected = pdf[degree] / total
        assert counts[degree] / samples == pytest.approx(expected, abs=0.02)


def test_invalid_max_degree():
    with pytest.raises(ValueError):
        RobustSolitonDistribution(MT19937(), 0)