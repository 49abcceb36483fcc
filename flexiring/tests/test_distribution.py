"""
Unit Tests: Distribution Analysis

Tests:
    - DistributionReport arithmetic on fixed counts
    - key_distribution over a real ring
    - measure_disruption after removing a target
"""

import math

import pytest

from flexiring.hashing import md5_hash
from flexiring.sharding import (
    ConsistentHashRing,
    DistributionReport,
    key_distribution,
    measure_disruption,
    placement,
    sample_keys,
)


class TestSampleKeys:

    def test_format(self):
        assert sample_keys(3) == ["object-0", "object-1", "object-2"]

    def test_custom_format(self):
        assert sample_keys(2, "k{}") == ["k0", "k1"]


class TestDistributionReport:
    """Arithmetic on known counts."""

    def test_shares_and_stats(self):
        report = DistributionReport(counts={"a": 10, "b": 30})
        assert report.total == 40
        assert report.shares == {"a": 0.25, "b": 0.75}
        assert report.mean == 20.0
        assert report.stddev == 10.0
        assert report.coefficient_of_variation == 0.5
        assert report.balance_factor == 3.0

    def test_empty(self):
        report = DistributionReport(counts={})
        assert report.total == 0
        assert report.mean == 0.0
        assert report.stddev == 0.0
        assert report.coefficient_of_variation == 0.0
        assert report.balance_factor == 1.0

    def test_starved_target(self):
        report = DistributionReport(counts={"a": 5, "b": 0})
        assert math.isinf(report.balance_factor)
        assert report.shares == {"a": 1.0, "b": 0.0}

    def test_weighted_deviation(self):
        report = DistributionReport(counts={"light": 25, "heavy": 75})
        deviation = report.weighted_deviation({"light": 1, "heavy": 2})
        assert deviation["light"] == pytest.approx(-0.25)
        assert deviation["heavy"] == pytest.approx(0.125)

    def test_summary_lists_targets(self):
        text = DistributionReport(counts={"a": 1, "b": 3}, unplaced=2).summary()
        assert text.startswith("4 keys over 2 targets")
        assert "a: 1 (25.0%)" in text
        assert "b: 3 (75.0%)" in text
        assert "unplaced=2" in text


class TestKeyDistribution:
    """Distribution over real rings."""

    def test_counts_every_key(self):
        ring = ConsistentHashRing(hasher=md5_hash, replicas=128)
        ring.add_targets(["s1", "s2", "s3"]).unwrap()

        report = key_distribution(ring, sample_keys(3000))

        assert report.total == 3000
        assert set(report.counts) == {"s1", "s2", "s3"}
        assert report.coefficient_of_variation < 0.25

    def test_weights_reflected(self):
        ring = ConsistentHashRing(hasher=md5_hash, replicas=256)
        ring.add_target("light", 1).unwrap()
        ring.add_target("heavy", 2).unwrap()

        report = key_distribution(ring, sample_keys(10_000))

        assert report.counts["heavy"] > report.counts["light"]
        for deviation in report.weighted_deviation({"light": 1, "heavy": 2}).values():
            assert abs(deviation) < 0.2

    def test_empty_ring_leaves_keys_unplaced(self):
        report = key_distribution(ConsistentHashRing(), sample_keys(10))
        assert report.counts == {}
        assert report.unplaced == 10

    def test_placement(self):
        ring = ConsistentHashRing()
        ring.add_target("only").unwrap()
        assert placement(ring, ["x", "y"]) == {"x": "only", "y": "only"}


class TestDisruption:
    """Keys moved by topology changes."""

    def test_fixed_placements(self):
        before = {"k1": "a", "k2": "b", "k3": "a", "k4": "c"}
        after = {"k1": "a", "k2": "c", "k3": "c", "k4": "c", "k5": "a"}

        report = measure_disruption(before, after)

        assert report.total == 4
        assert report.moved == 2
        assert report.fraction == 0.5
        assert report.moved_from == {"b": 1, "a": 1}
        assert report.moved_to == {"c": 2}

    def test_no_overlap(self):
        report = measure_disruption({"a": "x"}, {"b": "x"})
        assert report.total == 0
        assert report.fraction == 0.0

    def test_removing_one_of_five(self):
        ring = ConsistentHashRing(hasher=md5_hash, replicas=128)
        ring.add_targets(["s1", "s2", "s3", "s4", "s5"]).unwrap()
        keys = sample_keys(5000)
        before = placement(ring, keys)

        ring.remove_target("s3").unwrap()
        report = measure_disruption(before, placement(ring, keys))

        assert set(report.moved_from) == {"s3"}
        assert "s3" not in report.moved_to
        assert 0.1 < report.fraction < 0.3
