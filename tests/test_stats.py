import pytest

from hashring.node import Node
from hashring.ring_manager import RingManager
from hashring.stats import (
    FAILING_GRADE,
    DistributionReport,
    capture_mapping,
    moved_keys,
    movement_ratio,
    tally,
    uniformity_grade,
    uniformity_score,
)


def test_tally_skips_unresolved():
    assert tally(["a", "b", None, "a"]) == {"a": 2, "b": 1}


def test_perfect_uniformity():
    assert uniformity_score([250, 250, 250, 250]) == 100.0


def test_uniformity_uses_coefficient_of_variation():
    # mean 100, stddev 50 -> cv 0.5
    assert uniformity_score([50, 150]) == pytest.approx(50.0)


def test_uniformity_floors_at_zero():
    assert uniformity_score([0, 0, 0, 1000]) == 0.0
    assert uniformity_score([]) == 0.0


@pytest.mark.parametrize(
    "score, grade",
    [
        (99.0, "A+ (excellent)"),
        (95.0, "A+ (excellent)"),
        (92.5, "A (very good)"),
        (85.0, "B (good)"),
        (70.0, "C (fair)"),
        (60.0, "D (poor)"),
        (10.0, FAILING_GRADE),
    ],
)
def test_grades(score, grade):
    assert uniformity_grade(score) == grade


def test_distribution_report():
    report = DistributionReport.build(1000, {"a": 300, "b": 200, "c": 500})

    assert report.node_count == 3
    assert report.distribution_percentages == {"a": 30.0, "b": 20.0, "c": 50.0}
    assert report.statistics.min_keys_per_node == 200
    assert report.statistics.max_keys_per_node == 500
    assert report.statistics.imbalance_ratio == 2.5
    assert report.statistics.expected_keys_per_node == pytest.approx(1000 / 3)
    assert report.uniformity_grade == uniformity_grade(report.uniformity_score)

    data = report.to_dict()
    assert data["total_key_count"] == 1000
    assert data["statistics"]["max_keys_per_node"] == 500


def test_empty_distribution_report():
    report = DistributionReport.build(1000, {})
    assert report.uniformity_score == 0.0
    assert report.uniformity_grade is None
    assert report.statistics is None
    assert report.to_dict()["node_distribution"] == {}


def test_moved_keys_ignores_keys_without_new_owner():
    before = {"k1": "a", "k2": "a", "k3": "b"}
    after = {"k1": "a", "k2": "c"}
    assert moved_keys(before, after) == ["k2"]
    assert movement_ratio(before, after) == pytest.approx(1 / 3)
    assert movement_ratio({}, after) == 0.0


def test_capture_mapping_against_ring():
    ring = RingManager(virtual_nodes_per_node=20)
    assert capture_mapping(ring, ["x", "y"]) == {}

    ring.register_node(Node("only"))
    assert capture_mapping(ring, ["x", "y"]) == {"x": "only", "y": "only"}
