"""Distribution and key-movement statistics over ring lookups.

Everything here works on plain ``{node_id: count}`` tallies and
``{key: node_id}`` mappings so it can be fed from the ring manager, the HTTP
layer, the walkthrough or the benchmark alike.
"""
import math
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, Optional

GRADES = [
    (95, "A+ (excellent)"),
    (90, "A (very good)"),
    (80, "B (good)"),
    (70, "C (fair)"),
    (60, "D (poor)"),
]
FAILING_GRADE = "F (failing)"


def tally(owners: Iterable) -> Dict[str, int]:
    """Count owner ids, skipping ``None`` (unresolved) entries."""
    return dict(Counter(owner for owner in owners if owner is not None))


def standard_deviation(counts, mean):
    counts = list(counts)
    if not counts:
        return 0.0
    variance = sum((count - mean) ** 2 for count in counts) / len(counts)
    return math.sqrt(variance)


def uniformity_score(counts, total=None):
    """100 minus the coefficient of variation in percent, floored at 0."""
    counts = list(counts)
    if not counts:
        return 0.0
    if total is None:
        total = sum(counts)
    expected = total / len(counts)
    if expected <= 0:
        return 0.0
    cv = standard_deviation(counts, expected) / expected
    return max(0.0, 100.0 - cv * 100.0)


def uniformity_grade(score):
    for threshold, grade in GRADES:
        if score >= threshold:
            return grade
    return FAILING_GRADE


@dataclass
class DistributionStatistics:
    expected_keys_per_node: float
    min_keys_per_node: int
    max_keys_per_node: int
    standard_deviation: float
    imbalance_ratio: float

    @classmethod
    def from_counts(cls, total_key_count, node_distribution):
        counts = list(node_distribution.values())
        expected = total_key_count / len(counts)
        low, high = min(counts), max(counts)
        return cls(
            expected_keys_per_node=expected,
            min_keys_per_node=low,
            max_keys_per_node=high,
            standard_deviation=standard_deviation(counts, expected),
            imbalance_ratio=high / low if low > 0 else 0.0,
        )


@dataclass
class DistributionReport:
    """Result of resolving a batch of keys and tallying their owners."""

    total_key_count: int
    node_distribution: Dict[str, int]
    distribution_percentages: Dict[str, float] = field(default_factory=dict)
    uniformity_score: float = 0.0
    uniformity_grade: Optional[str] = None
    statistics: Optional[DistributionStatistics] = None

    @classmethod
    def build(cls, total_key_count, node_distribution):
        report = cls(total_key_count=total_key_count, node_distribution=dict(node_distribution))
        if not node_distribution or total_key_count <= 0:
            return report

        report.distribution_percentages = {
            node_id: count / total_key_count * 100.0
            for node_id, count in node_distribution.items()
        }
        report.uniformity_score = uniformity_score(node_distribution.values(), total_key_count)
        report.uniformity_grade = uniformity_grade(report.uniformity_score)
        report.statistics = DistributionStatistics.from_counts(total_key_count, node_distribution)
        return report

    @property
    def node_count(self):
        return len(self.node_distribution)

    def to_dict(self):
        return asdict(self)


def capture_mapping(manager, keys):
    """Snapshot ``{key: owner id}`` for every key that resolves to a node."""
    mapping = {}
    for key in keys:
        node = manager.resolve(key)
        if node is not None:
            mapping[key] = node.id
    return mapping


def moved_keys(before, after):
    """Keys whose owner changed between two mappings.

    Keys missing from ``after`` (ring emptied) are not counted as moved.
    """
    return [
        key for key, owner in before.items()
        if after.get(key) is not None and after[key] != owner
    ]


def movement_ratio(before, after):
    if not before:
        return 0.0
    return len(moved_keys(before, after)) / len(before)
