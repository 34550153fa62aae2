"""Stage timing and match evaluation."""

from contextlib import contextmanager
from time import perf_counter
from typing import Dict, Iterable, Iterator, Tuple

from featmatch.types.feature_match import Match


class PerformanceMetrics:
    """Wall-clock durations of named pipeline stages, in milliseconds."""

    def __init__(self):
        self.durations: Dict[str, float] = {}

    @contextmanager
    def timer(self, stage: str) -> Iterator[None]:
        """Time the enclosed block and record it under ``stage``."""
        started = perf_counter()
        try:
            yield
        finally:
            self.durations[stage] = (perf_counter() - started) * 1000

    def get_summary(self) -> Dict[str, float]:
        return dict(self.durations)


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


class AccuracyMetrics:
    """Score found matches against known correspondences."""

    @staticmethod
    def calculate_precision_recall(true_positives: int, false_positives: int,
                                   false_negatives: int) -> Dict[str, float]:
        """Precision, recall and F1; any empty denominator scores 0."""
        precision = _ratio(true_positives, true_positives + false_positives)
        recall = _ratio(true_positives, true_positives + false_negatives)
        f1 = _ratio(2 * precision * recall, precision + recall)
        return {'precision': precision, 'recall': recall, 'f1_score': f1}

    @staticmethod
    def match_precision_recall(found: Iterable[Match],
                               ground_truth: Iterable[Tuple[int, int]]) -> Dict[str, float]:
        """Score matches against known (index_0, index_1) correspondences."""
        found_pairs = {(m.index_0, m.index_1) for m in found}
        truth = set(ground_truth)
        hits = len(found_pairs & truth)
        return AccuracyMetrics.calculate_precision_recall(
            hits, len(found_pairs) - hits, len(truth) - hits
        )
