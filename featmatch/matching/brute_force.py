"""Brute-force binary descriptor matching with Lowe's ratio test."""

import logging
import numbers
from time import perf_counter
from typing import List, Optional, Sequence, Tuple

from featmatch.exceptions import PreconditionError
from featmatch.matching.hamming import hamming_distance
from featmatch.types.feature_match import Match, MatchStatistics
from featmatch.types.keypoint import Descriptor

logger = logging.getLogger(__name__)


def validate_descriptors(descriptors_0: Sequence[Descriptor],
                         descriptors_1: Sequence[Descriptor]) -> Optional[int]:
    """
    Check that every descriptor in both collections has one common length.

    Returns:
        The common bit length, or None if both collections are empty
    """
    n_bits = None
    for collection in (descriptors_0, descriptors_1):
        for descriptor in collection:
            if n_bits is None:
                n_bits = descriptor.n_bits
            elif descriptor.n_bits != n_bits:
                raise PreconditionError(
                    f"Descriptor length mismatch: {descriptor.n_bits} bits vs {n_bits} bits"
                )
    return n_bits


def validate_parameters(distance_threshold: int, lowes_ratio: float):
    if isinstance(distance_threshold, bool) or not isinstance(distance_threshold, numbers.Integral):
        raise PreconditionError(
            f"distance_threshold must be an integer bit count, got {distance_threshold!r}"
        )
    if distance_threshold < 0:
        raise PreconditionError(f"distance_threshold must be >= 0, got {distance_threshold}")
    if not 0.0 < lowes_ratio < 1.0:
        raise PreconditionError(f"lowes_ratio must be in (0, 1), got {lowes_ratio}")


class BruteForceMatcher:
    """
    Forward-only exhaustive matcher for binary descriptors.

    Every descriptor of the first collection is compared against every
    descriptor of the second one. There is no cross check, so swapping
    the inputs can give a different match set.
    """

    def __init__(self):
        self.last_statistics: Optional[MatchStatistics] = None

    def match(self, descriptors_0: Sequence[Descriptor],
              descriptors_1: Sequence[Descriptor],
              distance_threshold: int, lowes_ratio: float) -> List[Match]:
        """Match two descriptor collections; see match_with_statistics."""
        matches, _ = self.match_with_statistics(
            descriptors_0, descriptors_1, distance_threshold, lowes_ratio
        )
        return matches

    def match_with_statistics(self, descriptors_0: Sequence[Descriptor],
                              descriptors_1: Sequence[Descriptor],
                              distance_threshold: int,
                              lowes_ratio: float) -> Tuple[List[Match], MatchStatistics]:
        """
        Find the best match in descriptors_1 for each of descriptors_0.

        Best and second-best distances both start at distance_threshold, so
        with a single candidate the ratio test compares against the
        threshold itself. A candidate passing the ratio test is emitted only
        if its distance is also below distance_threshold; otherwise it is
        counted as filtered.

        Args:
            descriptors_0: Query descriptors
            descriptors_1: Train descriptors
            distance_threshold: Bit count a match distance must stay below
            lowes_ratio: Best distance must be below lowes_ratio * second best

        Returns:
            Tuple of (matches ordered by index_0, statistics)
        """
        validate_parameters(distance_threshold, lowes_ratio)
        distance_threshold = int(distance_threshold)
        validate_descriptors(descriptors_0, descriptors_1)

        start = perf_counter()
        output: List[Match] = []
        filtered_by_threshold = 0
        total = 0.0
        min_distance = None
        max_distance = None

        for i, d0 in enumerate(descriptors_0):
            best = distance_threshold
            best_j = 0
            second_best = distance_threshold
            for j, d1 in enumerate(descriptors_1):
                # A candidate above the current second best can replace neither
                bailout_bound = second_best
                distance = hamming_distance(d0, d1, bailout_bound)
                if distance < best:
                    second_best = best
                    best = distance
                    best_j = j
                elif distance < second_best:
                    second_best = distance

            if best < second_best * lowes_ratio:
                if best < distance_threshold:
                    output.append(Match(i, best_j, float(best)))
                    total += best
                    if min_distance is None or best < min_distance:
                        min_distance = float(best)
                    if max_distance is None or best > max_distance:
                        max_distance = float(best)
                else:
                    filtered_by_threshold += 1

        denominator = filtered_by_threshold + len(output)
        stats = MatchStatistics(
            accepted=len(output),
            filtered_by_threshold=filtered_by_threshold,
            min_distance=min_distance,
            mean_distance=total / denominator if denominator > 0 else 0.0,
            max_distance=max_distance,
            elapsed_ms=(perf_counter() - start) * 1000
        )
        self.last_statistics = stats
        logger.debug("%s", stats)
        return output, stats


def descriptor_match(descriptors_0: Sequence[Descriptor],
                     descriptors_1: Sequence[Descriptor],
                     distance_threshold: int, lowes_ratio: float) -> List[Match]:
    """Convenience wrapper around BruteForceMatcher.match."""
    return BruteForceMatcher().match(descriptors_0, descriptors_1,
                                     distance_threshold, lowes_ratio)
