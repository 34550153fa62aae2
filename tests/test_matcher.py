"""Tests for the brute-force descriptor matcher."""

import numpy as np
import pytest

from featmatch.exceptions import PreconditionError
from featmatch.matching.brute_force import BruteForceMatcher, descriptor_match
from featmatch.types.feature_match import Match
from featmatch.types.keypoint import Descriptor
from tests.factories import flip_bits, random_descriptor


def reference_match(descriptors_0, descriptors_1, distance_threshold, lowes_ratio):
    """Same acceptance rule computed from exact distances, without early exit."""
    bits_1 = [d.to_bits() for d in descriptors_1]
    output = []
    for i, d0 in enumerate(descriptors_0):
        bits_0 = d0.to_bits()
        best, best_j, second = distance_threshold, 0, distance_threshold
        for j, b1 in enumerate(bits_1):
            distance = int(np.sum(bits_0 != b1))
            if distance < best:
                second, best, best_j = best, distance, j
            elif distance < second:
                second = distance
        if best < second * lowes_ratio and best < distance_threshold:
            output.append(Match(i, best_j, float(best)))
    return output


def noisy_copies(rng, base, n_flips):
    return [flip_bits(d, rng.choice(len(d), n_flips, replace=False)) for d in base]


class TestBruteForceMatcher:
    """Test forward matching with ratio and threshold tests."""

    def test_single_zero_descriptor(self):
        """One candidate: second best defaults to the threshold, so 0 < 50 * 0.7 passes."""
        zeros = Descriptor.from_bits([0] * 256)
        matches = descriptor_match([zeros], [zeros], 50, 0.7)
        assert matches == [Match(0, 0, 0.0)]

    def test_single_zero_descriptor_zero_threshold(self):
        """With threshold 0 the ratio test compares 0 < 0 and rejects."""
        zeros = Descriptor.from_bits([0] * 256)
        assert descriptor_match([zeros], [zeros], 0, 0.7) == []

    def test_single_candidate_needs_ratio_against_threshold(self, rng):
        """A lone candidate must be below threshold * ratio, not just below threshold."""
        d0 = random_descriptor(rng)
        d1 = flip_bits(d0, range(40))
        assert descriptor_match([d0], [d1], 50, 0.7) == []
        assert descriptor_match([d0], [d1], 60, 0.7) == [Match(0, 0, 40.0)]

    def test_exact_and_near_duplicate(self, rng):
        """Exact copy at 3 and a one-bit neighbour at 7 still give Match(0, 3, 0)."""
        d0 = random_descriptor(rng)
        candidates = [random_descriptor(rng) for _ in range(10)]
        candidates[3] = d0
        candidates[7] = flip_bits(d0, [17])
        assert descriptor_match([d0], candidates, 50, 0.7) == [Match(0, 3, 0.0)]

    def test_ambiguous_duplicates_rejected(self, rng):
        """Two equally good candidates fail the ratio test."""
        d0 = random_descriptor(rng)
        candidates = [random_descriptor(rng), d0, random_descriptor(rng), d0]
        assert descriptor_match([d0], candidates, 257, 0.7) == []

    def test_recovers_noisy_copies(self, rng):
        """Each descriptor finds its lightly perturbed copy among random ones."""
        base = [random_descriptor(rng) for _ in range(30)]
        order = rng.permutation(30)
        shuffled = [noisy_copies(rng, [base[k]], 4)[0] for k in order]
        matches = descriptor_match(base, shuffled, 257, 0.7)

        assert len(matches) == 30
        lookup = {int(k): j for j, k in enumerate(order)}
        for m in matches:
            assert m.index_1 == lookup[m.index_0]
            assert m.distance == 4.0

    def test_agrees_with_exhaustive_reference(self, rng):
        """Early exit does not change which matches are emitted."""
        base = [random_descriptor(rng) for _ in range(25)]
        first = noisy_copies(rng, base, 10) + [random_descriptor(rng) for _ in range(10)]
        second = noisy_copies(rng, base, 30) + [random_descriptor(rng) for _ in range(15)]

        for threshold, ratio in [(257, 0.7), (80, 0.8), (40, 0.5), (120, 0.95)]:
            expected = reference_match(first, second, threshold, ratio)
            assert descriptor_match(first, second, threshold, ratio) == expected

    def test_output_invariants(self, rng):
        """Indices in range, distance below threshold, at most one match per query."""
        base = [random_descriptor(rng) for _ in range(40)]
        first = noisy_copies(rng, base, 20)
        second = noisy_copies(rng, base[:30], 25) + [random_descriptor(rng) for _ in range(20)]
        threshold = 60
        matches = descriptor_match(first, second, threshold, 0.8)

        assert len(matches) > 0
        assert len({m.index_0 for m in matches}) == len(matches)
        for m in matches:
            assert 0 <= m.index_0 < len(first)
            assert 0 <= m.index_1 < len(second)
            assert 0 <= m.distance < threshold
        assert [m.index_0 for m in matches] == sorted(m.index_0 for m in matches)

    def test_ratio_monotonicity(self, rng):
        """Raising the ratio never reduces the number of matches."""
        base = [random_descriptor(rng) for _ in range(40)]
        first = noisy_copies(rng, base, 30)
        second = noisy_copies(rng, base, 50) + [random_descriptor(rng) for _ in range(40)]

        counts = [len(descriptor_match(first, second, 257, r))
                  for r in (0.2, 0.4, 0.6, 0.7, 0.8, 0.9, 0.99)]
        assert counts == sorted(counts)
        assert counts[-1] > counts[0]

    def test_forward_matching_is_asymmetric(self):
        """Swapping inputs can change the match set."""
        x = Descriptor.from_bits([0] * 256)
        x_near = flip_bits(x, [5])
        forward = descriptor_match([x], [x, x_near], 50, 0.7)
        backward = descriptor_match([x, x_near], [x], 50, 0.7)

        assert forward == [Match(0, 0, 0.0)]
        assert backward == [Match(0, 0, 0.0), Match(1, 0, 1.0)]

    def test_inputs_untouched(self, rng):
        """Matching does not modify the descriptor lists."""
        first = [random_descriptor(rng) for _ in range(5)]
        second = [random_descriptor(rng) for _ in range(5)]
        before = (list(first), list(second))
        descriptor_match(first, second, 257, 0.7)
        assert (first, second) == before


class TestMatcherEdgeCases:
    """Test empty inputs and precondition failures."""

    def test_empty_first(self, rng):
        """No queries gives no matches and a zero mean."""
        matcher = BruteForceMatcher()
        matches, stats = matcher.match_with_statistics([], [random_descriptor(rng)], 50, 0.7)
        assert matches == []
        assert stats.accepted == 0
        assert stats.mean_distance == 0.0

    def test_empty_second(self, rng):
        """No candidates gives no matches."""
        matcher = BruteForceMatcher()
        assert matcher.match([random_descriptor(rng)], [], 50, 0.7) == []
        assert matcher.last_statistics.filtered_by_threshold == 0
        assert matcher.last_statistics.mean_distance == 0.0

    def test_length_mismatch(self, rng):
        """Descriptors of different lengths are rejected."""
        with pytest.raises(PreconditionError):
            descriptor_match([random_descriptor(rng, 256)], [random_descriptor(rng, 128)], 50, 0.7)

    def test_length_mismatch_within_collection(self, rng):
        """A mismatch anywhere is found before matching starts."""
        second = [random_descriptor(rng) for _ in range(5)] + [random_descriptor(rng, 255)]
        with pytest.raises(PreconditionError):
            descriptor_match([random_descriptor(rng)], second, 50, 0.7)

    @pytest.mark.parametrize("ratio", [0.0, 1.0, -0.5, 1.5])
    def test_ratio_out_of_range(self, rng, ratio):
        """Ratio must be strictly between 0 and 1."""
        d = random_descriptor(rng)
        with pytest.raises(PreconditionError):
            descriptor_match([d], [d], 50, ratio)

    @pytest.mark.parametrize("threshold", [-1, 10.5, True, "50"])
    def test_bad_threshold(self, rng, threshold):
        """Threshold must be a non-negative integer."""
        d = random_descriptor(rng)
        with pytest.raises(PreconditionError):
            descriptor_match([d], [d], threshold, 0.7)

    def test_numpy_integer_threshold(self):
        """Integer thresholds read from numpy arrays are accepted."""
        zeros = Descriptor.from_bits([0] * 64)
        assert descriptor_match([zeros], [zeros], np.int64(50), 0.7) == [Match(0, 0, 0.0)]

    def test_precondition_is_value_error(self, rng):
        """Callers catching ValueError see precondition failures."""
        with pytest.raises(ValueError):
            descriptor_match([random_descriptor(rng)], [random_descriptor(rng)], -3, 0.7)


class TestMatchStatistics:
    """Test the per-call statistics record."""

    def test_min_mean_max(self, rng):
        """Statistics summarize accepted distances."""
        base = [random_descriptor(rng) for _ in range(3)]
        second = [flip_bits(base[0], [1]), flip_bits(base[1], [1, 2, 3]), flip_bits(base[2], range(5))]
        matcher = BruteForceMatcher()
        matches, stats = matcher.match_with_statistics(base, second, 257, 0.7)

        assert [m.distance for m in matches] == [1.0, 3.0, 5.0]
        assert stats.accepted == 3
        assert stats.filtered_by_threshold == 0
        assert stats.min_distance == 1.0
        assert stats.max_distance == 5.0
        assert stats.mean_distance == pytest.approx(3.0)
        assert stats.elapsed_ms >= 0.0
        assert matcher.last_statistics is stats

    def test_no_accepted_matches(self, rng):
        """Without accepted matches min and max stay unset."""
        matcher = BruteForceMatcher()
        _, stats = matcher.match_with_statistics(
            [random_descriptor(rng)], [random_descriptor(rng), random_descriptor(rng)], 20, 0.7
        )
        assert stats.accepted == 0
        assert stats.min_distance is None
        assert stats.max_distance is None
