"""Epipolar verification of candidate matches."""

import logging
from typing import List, Optional, Sequence

import numpy as np

from featmatch.exceptions import PreconditionError
from featmatch.geometry.fundamental import (
    MIN_SAMPLES,
    denormalize,
    eight_point,
    normalize_points,
    sampson_distance,
)
from featmatch.geometry.optimizer import FundamentalOptimizer
from featmatch.geometry.ransac import RANSAC, RandomState, make_rng
from featmatch.types.feature_match import Match
from featmatch.types.keypoint import Keypoint, keypoints_to_array

logger = logging.getLogger(__name__)


class GeometricVerifier:
    """
    Keep the matches consistent with one fundamental matrix.

    Both keypoint sets are Hartley-normalized over the matched points, and
    all residuals are Sampson distances in those normalized units.

    Acceptance happens at two scales:
        1. RANSAC scores every eight-point hypothesis by the number of
           matches with residual < tight_threshold.
        2. F is re-fitted on those tight inliers, and the final inliers are
           the matches with residual < loose_threshold under it.

    If the best hypothesis is supported by no more than min_inliers
    matches the result is empty.
    """

    def __init__(self, max_iterations: int = 10000, tight_threshold: float = 0.05,
                 loose_threshold: float = 0.25, min_inliers: Optional[int] = None,
                 refine: bool = False, rng: RandomState = None):
        """
        Args:
            max_iterations: Number of RANSAC samples drawn per call
            tight_threshold: Residual bound used to score hypotheses
            loose_threshold: Residual bound used for the final inlier set
            min_inliers: Support the best hypothesis must exceed; defaults to the sample size
            refine: Run Levenberg-Marquardt on the tight inliers before final selection
            rng: Generator shared across calls, or a seed reused for every call
        """
        if max_iterations < 1:
            raise PreconditionError(f"max_iterations must be >= 1, got {max_iterations}")
        if tight_threshold < 0 or loose_threshold < 0:
            raise PreconditionError("Thresholds must be non-negative")
        if tight_threshold > loose_threshold:
            raise PreconditionError(
                f"tight_threshold ({tight_threshold}) exceeds loose_threshold ({loose_threshold})"
            )

        self.max_iterations = max_iterations
        self.tight_threshold = tight_threshold
        self.loose_threshold = loose_threshold
        self.min_inliers = MIN_SAMPLES if min_inliers is None else min_inliers
        self.refine = refine
        self.rng = rng
        self.optimizer = FundamentalOptimizer()
        self.last_model: Optional[np.ndarray] = None

    def verify(self, keypoints_0: Sequence[Keypoint], keypoints_1: Sequence[Keypoint],
               matches: Sequence[Match]) -> List[Match]:
        """
        Filter matches down to the epipolar inliers.

        Args:
            keypoints_0: Keypoints indexed by Match.index_0
            keypoints_1: Keypoints indexed by Match.index_1
            matches: Candidate matches

        Returns:
            Inlier matches in input order; empty if no model was found
        """
        self.last_model = None
        if len(matches) < MIN_SAMPLES:
            logger.debug("%d candidates, need %d; skipping verification",
                         len(matches), MIN_SAMPLES)
            return []

        idx_0 = np.array([m.index_0 for m in matches], dtype=np.intp)
        idx_1 = np.array([m.index_1 for m in matches], dtype=np.intp)
        self._check_indices(idx_0, len(keypoints_0), 'index_0')
        self._check_indices(idx_1, len(keypoints_1), 'index_1')

        points_0, T0 = normalize_points(keypoints_to_array(keypoints_0)[idx_0])
        points_1, T1 = normalize_points(keypoints_to_array(keypoints_1)[idx_1])
        data = np.hstack([points_0, points_1])

        ransac = RANSAC(threshold=self.tight_threshold, max_iters=self.max_iterations,
                        min_samples=MIN_SAMPLES, rng=make_rng(self.rng))
        model, tight = ransac.fit(data, self._fit_sample, self._score)

        if model is None or ransac.best_score <= self.min_inliers:
            logger.info("No epipolar model with enough support (best %d of %d)",
                        ransac.best_score, len(matches))
            return []

        F = eight_point(points_0[tight], points_1[tight])
        if F is None:
            F = model
        if self.refine:
            F = self.optimizer.optimize(F, points_0[tight], points_1[tight])

        keep = sampson_distance(F, points_0, points_1) < self.loose_threshold
        self.last_model = denormalize(F, T0, T1)

        inliers = [m for m, k in zip(matches, keep) if k]
        logger.info("%d of %d candidates are epipolar inliers (%d tight, iteration %d)",
                    len(inliers), len(matches), ransac.best_score, ransac.best_iteration)
        return inliers

    @staticmethod
    def _check_indices(indices: np.ndarray, size: int, name: str):
        if np.any(indices < 0) or np.any(indices >= size):
            raise PreconditionError(f"Match {name} out of range for {size} keypoints")

    @staticmethod
    def _fit_sample(sample: np.ndarray) -> Optional[np.ndarray]:
        return eight_point(sample[:, :2], sample[:, 2:])

    @staticmethod
    def _score(data: np.ndarray, F: np.ndarray) -> np.ndarray:
        return sampson_distance(F, data[:, :2], data[:, 2:])


def remove_outliers(keypoints_0: Sequence[Keypoint], keypoints_1: Sequence[Keypoint],
                    matches: Sequence[Match], max_iterations: int,
                    tight_threshold: float, loose_threshold: float,
                    rng: RandomState = None) -> List[Match]:
    """Functional form of GeometricVerifier.verify."""
    verifier = GeometricVerifier(max_iterations=max_iterations,
                                 tight_threshold=tight_threshold,
                                 loose_threshold=loose_threshold,
                                 rng=rng)
    return verifier.verify(keypoints_0, keypoints_1, matches)
