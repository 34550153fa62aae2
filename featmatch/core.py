"""
featmatch core
Two-stage matching: appearance (Hamming + ratio test), then epipolar consensus
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from featmatch.config import merge_config
from featmatch.exceptions import PreconditionError
from featmatch.geometry.ransac import RandomState
from featmatch.geometry.verifier import GeometricVerifier
from featmatch.matching.brute_force import BruteForceMatcher, validate_descriptors
from featmatch.types.feature_match import Match, MatchStatistics
from featmatch.types.keypoint import Descriptor, Keypoint
from featmatch.utils.metrics import PerformanceMetrics

logger = logging.getLogger(__name__)


@dataclass
class PipelineReport:
    """What happened during the last match_and_verify call."""
    statistics: Optional[MatchStatistics] = None
    candidates: int = 0
    inliers: int = 0
    timings_ms: Dict[str, float] = field(default_factory=dict)


class MatchingPipeline:
    """Match descriptors, then keep only epipolar-consistent matches."""

    def __init__(self, config: Dict[str, Any] = None, seed: RandomState = None):
        """
        Initialize the pipeline

        Args:
            config: Overrides merged over DEFAULT_CONFIG (optional)
            seed: Seed or numpy Generator for the verifier's sampling
        """
        self.config = merge_config(config)
        verification = self.config['verification']

        self.matcher = BruteForceMatcher()
        self.verifier = GeometricVerifier(
            max_iterations=verification['max_iterations'],
            tight_threshold=verification['tight_threshold'],
            loose_threshold=verification['loose_threshold'],
            min_inliers=verification['min_inliers'],
            refine=verification['refine'],
            rng=seed
        )
        self.last_report: Optional[PipelineReport] = None

    def match_and_verify(self, keypoints_0: Sequence[Keypoint],
                         descriptors_0: Sequence[Descriptor],
                         keypoints_1: Sequence[Keypoint],
                         descriptors_1: Sequence[Descriptor]) -> List[Match]:
        """
        Match two images' features and return the epipolar inliers

        Args:
            keypoints_0: Keypoints of the first image
            descriptors_0: Descriptors parallel to keypoints_0
            keypoints_1: Keypoints of the second image
            descriptors_1: Descriptors parallel to keypoints_1

        Returns:
            Subset of the ratio-test candidates accepted by the verifier
        """
        if len(keypoints_0) != len(descriptors_0) or len(keypoints_1) != len(descriptors_1):
            raise PreconditionError(
                f"Keypoint/descriptor counts differ: {len(keypoints_0)}/{len(descriptors_0)} "
                f"and {len(keypoints_1)}/{len(descriptors_1)}"
            )

        metrics = PerformanceMetrics()
        report = PipelineReport()
        self.last_report = report
        matching = self.config['matching']

        n_bits = validate_descriptors(descriptors_0, descriptors_1)
        distance_threshold = matching['distance_threshold']
        if distance_threshold is None:
            distance_threshold = (n_bits or 0) + 1

        with metrics.timer('matching'):
            candidates, report.statistics = self.matcher.match_with_statistics(
                descriptors_0, descriptors_1, distance_threshold, matching['lowes_ratio']
            )
        report.candidates = len(candidates)

        with metrics.timer('verification'):
            inliers = self.verifier.verify(keypoints_0, keypoints_1, candidates)
        report.inliers = len(inliers)
        report.timings_ms = metrics.get_summary()

        logger.debug("%d candidates, %d inliers, timings %s",
                     report.candidates, report.inliers, report.timings_ms)
        return inliers


def match_and_verify(keypoints_0: Sequence[Keypoint], descriptors_0: Sequence[Descriptor],
                     keypoints_1: Sequence[Keypoint], descriptors_1: Sequence[Descriptor],
                     config: Dict[str, Any] = None, seed: RandomState = None) -> List[Match]:
    """Run MatchingPipeline once with the given config and seed."""
    pipeline = MatchingPipeline(config=config, seed=seed)
    return pipeline.match_and_verify(keypoints_0, descriptors_0, keypoints_1, descriptors_1)
