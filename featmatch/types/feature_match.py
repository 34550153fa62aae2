"""Match records and per-call match statistics."""

from dataclasses import dataclass
from typing import Optional

import cv2


@dataclass(frozen=True)
class Match:
    """Index pair into two keypoint/descriptor collections plus a distance score."""
    index_0: int
    index_1: int
    distance: float

    def to_cv2(self) -> cv2.DMatch:
        """Convert to an OpenCV DMatch (queryIdx=index_0, trainIdx=index_1)."""
        return cv2.DMatch(self.index_0, self.index_1, float(self.distance))

    @classmethod
    def from_cv2(cls, match: cv2.DMatch) -> 'Match':
        return cls(int(match.queryIdx), int(match.trainIdx), float(match.distance))


@dataclass
class MatchStatistics:
    """
    Summary of one matcher call.

    Only used for logging. The mean is taken over accepted plus
    threshold-filtered candidates, with filtered ones contributing zero
    to the sum.
    """
    accepted: int = 0
    filtered_by_threshold: int = 0
    min_distance: Optional[float] = None
    mean_distance: float = 0.0
    max_distance: Optional[float] = None
    elapsed_ms: float = 0.0

    def __str__(self) -> str:
        return (f"{self.accepted} matches, {self.filtered_by_threshold} filtered, "
                f"dist min={self.min_distance}, mean={self.mean_distance:.2f}, "
                f"max={self.max_distance}, took {self.elapsed_ms:.2f} ms")
