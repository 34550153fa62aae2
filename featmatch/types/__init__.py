"""Value types shared by the matcher and verifier."""

from .keypoint import Descriptor, Keypoint, descriptors_from_array, keypoints_from_cv2, keypoints_to_array
from .feature_match import Match, MatchStatistics

__all__ = [
    'Descriptor',
    'Keypoint',
    'Match',
    'MatchStatistics',
    'descriptors_from_array',
    'keypoints_from_cv2',
    'keypoints_to_array',
]
