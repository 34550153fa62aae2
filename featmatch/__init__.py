"""
featmatch

Brute-force binary descriptor matching with epipolar RANSAC verification.
"""

from .core import MatchingPipeline, PipelineReport, match_and_verify
from .geometry.verifier import GeometricVerifier, remove_outliers
from .matching.brute_force import BruteForceMatcher, descriptor_match
from .matching.hamming import hamming_distance
from .types.feature_match import Match, MatchStatistics
from .types.keypoint import Descriptor, Keypoint

__all__ = [
    'BruteForceMatcher',
    'Descriptor',
    'GeometricVerifier',
    'Keypoint',
    'Match',
    'MatchStatistics',
    'MatchingPipeline',
    'PipelineReport',
    'descriptor_match',
    'hamming_distance',
    'match_and_verify',
    'remove_outliers',
]
__version__ = '0.1.0'
