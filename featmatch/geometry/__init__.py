"""Epipolar geometry and robust verification."""

from .fundamental import FundamentalMatrixEstimator, eight_point, normalize_points, sampson_distance
from .optimizer import FundamentalOptimizer
from .ransac import RANSAC
from .verifier import GeometricVerifier, remove_outliers

__all__ = [
    'FundamentalMatrixEstimator',
    'FundamentalOptimizer',
    'GeometricVerifier',
    'RANSAC',
    'eight_point',
    'normalize_points',
    'remove_outliers',
    'sampson_distance',
]
