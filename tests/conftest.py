"""Shared fixtures."""

import numpy as np
import pytest

from featmatch.types.feature_match import Match
from tests.factories import random_image_points, to_keypoints, two_view_scene


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def planted_scene():
    """
    60 correct correspondences followed by 60 random outliers.

    Returns:
        Tuple of (keypoints_0, keypoints_1, candidate matches, number of planted inliers)
    """
    rng = np.random.default_rng(7)
    n_inliers, n_outliers = 60, 60
    p0, p1 = two_view_scene(rng, n_inliers)
    p0 = np.vstack([p0, random_image_points(rng, n_outliers)])
    p1 = np.vstack([p1, random_image_points(rng, n_outliers)])
    matches = [Match(i, i, 0.0) for i in range(n_inliers + n_outliers)]
    return to_keypoints(p0), to_keypoints(p1), matches, n_inliers
