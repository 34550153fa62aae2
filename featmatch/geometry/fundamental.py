"""Fundamental matrix estimation and epipolar residuals."""

from typing import Optional, Tuple

import numpy as np

MIN_SAMPLES = 8


def normalize_points(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Hartley normalization.

    Translates the centroid to the origin and scales so the mean distance
    from it is sqrt(2).

    Args:
        points: (N, 2) array of image coordinates

    Returns:
        Tuple of (normalized (N, 2) points, 3x3 transform T with x_n = T x)
    """
    points = np.asarray(points, dtype=np.float64)
    centroid = points.mean(axis=0)
    centered = points - centroid
    mean_dist = np.mean(np.linalg.norm(centered, axis=1))
    scale = np.sqrt(2) / mean_dist if mean_dist > 1e-12 else 1.0

    T = np.array([
        [scale, 0.0, -scale * centroid[0]],
        [0.0, scale, -scale * centroid[1]],
        [0.0, 0.0, 1.0]
    ])
    return centered * scale, T


def to_homogeneous(points: np.ndarray) -> np.ndarray:
    return np.hstack([points, np.ones((points.shape[0], 1))])


def enforce_rank_two(F: np.ndarray) -> np.ndarray:
    """Zero the smallest singular value and scale to unit Frobenius norm."""
    U, S, Vt = np.linalg.svd(F)
    S[2] = 0.0
    F = U @ np.diag(S) @ Vt
    norm = np.linalg.norm(F)
    return F / norm if norm > 0 else F


def eight_point(points_0: np.ndarray, points_1: np.ndarray) -> Optional[np.ndarray]:
    """
    Linear eight-point estimate of F with x1^T F x0 = 0.

    With more than eight correspondences this is the least-squares
    solution. Points are used as given; callers normalize beforehand.

    Returns:
        Rank-2 3x3 matrix with unit Frobenius norm, or None if degenerate
    """
    if len(points_0) < MIN_SAMPLES or len(points_0) != len(points_1):
        return None

    x0, y0 = points_0[:, 0], points_0[:, 1]
    x1, y1 = points_1[:, 0], points_1[:, 1]
    A = np.column_stack([
        x1 * x0, x1 * y0, x1,
        y1 * x0, y1 * y0, y1,
        x0, y0, np.ones(len(x0))
    ])

    try:
        _, _, Vt = np.linalg.svd(A)
        F = enforce_rank_two(Vt[-1].reshape(3, 3))
    except np.linalg.LinAlgError:
        return None

    if not np.all(np.isfinite(F)):
        return None
    return F


def sampson_distance(F: np.ndarray, points_0: np.ndarray,
                     points_1: np.ndarray) -> np.ndarray:
    """
    First-order geometric distance of each correspondence to F.

    This is the square root of the Sampson error, so it is in the same
    units as the point coordinates.

    Returns:
        (N,) array of non-negative residuals
    """
    h0 = to_homogeneous(points_0)
    h1 = to_homogeneous(points_1)

    Fx0 = h0 @ F.T
    Ftx1 = h1 @ F
    numerator = np.sum(h1 * Fx0, axis=1) ** 2
    denominator = Fx0[:, 0] ** 2 + Fx0[:, 1] ** 2 + Ftx1[:, 0] ** 2 + Ftx1[:, 1] ** 2

    with np.errstate(divide='ignore', invalid='ignore'):
        error = np.where(denominator > 1e-15, numerator / denominator, np.inf)
    return np.sqrt(error)


def denormalize(F_normalized: np.ndarray, T0: np.ndarray, T1: np.ndarray) -> np.ndarray:
    """Map F estimated on normalized points back to pixel coordinates."""
    F = T1.T @ F_normalized @ T0
    norm = np.linalg.norm(F)
    return F / norm if norm > 0 else F


class FundamentalMatrixEstimator:
    """Estimate F from point correspondences in pixel coordinates."""

    def __init__(self, min_samples: int = MIN_SAMPLES):
        self.min_samples = min_samples

    def estimate(self, points_0: np.ndarray,
                 points_1: np.ndarray) -> Optional[np.ndarray]:
        """Normalize, solve, and denormalize; None for too few points."""
        points_0 = np.asarray(points_0, dtype=np.float64)
        points_1 = np.asarray(points_1, dtype=np.float64)
        if len(points_0) < self.min_samples:
            return None

        n0, T0 = normalize_points(points_0)
        n1, T1 = normalize_points(points_1)
        F = eight_point(n0, n1)
        if F is None:
            return None
        return denormalize(F, T0, T1)
