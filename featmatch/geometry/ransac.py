"""RANSAC implementation for robust estimation."""

import numpy as np
from typing import Callable, Optional, Tuple, Union

from featmatch.exceptions import PreconditionError

RandomState = Union[None, int, np.random.Generator]


def make_rng(rng: RandomState = None) -> np.random.Generator:
    """Return rng itself if it is a Generator, else a new one seeded with it."""
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


class RANSAC:
    """
    RANSAC algorithm for outlier rejection.

    Runs exactly max_iters iterations. The model with the most data points
    scoring below threshold wins; on a tie the earlier iteration is kept,
    so results only depend on the generator state.
    """

    def __init__(self, threshold: float = 3.0, max_iters: int = 1000,
                 min_samples: int = 4, rng: RandomState = None):
        if max_iters < 1:
            raise PreconditionError(f"max_iters must be >= 1, got {max_iters}")
        if threshold < 0:
            raise PreconditionError(f"threshold must be >= 0, got {threshold}")
        self.threshold = threshold
        self.max_iters = max_iters
        self.min_samples = min_samples
        self.rng = make_rng(rng)
        self.best_score = 0
        self.best_iteration = None

    def fit(self, data: np.ndarray, model_func: Callable,
            score_func: Callable) -> Tuple[Optional[object], np.ndarray]:
        """
        Fit model using RANSAC.

        Args:
            data: (N, ...) array, one row per data point
            model_func: Builds a model from min_samples rows, or returns None
            score_func: Returns an (N,) residual array for data under a model

        Returns:
            Tuple of (best model or None, boolean inlier mask)
        """
        best_model = None
        best_inliers = np.zeros(len(data), dtype=bool)
        best_score = 0
        self.best_score = 0
        self.best_iteration = None

        n_samples = len(data)
        if n_samples < self.min_samples:
            return None, np.array([], dtype=bool)

        for iteration in range(self.max_iters):
            indices = self.rng.choice(n_samples, self.min_samples, replace=False)
            sample = data[indices]

            model = model_func(sample)
            if model is None:
                continue

            scores = score_func(data, model)
            inliers = scores < self.threshold
            score = int(np.sum(inliers))

            if best_model is None or score > best_score:
                best_score = score
                best_model = model
                best_inliers = inliers
                self.best_iteration = iteration

        self.best_score = best_score
        return best_model, best_inliers
