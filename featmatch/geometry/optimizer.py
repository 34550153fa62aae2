"""Fundamental matrix refinement using Levenberg-Marquardt."""

import numpy as np
from scipy.optimize import least_squares

from featmatch.geometry.fundamental import enforce_rank_two, sampson_distance


class FundamentalOptimizer:
    """Refine a fundamental matrix by minimizing Sampson residuals."""

    def __init__(self, max_iters: int = 100):
        self.max_iters = max_iters

    def optimize(self, F: np.ndarray, points_0: np.ndarray,
                 points_1: np.ndarray) -> np.ndarray:
        """
        Optimize F over the given correspondences.

        The entry of F with the largest magnitude is held fixed to remove
        the scale ambiguity. Returns F unchanged when there are fewer
        residuals than free parameters or the solver does not improve it.
        """
        if len(points_0) < 9:
            return F

        anchor = int(np.argmax(np.abs(F)))
        F_scaled = F.flatten() / F.flatten()[anchor]
        free = np.delete(np.arange(9), anchor)

        def residuals(params):
            F_opt = self._params_to_matrix(params, anchor, free)
            r = sampson_distance(F_opt, points_0, points_1)
            return np.where(np.isfinite(r), r, 1e6)

        before = float(np.sum(residuals(F_scaled[free]) ** 2))
        result = least_squares(residuals, F_scaled[free], method='lm',
                               max_nfev=self.max_iters)
        if result.status < 0 or 2 * result.cost > before:
            return F

        return enforce_rank_two(self._params_to_matrix(result.x, anchor, free))

    def _params_to_matrix(self, params: np.ndarray, anchor: int,
                          free: np.ndarray) -> np.ndarray:
        """Convert the 8 free parameters to a 3x3 matrix."""
        flat = np.empty(9)
        flat[anchor] = 1.0
        flat[free] = params
        return flat.reshape(3, 3)
