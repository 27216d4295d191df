"""RANSAC camera pose estimation from 3D-2D correspondences using EPnP."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

import numpy as np

from .epnp import EPnP


@dataclass(frozen=True, eq=False)
class PnPResult:
    """Outcome of a RANSAC run.

    ``pose`` is the 4x4 world-to-camera transform, or None when no pose was
    found. ``inliers`` holds the keypoint indices supporting the pose and
    ``no_more`` is true once the iteration budget has been spent.
    """

    pose: np.ndarray | None
    inliers: tuple[int, ...] = ()
    no_more: bool = False

    @property
    def n_inliers(self):
        return len(self.inliers)


def _pose_matrix(R, t):
    T = np.eye(4)
    T[:3, :3] = R
    T[:3, 3] = t
    return T


class PnPRansac:
    """Robust pose estimation: EPnP on minimal samples, refined on inliers."""

    def __init__(self, points_3d, points_2d, sigma2, fu, fv, uc, vc, indices=None, rng=None):
        self._points_3d = np.asarray(points_3d, dtype=float).reshape(-1, 3)
        self._points_2d = np.asarray(points_2d, dtype=float).reshape(-1, 2)
        self._sigma2 = np.asarray(sigma2, dtype=float).ravel()
        n = len(self._points_3d)
        if len(self._points_2d) != n or len(self._sigma2) != n:
            raise ValueError("points_3d, points_2d and sigma2 must have the same length")
        if indices is None:
            self._indices = tuple(range(n))
        else:
            self._indices = tuple(int(i) for i in indices)
            if len(self._indices) != n:
                raise ValueError("indices must have one entry per correspondence")

        self._solver = EPnP(fu, fv, uc, vc)
        self._rng = rng if rng is not None else random.Random()

        self._iterations = 0
        self._best_count = 0
        self._best_mask = np.zeros(n, dtype=bool)
        self._best_pose = None

        self.set_ransac_parameters()

    def set_ransac_parameters(self, probability=0.99, min_inliers=10, max_iterations=300,
                              min_set=4, epsilon=0.5, th2=5.991):
        """Configure RANSAC, adapting the thresholds to the number of points."""
        if not 0.0 <= probability < 1.0:
            raise ValueError("probability must lie in [0, 1)")
        if min_set < 4:
            raise ValueError("min_set must be at least 4")

        n = len(self._points_3d)
        self.probability = probability
        self.min_set = min_set

        n_min_inliers = max(int(n * epsilon), min_inliers, min_set)
        self.min_inliers = n_min_inliers

        if n > 0 and epsilon < n_min_inliers / n:
            epsilon = n_min_inliers / n
        self.epsilon = epsilon

        if n == 0 or n_min_inliers == n:
            n_iterations = 1
        else:
            base = 1.0 - epsilon ** 3
            if base <= 0.0:
                n_iterations = 0
            else:
                n_iterations = math.ceil(math.log(1.0 - probability) / math.log(base))

        self.max_iterations = max(1, min(n_iterations, max_iterations))
        self._max_error = self._sigma2 * th2

    def _estimate(self, rows):
        try:
            R, t, _ = self._solver.compute_pose(self._points_3d[rows], self._points_2d[rows])
        except np.linalg.LinAlgError:
            return np.full((3, 3), np.nan), np.full(3, np.nan)
        return R, t

    def _check_inliers(self, R, t):
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            pc = self._points_3d @ R.T + t
            inv_z = 1.0 / pc[:, 2]
            ue = self._solver.uc + self._solver.fu * pc[:, 0] * inv_z
            ve = self._solver.vc + self._solver.fv * pc[:, 1] * inv_z
            err2 = (self._points_2d[:, 0] - ue) ** 2 + (self._points_2d[:, 1] - ve) ** 2
            return err2 < self._max_error

    def _keypoints(self, mask):
        return tuple(index for index, inlier in zip(self._indices, mask) if inlier)

    def _refine(self):
        rows = np.flatnonzero(self._best_mask)
        R, t = self._estimate(rows)
        mask = self._check_inliers(R, t)
        if int(mask.sum()) > self.min_inliers:
            return PnPResult(_pose_matrix(R, t), self._keypoints(mask), False)
        return None

    def iterate(self, n_iterations):
        """Run at least ``n_iterations`` RANSAC iterations and report the outcome."""
        n = len(self._points_3d)
        if n < self.min_inliers:
            return PnPResult(None, (), True)

        current = 0
        while self._iterations < self.max_iterations or current < n_iterations:
            current += 1
            self._iterations += 1

            sample = self._rng.sample(range(n), self.min_set)
            R, t = self._estimate(sample)
            mask = self._check_inliers(R, t)
            count = int(mask.sum())

            if count >= self.min_inliers:
                if count > self._best_count:
                    self._best_mask = mask
                    self._best_count = count
                    self._best_pose = _pose_matrix(R, t)

                refined = self._refine()
                if refined is not None:
                    return refined

        if self._iterations >= self.max_iterations:
            if self._best_count >= self.min_inliers:
                return PnPResult(self._best_pose.copy(), self._keypoints(self._best_mask), True)
            return PnPResult(None, (), True)
        return PnPResult(None, (), False)

    def find(self):
        """Run the full iteration budget."""
        return self.iterate(self.max_iterations)