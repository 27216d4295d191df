"""Similarity transform estimation between two sets of 3D points, with RANSAC."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field

import numpy as np

# Chi-square threshold (2 degrees of freedom, 99%) applied to the level variance.
_CHI2_2DOF = 9.210
_SAMPLE_SIZE = 3


def _as_points(points):
    return np.asarray(points, dtype=float).reshape(-1, 3)


def _rodrigues(rvec):
    theta = float(np.linalg.norm(rvec))
    if theta == 0.0:
        return np.eye(3)
    k = rvec / theta
    skew = np.array([[0.0, -k[2], k[1]],
                     [k[2], 0.0, -k[0]],
                     [-k[1], k[0], 0.0]])
    return np.eye(3) + math.sin(theta) * skew + (1.0 - math.cos(theta)) * (skew @ skew)


@dataclass(frozen=True, eq=False)
class Sim3:
    """Similarity ``x1 = scale * rotation @ x2 + translation``.

    ``T12`` is the 4x4 matrix of that map and ``T21`` its inverse.
    """

    rotation: np.ndarray
    translation: np.ndarray
    scale: float
    T12: np.ndarray = field(init=False, repr=False)
    T21: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        R = np.asarray(self.rotation, dtype=float)
        t = np.asarray(self.translation, dtype=float).ravel()
        s = float(self.scale)
        object.__setattr__(self, "rotation", R)
        object.__setattr__(self, "translation", t)
        object.__setattr__(self, "scale", s)

        T12 = np.eye(4)
        T12[:3, :3] = s * R
        T12[:3, 3] = t
        object.__setattr__(self, "T12", T12)

        s_r_inv = (1.0 / s) * R.T
        T21 = np.eye(4)
        T21[:3, :3] = s_r_inv
        T21[:3, 3] = -s_r_inv @ t
        object.__setattr__(self, "T21", T21)


def compute_sim3(P1, P2, fix_scale=False):
    """Closed-form similarity mapping points ``P2`` onto ``P1`` (Horn's method).

    Points are given as rows of ``(n, 3)`` arrays, with ``n >= 3``.
    """
    P1 = _as_points(P1)
    P2 = _as_points(P2)
    if P1.shape != P2.shape:
        raise ValueError("both point sets must have the same shape")
    if len(P1) < _SAMPLE_SIZE:
        raise ValueError("at least 3 points are required")

    O1 = P1.mean(axis=0)
    O2 = P2.mean(axis=0)
    Pr1 = (P1 - O1).T
    Pr2 = (P2 - O2).T

    M = Pr2 @ Pr1.T
    n11 = M[0, 0] + M[1, 1] + M[2, 2]
    n12 = M[1, 2] - M[2, 1]
    n13 = M[2, 0] - M[0, 2]
    n14 = M[0, 1] - M[1, 0]
    n22 = M[0, 0] - M[1, 1] - M[2, 2]
    n23 = M[0, 1] + M[1, 0]
    n24 = M[2, 0] + M[0, 2]
    n33 = -M[0, 0] + M[1, 1] - M[2, 2]
    n34 = M[1, 2] + M[2, 1]
    n44 = -M[0, 0] - M[1, 1] + M[2, 2]
    N = np.array([[n11, n12, n13, n14],
                  [n12, n22, n23, n24],
                  [n13, n23, n33, n34],
                  [n14, n24, n34, n44]])

    _, evecs = np.linalg.eigh(N)
    quat = evecs[:, -1]
    imaginary = quat[1:]
    sin_half = float(np.linalg.norm(imaginary))
    if sin_half == 0.0:
        R = np.eye(3)
    else:
        angle = math.atan2(sin_half, float(quat[0]))
        R = _rodrigues(2.0 * angle * imaginary / sin_half)

    P3 = R @ Pr2
    if fix_scale:
        scale = 1.0
    else:
        den = float(np.sum(P3 ** 2))
        if den == 0.0:
            raise ValueError("degenerate point set: all points coincide")
        scale = float(np.sum(Pr1 * P3)) / den

    translation = O1 - scale * (R @ O2)
    return Sim3(R, translation, scale)


def project(points, T, K):
    """Transform ``points`` by the 4x4 ``T`` and project them with intrinsics ``K``."""
    points = _as_points(points)
    T = np.asarray(T, dtype=float)
    return camera_to_image(points @ T[:3, :3].T + T[:3, 3], K)


def camera_to_image(points, K):
    """Project camera-frame points to pixel coordinates, one ``(u, v)`` per row."""
    points = _as_points(points)
    K = np.asarray(K, dtype=float)
    fx, fy, cx, cy = K[0, 0], K[1, 1], K[0, 2], K[1, 2]
    with np.errstate(divide="ignore", invalid="ignore"):
        inv_z = 1.0 / points[:, 2]
        u = fx * points[:, 0] * inv_z + cx
        v = fy * points[:, 1] * inv_z + cy
    return np.column_stack([u, v])


class Sim3Solver:
    """RANSAC estimation of the similarity between two cameras' matched points.

    ``points1`` and ``points2`` hold matched points in the frames of camera 1
    and camera 2; ``sigma2_1``/``sigma2_2`` the keypoint level variances.
    ``indices`` maps each correspondence to its slot in a match list of length
    ``n_matches``, used for the returned inlier mask.
    """

    def __init__(self, points1, points2, K1, K2, sigma2_1, sigma2_2,
                 indices=None, n_matches=None, fix_scale=True, rng=None):
        self._x1 = _as_points(points1)
        self._x2 = _as_points(points2)
        n = len(self._x1)
        sigma2_1 = np.asarray(sigma2_1, dtype=float).ravel()
        sigma2_2 = np.asarray(sigma2_2, dtype=float).ravel()
        if len(self._x2) != n or len(sigma2_1) != n or len(sigma2_2) != n:
            raise ValueError("points and variances must have the same length")

        if indices is None:
            self._indices = tuple(range(n))
        else:
            self._indices = tuple(int(i) for i in indices)
            if len(self._indices) != n:
                raise ValueError("indices must have one entry per correspondence")
        if n_matches is None:
            n_matches = max(self._indices, default=-1) + 1
        if any(i < 0 or i >= n_matches for i in self._indices):
            raise ValueError("indices must lie in range(n_matches)")
        self.n_matches = n_matches

        self._K1 = np.asarray(K1, dtype=float)
        self._K2 = np.asarray(K2, dtype=float)
        self._max_error1 = _CHI2_2DOF * sigma2_1
        self._max_error2 = _CHI2_2DOF * sigma2_2
        self._p1_im1 = camera_to_image(self._x1, self._K1)
        self._p2_im2 = camera_to_image(self._x2, self._K2)

        self.fix_scale = bool(fix_scale)
        self._rng = rng if rng is not None else random.Random()

        self.best = None
        self._best_count = 0
        self._best_mask = np.zeros(n, dtype=bool)
        self._iterations = 0

        self.set_ransac_parameters()

    def set_ransac_parameters(self, probability=0.99, min_inliers=6, max_iterations=300):
        """Configure RANSAC and reset the iteration count."""
        if not 0.0 <= probability < 1.0:
            raise ValueError("probability must lie in [0, 1)")
        if min_inliers < 1:
            raise ValueError("min_inliers must be at least 1")

        n = len(self._x1)
        self.probability = probability
        self.min_inliers = min_inliers

        if n == 0 or min_inliers >= n:
            n_iterations = 1
        else:
            epsilon = min_inliers / n
            n_iterations = math.ceil(math.log(1.0 - probability) / math.log(1.0 - epsilon ** 3))

        self.max_iterations = max(1, min(n_iterations, max_iterations))
        self._iterations = 0

    def _check_inliers(self, sim):
        p2_im1 = project(self._x2, sim.T12, self._K1)
        p1_im2 = project(self._x1, sim.T21, self._K2)
        with np.errstate(invalid="ignore", over="ignore"):
            err1 = np.sum((self._p1_im1 - p2_im1) ** 2, axis=1)
            err2 = np.sum((p1_im2 - self._p2_im2) ** 2, axis=1)
            return (err1 < self._max_error1) & (err2 < self._max_error2)

    def iterate(self, n_iterations):
        """Run up to ``n_iterations`` RANSAC iterations.

        Returns ``(sim3, inliers, no_more)``: the accepted similarity or None,
        a list of ``n_matches`` inlier flags, and whether the budget is spent.
        """
        inliers = [False] * self.n_matches
        n = len(self._x1)
        if n < self.min_inliers or n < _SAMPLE_SIZE:
            return None, inliers, True

        current = 0
        while self._iterations < self.max_iterations and current < n_iterations:
            current += 1
            self._iterations += 1

            sample = self._rng.sample(range(n), _SAMPLE_SIZE)
            try:
                sim = compute_sim3(self._x1[sample], self._x2[sample], self.fix_scale)
            except ValueError:
                continue

            mask = self._check_inliers(sim)
            count = int(mask.sum())
            if count >= self._best_count:
                self.best = sim
                self._best_count = count
                self._best_mask = mask
                if count > self.min_inliers:
                    for index, inlier in zip(self._indices, mask):
                        if inlier:
                            inliers[index] = True
                    return sim, inliers, False

        return None, inliers, self._iterations >= self.max_iterations

    def find(self):
        """Run the whole iteration budget."""
        return self.iterate(self.max_iterations)