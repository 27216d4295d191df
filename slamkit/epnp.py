"""Efficient Perspective-n-Point (EPnP) camera pose estimation."""

from __future__ import annotations

import math

import numpy as np

_PAIRS = ((0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3))

# Order of the quadratic beta terms: B11 B12 B22 B13 B23 B33 B14 B24 B34 B44
_BETA_TERMS = ((0, 0), (0, 1), (1, 1), (0, 2), (1, 2), (2, 2), (0, 3), (1, 3), (2, 3), (3, 3))

_GAUSS_NEWTON_ITERATIONS = 5


def qr_solve(A, b):
    """Solve ``A x = b`` in the least-squares sense with Householder QR.

    Raises ``numpy.linalg.LinAlgError`` if ``A`` has a zero column.
    """
    A = np.array(A, dtype=float)
    b = np.array(b, dtype=float).ravel()
    if A.ndim != 2 or A.shape[0] != b.shape[0]:
        raise ValueError("A must be a matrix with as many rows as b has entries")
    nr, nc = A.shape
    if nr < nc:
        raise ValueError("A must have at least as many rows as columns")

    a1 = np.zeros(nc)
    a2 = np.zeros(nc)
    for k in range(nc):
        eta = np.max(np.abs(A[k:, k]))
        if eta == 0:
            raise np.linalg.LinAlgError("matrix is singular")
        A[k:, k] /= eta
        sigma = math.sqrt(float(A[k:, k] @ A[k:, k]))
        if A[k, k] < 0:
            sigma = -sigma
        A[k, k] += sigma
        a1[k] = sigma * A[k, k]
        a2[k] = -eta * sigma
        for j in range(k + 1, nc):
            tau = (A[k:, k] @ A[k:, j]) / a1[k]
            A[k:, j] -= tau * A[k:, k]

    for j in range(nc):
        tau = (A[j:, j] @ b[j:]) / a1[j]
        b[j:] -= tau * A[j:, j]

    x = np.zeros(nc)
    x[nc - 1] = b[nc - 1] / a2[nc - 1]
    for i in range(nc - 2, -1, -1):
        x[i] = (b[i] - A[i, i + 1:] @ x[i + 1:]) / a2[i]
    return x


def mat_to_quat(R):
    """Convert a rotation matrix to a quaternion ``(x, y, z, w)``."""
    R = np.asarray(R, dtype=float)
    tr = R[0, 0] + R[1, 1] + R[2, 2]
    if tr > 0.0:
        q = [R[1, 2] - R[2, 1], R[2, 0] - R[0, 2], R[0, 1] - R[1, 0], tr + 1.0]
        n4 = q[3]
    elif R[0, 0] > R[1, 1] and R[0, 0] > R[2, 2]:
        q = [1.0 + R[0, 0] - R[1, 1] - R[2, 2], R[1, 0] + R[0, 1],
             R[2, 0] + R[0, 2], R[1, 2] - R[2, 1]]
        n4 = q[0]
    elif R[1, 1] > R[2, 2]:
        q = [R[1, 0] + R[0, 1], 1.0 + R[1, 1] - R[0, 0] - R[2, 2],
             R[2, 1] + R[1, 2], R[2, 0] - R[0, 2]]
        n4 = q[1]
    else:
        q = [R[2, 0] + R[0, 2], R[2, 1] + R[1, 2],
             1.0 + R[2, 2] - R[0, 0] - R[1, 1], R[0, 1] - R[1, 0]]
        n4 = q[2]
    scale = 0.5 / math.sqrt(n4)
    return np.array(q) * scale


def relative_error(R_true, t_true, R_est, t_est):
    """Return ``(rotation_error, translation_error)`` relative to the true pose."""
    q_true = mat_to_quat(R_true)
    q_est = mat_to_quat(R_est)
    q_norm = np.linalg.norm(q_true)
    rot_err = min(np.linalg.norm(q_true - q_est), np.linalg.norm(q_true + q_est)) / q_norm
    t_true = np.asarray(t_true, dtype=float).ravel()
    t_est = np.asarray(t_est, dtype=float).ravel()
    transl_err = np.linalg.norm(t_true - t_est) / np.linalg.norm(t_true)
    return float(rot_err), float(transl_err)


def _choose_control_points(pws):
    n = len(pws)
    c0 = pws.mean(axis=0)
    centered = pws - c0
    U, s, _ = np.linalg.svd(centered.T @ centered)
    cws = np.empty((4, 3))
    cws[0] = c0
    for i in range(1, 4):
        cws[i] = c0 + math.sqrt(s[i - 1] / n) * U[:, i - 1]
    return cws


def _barycentric_coordinates(pws, cws):
    cc = (cws[1:] - cws[0]).T
    cc_inv = np.linalg.pinv(cc)
    alphas = np.empty((len(pws), 4))
    alphas[:, 1:] = (pws - cws[0]) @ cc_inv.T
    alphas[:, 0] = 1.0 - alphas[:, 1:].sum(axis=1)
    return alphas


def _compute_l_6x10(ut):
    v = [ut[11 - i].reshape(4, 3) for i in range(4)]
    dv = np.array([[vi[a] - vi[b] for a, b in _PAIRS] for vi in v])  # (4, 6, 3)
    L = np.empty((6, 10))
    for col, (i, j) in enumerate(_BETA_TERMS):
        factor = 1.0 if i == j else 2.0
        L[:, col] = factor * np.einsum("pk,pk->p", dv[i], dv[j])
    return L


def _compute_rho(cws):
    return np.array([float(np.sum((cws[a] - cws[b]) ** 2)) for a, b in _PAIRS])


def _betas_approx_1(L, rho):
    b4 = np.linalg.lstsq(L[:, [0, 1, 3, 6]], rho, rcond=None)[0]
    with np.errstate(divide="ignore", invalid="ignore"):
        if b4[0] < 0:
            b0 = np.sqrt(-b4[0])
            return np.array([b0, -b4[1] / b0, -b4[2] / b0, -b4[3] / b0])
        b0 = np.sqrt(b4[0])
        return np.array([b0, b4[1] / b0, b4[2] / b0, b4[3] / b0])


def _betas_approx_2(L, rho):
    b3 = np.linalg.lstsq(L[:, [0, 1, 2]], rho, rcond=None)[0]
    if b3[0] < 0:
        b0 = math.sqrt(-b3[0])
        b1 = math.sqrt(-b3[2]) if b3[2] < 0 else 0.0
    else:
        b0 = math.sqrt(b3[0])
        b1 = math.sqrt(b3[2]) if b3[2] > 0 else 0.0
    if b3[1] < 0:
        b0 = -b0
    return np.array([b0, b1, 0.0, 0.0])


def _betas_approx_3(L, rho):
    b5 = np.linalg.lstsq(L[:, [0, 1, 2, 3, 4]], rho, rcond=None)[0]
    if b5[0] < 0:
        b0 = math.sqrt(-b5[0])
        b1 = math.sqrt(-b5[2]) if b5[2] < 0 else 0.0
    else:
        b0 = math.sqrt(b5[0])
        b1 = math.sqrt(b5[2]) if b5[2] > 0 else 0.0
    if b5[1] < 0:
        b0 = -b0
    with np.errstate(divide="ignore", invalid="ignore"):
        b2 = np.float64(b5[3]) / np.float64(b0)
    return np.array([b0, b1, b2, 0.0])


def _gauss_newton(L, rho, betas):
    betas = np.array(betas, dtype=float)
    with np.errstate(invalid="ignore", over="ignore", divide="ignore"):
        for _ in range(_GAUSS_NEWTON_ITERATIONS):
            b0, b1, b2, b3 = betas
            A = np.column_stack([
                2 * L[:, 0] * b0 + L[:, 1] * b1 + L[:, 3] * b2 + L[:, 6] * b3,
                L[:, 1] * b0 + 2 * L[:, 2] * b1 + L[:, 4] * b2 + L[:, 7] * b3,
                L[:, 3] * b0 + L[:, 4] * b1 + 2 * L[:, 5] * b2 + L[:, 8] * b3,
                L[:, 6] * b0 + L[:, 7] * b1 + L[:, 8] * b2 + 2 * L[:, 9] * b3,
            ])
            terms = np.array([betas[i] * betas[j] for i, j in _BETA_TERMS])
            b = rho - L @ terms
            try:
                betas = betas + qr_solve(A, b)
            except np.linalg.LinAlgError:
                break
    return betas


class EPnP:
    """Pose solver for a pinhole camera with focal lengths and principal point."""

    def __init__(self, fu, fv, uc, vc):
        self.fu = float(fu)
        self.fv = float(fv)
        self.uc = float(uc)
        self.vc = float(vc)

    @staticmethod
    def _validate(world_points, image_points):
        pws = np.asarray(world_points, dtype=float).reshape(-1, 3)
        us = np.asarray(image_points, dtype=float).reshape(-1, 2)
        if len(pws) != len(us):
            raise ValueError("world and image points must have the same length")
        if len(pws) < 4:
            raise ValueError("at least 4 correspondences are required")
        return pws, us

    def _build_m(self, alphas, us):
        M = np.zeros((2 * len(alphas), 12))
        M[0::2, 0::3] = alphas * self.fu
        M[0::2, 2::3] = alphas * (self.uc - us[:, 0:1])
        M[1::2, 1::3] = alphas * self.fv
        M[1::2, 2::3] = alphas * (self.vc - us[:, 1:2])
        return M

    def _error(self, pws, us, R, t):
        with np.errstate(divide="ignore", invalid="ignore"):
            pc = pws @ R.T + t
            inv_z = 1.0 / pc[:, 2]
            ue = self.uc + self.fu * pc[:, 0] * inv_z
            ve = self.vc + self.fv * pc[:, 1] * inv_z
            return float(np.mean(np.hypot(us[:, 0] - ue, us[:, 1] - ve)))

    def _r_and_t(self, ut, betas, alphas, pws, us):
        with np.errstate(invalid="ignore", over="ignore"):
            ccs = sum(betas[i] * ut[11 - i].reshape(4, 3) for i in range(4))
            pcs = alphas @ ccs
        if pcs[0, 2] < 0.0:
            pcs = -pcs

        pc0 = pcs.mean(axis=0)
        pw0 = pws.mean(axis=0)
        abt = (pcs - pc0).T @ (pws - pw0)
        if not np.all(np.isfinite(abt)):
            nan_r = np.full((3, 3), np.nan)
            return nan_r, np.full(3, np.nan), math.nan
        U, _, Vt = np.linalg.svd(abt)
        R = U @ Vt
        if np.linalg.det(R) < 0:
            R[2] = -R[2]
        t = pc0 - R @ pw0
        return R, t, self._error(pws, us, R, t)

    def compute_pose(self, world_points, image_points):
        """Estimate ``(R, t, mean_reprojection_error)`` from 3D-2D correspondences."""
        pws, us = self._validate(world_points, image_points)
        cws = _choose_control_points(pws)
        alphas = _barycentric_coordinates(pws, cws)
        M = self._build_m(alphas, us)
        U, _, _ = np.linalg.svd(M.T @ M)
        ut = U.T

        L = _compute_l_6x10(ut)
        rho = _compute_rho(cws)

        solutions = {}
        for key, approx in ((1, _betas_approx_1), (2, _betas_approx_2), (3, _betas_approx_3)):
            betas = _gauss_newton(L, rho, approx(L, rho))
            solutions[key] = self._r_and_t(ut, betas, alphas, pws, us)

        best = 1
        if solutions[2][2] < solutions[1][2]:
            best = 2
        if solutions[3][2] < solutions[best][2]:
            best = 3
        return solutions[best]

    def reprojection_error(self, world_points, image_points, R, t):
        """Mean pixel distance between observed and reprojected points."""
        pws = np.asarray(world_points, dtype=float).reshape(-1, 3)
        us = np.asarray(image_points, dtype=float).reshape(-1, 2)
        if len(pws) != len(us):
            raise ValueError("world and image points must have the same length")
        if len(pws) == 0:
            raise ValueError("no correspondences given")
        return self._error(pws, us, np.asarray(R, dtype=float),
                           np.asarray(t, dtype=float).ravel())