"""Camera and ORB extractor settings read from a settings mapping."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import numpy as np

_DEFAULT_FPS = 30.0


class Sensor(IntEnum):
    """Input sensor type."""

    MONOCULAR = 0
    STEREO = 1
    RGBD = 2


def _read(settings, key):
    return float(settings.get(key, 0.0))


@dataclass(frozen=True, eq=False)
class CameraSettings:
    """Calibration and timing parameters; missing keys read as zero.

    ``th_depth`` is set for stereo and RGB-D sensors, ``depth_map_factor``
    for RGB-D only; otherwise they are None.
    """

    K: np.ndarray
    dist_coef: np.ndarray
    bf: float
    fps: float
    min_frames: int
    max_frames: int
    rgb: bool
    th_depth: float | None = None
    depth_map_factor: float | None = None

    @classmethod
    def from_mapping(cls, settings, sensor=Sensor.MONOCULAR):
        sensor = Sensor(sensor)
        fx = _read(settings, "Camera.fx")
        fy = _read(settings, "Camera.fy")
        cx = _read(settings, "Camera.cx")
        cy = _read(settings, "Camera.cy")

        K = np.eye(3)
        K[0, 0] = fx
        K[1, 1] = fy
        K[0, 2] = cx
        K[1, 2] = cy

        coefficients = [_read(settings, key)
                        for key in ("Camera.k1", "Camera.k2", "Camera.p1", "Camera.p2")]
        k3 = _read(settings, "Camera.k3")
        if k3 != 0:
            coefficients.append(k3)
        dist_coef = np.array(coefficients)

        bf = _read(settings, "Camera.bf")
        fps = _read(settings, "Camera.fps")
        if fps == 0:
            fps = _DEFAULT_FPS

        rgb = bool(int(_read(settings, "Camera.RGB")))

        th_depth = None
        if sensor in (Sensor.STEREO, Sensor.RGBD):
            if fx == 0:
                raise ValueError("Camera.fx must be non-zero for stereo and RGB-D sensors")
            th_depth = bf * _read(settings, "ThDepth") / fx

        depth_map_factor = None
        if sensor is Sensor.RGBD:
            factor = _read(settings, "DepthMapFactor")
            depth_map_factor = 1.0 if abs(factor) < 1e-5 else 1.0 / factor

        return cls(
            K=K,
            dist_coef=dist_coef,
            bf=bf,
            fps=fps,
            min_frames=0,
            max_frames=int(fps),
            rgb=rgb,
            th_depth=th_depth,
            depth_map_factor=depth_map_factor,
        )


@dataclass(frozen=True)
class OrbSettings:
    """ORB feature extractor parameters."""

    n_features: int
    scale_factor: float
    n_levels: int
    ini_th_fast: int
    min_th_fast: int

    @classmethod
    def from_mapping(cls, settings):
        return cls(
            n_features=int(_read(settings, "ORBextractor.nFeatures")),
            scale_factor=_read(settings, "ORBextractor.scaleFactor"),
            n_levels=int(_read(settings, "ORBextractor.nLevels")),
            ini_th_fast=int(_read(settings, "ORBextractor.iniThFAST")),
            min_th_fast=int(_read(settings, "ORBextractor.minThFAST")),
        )