# slamkit

Building blocks for a feature-based visual SLAM pipeline, written with NumPy.

## Modules

- `slamkit.epnp`: the EPnP closed-form camera pose solver. `EPnP(fu, fv, uc, vc)`
  has `compute_pose(world_points, image_points)`, which returns
  `(R, t, mean_reprojection_error)` from at least four correspondences, and
  `reprojection_error(...)`. Also `qr_solve` (Householder least squares),
  `mat_to_quat` and `relative_error` for comparing two poses.
- `slamkit.pnp_ransac`: `PnPRansac`, a RANSAC wrapper around EPnP. `iterate(n)`
  and `find()` return a `PnPResult` with the 4x4 `pose` (or None), the
  `inliers` keypoint indices, `n_inliers` and a `no_more` flag set once the
  iteration budget is spent. Thresholds are set with `set_ransac_parameters`.
- `slamkit.sim3`: `compute_sim3(P1, P2, fix_scale)` (Horn's closed-form
  similarity, returning a `Sim3` with `rotation`, `translation`, `scale`,
  `T12` and `T21`), the `project` and `camera_to_image` helpers, and the
  RANSAC `Sim3Solver`, whose `iterate`/`find` return
  `(sim3, inliers, no_more)`.
- `slamkit.sgfilter`: `SGFilter(poly_order, filter_size)`, a streaming
  Savitzky–Golay filter. `update(time, value)` returns `(y, y_dot)`, the
  smoothed value and its derivative, once the window has filled, and None
  before that. `pow_fast` is the integer power it uses.
- `slamkit.settings`: `Sensor` (`MONOCULAR`, `STEREO`, `RGBD`),
  `CameraSettings.from_mapping(settings, sensor)` and
  `OrbSettings.from_mapping(settings)`, read from a plain mapping of keys such
  as `"Camera.fx"`; missing keys read as zero.
- `slamkit.modes`: `TrackingState`, `TrackingMethod`,
  `select_tracking_methods(...)`, which gives the pose-estimation methods to try
  for a frame, and `next_state(tracking_ok)`.
- `slamkit.keyframe_policy`: `KeyFrameContext`, `need_new_keyframe(ctx)` and
  `select_close_points(depths, th_depth, existing)`.
- `slamkit.local_map`: `local_map_tracked`, `count_keyframe_votes` and
  `search_threshold`.
- `slamkit.motion_model`: `compute_velocity`, `predict_pose` and
  `scale_baseline` for the constant-velocity model and monocular map scaling.
- `slamkit.frame_log`: `FrameLog`, which records each frame's pose relative to
  its reference keyframe (`record`, `record_lost`, `reset`, `records`).
- `slamkit.trajectory`: `FrameRecord`, `rotation_to_quaternion`,
  `camera_center`, `format_tum_line`, `format_kitti_line`, and
  `save_trajectory_tum` / `save_trajectory_kitti`, which write a file and
  return the number of lines written (TUM skips frames marked lost).
- `slamkit.viewer_control`: `ViewerSettings.from_mapping` and
  `ViewerControl`, the thread-safe stop/finish handshake a viewer loop uses.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example: camera pose from correspondences

```python
import numpy as np
from slamkit.epnp import EPnP

solver = EPnP(fu=500.0, fv=500.0, uc=320.0, vc=240.0)
world = np.random.default_rng(0).uniform(-1, 1, size=(10, 3)) + [0, 0, 5]
image = np.column_stack([
    320.0 + 500.0 * world[:, 0] / world[:, 2],
    240.0 + 500.0 * world[:, 1] / world[:, 2],
])
R, t, error = solver.compute_pose(world, image)
```

## Example: smoothing a signal

```python
from slamkit.sgfilter import SGFilter

sg = SGFilter(poly_order=2, filter_size=7)
for k in range(20):
    result = sg.update(k * 0.1, float(k))
    if result is not None:
        y, y_dot = result
```

## Example: saving a trajectory

```python
import numpy as np
from slamkit.trajectory import FrameRecord, save_trajectory_tum

records = [FrameRecord(timestamp=0.0, pose=np.eye(4)),
           FrameRecord(timestamp=0.1, pose=np.eye(4), lost=True)]
written = save_trajectory_tum("trajectory.txt", records)  # 1
```

Each `FrameRecord` holds a world-to-camera pose; the written lines give the
camera-to-world position and orientation.

## What it does not do

slamkit is a library of solvers and decision rules. It does not extract or
match image features, run bundle adjustment, keep a map of keyframes and map
points, open a viewer window, or provide a command-line program. `FrameLog`
stores poses relative to reference keyframes; turning them back into world
poses needs the keyframe poses, which the caller must supply.