from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from gazepose.core.errors import ParallelGazeRayError
from gazepose.head_pose.estimator import HeadPose

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GazeRay:
    origin: np.ndarray
    direction: np.ndarray


@dataclass(frozen=True, eq=False)
class GazeHit:
    origin: np.ndarray
    direction: np.ndarray
    point: np.ndarray
    t: float


def _vec3(v: Sequence[float]) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).reshape(3)


class GazeRayComputer:
    """
    Head-direction ray and its intersection with a reference plane.

    The ray starts at the pose translation and passes through
    `forward_point` (head frame, metres) carried by the pose. The default
    plane is z = 0 of the camera frame, i.e. the image plane.
    """

    def __init__(
        self,
        forward_point: Sequence[float] = (1.0, 0.0, 0.0),
        plane_point: Sequence[float] = (0.0, 0.0, 0.0),
        plane_normal: Sequence[float] = (0.0, 0.0, 1.0),
        parallel_eps: float = 1e-9,
    ):
        normal = _vec3(plane_normal)
        norm = float(np.linalg.norm(normal))
        if norm == 0.0:
            raise ValueError("plane_normal must be non-zero")
        self.forward_point = _vec3(forward_point)
        self.plane_point = _vec3(plane_point)
        self.plane_normal = normal / norm
        self.parallel_eps = float(parallel_eps)

    def ray(self, pose: HeadPose) -> GazeRay:
        origin = pose.translation.copy()
        direction = pose.apply(self.forward_point) - origin
        length = float(np.linalg.norm(direction))
        if length == 0.0:
            raise ValueError("forward_point maps onto the ray origin; direction is undefined")
        return GazeRay(origin=origin, direction=direction / length)

    def intersect(self, pose: HeadPose) -> GazeHit:
        r = self.ray(pose)
        denom = float(r.direction @ self.plane_normal)
        if abs(denom) <= self.parallel_eps:
            raise ParallelGazeRayError(f"Gaze ray is parallel to the reference plane (d.n={denom:.3e})")

        t = -float((r.origin - self.plane_point) @ self.plane_normal) / denom
        point = r.origin + t * r.direction
        log.debug(f"Gaze origin={r.origin}, direction={r.direction}, hit={point}")
        return GazeHit(origin=r.origin, direction=r.direction, point=point, t=t)


def line_intersection(o1, p1, o2, p2, eps: float = 1e-8) -> Optional[Tuple[float, float]]:
    """
    Intersection of the 2D lines (o1, p1) and (o2, p2), or None when they are
    parallel.
    """
    o1, p1, o2, p2 = (np.asarray(v, dtype=np.float64) for v in (o1, p1, o2, p2))
    x = o2 - o1
    d1 = p1 - o1
    d2 = p2 - o2

    cross = d1[0] * d2[1] - d1[1] * d2[0]
    if abs(cross) < eps:
        return None

    t1 = (x[0] * d2[1] - x[1] * d2[0]) / cross
    r = o1 + d1 * t1
    return float(r[0]), float(r[1])
