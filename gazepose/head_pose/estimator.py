import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import cv2
import numpy as np

from gazepose.core.errors import DegenerateCorrespondencesError, PoseSolveError
from gazepose.core.interfaces import PoseSolver
from gazepose.core.landmark_set import LandmarkSet
from gazepose.head_pose.anthropometry import (
    P3D_LEFT_EAR,
    P3D_LEFT_EYE,
    P3D_MENTON,
    P3D_NOSE,
    P3D_RIGHT_EAR,
    P3D_RIGHT_EYE,
    P3D_SELLION,
    P3D_STOMION,
)
from gazepose.head_pose.camera import CameraModel
from gazepose.utils.landmarks.constants import FacialFeature

log = logging.getLogger(__name__)

MM_PER_M = 1000.0

# (landmark, model point) pairs, in solve order. The stomion has no landmark of
# its own and is appended as the midpoint of the inner lip centers.
POSE_CORRESPONDENCES = (
    (FacialFeature.SELLION, P3D_SELLION),
    (FacialFeature.RIGHT_EYE, P3D_RIGHT_EYE),
    (FacialFeature.LEFT_EYE, P3D_LEFT_EYE),
    (FacialFeature.RIGHT_SIDE, P3D_RIGHT_EAR),
    (FacialFeature.LEFT_SIDE, P3D_LEFT_EAR),
    (FacialFeature.MENTON, P3D_MENTON),
    (FacialFeature.NOSE, P3D_NOSE),
)

MODEL_POINTS = np.vstack([p for _, p in POSE_CORRESPONDENCES] + [P3D_STOMION]).astype(np.float64)


@dataclass(frozen=True)
class PoseSeed:
    """
    Initial extrinsic guess for the iterative solve.

    Starting from zero lets the solver fall into the mirrored solution (head
    behind the camera). The default puts the head 1m in front of the camera,
    roughly facing it.
    """
    rvec: Tuple[float, float, float] = (1.2, 1.2, -1.2)
    tvec_mm: Tuple[float, float, float] = (0.0, 0.0, 1000.0)

    def arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        # Fresh arrays every call: the solver refines them in place.
        return (
            np.array(self.rvec, dtype=np.float64).reshape(3, 1),
            np.array(self.tvec_mm, dtype=np.float64).reshape(3, 1),
        )


@dataclass(frozen=True, eq=False)
class HeadPose:
    """4x4 rigid transform from the head frame to the camera frame (metres)."""
    matrix: np.ndarray
    rvec: np.ndarray = field(repr=False)
    tvec_mm: np.ndarray = field(repr=False)

    def __post_init__(self):
        for a in (self.matrix, self.rvec, self.tvec_mm):
            a.setflags(write=False)

    @property
    def rotation(self) -> np.ndarray:
        return self.matrix[:3, :3]

    @property
    def translation(self) -> np.ndarray:
        return self.matrix[:3, 3]

    def apply(self, point) -> np.ndarray:
        """Transform a head-frame point (metres) into the camera frame."""
        p = np.append(np.asarray(point, dtype=np.float64).reshape(3), 1.0)
        return (self.matrix @ p)[:3]


class OpenCVPnPSolver:
    """Iterative (Levenberg-Marquardt) PnP from OpenCV."""

    def solve(self, object_points, image_points, camera_matrix, dist_coeffs, rvec, tvec,
              use_extrinsic_guess: bool = True):
        ok, rvec, tvec = cv2.solvePnP(
            object_points, image_points,
            camera_matrix, dist_coeffs,
            rvec=rvec, tvec=tvec,
            useExtrinsicGuess=use_extrinsic_guess,
            flags=cv2.SOLVEPNP_ITERATIVE,
        )
        return bool(ok), rvec, tvec


class RigidPoseEstimator:
    """
    Head pose of one face from its 68 landmarks.

    Nothing is cached: every call re-solves from the seed, so identical
    landmarks always give an identical pose.
    """

    def __init__(
        self,
        camera: CameraModel,
        solver: Optional[PoseSolver] = None,
        seed: PoseSeed = PoseSeed(),
        degenerate_tol_px: float = 1e-3,
    ):
        self.camera = camera
        self.solver = solver if solver is not None else OpenCVPnPSolver()
        self.seed = seed
        self.degenerate_tol_px = float(degenerate_tol_px)
        self.dist_coeffs = np.zeros((4, 1))

        log.info(f"RigidPoseEstimator initialized (seed rvec={seed.rvec}, tvec_mm={seed.tvec_mm})")

    @staticmethod
    def image_points(landmarks: LandmarkSet) -> np.ndarray:
        pts = [landmarks.coords_of(feature) for feature, _ in POSE_CORRESPONDENCES]
        pts.append(landmarks.midpoint(FacialFeature.MOUTH_CENTER_TOP, FacialFeature.MOUTH_CENTER_BOTTOM))
        return np.array(pts, dtype=np.float64)

    def estimate(self, landmarks: LandmarkSet) -> HeadPose:
        projection = self.camera.project()
        image_points = self.image_points(landmarks)
        rvec, tvec = self.seed.arrays()

        if not np.all(np.isfinite(image_points)):
            raise DegenerateCorrespondencesError("Landmark correspondences contain NaN or inf")

        # Coincident or collinear 2D points leave the pose underdetermined;
        # the solver may still "converge" on them, so its answer is rejected.
        centred = image_points - image_points.mean(axis=0)
        spread = float(np.linalg.svd(centred, compute_uv=False)[1])
        degenerate = spread < self.degenerate_tol_px

        try:
            ok, rvec, tvec = self.solver.solve(
                MODEL_POINTS, image_points, projection, self.dist_coeffs,
                rvec, tvec, use_extrinsic_guess=True,
            )
        except Exception as e:
            exc_type = DegenerateCorrespondencesError if degenerate else PoseSolveError
            raise exc_type(f"PnP solver raised {type(e).__name__}: {e}") from e

        if degenerate:
            raise DegenerateCorrespondencesError(
                f"Landmark correspondences are collinear or coincident (spread={spread:.2e}px)"
            )
        if not ok:
            raise PoseSolveError("solvePnP did not converge")

        rvec = np.array(rvec, dtype=np.float64).reshape(3, 1)
        tvec = np.array(tvec, dtype=np.float64).reshape(3, 1)
        if not (np.all(np.isfinite(rvec)) and np.all(np.isfinite(tvec))):
            raise PoseSolveError(f"solvePnP returned non-finite values (rvec={rvec.ravel()}, tvec={tvec.ravel()})")
        if tvec[2, 0] <= 0:
            raise PoseSolveError(f"Mirrored solution: head behind the camera (tz={tvec[2, 0]:.1f}mm)")

        rotation, _ = cv2.Rodrigues(rvec)

        matrix = np.eye(4, dtype=np.float64)
        matrix[:3, :3] = rotation
        matrix[:3, 3] = tvec.ravel() / MM_PER_M
        pose = HeadPose(matrix=matrix, rvec=rvec, tvec_mm=tvec)

        if log.isEnabledFor(logging.DEBUG):
            log.debug(f"Pose solved: t={pose.translation}, reprojection={self.reprojection_error(pose, landmarks):.2f}px")
        return pose

    def reprojection_error(self, pose: HeadPose, landmarks: LandmarkSet) -> float:
        """Mean distance (px) between detected and reprojected correspondences."""
        projected, _ = cv2.projectPoints(
            MODEL_POINTS, pose.rvec.copy(), pose.tvec_mm.copy(), self.camera.project(), self.dist_coeffs)
        diff = projected.reshape(-1, 2) - self.image_points(landmarks)
        return float(np.mean(np.linalg.norm(diff, axis=1)))
