import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

# Ensure repo root is on sys.path so `import gazepose...` works without an install.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from gazepose.core.landmark_set import LandmarkSet  # noqa: E402
from gazepose.head_pose.camera import CameraModel  # noqa: E402
from gazepose.head_pose.estimator import MODEL_POINTS, POSE_CORRESPONDENCES  # noqa: E402
from gazepose.utils.landmarks.constants import FacialFeature  # noqa: E402

FOCAL = 500.0
FRAME_SHAPE = (480, 640, 3)

# Near-frontal pose, close to (but not at) the solver seed.
TRUE_RVEC = (1.15, 1.25, -1.18)
TRUE_TVEC_MM = (40.0, -25.0, 900.0)


def _eye_contours(lms: np.ndarray, width: float = 20.0) -> None:
    """Fill 36-47 around the two projected outer eye corners."""
    l0 = lms[36].copy()
    for i, (dx, dy) in zip(range(36, 42), ((0, 0), (7, -4), (13, -4), (width, 0), (13, 4), (7, 4))):
        lms[i] = l0 + (dx, dy)
    r0 = lms[45] - (width, 0)
    for i, (dx, dy) in zip(range(42, 48), ((0, 0), (7, -4), (13, -4), (width, 0), (13, 4), (7, 4))):
        lms[i] = r0 + (dx, dy)


def synthetic_landmarks(camera_matrix, rvec=TRUE_RVEC, tvec_mm=TRUE_TVEC_MM) -> LandmarkSet:
    """68 landmarks whose pose correspondences are exact projections of the head model."""
    projected, _ = cv2.projectPoints(
        MODEL_POINTS,
        np.array(rvec, dtype=np.float64),
        np.array(tvec_mm, dtype=np.float64),
        camera_matrix,
        np.zeros((4, 1)),
    )
    pts = projected.reshape(-1, 2)

    lms = np.tile(pts.mean(axis=0), (68, 1))
    for (feature, _), p in zip(POSE_CORRESPONDENCES, pts[:7]):
        lms[int(feature)] = p
    lms[FacialFeature.MOUTH_CENTER_TOP] = pts[7]
    lms[FacialFeature.MOUTH_CENTER_BOTTOM] = pts[7]
    _eye_contours(lms)
    return LandmarkSet(lms)


@pytest.fixture
def frame():
    return np.full(FRAME_SHAPE, 200, dtype=np.uint8)


@pytest.fixture
def camera(frame):
    cam = CameraModel(FOCAL)
    cam.observe(frame)
    return cam


@pytest.fixture
def landmarks(camera):
    return synthetic_landmarks(camera.project())


@pytest.fixture
def coincident_landmarks():
    return LandmarkSet(np.full((68, 2), (320.0, 240.0)))
