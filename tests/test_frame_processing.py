import dataclasses

import numpy as np
import pytest

from conftest import FOCAL, TRUE_TVEC_MM, synthetic_landmarks
from gazepose.core.errors import DegenerateEyeRegionError, PoseSolveError
from gazepose.core.frame_processing import FrameProcessor, FrameResult
from gazepose.eyes.pupil import PupilNormalizer, PupilResult, ThresholdPupilLocator
from gazepose.gaze.ray import GazeHit
from gazepose.head_pose.camera import CameraModel
from gazepose.head_pose.config import load_estimator_config
from gazepose.head_pose.estimator import HeadPose, RigidPoseEstimator
from gazepose.utils.landmarks.constants import FacialFeature


class ListDetector:
    def __init__(self, faces):
        self.faces = faces

    def detect(self, image):
        return list(self.faces)


class TableRegressor:
    """Face name -> landmarks (LandmarkSet or raw array)."""

    def __init__(self, table):
        self.table = table

    def predict(self, image, face):
        return self.table[face]


def _good_points():
    cam = CameraModel(FOCAL)
    cam.observe(np.zeros((480, 640), dtype=np.uint8))
    return synthetic_landmarks(cam.project())


def _processor(table, faces=None):
    return FrameProcessor(
        detector=ListDetector(faces if faces is not None else list(table)),
        regressor=TableRegressor(table),
        camera=CameraModel(FOCAL),
        pupil_normalizer=PupilNormalizer(ThresholdPupilLocator()),
    )


def test_update_builds_frame_result(frame):
    good = _good_points()
    result = _processor({"a": good}).update(frame)

    assert isinstance(result, FrameResult)
    assert len(result) == 1
    assert result.faces == ("a",)
    assert result.coords_of(0, FacialFeature.SELLION) == good.coords_of(FacialFeature.SELLION)
    assert isinstance(result.pupils[0], PupilResult)
    left, right = result.eyes[0]
    assert left.width == pytest.approx(30.0)


def test_raw_arrays_are_accepted_as_landmarks(frame):
    result = _processor({"a": _good_points().points.tolist()}).update(frame)
    assert len(result.landmarks[0]) == 68


def test_wrong_landmark_count_is_rejected(frame):
    with pytest.raises(ValueError):
        _processor({"a": np.zeros((5, 2))}).update(frame)


def test_pose_is_solved_per_request(frame):
    result = _processor({"a": _good_points()}).update(frame)

    a = result.pose(0)
    b = result.pose(0)
    assert isinstance(a, HeadPose)
    assert a is not b
    np.testing.assert_allclose(a.translation, np.array(TRUE_TVEC_MM) / 1000.0, atol=1e-3)


def test_face_failures_are_isolated(frame, coincident_landmarks):
    result = _processor({"good": _good_points(), "bad": coincident_landmarks}, faces=["good", "bad"]).update(frame)

    assert isinstance(result.pupils[0], PupilResult)
    assert isinstance(result.pupils[1], DegenerateEyeRegionError)

    poses = result.poses()
    assert isinstance(poses[0], HeadPose)
    assert isinstance(poses[1], PoseSolveError)
    assert len(result.poses(skip_failed=True)) == 1

    with pytest.raises(PoseSolveError):
        result.pose(1)


def test_gaze_on_demand(frame):
    hit = _processor({"a": _good_points()}).update(frame).gaze(0)
    assert isinstance(hit, GazeHit)
    assert hit.point[2] == pytest.approx(0.0, abs=1e-9)


def test_each_update_replaces_faces(frame):
    detector = ListDetector(["a"])
    proc = FrameProcessor(detector=detector, regressor=TableRegressor({"a": _good_points()}), camera=CameraModel(FOCAL))

    first = proc.update(frame)
    detector.faces = []
    second = proc.update(frame)

    assert len(first) == 1
    assert len(second) == 0
    assert first.pupils == (None,)


def test_optical_center_fixed_by_first_frame(frame):
    proc = _processor({})
    proc.update(frame)
    proc.update(np.zeros((100, 100, 3), dtype=np.uint8))
    assert proc.camera.optical_center == (320, 240)


def test_frame_result_is_immutable(frame):
    result = _processor({"a": _good_points()}).update(frame)
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.faces = ()


def test_from_config_wires_components(frame):
    cfg = load_estimator_config(None)
    cfg["eyes"]["enlarge_factor"] = 0.5
    proc = FrameProcessor.from_config(
        cfg,
        detector=ListDetector(["a"]),
        regressor=TableRegressor({"a": _good_points()}),
    )
    result = proc.update(frame)

    assert proc.camera.focal_length == 500.0
    assert proc.pose_estimator.seed.tvec_mm == (0.0, 0.0, 1000.0)
    assert result.eyes[0][0].width == pytest.approx(40.0)
    assert isinstance(result.pose(0), HeadPose)


def test_non_finite_landmarks_only_fail_their_own_face(frame):
    good = _good_points()
    pts = good.points.copy()
    pts[FacialFeature.NOSE] = (np.nan, np.nan)
    result = _processor({"good": good, "nan": pts}, faces=["good", "nan"]).update(frame)

    poses = result.poses()
    assert isinstance(poses[0], HeadPose)
    assert isinstance(poses[1], PoseSolveError)


def test_pose_estimator_must_share_the_camera():
    with pytest.raises(ValueError):
        FrameProcessor(
            detector=ListDetector([]),
            regressor=TableRegressor({}),
            camera=CameraModel(FOCAL),
            pose_estimator=RigidPoseEstimator(CameraModel(FOCAL)),
        )
