import numpy as np
import pytest

from gazepose.core.landmark_set import LandmarkSet
from gazepose.head_pose.anthropometry import HEAD_MODEL, P3D_SELLION
from gazepose.utils.landmarks.constants import LEFT_EYE, NUM_LANDMARKS, RIGHT_EYE, FacialFeature


def _indexed():
    return LandmarkSet(np.column_stack([np.arange(68.0), np.arange(68.0) * 2]))


def test_feature_indices_follow_68_point_scheme():
    assert FacialFeature.SELLION == 27
    assert FacialFeature.NOSE == 30
    assert FacialFeature.MENTON == 8
    assert (FacialFeature.RIGHT_SIDE, FacialFeature.LEFT_SIDE) == (0, 16)
    assert (FacialFeature.RIGHT_EYE, FacialFeature.LEFT_EYE) == (36, 45)
    assert (FacialFeature.MOUTH_CENTER_TOP, FacialFeature.MOUTH_CENTER_BOTTOM) == (62, 66)
    assert LEFT_EYE == tuple(range(36, 42))
    assert RIGHT_EYE == tuple(range(42, 48))


def test_coords_of_uses_feature_offset():
    assert _indexed().coords_of(FacialFeature.NOSE) == (30.0, 60.0)


def test_coords_of_rejects_bare_integers():
    with pytest.raises(TypeError):
        _indexed().coords_of(30)


@pytest.mark.parametrize("shape", [(67, 2), (68, 3), (68,)])
def test_wrong_shape_is_rejected(shape):
    with pytest.raises(ValueError):
        LandmarkSet(np.zeros(shape))


def test_landmarks_are_read_only():
    lms = _indexed()
    assert len(lms) == NUM_LANDMARKS
    with pytest.raises(ValueError):
        lms.points[0, 0] = 1.0


def test_midpoint():
    assert _indexed().midpoint(FacialFeature.MOUTH_CENTER_TOP, FacialFeature.MOUTH_CENTER_BOTTOM) == (64.0, 128.0)


class _Part:
    def __init__(self, x, y):
        self.x, self.y = x, y


class _DlibShape:
    num_parts = 68

    def part(self, i):
        return _Part(i, -i)


def test_from_dlib_shape():
    lms = LandmarkSet.from_dlib(_DlibShape())
    assert lms.coords_of(FacialFeature.MENTON) == (8.0, -8.0)


def test_head_model_is_immutable():
    assert set(HEAD_MODEL) == {
        "sellion", "right_eye", "left_eye", "right_ear", "left_ear", "menton", "nose", "stomion",
    }
    with pytest.raises(ValueError):
        P3D_SELLION[0] = 1.0
    with pytest.raises(TypeError):
        HEAD_MODEL["nose"] = np.zeros(3)
    # subject's right is -y in the head frame
    assert HEAD_MODEL["right_eye"][1] < 0 < HEAD_MODEL["left_eye"][1]
