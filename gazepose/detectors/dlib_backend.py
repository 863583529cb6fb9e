import logging
import os
from typing import Any, List

import cv2
import numpy as np

from gazepose.core.landmark_set import LandmarkSet

log = logging.getLogger(__name__)


def _load_dlib():
    # dlib is an optional extra (`pip install gazepose[dlib]`); only these adapters need it.
    import dlib

    return dlib


def _to_gray(image: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image


class DlibFaceDetector:
    """dlib's HOG frontal face detector."""

    def __init__(self, upsample: int = 0):
        self._dlib = _load_dlib()
        self._detector = self._dlib.get_frontal_face_detector()
        self.upsample = int(upsample)
        log.info(f"DlibFaceDetector initialized (upsample={self.upsample})")

    def detect(self, image: np.ndarray) -> List[Any]:
        return list(self._detector(_to_gray(image), self.upsample))


class DlibLandmarkRegressor:
    """dlib's 68-point shape predictor. The caller provides the .dat model path."""

    def __init__(self, model_path: str):
        if not os.path.exists(model_path):
            raise FileNotFoundError(
                f"Landmark model not found: {model_path}. "
                "Download shape_predictor_68_face_landmarks.dat and pass its path."
            )
        self._dlib = _load_dlib()
        self._predictor = self._dlib.shape_predictor(model_path)
        log.info(f"DlibLandmarkRegressor initialized ({model_path})")

    def predict(self, image: np.ndarray, face: Any) -> LandmarkSet:
        return LandmarkSet.from_dlib(self._predictor(_to_gray(image), face))
