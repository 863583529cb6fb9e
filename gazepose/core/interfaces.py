"""
Contracts for the collaborators the pipeline depends on but does not implement
itself. Anything with matching methods can be plugged in.
"""
from __future__ import annotations

from typing import Any, Protocol, Sequence, Tuple

import numpy as np


class FaceDetector(Protocol):
    def detect(self, image: np.ndarray) -> Sequence[Any]:
        """Faces found in `image`, in an order stable within one call."""
        ...


class LandmarkRegressor(Protocol):
    def predict(self, image: np.ndarray, face: Any) -> Any:
        """68 (x, y) points for `face`, as a LandmarkSet or anything array-like of shape (68, 2)."""
        ...


class PupilLocator(Protocol):
    def locate(self, image: np.ndarray, region: Any, mask: np.ndarray) -> Tuple[float, float]:
        """
        Pupil center inside `region`, in region-local pixel coordinates.
        `mask` has the region's size and is non-zero over the eye.
        Raises PupilNotFoundError when nothing plausible is found.
        """
        ...


class PoseSolver(Protocol):
    def solve(
        self,
        object_points: np.ndarray,
        image_points: np.ndarray,
        camera_matrix: np.ndarray,
        dist_coeffs: np.ndarray,
        rvec: np.ndarray,
        tvec: np.ndarray,
        use_extrinsic_guess: bool = True,
    ) -> Tuple[bool, np.ndarray, np.ndarray]:
        ...
