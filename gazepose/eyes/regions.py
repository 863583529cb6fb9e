from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from gazepose.core.landmark_set import LandmarkSet
from gazepose.utils.landmarks.constants import LEFT_EYE, RIGHT_EYE

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class EyeRegion:
    """
    Enlarged eye rectangle in image pixels plus the 6-point eye contour in
    the rectangle's local frame. Sizes are not validated here: degenerate
    landmarks give a zero or negative width/height.
    """
    x: float
    y: float
    width: float
    height: float
    contour: np.ndarray

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def size_px(self) -> Tuple[int, int]:
        """(width, height) rounded to whole pixels, for masks and crops."""
        return int(round(self.width)), int(round(self.height))

    def to_image(self, local_xy: Sequence[float]) -> Tuple[float, float]:
        return self.x + float(local_xy[0]), self.y + float(local_xy[1])


def _base_rect(eye: np.ndarray) -> Tuple[float, float, float, float]:
    # eye rows: corner, upper lid, upper lid, corner, lower lid, lower lid
    x0 = float(eye[0, 0])
    x1 = float(eye[3, 0])
    y0 = float(min(eye[1, 1], eye[2, 1]))
    y1 = float(max(eye[4, 1], eye[5, 1]))
    return x0, y0, x1 - x0, y1 - y0


def _enlarged(eye: np.ndarray, base: Tuple[float, float, float, float], margin: float) -> EyeRegion:
    x, y, w, h = base
    x -= margin
    y -= margin
    w += 2 * margin
    h += 2 * margin
    contour = eye - np.array([x, y], dtype=np.float64)
    contour.setflags(write=False)
    return EyeRegion(x=x, y=y, width=w, height=h, contour=contour)


class EyeRegionExtractor:
    """
    Builds the pupil search region of each eye from its 6 landmarks.

    The base rectangle spans the two eye corners horizontally and the lids
    vertically, then grows by `enlarge_factor` of its width on every side so
    noisy lid landmarks do not clip the pupil.

    With `shared_margin=True` the right eye reuses the margin computed from the
    left eye's width, reproducing older behaviour. Off by default.
    """

    def __init__(self, enlarge_factor: float = 0.25, shared_margin: bool = False):
        self.enlarge_factor = float(enlarge_factor)
        self.shared_margin = bool(shared_margin)
        if self.shared_margin:
            log.info("EyeRegionExtractor: right eye margin follows the left eye width (shared_margin)")

    def extract(self, landmarks: LandmarkSet) -> Tuple[EyeRegion, EyeRegion]:
        """(left, right) regions, as seen in the image."""
        left_pts = landmarks.take(LEFT_EYE)
        right_pts = landmarks.take(RIGHT_EYE)

        left_base = _base_rect(left_pts)
        right_base = _base_rect(right_pts)

        left_margin = self.enlarge_factor * left_base[2]
        right_margin = left_margin if self.shared_margin else self.enlarge_factor * right_base[2]

        return (
            _enlarged(left_pts, left_base, left_margin),
            _enlarged(right_pts, right_base, right_margin),
        )
