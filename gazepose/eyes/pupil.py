from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from gazepose.core.errors import DegenerateEyeRegionError, PupilNotFoundError
from gazepose.core.interfaces import PupilLocator
from gazepose.core.landmark_set import LandmarkSet
from gazepose.eyes.regions import EyeRegion, EyeRegionExtractor

log = logging.getLogger(__name__)


def pixel_origin(region: EyeRegion) -> Tuple[int, int]:
    """Image pixel that masks and crops of `region` start at."""
    return int(round(region.x)), int(round(region.y))


def build_eye_mask(region: EyeRegion) -> np.ndarray:
    """uint8 mask of the region's size, 255 inside the eye contour."""
    w, h = region.size_px
    if region.is_empty or w <= 0 or h <= 0:
        raise DegenerateEyeRegionError(f"Eye region has no area ({region.width:.1f}x{region.height:.1f})")
    mask = np.zeros((h, w), dtype=np.uint8)
    # the mask is laid over crop_region's pixel grid, which starts at the rounded origin
    dx, dy = pixel_origin(region)
    pts = np.round(region.contour + (region.x - dx, region.y - dy)).astype(np.int32)
    cv2.fillConvexPoly(mask, pts, 255)
    return mask


def crop_region(gray: np.ndarray, region: EyeRegion, fill: int = 255) -> np.ndarray:
    """
    Region-sized patch of a single-channel image. Parts of the region outside
    the image are filled with `fill`.
    """
    w, h = region.size_px
    x0, y0 = pixel_origin(region)
    img_h, img_w = gray.shape[:2]

    top, left = max(0, -y0), max(0, -x0)
    bottom, right = max(0, y0 + h - img_h), max(0, x0 + w - img_w)
    patch = gray[max(0, y0):min(img_h, y0 + h), max(0, x0):min(img_w, x0 + w)]
    if patch.size == 0:
        return np.full((h, w), fill, dtype=gray.dtype)
    if top or left or bottom or right:
        patch = cv2.copyMakeBorder(patch, top, bottom, left, right, cv2.BORDER_CONSTANT, value=fill)
    return patch


class ThresholdPupilLocator:
    """
    Minimal pupil locator: the largest blob of near-darkest pixels inside the
    eye mask, located by its centroid.
    """

    def __init__(self, blur_ksize: int = 5, threshold_offset: int = 10):
        k = max(1, int(blur_ksize))
        self.blur_ksize = k if k % 2 == 1 else k + 1
        self.threshold_offset = int(threshold_offset)

    def locate(self, image: np.ndarray, region: EyeRegion, mask: np.ndarray) -> Tuple[float, float]:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
        patch = crop_region(gray, region)
        if self.blur_ksize > 1:
            patch = cv2.GaussianBlur(patch, (self.blur_ksize, self.blur_ksize), 0)

        inside = mask > 0
        if not inside.any():
            raise PupilNotFoundError("Eye mask is empty")

        darkest = float(patch[inside].min())
        _, dark = cv2.threshold(patch, darkest + self.threshold_offset, 255, cv2.THRESH_BINARY_INV)
        dark = cv2.bitwise_and(dark, mask)

        n, _, stats, centroids = cv2.connectedComponentsWithStats(dark, connectivity=8)
        if n <= 1:
            raise PupilNotFoundError("No dark blob inside the eye mask")
        best = 1 + int(np.argmax(stats[1:, cv2.CC_STAT_AREA]))
        cx, cy = centroids[best]
        # crop pixels -> region-local coordinates (the region origin may be fractional)
        x0, y0 = pixel_origin(region)
        return float(cx) + x0 - region.x, float(cy) + y0 - region.y


def normalize_pupil(pupil: Sequence[float], region: EyeRegion, local: bool = True) -> Tuple[float, float]:
    """
    Pupil offset from the region center, scaled so the region edges sit at +-1.

    `pupil` is region-local (the locator contract) unless `local=False`, in
    which case it is in image pixels. The result is not clamped.
    """
    if region.is_empty:
        raise DegenerateEyeRegionError(f"Eye region has no area ({region.width:.1f}x{region.height:.1f})")
    half_w = region.width / 2.0
    half_h = region.height / 2.0
    cx, cy = (half_w, half_h) if local else region.center
    return (float(pupil[0]) - cx) / half_w, (float(pupil[1]) - cy) / half_h


@dataclass(frozen=True)
class PupilResult:
    left: Tuple[float, float]
    right: Tuple[float, float]
    left_region: EyeRegion
    right_region: EyeRegion


class PupilNormalizer:
    """Eye regions -> masks -> external pupil locator -> normalized offsets."""

    def __init__(self, locator: PupilLocator, extractor: Optional[EyeRegionExtractor] = None):
        self.locator = locator
        self.extractor = extractor if extractor is not None else EyeRegionExtractor()

    def measure(self, image: np.ndarray, landmarks: LandmarkSet) -> PupilResult:
        return self.measure_regions(image, self.extractor.extract(landmarks))

    def measure_regions(self, image: np.ndarray, regions: Tuple[EyeRegion, EyeRegion]) -> PupilResult:
        left_region, right_region = regions

        offsets = []
        for region in (left_region, right_region):
            mask = build_eye_mask(region)
            pupil = self.locator.locate(image, region, mask)
            if pupil is None or not np.all(np.isfinite(pupil)):
                raise PupilNotFoundError(f"Pupil locator returned an undefined point: {pupil}")
            offsets.append(normalize_pupil(pupil, region))

        log.debug(f"Pupils: left={offsets[0]}, right={offsets[1]}")
        return PupilResult(
            left=offsets[0],
            right=offsets[1],
            left_region=left_region,
            right_region=right_region,
        )
