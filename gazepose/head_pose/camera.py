import logging
import math
from typing import Optional, Tuple

import numpy as np

from gazepose.core.errors import CameraNotInitializedError

log = logging.getLogger(__name__)


class CameraModel:
    """
    Pinhole intrinsics with a lazily fixed optical center.

    The optical center is taken from the first image seen (half width, half
    height) and then never changes for the lifetime of the object, even if
    later frames have different dimensions.
    """

    def __init__(self, focal_length: float):
        focal_length = float(focal_length)
        if not math.isfinite(focal_length) or focal_length <= 0:
            raise ValueError(f"focal_length must be finite and > 0, got {focal_length}")
        self.focal_length = focal_length
        self._center: Optional[Tuple[float, float]] = None

        log.info(f"CameraModel initialized (f={focal_length:.1f}px)")

    @property
    def is_initialized(self) -> bool:
        return self._center is not None

    @property
    def optical_center(self) -> Optional[Tuple[float, float]]:
        return self._center

    def observe(self, image: np.ndarray) -> None:
        if self._center is not None:
            return
        h, w = image.shape[:2]
        self._center = (w / 2.0, h / 2.0)
        log.info(f"Setting the optical center to ({self._center[0]:.1f}, {self._center[1]:.1f})")

    def project(self) -> np.ndarray:
        if self._center is None:
            raise CameraNotInitializedError("Optical center unknown: no frame has been processed yet")
        cx, cy = self._center
        f = self.focal_length
        return np.array([
            [f, 0.0, cx],
            [0.0, f, cy],
            [0.0, 0.0, 1.0],
        ], dtype=np.float64)
