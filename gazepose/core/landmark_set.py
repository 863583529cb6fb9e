from __future__ import annotations

from typing import Any, Iterable, Tuple

import numpy as np

from gazepose.utils.landmarks.constants import NUM_LANDMARKS, FacialFeature


class LandmarkSet:
    """
    The 68 detected 2D points of one face, in image pixels.

    Read-only once built. Lookups go through FacialFeature so a pose
    correspondence can never pick up a bare, mistyped integer.
    """
    __slots__ = ("_pts",)

    def __init__(self, points: Any):
        pts = np.array(points, dtype=np.float64)
        if pts.shape != (NUM_LANDMARKS, 2):
            raise ValueError(f"Expected {NUM_LANDMARKS}x2 landmarks, got shape {pts.shape}")
        pts.setflags(write=False)
        self._pts = pts

    @classmethod
    def from_dlib(cls, shape) -> "LandmarkSet":
        return cls([(shape.part(i).x, shape.part(i).y) for i in range(shape.num_parts)])

    @property
    def points(self) -> np.ndarray:
        return self._pts

    def __len__(self) -> int:
        return len(self._pts)

    def coords_of(self, feature: FacialFeature) -> Tuple[float, float]:
        if not isinstance(feature, FacialFeature):
            raise TypeError(f"coords_of expects a FacialFeature, got {type(feature).__name__}")
        x, y = self._pts[int(feature)]
        return float(x), float(y)

    def take(self, indices: Iterable[int]) -> np.ndarray:
        """Rows for raw contour indices (e.g. the eye tuples in constants)."""
        return self._pts[list(indices)].copy()

    def midpoint(self, a: FacialFeature, b: FacialFeature) -> Tuple[float, float]:
        (ax, ay), (bx, by) = self.coords_of(a), self.coords_of(b)
        return (ax + bx) * 0.5, (ay + by) * 0.5

    def __repr__(self) -> str:
        return f"LandmarkSet(n={len(self)}, sellion={self.coords_of(FacialFeature.SELLION)})"
