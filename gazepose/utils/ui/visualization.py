import cv2
import numpy as np

from gazepose.eyes.regions import EyeRegion


def _pt(p):
    return int(p[0]), int(p[1])


class Visualizer:
    """
    Optional debug overlays (pose axes, eye regions, pupils, gaze). Nothing in
    the estimation pipeline calls this; it only draws on a copy the caller owns.
    """
    def __init__(self, axis_length_m: float = 0.05):
        self.FONT = cv2.FONT_HERSHEY_SIMPLEX
        self.axis_length_m = float(axis_length_m)

        # BGR, frames come from cv2.imread / VideoCapture
        self.COLOR_RED = (0, 0, 255)
        self.COLOR_GREEN = (0, 255, 0)
        self.COLOR_BLUE = (255, 0, 0)
        self.COLOR_WHITE = (255, 255, 255)
        self.COLOR_EYE = (0, 128, 128)

    @staticmethod
    def _project(points_cam: np.ndarray, camera_matrix: np.ndarray) -> np.ndarray:
        """Camera-frame points (metres) to pixels."""
        projected, _ = cv2.projectPoints(
            np.asarray(points_cam, dtype=np.float64).reshape(-1, 3),
            np.zeros(3), np.zeros(3), camera_matrix, None,
        )
        return projected.reshape(-1, 2)

    def draw_pose_axes(self, image: np.ndarray, pose, camera_matrix: np.ndarray) -> None:
        """x red, y green, z blue, 5cm long by default."""
        L = self.axis_length_m
        pts = np.array([pose.apply(p) for p in ((0, 0, 0), (L, 0, 0), (0, L, 0), (0, 0, L))])
        px = np.round(self._project(pts, camera_matrix)).astype(int)
        origin = _pt(px[0])
        for end, color in zip(px[1:], (self.COLOR_RED, self.COLOR_GREEN, self.COLOR_BLUE)):
            cv2.line(image, origin, _pt(end), color, 2, cv2.LINE_AA)

    def draw_eye_region(self, image: np.ndarray, region: EyeRegion, pupil_offset=None) -> None:
        tl = np.array([region.x, region.y])
        contour = np.round(region.contour + tl).astype(np.int32)
        cv2.polylines(image, [contour], True, self.COLOR_EYE, 1, cv2.LINE_AA)
        x0, y0 = int(round(region.x)), int(round(region.y))
        w, h = region.size_px
        cv2.rectangle(image, (x0, y0), (x0 + w, y0 + h), self.COLOR_WHITE, 1)

        if pupil_offset is not None:
            cx, cy = region.center
            px = int(round(cx + pupil_offset[0] * region.width / 2.0))
            py = int(round(cy + pupil_offset[1] * region.height / 2.0))
            cv2.circle(image, (px, py), 2, self.COLOR_RED, -1)

    def draw_gaze(self, image: np.ndarray, hit, camera_matrix: np.ndarray, length_m: float = 0.1) -> None:
        pts = np.array([hit.origin, hit.origin + hit.direction * length_m])
        a, b = np.round(self._project(pts, camera_matrix)).astype(int)
        cv2.line(image, _pt(a), _pt(b), self.COLOR_WHITE, 2, cv2.LINE_AA)

    def draw_text(self, image: np.ndarray, text: str, org) -> None:
        cv2.putText(image, text, (int(org[0]), int(org[1])), self.FONT, 0.5, self.COLOR_RED, 2)
