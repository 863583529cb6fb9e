import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from gazepose.core.errors import GazePoseError, PoseSolveError
from gazepose.core.interfaces import FaceDetector, LandmarkRegressor, PupilLocator
from gazepose.core.landmark_set import LandmarkSet
from gazepose.eyes.pupil import PupilNormalizer, PupilResult, ThresholdPupilLocator
from gazepose.eyes.regions import EyeRegion, EyeRegionExtractor
from gazepose.gaze.ray import GazeHit, GazeRayComputer
from gazepose.head_pose.camera import CameraModel
from gazepose.head_pose.estimator import HeadPose, PoseSeed, RigidPoseEstimator
from gazepose.utils.landmarks.constants import FacialFeature

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameResult:
    """
    Everything known about one frame. Built once by FrameProcessor.update and
    never mutated, so pose queries on different faces can run concurrently.

    `pupils[i]` is either a PupilResult or the error that stopped the pupil
    pipeline for face i; one face failing never affects the others.
    """
    faces: Tuple[Any, ...]
    landmarks: Tuple[LandmarkSet, ...]
    eyes: Tuple[Tuple[EyeRegion, EyeRegion], ...]
    pupils: Tuple[Union[PupilResult, GazePoseError, None], ...]
    estimator: RigidPoseEstimator = field(repr=False)
    gaze_computer: GazeRayComputer = field(repr=False)

    def __len__(self) -> int:
        return len(self.faces)

    def coords_of(self, face_idx: int, feature: FacialFeature) -> Tuple[float, float]:
        return self.landmarks[face_idx].coords_of(feature)

    def pose(self, face_idx: int) -> HeadPose:
        """Solved on every call, never cached. Raises PoseSolveError on failure."""
        return self.estimator.estimate(self.landmarks[face_idx])

    def poses(self, skip_failed: bool = False) -> List[Union[HeadPose, PoseSolveError]]:
        res: List[Union[HeadPose, PoseSolveError]] = []
        for i in range(len(self.faces)):
            try:
                res.append(self.pose(i))
            except PoseSolveError as e:
                log.warning(f"Pose solve failed for face {i}: {e}")
                if not skip_failed:
                    res.append(e)
        return res

    def gaze(self, face_idx: int) -> GazeHit:
        return self.gaze_computer.intersect(self.pose(face_idx))


class FrameProcessor:
    """
    Per-frame pipeline:
    - camera optical center (first frame only)
    - face detection + 68-point landmarks (external collaborators)
    - eye regions + normalized pupils per face
    Head pose and gaze are computed on demand from the returned FrameResult.
    """

    def __init__(
        self,
        *,
        detector: FaceDetector,
        regressor: LandmarkRegressor,
        camera: CameraModel,
        pose_estimator: Optional[RigidPoseEstimator] = None,
        eye_extractor: Optional[EyeRegionExtractor] = None,
        pupil_normalizer: Optional[PupilNormalizer] = None,
        gaze_computer: Optional[GazeRayComputer] = None,
    ):
        self.detector = detector
        self.regressor = regressor
        self.camera = camera
        self.pose_estimator = pose_estimator or RigidPoseEstimator(camera)
        if self.pose_estimator.camera is not camera:
            # only `camera` gets its optical center from update()
            raise ValueError("pose_estimator must be built on the same CameraModel as the processor")
        self.eye_extractor = eye_extractor or EyeRegionExtractor()
        self.pupil_normalizer = pupil_normalizer
        self.gaze_computer = gaze_computer or GazeRayComputer()

        log.info(f"FrameProcessor initialized (pupils={'on' if pupil_normalizer else 'off'})")

    @classmethod
    def from_config(
        cls,
        cfg: Dict[str, Any],
        *,
        detector: FaceDetector,
        regressor: LandmarkRegressor,
        locator: Optional[PupilLocator] = None,
        camera: Optional[CameraModel] = None,
    ) -> "FrameProcessor":
        """Wire every component from a load_estimator_config() dict."""
        camera = camera or CameraModel(cfg["camera"]["focal_length"])
        estimator = RigidPoseEstimator(
            camera,
            seed=PoseSeed(rvec=cfg["pose"]["seed_rvec"], tvec_mm=cfg["pose"]["seed_tvec_mm"]),
            degenerate_tol_px=cfg["pose"]["degenerate_tol_px"],
        )
        extractor = EyeRegionExtractor(
            enlarge_factor=cfg["eyes"]["enlarge_factor"],
            shared_margin=cfg["eyes"]["shared_margin"],
        )
        if locator is None:
            locator = ThresholdPupilLocator(
                blur_ksize=cfg["pupil"]["blur_ksize"],
                threshold_offset=cfg["pupil"]["threshold_offset"],
            )
        gaze = GazeRayComputer(
            forward_point=cfg["gaze"]["forward_point"],
            plane_point=cfg["gaze"]["plane_point"],
            plane_normal=cfg["gaze"]["plane_normal"],
            parallel_eps=cfg["gaze"]["parallel_eps"],
        )
        return cls(
            detector=detector,
            regressor=regressor,
            camera=camera,
            pose_estimator=estimator,
            eye_extractor=extractor,
            pupil_normalizer=PupilNormalizer(locator, extractor),
            gaze_computer=gaze,
        )

    def update(self, image: np.ndarray) -> FrameResult:
        self.camera.observe(image)

        faces = tuple(self.detector.detect(image))
        landmarks = tuple(_as_landmark_set(self.regressor.predict(image, face)) for face in faces)

        eyes = []
        pupils = []
        for i, lms in enumerate(landmarks):
            regions = self.eye_extractor.extract(lms)
            eyes.append(regions)

            if self.pupil_normalizer is None:
                pupils.append(None)
                continue
            try:
                pupils.append(self.pupil_normalizer.measure_regions(image, regions))
            except GazePoseError as e:
                log.warning(f"Pupil measurement failed for face {i}: {e}")
                pupils.append(e)

        return FrameResult(
            faces=faces,
            landmarks=landmarks,
            eyes=tuple(eyes),
            pupils=tuple(pupils),
            estimator=self.pose_estimator,
            gaze_computer=self.gaze_computer,
        )


def _as_landmark_set(shape: Any) -> LandmarkSet:
    if isinstance(shape, LandmarkSet):
        return shape
    if hasattr(shape, "part") and hasattr(shape, "num_parts"):
        return LandmarkSet.from_dlib(shape)
    return LandmarkSet(shape)
