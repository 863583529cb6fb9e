from __future__ import annotations


class GazePoseError(Exception):
    """Base class for every numerical failure the pipeline reports."""


class CameraNotInitializedError(GazePoseError):
    """Projection requested before any frame set the optical center."""


class PoseSolveError(GazePoseError):
    """The rigid pose solve failed or produced an unusable pose."""


class DegenerateCorrespondencesError(PoseSolveError):
    """2D correspondences are coincident or collinear, so the pose is underdetermined."""


class DegenerateEyeRegionError(GazePoseError):
    """Eye region has zero or negative size."""


class PupilNotFoundError(GazePoseError):
    """The pupil locator found no plausible pupil inside the eye mask."""


class ParallelGazeRayError(GazePoseError):
    """Gaze ray is parallel to the reference plane."""
