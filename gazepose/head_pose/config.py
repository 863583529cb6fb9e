from __future__ import annotations

from typing import Any, Dict, Optional

from gazepose.utils.config_utils import as_bool, as_float, as_int, as_vec3, get_section
from gazepose.utils.load_config import load_yaml_section


def load_estimator_config(path: Optional[str]) -> Dict[str, Any]:
    root = load_yaml_section(path, "estimator")

    camera = get_section(root, "camera")
    pose = get_section(root, "pose")
    eyes = get_section(root, "eyes")
    pupil = get_section(root, "pupil")
    gaze = get_section(root, "gaze")

    return {
        "camera": {
            "focal_length": as_float(camera.get("focal_length"), 500.0),
        },
        "pose": {
            # Head ~1m in front of the camera, roughly facing it.
            "seed_rvec": as_vec3(pose.get("seed_rvec"), (1.2, 1.2, -1.2)),
            "seed_tvec_mm": as_vec3(pose.get("seed_tvec_mm"), (0.0, 0.0, 1000.0)),
            "degenerate_tol_px": as_float(pose.get("degenerate_tol_px"), 1e-3),
        },
        "eyes": {
            "enlarge_factor": as_float(eyes.get("enlarge_factor"), 0.25),
            "shared_margin": as_bool(eyes.get("shared_margin"), False),
        },
        "pupil": {
            "blur_ksize": as_int(pupil.get("blur_ksize"), 5),
            "threshold_offset": as_int(pupil.get("threshold_offset"), 10),
        },
        "gaze": {
            "forward_point": as_vec3(gaze.get("forward_point"), (1.0, 0.0, 0.0)),
            "plane_point": as_vec3(gaze.get("plane_point"), (0.0, 0.0, 0.0)),
            "plane_normal": as_vec3(gaze.get("plane_normal"), (0.0, 0.0, 1.0)),
            "parallel_eps": as_float(gaze.get("parallel_eps"), 1e-9),
        },
    }
