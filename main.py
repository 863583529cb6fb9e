import argparse
import logging
import os
import sys

# 1. GLOBAL LOGGING SETUP
# -----------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)

log = logging.getLogger("gazepose")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Head pose and gaze from single images (68-point landmarks).")
    parser.add_argument("--image", action="append", required=True, help="Image to process (repeatable).")
    parser.add_argument("--landmark-model", required=True, help="Path to shape_predictor_68_face_landmarks.dat.")
    parser.add_argument("--config", default="config/estimator_config.yaml", help="Estimator YAML config.")
    parser.add_argument("--focal-length", type=float, default=None, help="Override camera focal length (px).")
    parser.add_argument("--debug-out", default=None, help="Directory for annotated debug images.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser.parse_args(argv)


def run(args) -> int:
    import cv2

    from gazepose.core.errors import GazePoseError
    from gazepose.core.frame_processing import FrameProcessor
    from gazepose.detectors.dlib_backend import DlibFaceDetector, DlibLandmarkRegressor
    from gazepose.head_pose.config import load_estimator_config
    from gazepose.utils.ui.visualization import Visualizer

    cfg = load_estimator_config(args.config)
    if args.focal_length is not None:
        cfg["camera"]["focal_length"] = float(args.focal_length)

    processor = FrameProcessor.from_config(
        cfg,
        detector=DlibFaceDetector(),
        regressor=DlibLandmarkRegressor(args.landmark_model),
    )
    viz = Visualizer() if args.debug_out else None
    if args.debug_out:
        os.makedirs(args.debug_out, exist_ok=True)

    failures = 0
    for path in args.image:
        image = cv2.imread(path)
        if image is None:
            log.error(f"Could not read image: {path}")
            failures += 1
            continue

        frame = processor.update(image)
        log.info(f"{path}: {len(frame)} face(s)")
        debug = image.copy() if viz else None

        for i in range(len(frame)):
            pupils = frame.pupils[i]
            if isinstance(pupils, GazePoseError):
                log.warning(f"  face {i}: pupils unavailable ({pupils})")
            elif pupils is not None:
                log.info(f"  face {i}: pupils left=({pupils.left[0]:+.2f}, {pupils.left[1]:+.2f}) "
                         f"right=({pupils.right[0]:+.2f}, {pupils.right[1]:+.2f})")

            try:
                pose = frame.pose(i)
            except GazePoseError as e:
                log.warning(f"  face {i}: pose unavailable ({e})")
                failures += 1
                continue
            t = pose.translation
            log.info(f"  face {i}: head at ({t[0] * 100:.0f}cm, {t[1] * 100:.0f}cm, {t[2] * 100:.0f}cm)")

            hit = None
            try:
                hit = frame.gaze_computer.intersect(pose)
                log.info(f"  face {i}: gaze hits plane at {hit.point}")
            except GazePoseError as e:
                log.warning(f"  face {i}: no gaze point ({e})")

            if viz:
                projection = processor.camera.project()
                viz.draw_pose_axes(debug, pose, projection)
                for region, offset in zip(frame.eyes[i], _offsets(pupils)):
                    viz.draw_eye_region(debug, region, offset)
                if hit is not None:
                    viz.draw_gaze(debug, hit, projection)

        if viz:
            out = os.path.join(args.debug_out, os.path.basename(path))
            cv2.imwrite(out, debug)
            log.info(f"  debug image written to {out}")

    return 1 if failures else 0


def _offsets(pupils):
    if pupils is None or isinstance(pupils, Exception):
        return (None, None)
    return (pupils.left, pupils.right)


if __name__ == "__main__":
    args = parse_args()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    try:
        sys.exit(run(args))
    except ImportError as e:
        logging.critical(f"ImportError: {e}", exc_info=True)
        sys.exit(2)
