"""
Semantic names for the 68-point facial landmark scheme (iBUG 300-W ordering,
as produced by dlib's shape predictor).
"""
from enum import IntEnum
from typing import Final, Tuple

NUM_LANDMARKS: Final = 68


class FacialFeature(IntEnum):
    # "Right"/"left" are the subject's own sides.
    RIGHT_SIDE = 0
    MENTON = 8
    LEFT_SIDE = 16
    EYEBROW_RIGHT = 21
    EYEBROW_LEFT = 22
    SELLION = 27
    NOSE = 30
    RIGHT_EYE = 36
    LEFT_EYE = 45
    MOUTH_RIGHT = 48
    MOUTH_UP = 51
    MOUTH_LEFT = 54
    MOUTH_DOWN = 57
    MOUTH_CENTER_TOP = 62
    MOUTH_CENTER_BOTTOM = 66


# Eye contours, 6 points each, named by the side they appear on in the image.
# Order: first corner, upper lid x2, second corner, lower lid x2.
LEFT_EYE: Final[Tuple[int, ...]] = (36, 37, 38, 39, 40, 41)
RIGHT_EYE: Final[Tuple[int, ...]] = (42, 43, 44, 45, 46, 47)
