"""
Generic adult head used as the 3D side of the pose solve.

Coordinates are millimetres in a head frame centred on the sellion:
x points forward out of the face, y to the subject's left, z up.
"""
from types import MappingProxyType
from typing import Final, Mapping

import numpy as np


def _frozen(x: float, y: float, z: float) -> np.ndarray:
    p = np.array([x, y, z], dtype=np.float64)
    p.setflags(write=False)
    return p


P3D_SELLION: Final = _frozen(0.0, 0.0, 0.0)
P3D_RIGHT_EYE: Final = _frozen(-20.0, -65.5, -5.0)
P3D_LEFT_EYE: Final = _frozen(-20.0, 65.5, -5.0)
P3D_RIGHT_EAR: Final = _frozen(-100.0, -77.5, -6.0)
P3D_LEFT_EAR: Final = _frozen(-100.0, 77.5, -6.0)
P3D_NOSE: Final = _frozen(21.0, 0.0, -48.0)
P3D_STOMION: Final = _frozen(10.0, 0.0, -75.0)
P3D_MENTON: Final = _frozen(0.0, 0.0, -133.0)

HEAD_MODEL: Final[Mapping[str, np.ndarray]] = MappingProxyType({
    "sellion": P3D_SELLION,
    "right_eye": P3D_RIGHT_EYE,
    "left_eye": P3D_LEFT_EYE,
    "right_ear": P3D_RIGHT_EAR,
    "left_ear": P3D_LEFT_EAR,
    "menton": P3D_MENTON,
    "nose": P3D_NOSE,
    "stomion": P3D_STOMION,
})
