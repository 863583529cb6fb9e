from __future__ import annotations

from typing import Any, Dict, Sequence, Tuple


def as_float(x: Any, default: float) -> float:
    try:
        return float(x)
    except Exception:
        return float(default)


def as_int(x: Any, default: int) -> int:
    try:
        return int(x)
    except Exception:
        return int(default)


def as_bool(x: Any, default: bool) -> bool:
    if isinstance(x, bool):
        return x
    s = str(x).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    return bool(default)


def as_vec3(x: Any, default: Sequence[float]) -> Tuple[float, float, float]:
    """Three floats from a YAML list; falls back to `default` on any shape error."""
    try:
        vals = [float(v) for v in x]
    except Exception:
        vals = []
    if len(vals) != 3:
        vals = [float(v) for v in default]
    return vals[0], vals[1], vals[2]


def get_section(root: Dict[str, Any], key: str) -> Dict[str, Any]:
    v = root.get(key, {})
    return v if isinstance(v, dict) else {}
