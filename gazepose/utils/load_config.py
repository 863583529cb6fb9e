import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

log = logging.getLogger(__name__)


def load_yaml_section(path: Optional[Union[str, Path]], section: str) -> Dict[str, Any]:
    """
    Load one section of a YAML config file as a dict.

    `section` may be dotted ("estimator.pose") to walk nested mappings.
    A missing file, a missing section or a malformed document all give {},
    so callers always fall back to their own defaults.
    """
    if not path:
        return {}

    cfg_path = Path(path)
    if not cfg_path.is_file():
        log.info(f"No config at '{cfg_path}', using defaults.")
        return {}

    try:
        node: Any = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        log.warning(f"Could not read config '{cfg_path}': {e}. Using defaults.")
        return {}

    for key in (section or "").split("."):
        if not key:
            continue
        if not isinstance(node, dict):
            return {}
        node = node.get(key, {})

    if not isinstance(node, dict):
        log.warning(f"Config section '{section}' in '{cfg_path}' is not a mapping. Using defaults.")
        return {}
    return node
