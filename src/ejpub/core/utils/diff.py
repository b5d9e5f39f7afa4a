"""Line diffs between stored Editor.js documents"""

import difflib
import json


def pretty_json(data: str) -> str:
    """Re-indent a JSON string with sorted keys so each block field sits on its own line.

    Undecodable input is returned unchanged.
    """
    try:
        decoded = json.loads(data)
    except ValueError:
        return data
    return json.dumps(decoded, indent=2, ensure_ascii=False, sort_keys=True) + "\n"


def unified_diff(old: str, new: str, from_label: str = "a", to_label: str = "b", context: int = 3) -> list[str]:
    """Unified diff of old -> new as newline-terminated lines; [] when equal."""
    return list(difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=from_label,
        tofile=to_label,
        n=context,
    ))
