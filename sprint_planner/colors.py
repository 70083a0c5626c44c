from __future__ import annotations

from typing import Dict, Iterable, List, Optional

# Material palette, one entry per epic in order; wraps around.
EPIC_PALETTE: List[str] = [
    "#EF5350",
    "#EC407A",
    "#BA68C8",
    "#9575CD",
    "#7986CB",
    "#1E88E5",
    "#26A69A",
    "#66BB6A",
    "#CDDC39",
    "#FF7043",
]
NO_EPIC_COLOR = "#90A4AE"


def assign_colors(epic_keys: Iterable[str]) -> Dict[str, int]:
    """Map each epic key to a palette index by first appearance."""
    colors: Dict[str, int] = {}
    for epic_key in epic_keys:
        if epic_key not in colors:
            colors[epic_key] = len(colors) % len(EPIC_PALETTE)
    return colors


def color_for(epic_key: Optional[str], colors: Dict[str, int]) -> str:
    if not epic_key or epic_key not in colors:
        return NO_EPIC_COLOR
    return EPIC_PALETTE[colors[epic_key]]
