"""View model for rendering buckets as horizontal lanes.

Lanes are laid out on the weight axis at ``px_per_point`` pixels per point.
A focused issue (hovered wins over clicked) highlights its nested
dependencies and every issue that depends on it.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional

from .colors import color_for
from .engine import PlanResult
from .models import Issue, PlanningConfig

PX_PER_POINT = 100


def _focused_issue(
    result: PlanResult, hovered_key: Optional[str], clicked_key: Optional[str]
) -> Optional[Issue]:
    focus_key = hovered_key or clicked_key
    if not focus_key:
        return None
    if focus_key not in result.graph.issues:
        raise ValueError(f"unknown issue '{focus_key}'")
    return result.graph.get(focus_key)


def point_markers(
    heaviest_weight: float, points_per_sprint: float, px_per_point: int = PX_PER_POINT
) -> List[Dict[str, object]]:
    """One marker per whole point; markers opening a sprint carry its number, others 0."""
    markers: List[Dict[str, object]] = []
    for points in range(int(math.floor(heaviest_weight)) + 1):
        opens_sprint = points % points_per_sprint == 0
        markers.append(
            {
                "points": points,
                "position_px": points * px_per_point,
                "sprint": int(points // points_per_sprint) + 1 if opens_sprint else 0,
            }
        )
    return markers


def bucket_view(
    result: PlanResult,
    config: PlanningConfig,
    *,
    hovered_key: Optional[str] = None,
    clicked_key: Optional[str] = None,
    px_per_point: int = PX_PER_POINT,
) -> Dict[str, object]:
    focus = _focused_issue(result, hovered_key, clicked_key)
    lanes = []
    for bucket in result.buckets:
        issues = []
        for captured in bucket.issues:
            issue = result.graph.get(captured.issue_key)
            issues.append(
                {
                    "key": issue.key,
                    "summary": issue.summary,
                    "epic": issue.epic,
                    "color": color_for(issue.epic, result.epic_colors),
                    "points": issue.points,
                    "weight_before": captured.weight_before,
                    "weight_after": captured.weight_after,
                    "hovered": bool(hovered_key) and issue.key == hovered_key,
                    "clicked": bool(clicked_key) and issue.key == clicked_key,
                    "is_dependency": focus is not None
                    and issue.key in focus.nested_dependencies,
                    "has_dependency": focus is not None
                    and focus.key in issue.nested_dependencies,
                    "width_px": issue.points * px_per_point,
                    "offset_px": captured.weight_before * px_per_point,
                }
            )
        lanes.append({"weight": bucket.weight, "issues": issues})
    total_weight = result.total_weight
    return {
        "buckets": lanes,
        "width_px": total_weight * px_per_point,
        "point_markers": point_markers(total_weight, config.points_per_sprint, px_per_point),
        "epics": {
            epic_key: color_for(epic_key, result.epic_colors)
            for epic_key in result.epic_colors
        },
    }
