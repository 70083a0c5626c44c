"""Sprint labelling along the scheduled weight axis and CSV-ready tables."""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, List, Optional, Sequence

import pandas as pd
from dateutil.relativedelta import relativedelta

from .buckets import get_all_captured_issues
from .engine import PlanResult
from .io_utils import DATE_FMT
from .models import Bucket, PlanningConfig

SCHEDULE_COLUMNS = [
    "bucket",
    "key",
    "summary",
    "epic",
    "points",
    "weight_before",
    "weight_after",
    "sprint",
]


def sprint_number(weight_before: float, points_per_sprint: float) -> int:
    """1-based sprint whose ``[start, start + points_per_sprint)`` range holds the weight."""
    if points_per_sprint <= 0:
        raise ValueError("points_per_sprint must be positive")
    return int(math.floor(weight_before / points_per_sprint)) + 1


def sprint_start(config: PlanningConfig, sprint: int) -> Optional[date]:
    if config.planning_start is None:
        return None
    return config.planning_start + relativedelta(weeks=(sprint - 1) * config.sprint_length_weeks)


def sprint_export_name(config: PlanningConfig) -> str:
    weeks = config.points_per_sprint / 2
    label = f"{weeks:g}"
    return f"Sprint Planning - {label} week sprints"


def group_by_sprint(buckets: Sequence[Bucket], points_per_sprint: float) -> Dict[int, List[str]]:
    """Issue keys per sprint number, every sprint up to the last one present."""
    grouped: Dict[int, List[str]] = {}
    for captured in get_all_captured_issues(buckets):
        sprint = sprint_number(captured.weight_before, points_per_sprint)
        grouped.setdefault(sprint, []).append(captured.issue_key)
    if not grouped:
        return {}
    return {sprint: grouped.get(sprint, []) for sprint in range(1, max(grouped) + 1)}


def sprint_table(buckets: Sequence[Bucket], points_per_sprint: float) -> pd.DataFrame:
    grouped = group_by_sprint(buckets, points_per_sprint)
    depth = max((len(keys) for keys in grouped.values()), default=0)
    columns = {
        f"Sprint {sprint}": keys + [""] * (depth - len(keys))
        for sprint, keys in grouped.items()
    }
    return pd.DataFrame(columns, columns=list(columns))


def schedule_table(result: PlanResult, config: PlanningConfig) -> pd.DataFrame:
    rows: List[Dict[str, object]] = []
    for index, bucket in enumerate(result.buckets, start=1):
        for captured in bucket.issues:
            issue = result.graph.get(captured.issue_key)
            sprint = sprint_number(captured.weight_before, config.points_per_sprint)
            row: Dict[str, object] = {
                "bucket": index,
                "key": issue.key,
                "summary": issue.summary,
                "epic": issue.epic,
                "points": issue.points,
                "weight_before": captured.weight_before,
                "weight_after": captured.weight_after,
                "sprint": sprint,
            }
            if config.planning_start is not None:
                row["sprint_start"] = sprint_start(config, sprint).strftime(DATE_FMT)
            rows.append(row)
    columns = list(SCHEDULE_COLUMNS)
    if config.planning_start is not None:
        columns.append("sprint_start")
    return pd.DataFrame(rows, columns=columns)


def sprint_csv(buckets: Sequence[Bucket], points_per_sprint: float) -> str:
    return sprint_table(buckets, points_per_sprint).to_csv(index=False)
