from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import pandas as pd

from .buckets import empty_buckets, get_heaviest_bucket
from .colors import assign_colors
from .graph import IssueGraph, SelfDependencyError, build_issue_graph, validate_graph
from .io_utils import parse_dependency_field
from .models import EPIC, STORY, Bucket, Issue, PlanningConfig
from .ordering import priority_size_key
from .scheduler import schedule_issues

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    graph: IssueGraph
    buckets: List[Bucket]
    epic_colors: Dict[str, int] = field(default_factory=dict)

    @property
    def total_weight(self) -> float:
        heaviest = get_heaviest_bucket(self.buckets)
        return heaviest.weight if heaviest is not None else 0.0


def _parse_points(value: object, issue_key: str, issue_type: str, default: float) -> float:
    try:
        points = float(str(value).strip()) if value is not None else math.nan
    except ValueError:
        points = math.nan
    if math.isnan(points) or math.isinf(points) or points <= 0:
        if issue_type != EPIC:
            logger.warning(
                "Issue %s has no usable points (%r); defaulting to %s",
                issue_key,
                value,
                default,
            )
        return default
    return points


def issue_from_record(record: Dict[str, object], default_points: float) -> Issue:
    key = str(record.get("key") or "").strip()
    if not key:
        raise ValueError("issue key is required")
    issue_type = str(record.get("type") or "").strip() or STORY
    dependencies = record.get("dependencies")
    if isinstance(dependencies, (list, tuple)):
        dependency_keys = tuple(str(dep).strip() for dep in dependencies if str(dep).strip())
    else:
        dependency_keys = parse_dependency_field(dependencies)
    if key in dependency_keys:
        raise SelfDependencyError(key)
    return Issue(
        key=key,
        points=_parse_points(record.get("points"), key, issue_type, default_points),
        priority=str(record.get("priority") or "").strip(),
        summary=str(record.get("summary") or ""),
        sprint=str(record.get("sprint") or ""),
        status=str(record.get("status") or ""),
        issue_type=issue_type,
        epic=str(record.get("epic") or "").strip(),
        dependency_keys=dependency_keys,
    )


def _issues_from_df(df: pd.DataFrame, cfg: PlanningConfig) -> List[Issue]:
    return [issue_from_record(record, cfg.default_points) for record in df.to_dict("records")]


def plan_issues(issues: Sequence[Issue], cfg: PlanningConfig) -> PlanResult:
    """Build the dependency graph for ``issues`` and schedule it into buckets.

    Any PlanningError aborts the run before a bucket list is returned.
    """
    graph = build_issue_graph(sorted(issues, key=priority_size_key))
    validate_graph(graph)
    buckets = schedule_issues(graph.schedulable(), empty_buckets(cfg.bucket_count))
    return PlanResult(graph=graph, buckets=buckets, epic_colors=assign_colors(graph.epics))


def plan(issues_df: pd.DataFrame, cfg: PlanningConfig) -> PlanResult:
    return plan_issues(_issues_from_df(issues_df, cfg), cfg)
