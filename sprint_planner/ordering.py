from __future__ import annotations

from typing import Iterable, List, Tuple

from .models import PRIORITY_RANKS, Issue


def priority_rank(priority: str) -> int:
    """Critical=4 down to Low=1; unknown or empty priorities rank 0."""
    return PRIORITY_RANKS.get(priority, 0)


def priority_size_key(issue: Issue) -> Tuple[int, float]:
    return (-priority_rank(issue.priority), issue.points)


def fan_in_key(issue: Issue) -> int:
    return -issue.fan_in


def sort_candidates(issues: Iterable[Issue]) -> List[Issue]:
    # Both sorts are stable, so fan-in dominates and priority/size breaks ties.
    ranked = sorted(issues, key=priority_size_key)
    return sorted(ranked, key=fan_in_key)
