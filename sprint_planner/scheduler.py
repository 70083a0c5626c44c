"""Precedence-aware greedy bucket scheduler.

Each pass re-ranks the remaining issues, commits the first one whose nested
dependencies are all captured, and defers everything else to the next pass.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

from .buckets import (
    empty_buckets,
    filter_captured_by_subset,
    get_all_captured_issues,
    get_heaviest_bucket,
    get_heaviest_captured_issue,
    get_lightest_bucket,
)
from .models import DEFAULT_BUCKET_COUNT, Bucket, CapturedIssue, Issue, PlanningError
from .ordering import sort_candidates

logger = logging.getLogger(__name__)


class UnschedulableIssuesError(PlanningError):
    def __init__(self, issue_keys: Sequence[str], placed: int) -> None:
        keys = ", ".join(issue_keys)
        super().__init__(
            f"No issue is ready after placing {placed}; waiting on dependencies: {keys}"
        )
        self.issue_keys = tuple(issue_keys)
        self.placed = placed


def minimum_ready_weight(issue: Issue, buckets: Sequence[Bucket]) -> float:
    captured = filter_captured_by_subset(
        sorted(issue.nested_dependencies), get_all_captured_issues(buckets)
    )
    heaviest_dependency = get_heaviest_captured_issue(captured)
    if heaviest_dependency is not None:
        return heaviest_dependency.weight_after
    lightest = get_lightest_bucket(buckets)
    return lightest.weight if lightest is not None else 0.0


def choose_bucket(buckets: Sequence[Bucket], ready_weight: float) -> Bucket:
    best_case = get_heaviest_bucket([b for b in buckets if b.weight <= ready_weight])
    if best_case is not None:
        return best_case
    worst_case = get_lightest_bucket(buckets)
    return worst_case if worst_case is not None else buckets[0]


def place_issue(issue: Issue, buckets: Sequence[Bucket]) -> CapturedIssue:
    ready_weight = minimum_ready_weight(issue, buckets)
    bucket = choose_bucket(buckets, ready_weight)
    weight_before = max(bucket.weight, ready_weight)
    captured = CapturedIssue(
        issue_key=issue.key,
        weight_before=weight_before,
        weight_after=weight_before + issue.points,
    )
    bucket.weight = captured.weight_after
    bucket.issues.append(captured)
    return captured


def _is_ready(issue: Issue, captured_keys: Set[str]) -> bool:
    return all(key in captured_keys for key in issue.nested_dependencies)


def schedule_issues(
    issues: Sequence[Issue],
    buckets: Optional[List[Bucket]] = None,
    *,
    bucket_count: int = DEFAULT_BUCKET_COUNT,
) -> List[Bucket]:
    """Assign every non-epic issue to exactly one bucket.

    Args:
        issues: Issues with nested dependencies already computed.
        buckets: Buckets to fill; a fresh list of ``bucket_count`` empty
            buckets when omitted. Mutated in place.
        bucket_count: Size of the fresh bucket list.

    Returns:
        The bucket list.

    Raises:
        UnschedulableIssuesError: A pass found no ready issue.
        ValueError: There are issues to place but no buckets.
    """
    if buckets is None:
        buckets = empty_buckets(bucket_count)
    worklist = [issue for issue in issues if not issue.is_epic]
    if worklist and not buckets:
        raise ValueError("cannot schedule issues into zero buckets")

    captured_keys = {key for bucket in buckets for key in bucket.keys()}
    placed = 0
    while worklist:
        deferred: List[Issue] = []
        committed: Optional[Issue] = None
        for issue in sort_candidates(worklist):
            if committed is not None or not _is_ready(issue, captured_keys):
                deferred.append(issue)
                continue
            captured = place_issue(issue, buckets)
            captured_keys.add(issue.key)
            committed = issue
            placed += 1
            logger.debug(
                "Placed %s at [%s, %s)",
                issue.key,
                captured.weight_before,
                captured.weight_after,
            )
        if committed is None:
            raise UnschedulableIssuesError([issue.key for issue in deferred], placed)
        worklist = deferred
    return buckets
