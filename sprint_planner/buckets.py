from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from .models import Bucket, CapturedIssue


def empty_buckets(count: int) -> List[Bucket]:
    if count < 0:
        raise ValueError("bucket count must not be negative")
    return [Bucket() for _ in range(count)]


def get_heaviest_bucket(buckets: Sequence[Bucket]) -> Optional[Bucket]:
    heaviest: Optional[Bucket] = None
    for bucket in buckets:
        if heaviest is None or bucket.weight > heaviest.weight:
            heaviest = bucket
    return heaviest


def get_lightest_bucket(buckets: Sequence[Bucket]) -> Optional[Bucket]:
    lightest: Optional[Bucket] = None
    for bucket in buckets:
        if lightest is None or bucket.weight < lightest.weight:
            lightest = bucket
    return lightest


def get_heaviest_captured_issue(
    captured_issues: Sequence[CapturedIssue],
) -> Optional[CapturedIssue]:
    heaviest: Optional[CapturedIssue] = None
    for captured in captured_issues:
        if heaviest is None or captured.weight_after > heaviest.weight_after:
            heaviest = captured
    return heaviest


def get_all_captured_issues(buckets: Iterable[Bucket]) -> List[CapturedIssue]:
    return [captured for bucket in buckets for captured in bucket.issues]


def filter_captured_by_subset(
    candidate_keys: Iterable[str],
    captured_issues: Iterable[CapturedIssue],
) -> List[CapturedIssue]:
    """Captured records for ``candidate_keys``, in candidate order.

    Candidates that have not been captured yet are left out.
    """
    by_key: Dict[str, CapturedIssue] = {}
    for captured in captured_issues:
        by_key.setdefault(captured.issue_key, captured)
    return [by_key[key] for key in candidate_keys if key in by_key]
