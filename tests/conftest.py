"""Shared test helpers for sprint-planner.

Issues are built in code rather than loaded from fixture files; ``csv_text``
renders the same rows as an issues CSV for the I/O and web tests.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

import pytest

from sprint_planner.models import EPIC, STORY, Issue

CSV_HEADER = "key,points,priority,summary,sprint,status,type,epic,dependencies"


# ---------------------------------------------------------------------------
# Issue factories
# ---------------------------------------------------------------------------
def story(
    key: str,
    points: float = 1.0,
    priority: str = "Medium",
    deps: Sequence[str] = (),
    epic: str = "",
) -> Issue:
    return Issue(
        key=key,
        points=points,
        priority=priority,
        summary=f"Summary of {key}",
        issue_type=STORY,
        epic=epic,
        dependency_keys=tuple(deps),
    )


def epic(key: str, deps: Sequence[str] = ()) -> Issue:
    return Issue(key=key, points=0.5, issue_type=EPIC, dependency_keys=tuple(deps))


def placements(buckets) -> Dict[str, tuple]:
    """issue key -> (bucket index, weight_before, weight_after)."""
    found: Dict[str, tuple] = {}
    for index, bucket in enumerate(buckets):
        for captured in bucket.issues:
            assert captured.issue_key not in found, f"{captured.issue_key} placed twice"
            found[captured.issue_key] = (index, captured.weight_before, captured.weight_after)
    return found


def csv_text(rows: Iterable[Dict[str, str]]) -> str:
    columns = CSV_HEADER.split(",")
    lines: List[str] = [CSV_HEADER]
    for row in rows:
        cells = []
        for column in columns:
            value = str(row.get(column, ""))
            cells.append(f'"{value}"' if "," in value else value)
        lines.append(",".join(cells))
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# pytest fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def roadmap_rows() -> List[Dict[str, str]]:
    """A small roadmap: one epic with two stories and a follow-up depending on the epic."""
    return [
        {"key": "E1", "type": "Epic", "summary": "Checkout"},
        {"key": "S1", "points": "2", "priority": "High", "type": "Story", "epic": "E1"},
        {"key": "S2", "points": "1", "priority": "Low", "type": "Story", "epic": "E1",
         "dependencies": "S1"},
        {"key": "S3", "points": "1", "priority": "Critical", "type": "Story",
         "dependencies": "E1"},
        {"key": "S4", "points": "", "priority": "Medium", "type": "Story"},
    ]


@pytest.fixture
def roadmap_csv(roadmap_rows) -> str:
    return csv_text(roadmap_rows)


@pytest.fixture
def roadmap_file(tmp_path, roadmap_csv):
    path = tmp_path / "issues.csv"
    path.write_text(roadmap_csv)
    return path
